"""
Create an admin account, or promote an existing account to admin.

    python scripts/create_admin.py --email admin@example.com --username admin --password 'Secret123'
    python scripts/create_admin.py --email someone@example.com --promote
"""
import argparse
import asyncio
import os
import sys

# Allow running from a checkout without installing the package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stackatlas.config import get_settings
from stackatlas.database import async_session_maker, init_db, close_db
from stackatlas.kernel.errors import ConflictError
from stackatlas.kernel.identity.identity_service import IdentityService
from stackatlas.kernel.models.user import UserRole
from stackatlas.logging_config import configure_logging, get_logger

logger = get_logger("scripts.create_admin")


async def main(args: argparse.Namespace) -> int:
    await init_db()
    try:
        async with async_session_maker() as session:
            identity = IdentityService(session)
            user = await identity.get_user_by_email(args.email)

            if args.promote:
                if user is None:
                    logger.error("No user with email %s", args.email)
                    return 1
                await identity.set_role(user, UserRole.ADMIN)
            elif user is not None:
                logger.error("User %s already exists; use --promote", args.email)
                return 1
            else:
                if not args.username or not args.password:
                    logger.error("--username and --password are required to create an admin")
                    return 1
                try:
                    user = await identity.register_user(
                        username=args.username,
                        email=args.email,
                        password=args.password,
                        role=UserRole.ADMIN,
                    )
                except ConflictError as exc:
                    logger.error(exc.message)
                    return 1

            await session.commit()
            logger.info("Admin ready: %s (%s)", user.username, user.email)
            return 0
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--username")
    parser.add_argument("--password")
    parser.add_argument("--promote", action="store_true", help="Promote an existing account")
    settings = get_settings()
    configure_logging(log_level=settings.log_level, environment=settings.environment, debug=settings.debug)
    sys.exit(asyncio.run(main(parser.parse_args())))
