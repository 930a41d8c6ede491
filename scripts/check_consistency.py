"""
Run the contribution/catalog consistency check (intended for cron).

Exit status is 0 when nothing was found, 2 when problems were reported.

    python scripts/check_consistency.py            # repair and report
    python scripts/check_consistency.py --dry-run  # report only
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stackatlas.config import get_settings
from stackatlas.database import async_session_maker, close_db
from stackatlas.logging_config import configure_logging, get_logger
from stackatlas.orchestration.consistency import ConsistencyChecker

logger = get_logger("scripts.check_consistency")


async def main(repair: bool) -> int:
    try:
        async with async_session_maker() as session:
            report = await ConsistencyChecker(session).run(repair=repair)
            if repair:
                await session.commit()
    finally:
        await close_db()

    for contribution_id in report.repaired_pending:
        logger.info("Pending contribution %s already promoted%s", contribution_id, "" if repair else " (not repaired)")
    for contribution_id in report.approved_without_stack:
        logger.warning("Approved contribution %s has no stack", contribution_id)
    for stack_id in report.stacks_from_rejected:
        logger.warning("Stack %s was promoted from a rejected contribution", stack_id)
    return 0 if report.is_clean else 2


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check contributions against the catalog")
    parser.add_argument("--dry-run", action="store_true", help="Report without repairing")
    args = parser.parse_args()
    settings = get_settings()
    configure_logging(log_level=settings.log_level, environment=settings.environment, debug=settings.debug)
    sys.exit(asyncio.run(main(repair=not args.dry_run)))
