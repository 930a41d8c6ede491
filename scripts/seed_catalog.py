"""
Load the sample catalog as approved stacks.

Stacks whose name already exists are skipped, so the script can be re-run.

    python scripts/seed_catalog.py --admin-email admin@example.com
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from stackatlas.config import get_settings
from stackatlas.database import async_session_maker, init_db, close_db
from stackatlas.engines.catalog.catalog_service import CatalogService
from stackatlas.kernel.identity.identity_service import IdentityService
from stackatlas.kernel.models.stack import StartupStack
from stackatlas.logging_config import configure_logging, get_logger

logger = get_logger("scripts.seed_catalog")

SAMPLE_STACKS = [
    {
        "name": "Stripe",
        "industry": "Fintech",
        "scale": "Unicorn",
        "location": "San Francisco, CA",
        "description": "Online payment processing platform that enables businesses to accept payments over the internet.",
        "tech_stack": {
            "frontend": ["React", "TypeScript", "Next.js"],
            "backend": ["Ruby on Rails", "Node.js", "Go"],
            "database": ["PostgreSQL", "Redis", "MongoDB"],
            "infrastructure": ["AWS", "Kubernetes", "Docker"],
        },
        "founded": 2010,
        "employees": "4000+",
        "funding": "$2.2B (Public)",
        "website": "https://stripe.com",
    },
    {
        "name": "Airbnb",
        "industry": "E-commerce",
        "scale": "Public",
        "location": "San Francisco, CA",
        "description": "Online marketplace for short-term homestays and experiences.",
        "tech_stack": {
            "frontend": ["React", "JavaScript", "Sass"],
            "backend": ["Ruby on Rails", "Java", "Python"],
            "database": ["MySQL", "Redis", "Elasticsearch"],
            "infrastructure": ["AWS", "Kubernetes", "Kafka"],
        },
        "founded": 2008,
        "employees": "6000+",
        "funding": "Public (ABNB)",
        "website": "https://airbnb.com",
    },
    {
        "name": "Notion",
        "industry": "SaaS",
        "scale": "Series C+",
        "location": "San Francisco, CA",
        "description": "All-in-one workspace for notes, tasks, wikis, and databases.",
        "tech_stack": {
            "frontend": ["React", "TypeScript", "Electron"],
            "backend": ["Node.js", "TypeScript"],
            "database": ["PostgreSQL", "Redis"],
            "infrastructure": ["AWS", "CloudFlare", "Docker"],
        },
        "founded": 2016,
        "employees": "500+",
        "funding": "$343M Series C",
        "website": "https://notion.so",
    },
    {
        "name": "Discord",
        "industry": "Social Media",
        "scale": "Unicorn",
        "location": "San Francisco, CA",
        "description": "Voice, video and text communication service designed for creating communities.",
        "tech_stack": {
            "frontend": ["React", "JavaScript", "Electron"],
            "backend": ["Elixir", "Python", "Rust"],
            "database": ["Cassandra", "MongoDB", "Redis"],
            "infrastructure": ["Google Cloud", "Kubernetes", "Docker"],
        },
        "founded": 2015,
        "employees": "600+",
        "funding": "$995M (Unicorn)",
        "website": "https://discord.com",
    },
    {
        "name": "Figma",
        "industry": "SaaS",
        "scale": "Unicorn",
        "location": "San Francisco, CA",
        "description": "Collaborative interface design tool that runs in the browser.",
        "tech_stack": {
            "frontend": ["TypeScript", "React", "WebAssembly"],
            "backend": ["Node.js", "TypeScript", "C++"],
            "database": ["PostgreSQL", "Redis"],
            "infrastructure": ["AWS", "Kubernetes", "Docker"],
        },
        "founded": 2012,
        "employees": "800+",
        "funding": "$333M (Acquired by Adobe)",
        "website": "https://figma.com",
    },
    {
        "name": "Canva",
        "industry": "SaaS",
        "scale": "Unicorn",
        "location": "Sydney, Australia",
        "description": (
            "Graphic design platform that allows users to create social media graphics, "
            "presentations, and other visual content."
        ),
        "tech_stack": {
            "frontend": ["React", "TypeScript", "WebGL"],
            "backend": ["Java", "Scala", "Python"],
            "database": ["MongoDB", "Redis", "Elasticsearch"],
            "infrastructure": ["AWS", "Kubernetes", "Docker"],
        },
        "founded": 2013,
        "employees": "3000+",
        "funding": "$71B Valuation",
        "website": "https://canva.com",
    },
]


async def main(admin_email: str) -> int:
    await init_db()
    try:
        async with async_session_maker() as session:
            admin = await IdentityService(session).get_user_by_email(admin_email)
            if admin is None or not admin.is_admin:
                logger.error("%s is not an admin account (see scripts/create_admin.py)", admin_email)
                return 1

            existing = set((await session.execute(select(StartupStack.name))).scalars().all())
            catalog = CatalogService(session)
            created = 0
            for data in SAMPLE_STACKS:
                if data["name"] in existing:
                    logger.info("Skipping %s (already in catalog)", data["name"])
                    continue
                await catalog.create_stack(data, creator=admin)
                created += 1

            await session.commit()
            logger.info("Seeded %d stack(s)", created)
            return 0
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load the sample catalog")
    parser.add_argument("--admin-email", required=True)
    args = parser.parse_args()
    settings = get_settings()
    configure_logging(log_level=settings.log_level, environment=settings.environment, debug=settings.debug)
    sys.exit(asyncio.run(main(args.admin_email)))
