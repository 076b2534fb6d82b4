"""
Seed the permission catalog and the system roles.

Run after deployment or whenever the catalog changes. Optionally promote an
existing user to super-admin (the bootstrap administrator).

Usage:
    python -m scripts.seed_permissions
    python -m scripts.seed_permissions --super-admin owner@example.com
"""
import argparse
import asyncio
from typing import Optional
from sqlalchemy import select

from app.core.database.engine import AsyncSessionLocal, init_db
from app.features.users.models import User
from app.features.permissions.seed import seed_all
from app.utils import get_logger


log = get_logger(__name__)


async def main(super_admin_email: Optional[str] = None):
    log.info("Starting permission seeding...")
    await init_db()

    async with AsyncSessionLocal() as db:
        roles = await seed_all(db)
        log.info("System roles: %s", ", ".join(sorted(roles)))

        if super_admin_email:
            user = await db.scalar(select(User).where(User.email == super_admin_email))
            if user is None:
                log.error("No user with email %s; log in once before promoting", super_admin_email)
                raise SystemExit(1)
            user.is_super_admin = True
            await db.commit()
            log.info("User %s (%s) is now a super-admin", user.id, super_admin_email)

    log.info("Permission seeding completed successfully")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--super-admin", metavar="EMAIL", help="promote this user to super-admin")
    args = parser.parse_args()
    asyncio.run(main(args.super_admin))
