"""
Seed Admin User

Creates the first admin account from ADMIN_EMAIL / ADMIN_PASSWORD.
Does nothing when an admin already exists.

Usage:
    ADMIN_EMAIL=... ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys

from admissions_portal.core.config import load_settings
from admissions_portal.core.database import Database
from admissions_portal.core.security import hash_password
from admissions_portal.modules.users.models import UserRole
from admissions_portal.modules.users.repository import UserRepository


async def seed_admin() -> int:
    """Create the admin user if none exists. Returns the process exit code."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")
    if not email or not password:
        print("ADMIN_EMAIL and ADMIN_PASSWORD must both be set", file=sys.stderr)
        return 1

    settings = load_settings()
    database = Database(settings.database_url)

    try:
        async with database.session() as db:
            admins = await UserRepository.list_users(db, role=UserRole.ADMIN)
            if admins:
                print(f"Admin already exists: {admins[0].username}")
                return 0

            if await UserRepository.username_exists(db, email):
                print(f"{email} is already registered with another role", file=sys.stderr)
                return 1

            admin = await UserRepository.create(
                db,
                username=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
                first_name=os.environ.get("ADMIN_FIRST_NAME"),
                last_name=os.environ.get("ADMIN_LAST_NAME"),
            )
            await db.commit()

            print("Admin created successfully!")
            print(f"  Email: {admin.username}")
            print(f"  ID: {admin.id}")
            return 0
    finally:
        await database.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
