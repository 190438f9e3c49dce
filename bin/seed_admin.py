# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_PASSWORD and
FIRST_ADMIN_CNIC from etc/app.conf.  After the row is inserted those
settings are no longer used by the application.  Admin accounts cannot be
created through self-registration.
"""

import asyncio
import os
import sys

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings          # noqa: E402
from core.roles import Role               # noqa: E402
from core.security import hash_password   # noqa: E402
from database import SessionLocal, engine  # noqa: E402
from models.user import User              # noqa: E402
from repository import Repository         # noqa: E402


async def seed() -> bool:
    if not settings.first_admin_email or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return False

    email = settings.first_admin_email.strip().lower()
    async with SessionLocal() as db:
        users = Repository(db, User, ("email", "cnic"))
        if await users.find_one(email=email) is not None:
            print(f"[seed_admin] Admin '{email}' already exists – skipping.")
            return False

        await users.save(
            User(
                first_name=settings.first_admin_first_name,
                last_name=settings.first_admin_last_name,
                email=email,
                password_hash=hash_password(settings.first_admin_password),
                cnic=settings.first_admin_cnic,
                phone_number="",
                role=Role.ADMIN.value,
                is_verified=True,
            )
        )
    print(f"[seed_admin] Admin '{email}' created successfully.")
    return True


async def main():
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
