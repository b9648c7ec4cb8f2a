#!/usr/bin/env python3
"""
Grant the superadmin role to a user, creating the account when it does not exist.

Usage: python scripts/create_superadmin.py EMAIL [PASSWORD]
"""
import asyncio
import os
import sys

# Ensure backend modules are importable
THIS_DIR = os.path.dirname(__file__)
BACKEND_DIR = os.path.abspath(os.path.join(THIS_DIR, '..'))
sys.path.insert(0, BACKEND_DIR)

from vibecrm.core.logging import setup_logging  # noqa: E402
from vibecrm.db.database import AsyncSessionLocal  # noqa: E402
from vibecrm.services.user_service import grant_superadmin  # noqa: E402


async def main(email: str, password: str = None) -> int:
    async with AsyncSessionLocal() as session:
        try:
            user = await grant_superadmin(session, email, password)
            await session.commit()
        except Exception as e:
            await session.rollback()
            print(f"Failed to grant superadmin: {e}")
            return 1

    print(f"Superadmin ready: {user.email} ({user.id})")
    if not password:
        print("No password given; existing password kept or a temporary one generated.")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    setup_logging()
    sys.exit(asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)))
