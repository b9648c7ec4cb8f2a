#!/usr/bin/env python3
"""Create the Vibe CRM database tables"""

import asyncio
import sys

from vibecrm.core.logging import setup_logging
from vibecrm.db.database import engine, Base
from vibecrm import models  # noqa: F401


async def init_database(drop: bool = False):
    """Create all database tables, optionally dropping them first"""
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database tables created successfully")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database(drop="--drop" in sys.argv[1:]))
