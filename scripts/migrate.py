#!/usr/bin/env python3
"""Database migration script - creates all tables."""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tempwallet.config import get_settings
from tempwallet.storage.database import close_db, init_db


async def main():
    settings = get_settings()

    print(f"Database URL: {settings.get_safe_dict()['database_url']}")
    print("Creating database tables...")

    try:
        await init_db()
        print("Database tables created successfully!")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
