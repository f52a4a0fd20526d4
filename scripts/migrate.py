#!/usr/bin/env python3
"""
Database migration script for the document version service.
"""
import argparse
import asyncio
import os
import sys

# Add the app directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.core.database import engine, Base
import app.models  # noqa: F401  Registers every table on Base.metadata


async def create_tables(reset: bool):
    """Create all database tables, optionally dropping them first."""
    print("Creating database tables...")

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)
        print("Created all tables")

    print("Database migration completed successfully!")


async def main(reset: bool):
    """Main migration function."""
    try:
        await create_tables(reset)
    except Exception as e:
        print(f"Migration failed: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the document version tables")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first (development only)")
    args = parser.parse_args()
    asyncio.run(main(args.reset))
