"""
Create the tables and load the bundled municipality dataset.

Usage:
    python scripts/seed_municipalities.py
    python scripts/seed_municipalities.py --path data/municipalities.json
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend directory to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from gemeinde_info.db import close_db, get_db_session, init_db
from gemeinde_info.db.seeder import SEED_DATA_PATH, seed_municipalities


async def main() -> int:
    parser = argparse.ArgumentParser(description="Seed municipality_master_data")
    parser.add_argument("--path", type=Path, default=SEED_DATA_PATH, help="JSON seed file")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"Seed file not found: {args.path}")
        return 1

    await init_db()
    try:
        async with get_db_session() as db:
            created, updated = await seed_municipalities(db, args.path)
    finally:
        await close_db()

    print(f"Seeded municipalities: {created} created, {updated} updated")
    return 0


if __name__ == "__main__":
    exit(asyncio.run(main()))
