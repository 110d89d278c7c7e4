"""
Load the medical registry of verified doctors from a CSV file.
Run with: python -m scripts.seed_verified_doctors registry.csv

The CSV needs the columns national_id, license_id, date_of_birth (YYYY-MM-DD).
"""

import argparse
import asyncio
from portal.database import engine, async_session, init_models
from portal.services.registry_service import load_verified_doctors, read_registry_csv


async def seed(path: str):
    await init_models(engine)
    with open(path, newline="", encoding="utf-8") as f:
        rows = read_registry_csv(f)
    async with async_session() as db:
        added = await load_verified_doctors(db, rows)
        await db.commit()
    print(f"Added {added} of {len(rows)} registry entries.")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load verified doctors into the registry table")
    parser.add_argument("csv_path", help="CSV with national_id, license_id, date_of_birth columns")
    args = parser.parse_args()

    asyncio.run(seed(args.csv_path))
