import csv
import logging
from datetime import date
from typing import IO
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from portal.exceptions import ValidationError
from portal.models.doctor import VerifiedDoctor

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("national_id", "license_id", "date_of_birth")


def read_registry_csv(f: IO[str]) -> list[dict]:
    reader = csv.DictReader(f)
    missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
    if missing:
        raise ValidationError("csv", f"is missing columns: {', '.join(missing)}")
    rows = []
    for line_no, row in enumerate(reader, start=2):
        try:
            rows.append({
                "national_id": row["national_id"].strip(),
                "license_id": row["license_id"].strip(),
                "date_of_birth": date.fromisoformat(row["date_of_birth"].strip()),
            })
        except ValueError as e:
            raise ValidationError("csv", f"line {line_no} has an invalid date_of_birth") from e
    return rows


async def load_verified_doctors(db: AsyncSession, rows: list[dict]) -> int:
    """Insert registry rows not already present. Returns the number added."""
    added = 0
    for row in rows:
        existing = await db.scalar(
            select(VerifiedDoctor.id).where(
                VerifiedDoctor.national_id == row["national_id"],
                VerifiedDoctor.license_id == row["license_id"],
            )
        )
        if existing:
            continue
        db.add(VerifiedDoctor(**row))
        added += 1
    await db.flush()
    logger.info("Loaded %d verified doctors", added)
    return added
