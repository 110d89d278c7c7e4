import logging
from datetime import date
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.auth import Principal
from portal.exceptions import NotFound, StorageUnavailable, ValidationError
from portal.models.patient import PatientProfile
from portal.models.today_entry import TodayEntry
from portal.schemas.today_entry import TodayEntryCreate, TodayEntryUpdate
from portal.services.patient_service import find_by_identifier

logger = logging.getLogger(__name__)


async def _update_last_visit(db: AsyncSession, identifier: str, visit_date: date) -> None:
    """Secondary write; a failure is logged and the entry is kept."""
    try:
        async with db.begin_nested():
            await db.execute(
                update(PatientProfile)
                .where(PatientProfile.identifier == identifier)
                .values(last_visit=visit_date)
            )
    except SQLAlchemyError as e:
        logger.warning("Could not update last visit for %s: %s", identifier, e)


async def add_entry(db: AsyncSession, identifier: str, doctor: Principal, data: TodayEntryCreate) -> TodayEntry:
    patient = await find_by_identifier(db, identifier)
    entry = TodayEntry(
        patient_identifier=patient.identifier,
        patient_name=patient.name or "Unknown",
        doctor_account_id=doctor.account_id,
        doctor_name=doctor.display_name,
        status="completed",
        **data.model_dump(),
    )
    db.add(entry)
    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error("Saving today entry failed: %s", e)
        raise StorageUnavailable("add_entry failed") from e
    await _update_last_visit(db, patient.identifier, data.date)
    await db.refresh(entry)
    logger.info("Doctor %s added entry %s for %s", doctor.account_id, entry.id, patient.identifier)
    return entry


async def list_entries(db: AsyncSession, identifier: str) -> list[TodayEntry]:
    result = await db.execute(
        select(TodayEntry)
        .where(TodayEntry.patient_identifier == identifier)
        .order_by(TodayEntry.date.desc(), TodayEntry.id.desc())
    )
    return list(result.scalars().all())


async def get_entry_by_date(db: AsyncSession, identifier: str, entry_date: date) -> Optional[TodayEntry]:
    result = await db.execute(
        select(TodayEntry)
        .where(TodayEntry.patient_identifier == identifier, TodayEntry.date == entry_date)
        .order_by(TodayEntry.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_entry(db: AsyncSession, entry_id: int, data: TodayEntryUpdate) -> TodayEntry:
    entry = await db.get(TodayEntry, entry_id)
    if entry is None:
        raise NotFound(f"no entry {entry_id}", public_message="Entry not found.")
    for key, value in data.model_dump(exclude_unset=True).items():
        if key == "status" and value is None:
            raise ValidationError("status", "cannot be empty")
        setattr(entry, key, value)
    await db.flush()
    await db.refresh(entry)
    return entry
