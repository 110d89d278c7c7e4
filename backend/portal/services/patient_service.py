import json
import uuid
import logging
from datetime import datetime, timezone
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.exceptions import NotFound, StorageUnavailable, ValidationError
from portal.models.patient import PatientProfile, PROFILE_SECTIONS
from portal.schemas.patient import PatientProfileUpdate
from portal.services.credential_resolver import validate_identifier

logger = logging.getLogger(__name__)

# Sections a dashboard can append records to; allergies are edited as a whole list.
APPENDABLE_SECTIONS = tuple(s for s in PROFILE_SECTIONS if s != "allergies")


async def get_profile(db: AsyncSession, account_id: str) -> PatientProfile:
    try:
        profile = await db.get(PatientProfile, account_id)
    except SQLAlchemyError as e:
        logger.error("Profile load failed for %s: %s", account_id, e)
        raise StorageUnavailable("profile load failed") from e
    if profile is None:
        raise NotFound(f"no profile for {account_id}", public_message="Patient not found.")
    return profile


async def find_by_identifier(db: AsyncSession, identifier: str) -> PatientProfile:
    identifier = validate_identifier(identifier)
    try:
        result = await db.execute(select(PatientProfile).where(PatientProfile.identifier == identifier))
    except SQLAlchemyError as e:
        logger.error("Profile lookup failed for %s: %s", identifier, e)
        raise StorageUnavailable("profile lookup failed") from e
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFound(
            f"no patient with identifier {identifier}",
            public_message="Patient not found. Please check the ID and try again.",
        )
    return profile


# Fields stored as JSON lists or required text; a null would break the profile.
NON_NULLABLE_FIELDS = ("name", "allergies")


async def update_profile(db: AsyncSession, account_id: str, data: PatientProfileUpdate) -> PatientProfile:
    profile = await get_profile(db, account_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        if key in NON_NULLABLE_FIELDS and value is None:
            raise ValidationError(key, "cannot be empty")
        if key == "name" and not value.strip():
            raise ValidationError("name", "is required")
        setattr(profile, key, value)
    await db.flush()
    await db.refresh(profile)
    return profile


def _check_section(section: str) -> None:
    if section not in APPENDABLE_SECTIONS:
        raise ValidationError("section", f"must be one of {', '.join(APPENDABLE_SECTIONS)}")


def _find_item(items: list, section: str, item_id: str) -> int:
    for index, item in enumerate(items):
        if isinstance(item, dict) and item.get("id") == item_id:
            return index
    raise NotFound(f"no {section} item {item_id}", public_message="Record not found.")


async def append_section_item(db: AsyncSession, account_id: str, section: str, item: dict) -> PatientProfile:
    _check_section(section)
    profile = await get_profile(db, account_id)
    record = dict(item)
    record["id"] = uuid.uuid4().hex
    record.setdefault("added_at", datetime.now(timezone.utc).isoformat())
    # JSON columns only track reassignment, not in-place mutation
    setattr(profile, section, list(getattr(profile, section) or []) + [record])
    await db.flush()
    await db.refresh(profile)
    return profile


async def update_section_item(
    db: AsyncSession, account_id: str, section: str, item_id: str, changes: dict
) -> PatientProfile:
    """Merge ``changes`` into one record, e.g. an appointment's status or a prescription's dosage."""
    _check_section(section)
    profile = await get_profile(db, account_id)
    items = [dict(i) if isinstance(i, dict) else i for i in getattr(profile, section) or []]
    index = _find_item(items, section, item_id)
    record = items[index]
    record.update({k: v for k, v in changes.items() if k not in ("id", "added_at")})
    record["updated_at"] = datetime.now(timezone.utc).isoformat()
    setattr(profile, section, items)
    await db.flush()
    await db.refresh(profile)
    return profile


async def delete_section_item(db: AsyncSession, account_id: str, section: str, item_id: str) -> PatientProfile:
    _check_section(section)
    profile = await get_profile(db, account_id)
    items = list(getattr(profile, section) or [])
    del items[_find_item(items, section, item_id)]
    setattr(profile, section, items)
    await db.flush()
    await db.refresh(profile)
    logger.info("Removed %s item %s for %s", section, item_id, account_id)
    return profile


async def search_patients(db: AsyncSession, term: str, limit: int = 20) -> list[PatientProfile]:
    """Doctor search: name prefix (case-insensitive), or exact patient ID, phone or email."""
    term = (term or "").strip()
    if not term:
        raise ValidationError("search", "is required")
    query = (
        select(PatientProfile)
        .where(
            or_(
                PatientProfile.name.ilike(f"{term}%"),
                PatientProfile.identifier == term,
                PatientProfile.phone == term,
                PatientProfile.email == term.lower(),
            )
        )
        .order_by(PatientProfile.name)
        .limit(limit)
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        logger.error("Patient search failed: %s", e)
        raise StorageUnavailable("search failed") from e
    return list(result.scalars().all())


def qr_payload(profile: PatientProfile) -> dict:
    """Data encoded in the patient's QR identity card."""
    return {
        "type": "patient",
        "patientId": profile.identifier,
        "name": profile.name or "Unknown Patient",
        "emergencyContact": profile.emergency_contact_phone,
        "bloodGroup": profile.blood_group,
        "allergies": list(profile.allergies or []),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def parse_qr_payload(text: str) -> str:
    """Extract the patient ID from a scanned QR payload."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValidationError("qr_code", "could not be read") from e
    if not isinstance(data, dict) or data.get("type") != "patient" or not data.get("patientId"):
        raise ValidationError("qr_code", "is not a patient QR code")
    return validate_identifier(str(data["patientId"]))
