"""
Account registration for patients and doctors.

Patient registration order matters: the identifier is allocated before
anything is written, then the account, the identifier mapping and the
profile are written on the caller's session. All of it is one database
transaction, so if any step fails the request's rollback also removes the
account and no orphan is left behind. A mapping insert that loses the race
for its identifier is retried with a fresh allocation.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.config import Settings
from portal.exceptions import AlreadyExists, PermissionDenied, StorageUnavailable, ValidationError
from portal.models.doctor import DoctorProfile, VerifiedDoctor
from portal.models.patient import PatientProfile
from portal.schemas.auth import DoctorRegister, NationalIdStatus, PatientRegister
from portal.services.authenticator import Authenticator
from portal.services.identifier_allocator import IdentifierAllocator
from portal.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)

NATIONAL_ID_TAKEN = (
    "This national ID number is already registered. "
    "Please use a different one or contact support."
)
LICENSE_TAKEN = "A doctor with this Medical License ID is already registered."


@dataclass
class RegistrationResult:
    account_id: str
    identifier: Optional[str] = None


def require(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, "is required")
    return str(value).strip()


async def check_national_id(db: AsyncSession, national_id: str) -> NationalIdStatus:
    national_id = require(national_id, "national_id")
    mappings = await MappingStore(db).find_by_national_id(national_id)
    if mappings:
        return NationalIdStatus(already_registered=True, message=NATIONAL_ID_TAKEN)
    return NationalIdStatus(already_registered=False)


async def _add_row(db: AsyncSession, row, kind: str, key: str, public_message: str = None):
    try:
        async with db.begin_nested():
            db.add(row)
    except IntegrityError as e:
        raise AlreadyExists(kind, key, public_message=public_message) from e
    except SQLAlchemyError as e:
        logger.error("Insert of %s failed: %s", kind, e)
        raise StorageUnavailable(f"insert {kind} failed") from e


async def register_patient(
    db: AsyncSession,
    settings: Settings,
    data: PatientRegister,
    rng: Optional[random.Random] = None,
) -> RegistrationResult:
    email = require(data.email, "email")
    require(data.password, "password")
    name = require(data.name, "name")
    national_id = require(data.national_id, "national_id")

    status = await check_national_id(db, national_id)
    if status.already_registered:
        raise AlreadyExists("national_id", national_id, public_message=NATIONAL_ID_TAKEN)

    store = MappingStore(db)
    allocator = IdentifierAllocator(store, attempts=settings.identifier_attempts, rng=rng)
    identifier = await allocator.allocate(national_id)

    account = await Authenticator(db, settings).create_account(email, data.password, "patient", name)

    retries = settings.registration_retries
    for attempt in range(retries + 1):
        try:
            await store.create(identifier, account.id, national_id, account.email, name)
            break
        except AlreadyExists:
            if attempt == retries:
                raise
            logger.info("Identifier collided at insert, allocating again")
            identifier = await allocator.allocate(national_id)

    profile = PatientProfile(
        account_id=account.id,
        identifier=identifier,
        name=name,
        date_of_birth=data.date_of_birth,
        national_id=national_id,
        phone=data.phone,
        gender=data.gender,
        email=account.email,
        medical_history=[],
        allergies=[],
        prescriptions=[],
        lab_reports=[],
        vaccinations=[],
        appointments=[],
        doctor_notes=[],
        chronic_diseases=[],
    )
    await _add_row(db, profile, "patient_profile", national_id, public_message=NATIONAL_ID_TAKEN)

    logger.info("Registered patient %s", account.id)
    return RegistrationResult(account_id=account.id, identifier=identifier)


async def is_doctor_registered(db: AsyncSession, license_id: str) -> bool:
    found = await db.scalar(
        select(DoctorProfile.account_id).where(DoctorProfile.medical_license_id == license_id)
    )
    return found is not None


async def is_verified_doctor(db: AsyncSession, national_id: str, license_id: str, date_of_birth) -> bool:
    found = await db.scalar(
        select(VerifiedDoctor.id).where(
            VerifiedDoctor.national_id == national_id,
            VerifiedDoctor.license_id == license_id,
            VerifiedDoctor.date_of_birth == date_of_birth,
        )
    )
    return found is not None


async def register_doctor(db: AsyncSession, settings: Settings, data: DoctorRegister) -> RegistrationResult:
    email = require(data.email, "email")
    require(data.password, "password")
    name = require(data.name, "name")
    national_id = require(data.national_id, "national_id")
    license_id = require(data.medical_license_id, "medical_license_id")

    try:
        if await is_doctor_registered(db, license_id):
            raise AlreadyExists("doctor", license_id, public_message=LICENSE_TAKEN)
        verified = await is_verified_doctor(db, national_id, license_id, data.date_of_birth)
    except SQLAlchemyError as e:
        logger.error("Doctor registry check failed: %s", e)
        raise StorageUnavailable("doctor registry check failed") from e
    if not verified:
        logger.warning("Doctor registration rejected, licence %s not in registry", license_id)
        raise PermissionDenied(
            f"licence {license_id} not verified",
            public_message="Your details could not be verified against the medical registry.",
        )

    account = await Authenticator(db, settings).create_account(email, data.password, "doctor", name)
    profile = DoctorProfile(
        account_id=account.id,
        name=name,
        date_of_birth=data.date_of_birth,
        national_id=national_id,
        medical_license_id=license_id,
        phone=(data.phone or "").strip() or None,
        email=account.email,
    )
    await _add_row(db, profile, "doctor_profile", license_id, public_message=LICENSE_TAKEN)

    logger.info("Registered doctor %s", account.id)
    return RegistrationResult(account_id=account.id)
