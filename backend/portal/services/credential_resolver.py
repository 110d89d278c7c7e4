"""
Credential resolution.

Turns whatever the user typed in the login box into the account to
authenticate against. Patients may sign in with their email, their 10-digit
patient ID, or their patient ID plus national ID. The last form skips the
password entirely; it is kept because existing patients rely on it and is
an explicit policy decision, not an oversight. Doctors may use email, phone
number or medical licence ID.

Nothing here compares passwords; that is the authenticator's job.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from portal.exceptions import (
    CredentialMismatch,
    IdentifierNotFound,
    StorageUnavailable,
    ValidationError,
)
from portal.models.doctor import DoctorProfile
from portal.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^\d{10}$")


def is_email(value: str) -> bool:
    return "@" in value


def validate_identifier(identifier: str) -> str:
    identifier = (identifier or "").strip()
    if not IDENTIFIER_PATTERN.match(identifier):
        raise ValidationError("patient_id", "must be a 10-digit number")
    return identifier


@dataclass
class Resolution:
    """Result of resolving login input. ``email`` is None on the national-ID path."""
    email: Optional[str] = None
    account_id: Optional[str] = None
    identifier: Optional[str] = None
    password_required: bool = True


class CredentialResolver:

    def __init__(self, store: MappingStore):
        self.store = store

    async def resolve(self, login_input: str, national_id: Optional[str] = None) -> Resolution:
        login_input = (login_input or "").strip()
        if not login_input:
            raise ValidationError("credentials", "are required")

        if is_email(login_input):
            return Resolution(email=login_input)

        identifier = validate_identifier(login_input)
        mapping = await self.store.lookup(identifier)
        if mapping is None:
            raise IdentifierNotFound(identifier)

        if national_id is not None:
            if mapping.national_id != national_id.strip():
                raise CredentialMismatch(f"national ID does not match identifier {identifier}")
            logger.info("Identifier %s resolved by national ID (no password)", identifier)
            return Resolution(
                account_id=mapping.account_id,
                identifier=identifier,
                password_required=False,
            )

        return Resolution(email=mapping.email, account_id=mapping.account_id, identifier=identifier)

    async def resolve_doctor(self, login_input: str) -> str:
        """Return the authentication email for a doctor's email, phone or licence ID."""
        login_input = (login_input or "").strip()
        if not login_input:
            raise ValidationError("credentials", "are required")
        if is_email(login_input):
            return login_input

        session = self.store.session
        try:
            email = await session.scalar(select(DoctorProfile.email).where(DoctorProfile.phone == login_input))
            if email is None:
                email = await session.scalar(
                    select(DoctorProfile.email).where(DoctorProfile.medical_license_id == login_input)
                )
        except SQLAlchemyError as e:
            logger.error("Doctor credential lookup failed: %s", e)
            raise StorageUnavailable("resolve_doctor failed") from e

        if email is None:
            raise IdentifierNotFound(login_input)
        return email
