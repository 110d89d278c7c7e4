import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.config import Settings
from portal.exceptions import CredentialMismatch, StorageUnavailable, ValidationError
from portal.models.account import Account
from portal.models.patient import PatientProfile
from portal.schemas.auth import AccountSummary
from portal.services.authenticator import Authenticator
from portal.services.credential_resolver import CredentialResolver
from portal.services.mapping_store import MappingStore

logger = logging.getLogger(__name__)


async def _load_account(db: AsyncSession, account_id: str) -> Account:
    try:
        account = await db.get(Account, account_id)
    except SQLAlchemyError as e:
        logger.error("Account load failed: %s", e)
        raise StorageUnavailable("account load failed") from e
    if account is None:
        raise CredentialMismatch(f"mapping points at missing account {account_id}")
    return account


async def _patient_identifier(db: AsyncSession, account_id: str):
    try:
        profile = await db.get(PatientProfile, account_id)
    except SQLAlchemyError as e:
        logger.error("Patient profile load failed: %s", e)
        raise StorageUnavailable("profile load failed") from e
    return profile.identifier if profile else None


async def login(
    db: AsyncSession,
    settings: Settings,
    login_input: str,
    secondary_input: str,
    role: str,
    method: str = "password",
) -> AccountSummary:
    """
    Resolve the login input, authenticate, and issue a session token.

    Every credential failure raises IdentifierNotFound or CredentialMismatch,
    which share the same public "Invalid credentials." message.
    """
    if not (secondary_input or "").strip():
        raise ValidationError("password" if method == "password" else "national_id", "is required")

    store = MappingStore(db)
    resolver = CredentialResolver(store)
    authenticator = Authenticator(db, settings)

    if role == "doctor":
        if method != "password":
            raise ValidationError("method", "must be password for doctors")
        email = await resolver.resolve_doctor(login_input)
        account = await authenticator.sign_in(email, secondary_input)
        identifier = None
    else:
        national_id = secondary_input if method == "national_id" else None
        resolution = await resolver.resolve(login_input, national_id=national_id)
        if resolution.password_required:
            account = await authenticator.sign_in(resolution.email, secondary_input)
            if resolution.account_id is not None and account.id != resolution.account_id:
                raise CredentialMismatch("signed-in account differs from identifier mapping")
        else:
            account = await _load_account(db, resolution.account_id)
        identifier = resolution.identifier or await _patient_identifier(db, account.id)

    if account.role != role:
        raise CredentialMismatch(f"account {account.id} is not a {role}")

    logger.info("Signed in %s %s via %s", role, account.id, method)
    return AccountSummary(
        account_id=account.id,
        role=account.role,
        display_name=account.display_name,
        email=account.email,
        identifier=identifier,
        access_token=authenticator.issue_token(account),
    )
