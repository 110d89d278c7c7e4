import logging
import uuid
import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.auth import create_token
from portal.config import Settings
from portal.exceptions import AlreadyExists, CredentialMismatch, StorageUnavailable
from portal.models.account import Account
from portal.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)

ROLES = ("patient", "doctor")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class Authenticator:
    """Owns email/password credentials and session tokens. Never exposes hashes."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings

    async def create_account(self, email: str, password: str, role: str, display_name: str) -> Account:
        account = Account(
            id=str(uuid.uuid4()),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
            display_name=display_name,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(account)
        except IntegrityError as e:
            raise AlreadyExists("account", account.email) from e
        except SQLAlchemyError as e:
            logger.error("Account insert failed: %s", e)
            raise StorageUnavailable("create_account failed") from e
        logger.info("Created %s account %s", role, account.id)
        return account

    async def sign_in(self, email: str, password: str) -> Account:
        try:
            account = await self.session.scalar(select(Account).where(Account.email == email.strip().lower()))
        except SQLAlchemyError as e:
            logger.error("Account lookup failed: %s", e)
            raise StorageUnavailable("sign_in failed") from e
        if account is None or not check_password(password, account.password_hash):
            raise CredentialMismatch("email or password rejected")
        return account

    def issue_token(self, account: Account) -> str:
        return create_token(account, self.settings)

    async def sign_out(self, jti: str) -> None:
        if await self.session.get(RevokedToken, jti) is not None:
            return
        self.session.add(RevokedToken(jti=jti))
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("Token revocation failed: %s", e)
            raise StorageUnavailable("sign_out failed") from e
