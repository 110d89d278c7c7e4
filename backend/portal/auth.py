"""
Auth module: JWT creation/validation and the get_current_user FastAPI dependency.

Sessions are stateless HS256 tokens. Signing out stores the token's ``jti``
in ``revoked_tokens``; the dependency rejects revoked, expired or malformed
tokens with 401.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.config import Settings, get_settings
from portal.database import get_db
from portal.exceptions import StorageUnavailable
from portal.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass
class Principal:
    """Resolved identity attached to each request."""
    account_id: str
    role: str                     # "patient" | "doctor"
    display_name: str
    jti: str
    expires_at: int

    @property
    def is_doctor(self) -> bool:
        return self.role == "doctor"

    @property
    def is_patient(self) -> bool:
        return self.role == "patient"


def create_token(account, settings: Optional[Settings] = None) -> str:
    """Create a signed JWT for the given Account model instance."""
    settings = settings or get_settings()
    payload = {
        "sub": account.id,
        "role": account.role,
        "name": account.display_name,
        "jti": str(uuid.uuid4()),
        "exp": int(time.time()) + settings.jwt_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str, settings: Optional[Settings] = None) -> Optional[Principal]:
    """Decode and validate a JWT. Returns None if invalid/expired."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
        return Principal(
            account_id=payload["sub"],
            role=payload["role"],
            display_name=payload.get("name", ""),
            jti=payload["jti"],
            expires_at=payload["exp"],
        )
    except (JWTError, KeyError):
        return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """
    FastAPI dependency. Extracts the bearer token from the Authorization header
    and rejects missing, invalid or signed-out sessions.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not signed in")
    principal = decode_token(auth_header[7:], settings)
    if principal is None:
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")
    try:
        revoked = await db.get(RevokedToken, principal.jti)
    except SQLAlchemyError as e:
        logger.error("Revocation check failed for %s: %s", principal.jti, e)
        raise StorageUnavailable("revocation check failed") from e
    if revoked is not None:
        raise HTTPException(status_code=401, detail="Session expired, please sign in again")
    return principal


async def require_doctor(current_user: Principal = Depends(get_current_user)) -> Principal:
    if not current_user.is_doctor:
        raise HTTPException(status_code=403, detail="Only doctors can access this resource")
    return current_user


async def require_patient(current_user: Principal = Depends(get_current_user)) -> Principal:
    if not current_user.is_patient:
        raise HTTPException(status_code=403, detail="Only patients can access this resource")
    return current_user
