"""
Tests for the session dependency: token decoding and the revocation check.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock
import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError
from starlette.requests import Request
from portal.auth import create_token, get_current_user
from portal.exceptions import StorageUnavailable
from portal.models.revoked_token import RevokedToken

ACCOUNT = SimpleNamespace(id="acct-1", role="patient", display_name="Asha Rao")


def _request(token=None):
    headers = [(b"authorization", f"Bearer {token}".encode())] if token else []
    return Request({"type": "http", "headers": headers})


async def test_valid_token_resolves_principal(settings):
    db = AsyncMock()
    db.get.return_value = None

    principal = await get_current_user(_request(create_token(ACCOUNT, settings)), db=db, settings=settings)

    assert principal.account_id == "acct-1"
    assert principal.is_patient
    db.get.assert_awaited_once_with(RevokedToken, principal.jti)


async def test_revoked_token_is_rejected(settings):
    db = AsyncMock()
    db.get.return_value = RevokedToken()

    with pytest.raises(HTTPException) as exc:
        await get_current_user(_request(create_token(ACCOUNT, settings)), db=db, settings=settings)
    assert exc.value.status_code == 401


async def test_missing_or_garbled_token(settings):
    db = AsyncMock()

    for request in (_request(), _request("not-a-jwt")):
        with pytest.raises(HTTPException) as exc:
            await get_current_user(request, db=db, settings=settings)
        assert exc.value.status_code == 401
    db.get.assert_not_awaited()


async def test_revocation_lookup_failure_is_storage_unavailable(settings):
    db = AsyncMock()
    db.get.side_effect = OperationalError("SELECT revoked_tokens", {}, Exception("database is locked"))

    with pytest.raises(StorageUnavailable):
        await get_current_user(_request(create_token(ACCOUNT, settings)), db=db, settings=settings)
