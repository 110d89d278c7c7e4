"""
Tests for login input resolution.
"""

from datetime import date
import pytest
from portal.exceptions import INVALID_CREDENTIALS, CredentialMismatch, IdentifierNotFound, ValidationError
from portal.models.doctor import DoctorProfile
from portal.models.identifier_mapping import IdentifierMapping
from portal.services.credential_resolver import CredentialResolver
from portal.services.mapping_store import MappingStore


def _mapping():
    return IdentifierMapping(
        identifier="3456781234",
        account_id="acct-1",
        national_id="490012345678",
        email="asha@example.com",
        display_name="Asha Rao",
    )


async def test_email_input_passes_through_without_store_access(mock_store):
    resolution = await CredentialResolver(mock_store).resolve("  asha@example.com ")

    assert resolution.email == "asha@example.com"
    assert resolution.password_required
    mock_store.lookup.assert_not_called()
    mock_store.exists.assert_not_called()


async def test_identifier_resolves_to_stored_email(mock_store):
    mock_store.lookup.return_value = _mapping()

    resolution = await CredentialResolver(mock_store).resolve("3456781234")

    assert resolution.email == "asha@example.com"
    assert resolution.account_id == "acct-1"
    assert resolution.identifier == "3456781234"
    assert resolution.password_required


async def test_unknown_identifier_fails_with_generic_message(mock_store):
    with pytest.raises(IdentifierNotFound) as exc_info:
        await CredentialResolver(mock_store).resolve("9998887770", None)

    assert exc_info.value.public_message == INVALID_CREDENTIALS
    assert "not found" not in exc_info.value.public_message


async def test_national_id_match_returns_account_without_password(mock_store):
    mock_store.lookup.return_value = _mapping()

    resolution = await CredentialResolver(mock_store).resolve("3456781234", national_id=" 490012345678 ")

    assert resolution.account_id == "acct-1"
    assert resolution.email is None
    assert not resolution.password_required


async def test_national_id_mismatch(mock_store):
    mock_store.lookup.return_value = _mapping()

    with pytest.raises(CredentialMismatch) as exc_info:
        await CredentialResolver(mock_store).resolve("3456781234", national_id="490012345679")

    assert exc_info.value.public_message == INVALID_CREDENTIALS


@pytest.mark.parametrize("login_input", ["", "   ", "12345", "34567812345", "34567a1234"])
async def test_malformed_input_rejected_before_lookup(mock_store, login_input):
    with pytest.raises(ValidationError):
        await CredentialResolver(mock_store).resolve(login_input)

    mock_store.lookup.assert_not_called()


async def test_doctor_resolution_by_phone_and_licence(db):
    db.add(DoctorProfile(
        account_id="doc-1",
        name="Dr. Mehta",
        date_of_birth=date(1980, 4, 2),
        national_id="556677889900",
        medical_license_id="MCI-20931",
        phone="9876543210",
        email="mehta@example.com",
    ))
    await db.flush()
    resolver = CredentialResolver(MappingStore(db))

    assert await resolver.resolve_doctor("9876543210") == "mehta@example.com"
    assert await resolver.resolve_doctor("MCI-20931") == "mehta@example.com"
    assert await resolver.resolve_doctor("mehta@example.com") == "mehta@example.com"
    with pytest.raises(IdentifierNotFound):
        await resolver.resolve_doctor("MCI-00000")
