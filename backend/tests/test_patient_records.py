"""
Tests for patient profile, dashboard sections, QR payloads and today entries.
"""

import json
from datetime import date
import pytest
import pytest_asyncio
from pydantic import ValidationError as PydanticValidationError
from portal.auth import Principal
from portal.exceptions import NotFound, ValidationError
from portal.schemas.auth import PatientRegister
from portal.schemas.patient import PatientProfileUpdate
from portal.schemas.today_entry import TodayEntryCreate, TodayEntryUpdate
from portal.services import patient_service, registration_service, today_entry_service


@pytest_asyncio.fixture
async def patient(db, settings):
    result = await registration_service.register_patient(db, settings, PatientRegister(
        email="asha@example.com",
        password="s3cret-pass",
        name="Asha Rao",
        national_id="490012345678",
    ))
    return await patient_service.get_profile(db, result.account_id)


@pytest.fixture
def doctor_principal():
    return Principal(account_id="doc-1", role="doctor", display_name="Dr. Mehta", jti="j-1", expires_at=0)


async def test_find_by_identifier(db, patient):
    found = await patient_service.find_by_identifier(db, patient.identifier)
    assert found.account_id == patient.account_id

    with pytest.raises(NotFound):
        await patient_service.find_by_identifier(db, "9998887770")
    with pytest.raises(ValidationError):
        await patient_service.find_by_identifier(db, "12345")


async def test_update_profile_keeps_identity_fields(db, patient):
    updated = await patient_service.update_profile(db, patient.account_id, PatientProfileUpdate(
        phone="9000099999",
        blood_group="O+",
        allergies=["penicillin"],
    ))

    assert updated.phone == "9000099999"
    assert updated.blood_group == "O+"
    assert updated.allergies == ["penicillin"]
    assert updated.national_id == "490012345678"
    assert updated.name == "Asha Rao"


async def test_append_section_item(db, patient):
    await patient_service.append_section_item(db, patient.account_id, "prescriptions", {"medicine": "Metformin"})
    profile = await patient_service.append_section_item(
        db, patient.account_id, "prescriptions", {"medicine": "Atorvastatin"}
    )

    assert [p["medicine"] for p in profile.prescriptions] == ["Metformin", "Atorvastatin"]
    assert "added_at" in profile.prescriptions[0]

    with pytest.raises(ValidationError):
        await patient_service.append_section_item(db, patient.account_id, "password_hash", {})


async def test_qr_payload_round_trips_through_scan(patient):
    patient.blood_group = "B+"
    payload = patient_service.qr_payload(patient)

    assert payload["type"] == "patient"
    assert payload["patientId"] == patient.identifier
    assert payload["bloodGroup"] == "B+"
    assert patient_service.parse_qr_payload(json.dumps(payload)) == patient.identifier


@pytest.mark.parametrize("text", ["not json", "[]", '{"type": "doctor", "patientId": "3456781234"}', '{"type": "patient"}'])
def test_parse_qr_payload_rejects_foreign_codes(text):
    with pytest.raises(ValidationError):
        patient_service.parse_qr_payload(text)


async def test_today_entries(db, patient, doctor_principal):
    first = await today_entry_service.add_entry(db, patient.identifier, doctor_principal, TodayEntryCreate(
        date=date(2026, 10, 1),
        symptoms="fever",
        diagnosis="viral infection",
        temperature="101.2",
    ))
    await today_entry_service.add_entry(db, patient.identifier, doctor_principal, TodayEntryCreate(
        date=date(2026, 10, 15),
        symptoms="follow-up",
    ))

    assert first.status == "completed"
    assert first.patient_name == "Asha Rao"
    assert first.doctor_name == "Dr. Mehta"

    entries = await today_entry_service.list_entries(db, patient.identifier)
    assert [e.date for e in entries] == [date(2026, 10, 15), date(2026, 10, 1)]

    found = await today_entry_service.get_entry_by_date(db, patient.identifier, date(2026, 10, 1))
    assert found.id == first.id
    assert await today_entry_service.get_entry_by_date(db, patient.identifier, date(2026, 9, 1)) is None

    profile = await patient_service.get_profile(db, patient.account_id)
    await db.refresh(profile)
    assert profile.last_visit == date(2026, 10, 15)


async def test_update_entry(db, patient, doctor_principal):
    entry = await today_entry_service.add_entry(db, patient.identifier, doctor_principal, TodayEntryCreate(
        date=date(2026, 10, 1),
    ))

    updated = await today_entry_service.update_entry(db, entry.id, TodayEntryUpdate(diagnosis="migraine"))

    assert updated.diagnosis == "migraine"
    with pytest.raises(NotFound):
        await today_entry_service.update_entry(db, 999, TodayEntryUpdate(notes="x"))


async def test_entry_for_unknown_patient(db, doctor_principal):
    with pytest.raises(NotFound):
        await today_entry_service.add_entry(db, "9998887770", doctor_principal, TodayEntryCreate(date=date(2026, 10, 1)))


@pytest.mark.parametrize("field", ["name", "allergies"])
async def test_update_profile_rejects_null_for_required_fields(db, patient, field):
    with pytest.raises(ValidationError) as exc:
        await patient_service.update_profile(db, patient.account_id, PatientProfileUpdate(**{field: None}))

    assert exc.value.field == field


async def test_update_profile_clears_optional_fields(db, patient):
    await patient_service.update_profile(db, patient.account_id, PatientProfileUpdate(blood_group="O+"))

    updated = await patient_service.update_profile(db, patient.account_id, PatientProfileUpdate(blood_group=None))

    assert updated.blood_group is None
    assert updated.allergies == []


async def test_section_items_get_ids(db, patient):
    first = await patient_service.append_section_item(db, patient.account_id, "appointments", {"date": "2026-11-02"})
    first_id = first.appointments[0]["id"]
    profile = await patient_service.append_section_item(
        db, patient.account_id, "appointments", {"date": "2026-11-09", "id": "chosen-by-client"}
    )

    ids = [a["id"] for a in profile.appointments]
    assert ids[0] == first_id
    assert len(set(ids)) == 2
    assert "chosen-by-client" not in ids


async def test_update_section_item(db, patient):
    profile = await patient_service.append_section_item(
        db, patient.account_id, "appointments", {"date": "2026-11-02", "status": "pending"}
    )
    item_id = profile.appointments[0]["id"]

    updated = await patient_service.update_section_item(
        db, patient.account_id, "appointments", item_id, {"status": "confirmed", "id": "other"}
    )

    appointment = updated.appointments[0]
    assert appointment["status"] == "confirmed"
    assert appointment["date"] == "2026-11-02"
    assert appointment["id"] == item_id
    assert "updated_at" in appointment

    with pytest.raises(NotFound):
        await patient_service.update_section_item(db, patient.account_id, "appointments", "missing", {})
    with pytest.raises(ValidationError):
        await patient_service.update_section_item(db, patient.account_id, "allergies", item_id, {})


async def test_delete_section_item(db, patient):
    await patient_service.append_section_item(db, patient.account_id, "lab_reports", {"test": "HbA1c"})
    profile = await patient_service.append_section_item(db, patient.account_id, "lab_reports", {"test": "Lipid panel"})
    first_id = profile.lab_reports[0]["id"]

    profile = await patient_service.delete_section_item(db, patient.account_id, "lab_reports", first_id)

    assert [r["test"] for r in profile.lab_reports] == ["Lipid panel"]
    with pytest.raises(NotFound):
        await patient_service.delete_section_item(db, patient.account_id, "lab_reports", first_id)


async def test_search_patients(db, settings, patient):
    await registration_service.register_patient(db, settings, PatientRegister(
        email="ravi@example.com",
        password="s3cret-pass",
        name="Ravi Kumar",
        national_id="111122223333",
        phone="9000011111",
    ))

    assert [p.name for p in await patient_service.search_patients(db, "as")] == ["Asha Rao"]
    assert [p.name for p in await patient_service.search_patients(db, "RAVI")] == ["Ravi Kumar"]
    assert [p.name for p in await patient_service.search_patients(db, patient.identifier)] == ["Asha Rao"]
    assert [p.name for p in await patient_service.search_patients(db, "9000011111")] == ["Ravi Kumar"]
    assert [p.name for p in await patient_service.search_patients(db, "Asha@Example.com")] == ["Asha Rao"]
    assert await patient_service.search_patients(db, "Rao") == []

    with pytest.raises(ValidationError):
        await patient_service.search_patients(db, "   ")


async def test_update_entry_rejects_null_status(db, patient, doctor_principal):
    entry = await today_entry_service.add_entry(db, patient.identifier, doctor_principal, TodayEntryCreate(
        date=date(2026, 10, 1),
    ))

    with pytest.raises(ValidationError) as exc:
        await today_entry_service.update_entry(db, entry.id, TodayEntryUpdate(status=None))
    assert exc.value.field == "status"

    updated = await today_entry_service.update_entry(db, entry.id, TodayEntryUpdate(status="cancelled"))
    assert updated.status == "cancelled"


def test_entry_status_must_be_known():
    with pytest.raises(PydanticValidationError):
        TodayEntryUpdate(status="archived")
