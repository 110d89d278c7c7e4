from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from portal.auth import Principal, require_doctor, require_patient
from portal.database import get_db
from portal.schemas.patient import (
    PatientProfileResponse, PatientProfileUpdate, PatientSearchResults, QRScan, SectionItem,
)
from portal.services import patient_service

router = APIRouter()


@router.get("/me", response_model=PatientProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    return await patient_service.get_profile(db, current_user.account_id)


@router.put("/me", response_model=PatientProfileResponse)
async def update_my_profile(
    data: PatientProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    return await patient_service.update_profile(db, current_user.account_id, data)


@router.get("/me/qr")
async def get_my_qr_payload(
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    profile = await patient_service.get_profile(db, current_user.account_id)
    return patient_service.qr_payload(profile)


@router.post("/me/{section}", response_model=PatientProfileResponse, status_code=201)
async def add_section_item(
    section: str,
    item: SectionItem,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    return await patient_service.append_section_item(db, current_user.account_id, section, item.data)


@router.put("/me/{section}/{item_id}", response_model=PatientProfileResponse)
async def update_section_item(
    section: str,
    item_id: str,
    item: SectionItem,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    return await patient_service.update_section_item(db, current_user.account_id, section, item_id, item.data)


@router.delete("/me/{section}/{item_id}", response_model=PatientProfileResponse)
async def delete_section_item(
    section: str,
    item_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_patient),
):
    return await patient_service.delete_section_item(db, current_user.account_id, section, item_id)


@router.post("/scan", response_model=PatientProfileResponse)
async def scan_patient_qr(
    body: QRScan,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    identifier = patient_service.parse_qr_payload(body.payload)
    return await patient_service.find_by_identifier(db, identifier)


@router.get("/search", response_model=PatientSearchResults)
async def search_patients(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    patients = await patient_service.search_patients(db, q, limit)
    return {"patients": patients, "total": len(patients)}


@router.get("/{identifier}", response_model=PatientProfileResponse)
async def get_patient(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    return await patient_service.find_by_identifier(db, identifier)


@router.put("/{identifier}/{section}/{item_id}", response_model=PatientProfileResponse)
async def update_patient_section_item(
    identifier: str,
    section: str,
    item_id: str,
    item: SectionItem,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    """Doctor-side edit, e.g. confirming an appointment or adjusting a prescription."""
    profile = await patient_service.find_by_identifier(db, identifier)
    return await patient_service.update_section_item(db, profile.account_id, section, item_id, item.data)
