from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from portal.auth import Principal, get_current_user, require_doctor
from portal.database import get_db
from portal.schemas.today_entry import TodayEntryCreate, TodayEntryList, TodayEntryResponse, TodayEntryUpdate
from portal.services import patient_service, today_entry_service
from portal.services.credential_resolver import validate_identifier

router = APIRouter()


async def _check_access(db: AsyncSession, identifier: str, user: Principal) -> str:
    """Doctors see any patient's entries, patients only their own."""
    identifier = validate_identifier(identifier)
    if user.is_patient:
        profile = await patient_service.get_profile(db, user.account_id)
        if profile.identifier != identifier:
            raise HTTPException(status_code=403, detail="Access denied")
    return identifier


@router.post("/{identifier}", response_model=TodayEntryResponse, status_code=201)
async def add_today_entry(
    identifier: str,
    data: TodayEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    return await today_entry_service.add_entry(db, identifier, current_user, data)


@router.get("/{identifier}", response_model=TodayEntryList)
async def list_today_entries(
    identifier: str,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    identifier = await _check_access(db, identifier, current_user)
    entries = await today_entry_service.list_entries(db, identifier)
    return TodayEntryList(
        entries=[TodayEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.get("/{identifier}/{entry_date}", response_model=TodayEntryResponse)
async def get_today_entry(
    identifier: str,
    entry_date: date,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    identifier = await _check_access(db, identifier, current_user)
    entry = await today_entry_service.get_entry_by_date(db, identifier, entry_date)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"No entry for {entry_date}")
    return entry


@router.put("/by-id/{entry_id}", response_model=TodayEntryResponse)
async def update_today_entry(
    entry_id: int,
    data: TodayEntryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(require_doctor),
):
    return await today_entry_service.update_entry(db, entry_id, data)
