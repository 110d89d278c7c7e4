from pydantic import BaseModel
from datetime import date, datetime
from typing import Literal, Optional


EntryStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]


class TodayEntryBase(BaseModel):
    date: date
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    tests_recommended: Optional[str] = None
    notes: Optional[str] = None
    next_visit: Optional[date] = None
    blood_pressure: Optional[str] = None
    temperature: Optional[str] = None
    heart_rate: Optional[str] = None
    oxygen_level: Optional[str] = None
    weight: Optional[str] = None
    height: Optional[str] = None


class TodayEntryCreate(TodayEntryBase):
    pass


class TodayEntryUpdate(BaseModel):
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    tests_recommended: Optional[str] = None
    notes: Optional[str] = None
    next_visit: Optional[date] = None
    blood_pressure: Optional[str] = None
    temperature: Optional[str] = None
    heart_rate: Optional[str] = None
    oxygen_level: Optional[str] = None
    weight: Optional[str] = None
    height: Optional[str] = None
    status: Optional[EntryStatus] = None


class TodayEntryResponse(TodayEntryBase):
    id: int
    patient_identifier: str
    patient_name: Optional[str] = None
    doctor_account_id: str
    doctor_name: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TodayEntryList(BaseModel):
    entries: list[TodayEntryResponse]
    total: int
