from pydantic import BaseModel
from datetime import date, datetime
from typing import Any, Optional


class PatientProfileResponse(BaseModel):
    identifier: str
    name: str
    date_of_birth: Optional[date] = None
    national_id: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    email: str
    blood_group: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    medical_history: list[dict[str, Any]] = []
    allergies: list[str] = []
    prescriptions: list[dict[str, Any]] = []
    lab_reports: list[dict[str, Any]] = []
    vaccinations: list[dict[str, Any]] = []
    appointments: list[dict[str, Any]] = []
    doctor_notes: list[dict[str, Any]] = []
    chronic_diseases: list[dict[str, Any]] = []
    last_visit: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientProfileUpdate(BaseModel):
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    allergies: Optional[list[str]] = None


class SectionItem(BaseModel):
    """One record appended to a dashboard section (prescription, lab report, ...)."""
    data: dict[str, Any]


class QRScan(BaseModel):
    payload: str


class PatientSearchResult(BaseModel):
    identifier: str
    name: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    email: str
    last_visit: Optional[date] = None

    class Config:
        from_attributes = True


class PatientSearchResults(BaseModel):
    patients: list[PatientSearchResult]
    total: int
