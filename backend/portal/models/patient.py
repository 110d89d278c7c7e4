from sqlalchemy import Column, String, Date, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from portal.database import Base

# Dashboard sections stored as JSON lists on the profile row.
PROFILE_SECTIONS = (
    "medical_history",
    "allergies",
    "prescriptions",
    "lab_reports",
    "vaccinations",
    "appointments",
    "doctor_notes",
    "chronic_diseases",
)


class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    account_id = Column(String(36), ForeignKey("accounts.id"), primary_key=True)
    identifier = Column(String(10), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    date_of_birth = Column(Date)
    national_id = Column(String(20), unique=True, nullable=False, index=True)
    phone = Column(String(20))
    gender = Column(String(10))
    email = Column(String(200), nullable=False)
    blood_group = Column(String(5))
    emergency_contact_phone = Column(String(20))
    medical_history = Column(JSON, default=list)
    allergies = Column(JSON, default=list)
    prescriptions = Column(JSON, default=list)
    lab_reports = Column(JSON, default=list)
    vaccinations = Column(JSON, default=list)
    appointments = Column(JSON, default=list)
    doctor_notes = Column(JSON, default=list)
    chronic_diseases = Column(JSON, default=list)
    last_visit = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
