from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from portal.database import Base


class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    account_id = Column(String(36), ForeignKey("accounts.id"), primary_key=True)
    name = Column(String(200), nullable=False)
    date_of_birth = Column(Date)
    national_id = Column(String(20), nullable=False)
    medical_license_id = Column(String(50), unique=True, nullable=False, index=True)
    phone = Column(String(20), unique=True, index=True)
    email = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VerifiedDoctor(Base):
    """Registry of licensed doctors that registrations are checked against."""
    __tablename__ = "verified_doctors"

    id = Column(Integer, primary_key=True, index=True)
    national_id = Column(String(20), nullable=False, index=True)
    license_id = Column(String(50), nullable=False, index=True)
    date_of_birth = Column(Date, nullable=False)
