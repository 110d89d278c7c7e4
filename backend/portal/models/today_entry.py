from sqlalchemy import Column, Integer, String, Text, Date, DateTime
from sqlalchemy.sql import func
from portal.database import Base


class TodayEntry(Base):
    __tablename__ = "today_entries"

    id = Column(Integer, primary_key=True, index=True)
    patient_identifier = Column(String(10), nullable=False, index=True)
    patient_name = Column(String(200))
    doctor_account_id = Column(String(36), nullable=False)
    doctor_name = Column(String(200))
    date = Column(Date, nullable=False, index=True)
    symptoms = Column(Text)
    diagnosis = Column(Text)
    prescription = Column(Text)
    tests_recommended = Column(Text)
    notes = Column(Text)
    next_visit = Column(Date)
    blood_pressure = Column(String(20))
    temperature = Column(String(20))
    heart_rate = Column(String(20))
    oxygen_level = Column(String(20))
    weight = Column(String(20))
    height = Column(String(20))
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
