from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from portal.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)           # opaque account reference (UUID string)
    email = Column(String(200), unique=True, nullable=False, index=True)
    password_hash = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)           # "patient" | "doctor"
    display_name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
