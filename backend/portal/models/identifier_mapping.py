from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from portal.database import Base


class IdentifierMapping(Base):
    __tablename__ = "identifier_mappings"

    # The primary key is the uniqueness gate for allocated identifiers.
    identifier = Column(String(10), primary_key=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    national_id = Column(String(20), nullable=False, index=True)
    email = Column(String(200), nullable=False)
    display_name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
