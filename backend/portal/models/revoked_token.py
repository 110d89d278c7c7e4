from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from portal.database import Base


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(36), primary_key=True)
    revoked_at = Column(DateTime(timezone=True), server_default=func.now())
