"""RevokedToken ORM model: JWT ids invalidated by logout or refresh."""
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime

from app.database import Base


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
