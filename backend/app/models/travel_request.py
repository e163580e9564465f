"""TravelRequest ORM model."""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Enum as SAEnum
from sqlalchemy.orm import relationship

from app.database import Base


class TravelRequestStatus(str, enum.Enum):
    requested = "requested"
    approved = "approved"
    cancelled = "cancelled"


STATUS_LABELS = {
    TravelRequestStatus.requested: "Requested",
    TravelRequestStatus.approved: "Approved",
    TravelRequestStatus.cancelled: "Cancelled",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TravelRequest(Base):
    __tablename__ = "travel_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    requester_name = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    departure_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    status = Column(SAEnum(TravelRequestStatus), nullable=False, default=TravelRequestStatus.requested)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    owner = relationship("User", back_populates="travel_requests")

    @property
    def duration_days(self) -> int:
        """Trip length counting both the departure and the return day."""
        return (self.return_date - self.departure_date).days + 1
