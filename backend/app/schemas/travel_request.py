"""Pydantic schemas for TravelRequests."""
from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models.travel_request import STATUS_LABELS, TravelRequestStatus
from app.models.user import UserRole


class TravelRequestCreate(BaseModel):
    requester_name: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    departure_date: date
    return_date: date
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"str_strip_whitespace": True}

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class StatusUpdate(BaseModel):
    status: TravelRequestStatus


class TravelRequestFilters(BaseModel):
    status: Optional[TravelRequestStatus] = None
    destination: Optional[str] = None
    date_from: Optional[date] = None  # departure date range
    date_to: Optional[date] = None
    request_date_from: Optional[date] = None  # creation date range
    request_date_to: Optional[date] = None


class StatusOut(BaseModel):
    value: str
    label: str


class OwnerOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}


class TravelRequestOut(BaseModel):
    request_id: str
    owner_id: str
    requester_name: str
    destination: str
    departure_date: date
    return_date: date
    status: StatusOut
    notes: Optional[str] = None
    duration_days: int
    owner: Optional[OwnerOut] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("status", mode="before")
    @classmethod
    def expand_status(cls, value):
        if isinstance(value, str) and not isinstance(value, TravelRequestStatus):
            value = TravelRequestStatus(value)
        if isinstance(value, TravelRequestStatus):
            return {"value": value.value, "label": STATUS_LABELS[value]}
        return value


class TravelRequestPage(BaseModel):
    items: list[TravelRequestOut]
    total: int
    page: int
    per_page: int
    last_page: int


class TravelRequestStats(BaseModel):
    total: int
    pending: int
    approved: int
    cancelled: int
