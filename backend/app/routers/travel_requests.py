"""TravelRequest API routes: delegates to travel_request_service for the rules."""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_notifier
from app.models.travel_request import TravelRequestStatus
from app.models.user import User
from app.rate_limiter import api_rate_limit
from app.schemas.common import ApiResponse
from app.schemas.travel_request import (
    StatusUpdate,
    TravelRequestCreate,
    TravelRequestFilters,
    TravelRequestOut,
    TravelRequestPage,
    TravelRequestStats,
)
from app.services import travel_request_service
from app.services.notifications import Notifier

router = APIRouter()


# Must be registered before /{request_id}
@router.get("/stats", response_model=ApiResponse[TravelRequestStats])
@api_rate_limit()
def stats(request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Per-status counts over the requests the user can see."""
    data = travel_request_service.get_stats(db, user)
    return ApiResponse(message="Statistics retrieved successfully", data=TravelRequestStats(**data))


@router.post("/", response_model=ApiResponse[TravelRequestOut], status_code=status.HTTP_201_CREATED)
@api_rate_limit()
def create_travel_request(
    request: Request,
    payload: TravelRequestCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a travel request owned by the authenticated user."""
    travel_request = travel_request_service.create_travel_request(db, user, payload)
    return ApiResponse(
        message="Travel request created successfully",
        data=TravelRequestOut.model_validate(travel_request),
    )


@router.get("/", response_model=ApiResponse[TravelRequestPage])
@api_rate_limit()
def list_travel_requests(
    request: Request,
    status_filter: Optional[TravelRequestStatus] = Query(None, alias="status"),
    destination: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    request_date_from: Optional[date] = Query(None),
    request_date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=travel_request_service.MAX_PER_PAGE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List travel requests, newest first. Regular users only see their own."""
    filters = TravelRequestFilters(
        status=status_filter,
        destination=destination,
        date_from=date_from,
        date_to=date_to,
        request_date_from=request_date_from,
        request_date_to=request_date_to,
    )
    items, total, page, per_page = travel_request_service.list_travel_requests(
        db, user, filters, page=page, per_page=per_page,
    )
    data = TravelRequestPage(
        items=[TravelRequestOut.model_validate(item) for item in items],
        total=total,
        page=page,
        per_page=per_page,
        last_page=travel_request_service.last_page(total, per_page),
    )
    return ApiResponse(message="Travel requests retrieved successfully", data=data)


@router.get("/{request_id}", response_model=ApiResponse[TravelRequestOut])
@api_rate_limit()
def get_travel_request(
    request: Request,
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    travel_request = travel_request_service.get_travel_request(db, user, request_id)
    return ApiResponse(message="Travel request found", data=TravelRequestOut.model_validate(travel_request))


@router.patch("/{request_id}/cancel", response_model=ApiResponse[TravelRequestOut])
@api_rate_limit()
def cancel_travel_request(
    request: Request,
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notify: Notifier = Depends(get_notifier),
):
    """Cancel a request that has not been approved yet (owner or admin)."""
    travel_request = travel_request_service.cancel_travel_request(db, user, request_id, notify)
    return ApiResponse(
        message="Travel request cancelled successfully",
        data=TravelRequestOut.model_validate(travel_request),
    )


@router.patch("/{request_id}/status", response_model=ApiResponse[TravelRequestOut])
@api_rate_limit()
def update_status(
    request: Request,
    request_id: str,
    payload: StatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notify: Notifier = Depends(get_notifier),
):
    """Change a request's status (administrators only)."""
    travel_request = travel_request_service.update_status(db, user, request_id, payload.status, notify)
    return ApiResponse(
        message="Travel request status updated successfully",
        data=TravelRequestOut.model_validate(travel_request),
    )
