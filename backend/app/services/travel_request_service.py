"""Core travel request service: composes the status rules, the authorization
guard and persistence into the write/read operations.

Every operation receives the acting user explicitly. Errors are raised as the
domain exceptions in ``app.exceptions``; nothing here retries.
"""
import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.config import settings
from app.exceptions import Forbidden, NotFound, ValidationFailed
from app.models.travel_request import TravelRequest, TravelRequestStatus
from app.models.user import User
from app.schemas.travel_request import TravelRequestCreate, TravelRequestFilters
from app.services.authorization import Action, authorize, is_admin, is_owner
from app.services.notifications import Notifier, StatusChanged
from app.services.status_rules import validate_transition

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100


def local_today() -> date:
    """Today's date in the configured application timezone."""
    return datetime.now(pytz.timezone(settings.APP_TIMEZONE)).date()


def local_day_start(day: date) -> datetime:
    """Midnight of ``day`` in the application timezone, as a UTC datetime."""
    tz = pytz.timezone(settings.APP_TIMEZONE)
    return tz.localize(datetime.combine(day, time.min)).astimezone(pytz.utc)


def validate_travel_dates(departure: date, return_: date, today: date) -> dict[str, list[str]]:
    """Return a field -> messages map of date rule violations (empty when valid)."""
    errors: dict[str, list[str]] = {}
    if departure < today:
        errors["departure_date"] = ["The departure date cannot be earlier than today."]
    if return_ < departure:
        errors["return_date"] = ["The return date cannot be earlier than the departure date."]
    elif return_ == departure:
        errors["return_date"] = ["The return date must be different from the departure date."]
    return errors


def _load(db: Session, request_id: str) -> TravelRequest:
    travel_request = (
        db.query(TravelRequest)
        .options(joinedload(TravelRequest.owner))
        .filter(TravelRequest.request_id == request_id)
        .first()
    )
    if not travel_request:
        raise NotFound("Travel request not found")
    return travel_request


def _scoped_query(db: Session, actor: User):
    """Base query: admins see every request, everyone else only their own."""
    query = db.query(TravelRequest)
    if not is_admin(actor):
        query = query.filter(TravelRequest.owner_id == actor.user_id)
    return query


def create_travel_request(db: Session, actor: User, data: TravelRequestCreate) -> TravelRequest:
    """Create a request owned by ``actor`` in the ``requested`` state."""
    if not authorize(actor, Action.create):
        raise Forbidden("You are not allowed to create travel requests")

    errors = validate_travel_dates(data.departure_date, data.return_date, local_today())
    if errors:
        raise ValidationFailed(errors)

    travel_request = TravelRequest(
        owner_id=actor.user_id,
        requester_name=data.requester_name,
        destination=data.destination,
        departure_date=data.departure_date,
        return_date=data.return_date,
        status=TravelRequestStatus.requested,
        notes=data.notes,
    )
    db.add(travel_request)
    db.commit()
    db.refresh(travel_request)
    logger.info(
        "Travel request %s created by user %s: %s, %s to %s",
        travel_request.request_id, actor.user_id, travel_request.destination,
        travel_request.departure_date.isoformat(), travel_request.return_date.isoformat(),
    )
    return travel_request


def get_travel_request(db: Session, actor: User, request_id: str) -> TravelRequest:
    travel_request = _load(db, request_id)
    if not authorize(actor, Action.view, travel_request):
        raise Forbidden("You are not allowed to view this travel request")
    return travel_request


def update_status(
    db: Session,
    actor: User,
    request_id: str,
    new_status: TravelRequestStatus,
    notify: Notifier,
) -> TravelRequest:
    """Admin-only status change through the transition table."""
    travel_request = _load(db, request_id)

    if not authorize(actor, Action.update_status, travel_request):
        raise Forbidden("Only administrators can change the status of travel requests")

    reason = validate_transition(travel_request.status, new_status)
    if reason:
        raise ValidationFailed({"status": [reason]}, message=reason)

    old_status = travel_request.status
    travel_request.status = new_status
    db.commit()
    db.refresh(travel_request)
    logger.info(
        "Travel request %s status changed %s -> %s by admin %s",
        request_id, old_status.value, new_status.value, actor.user_id,
    )

    notify(StatusChanged(
        request_id=travel_request.request_id,
        owner_id=travel_request.owner_id,
        previous_status=old_status,
        new_status=new_status,
    ))
    return travel_request


def cancel_travel_request(db: Session, actor: User, request_id: str, notify: Notifier) -> TravelRequest:
    """Cancel a request that is still ``requested`` (owner or admin)."""
    travel_request = _load(db, request_id)

    if not authorize(actor, Action.cancel, travel_request):
        if not (is_owner(actor, travel_request) or is_admin(actor)):
            raise Forbidden("You are not allowed to cancel this travel request")
        # Permitted actor, wrong state
        if travel_request.status == TravelRequestStatus.approved:
            message = "Approved requests cannot be cancelled."
        else:
            message = "This request is already cancelled."
        raise ValidationFailed({"status": [message]}, message=message)

    old_status = travel_request.status
    travel_request.status = TravelRequestStatus.cancelled
    db.commit()
    db.refresh(travel_request)
    logger.info(
        "Travel request %s cancelled by user %s (owner %s, was %s)",
        request_id, actor.user_id, travel_request.owner_id, old_status.value,
    )

    notify(StatusChanged(
        request_id=travel_request.request_id,
        owner_id=travel_request.owner_id,
        previous_status=old_status,
        new_status=TravelRequestStatus.cancelled,
    ))
    return travel_request


def list_travel_requests(
    db: Session,
    actor: User,
    filters: Optional[TravelRequestFilters] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> tuple[list[TravelRequest], int, int, int]:
    """Return ``(items, total, page, per_page)``, newest first.

    Non-admins are always restricted to their own requests, whatever the filters say.
    """
    filters = filters or TravelRequestFilters()
    per_page = min(max(per_page or settings.TRAVEL_REQUESTS_PER_PAGE, 1), MAX_PER_PAGE)
    page = max(page, 1)

    query = _scoped_query(db, actor)
    if filters.status:
        query = query.filter(TravelRequest.status == filters.status)
    if filters.destination:
        query = query.filter(TravelRequest.destination.ilike(f"%{filters.destination}%"))
    if filters.date_from:
        query = query.filter(TravelRequest.departure_date >= filters.date_from)
    if filters.date_to:
        query = query.filter(TravelRequest.departure_date <= filters.date_to)
    if filters.request_date_from:
        query = query.filter(TravelRequest.created_at >= local_day_start(filters.request_date_from))
    if filters.request_date_to:
        # whole local day inclusive
        query = query.filter(TravelRequest.created_at < local_day_start(filters.request_date_to + timedelta(days=1)))

    total = query.count()
    items = (
        query.options(joinedload(TravelRequest.owner))
        .order_by(TravelRequest.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total, page, per_page


def last_page(total: int, per_page: int) -> int:
    return max(1, math.ceil(total / per_page))


def get_stats(db: Session, actor: User) -> dict[str, int]:
    """Counts per status, scoped like ``list_travel_requests``."""
    rows = (
        _scoped_query(db, actor)
        .with_entities(TravelRequest.status, func.count(TravelRequest.request_id))
        .group_by(TravelRequest.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    return {
        "total": sum(counts.values()),
        "pending": counts.get(TravelRequestStatus.requested, 0),
        "approved": counts.get(TravelRequestStatus.approved, 0),
        "cancelled": counts.get(TravelRequestStatus.cancelled, 0),
    }
