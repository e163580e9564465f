"""Owner-or-admin authorization rules for travel requests."""
import enum
from typing import Optional

from app.models.travel_request import TravelRequest, TravelRequestStatus
from app.models.user import User


class Action(str, enum.Enum):
    view = "view"
    create = "create"
    update_status = "update_status"
    cancel = "cancel"


def is_owner(actor: User, travel_request: TravelRequest) -> bool:
    return actor.user_id == travel_request.owner_id


def is_admin(actor: User) -> bool:
    return actor.is_admin


def authorize(actor: User, action: Action, travel_request: Optional[TravelRequest] = None) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``travel_request``.

    ``create`` needs no target; every other action does and is denied without one.
    Cancellation is only ever allowed from ``requested``, for owners and admins alike.
    """
    if action == Action.create:
        return True
    if travel_request is None:
        return False
    if action == Action.view:
        return is_owner(actor, travel_request) or is_admin(actor)
    if action == Action.update_status:
        return is_admin(actor)
    if action == Action.cancel:
        if travel_request.status != TravelRequestStatus.requested:
            return False
        return is_owner(actor, travel_request) or is_admin(actor)
    return False
