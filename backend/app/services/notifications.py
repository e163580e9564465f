"""Status-change notifications: the domain event and the email it becomes."""
import logging
from dataclasses import dataclass
from html import escape
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.travel_request import TravelRequest, TravelRequestStatus, STATUS_LABELS

logger = logging.getLogger(__name__)

SUBJECTS = {
    TravelRequestStatus.approved: "Travel Request Approved",
    TravelRequestStatus.cancelled: "Travel Request Cancelled",
}
DEFAULT_SUBJECT = "Travel Request Update"


@dataclass(frozen=True)
class StatusChanged:
    """Emitted after a travel request's new status has been committed."""

    request_id: str
    owner_id: str
    previous_status: TravelRequestStatus
    new_status: TravelRequestStatus


# Receives the event once the transaction is committed.
Notifier = Callable[[StatusChanged], None]

# (to_email, subject, html_content, text_content) -> sent?
MailSender = Callable[[str, str, str, Optional[str]], Awaitable[bool]]


@dataclass
class StatusMessage:
    subject: str
    text: str
    html: str


def build_status_message(travel_request: TravelRequest, previous_status: TravelRequestStatus) -> StatusMessage:
    """Render the owner-facing email for a travel request's current status."""
    status = travel_request.status
    subject = SUBJECTS.get(status, DEFAULT_SUBJECT)
    owner_name = travel_request.owner.name if travel_request.owner else travel_request.requester_name
    days = travel_request.duration_days

    if status == TravelRequestStatus.approved:
        intro = "Good news! Your travel request has been approved."
        closing = [
            "Next steps:",
            "- Wait for further instructions about bookings and required documents",
            "- Contact HR if you have any questions",
        ]
    elif status == TravelRequestStatus.cancelled:
        intro = "Your travel request has been cancelled."
        closing = [
            "Questions?",
            "- Contact your manager or the HR department",
            "- You can submit a new request if needed",
        ]
    else:
        intro = "Your travel request has been updated."
        closing = []

    details = [
        ("Requester", travel_request.requester_name),
        ("Destination", travel_request.destination),
        ("Departure date", travel_request.departure_date.strftime("%d/%m/%Y")),
        ("Return date", travel_request.return_date.strftime("%d/%m/%Y")),
        ("Duration", f"{days} {'days' if days > 1 else 'day'}"),
        ("Previous status", STATUS_LABELS[previous_status]),
        ("Current status", STATUS_LABELS[status]),
    ]
    if travel_request.notes:
        details.append(("Notes", travel_request.notes))

    text_lines = [subject, "", f"Hello {owner_name},", "", intro, "", "Request details"]
    text_lines += [f"{label}: {value}" for label, value in details]
    if closing:
        text_lines += [""] + closing
    text_lines += ["", "Regards,", settings.APP_NAME]

    html_details = "".join(
        f"<li><strong>{escape(label)}:</strong> {escape(str(value))}</li>" for label, value in details
    )
    html_closing = ""
    if closing:
        html_closing = f"<p><strong>{escape(closing[0])}</strong></p><ul>" + "".join(
            f"<li>{escape(line[2:])}</li>" for line in closing[1:]
        ) + "</ul>"
    html = (
        f"<h1>{escape(subject)}</h1>"
        f"<p>Hello <strong>{escape(owner_name)}</strong>,</p>"
        f"<p>{escape(intro)}</p>"
        f"<h2>Request details</h2><ul>{html_details}</ul>"
        f"{html_closing}"
        f"<p>Regards,<br><strong>{escape(settings.APP_NAME)}</strong></p>"
    )
    return StatusMessage(subject=subject, text="\n".join(text_lines), html=html)


async def deliver_status_notification(
    db: Session,
    request_id: str,
    previous_status: TravelRequestStatus,
    send: MailSender,
) -> bool:
    """Load the request and email its owner. Transport errors propagate for retry."""
    travel_request = db.query(TravelRequest).filter(TravelRequest.request_id == request_id).first()
    if not travel_request:
        logger.warning("Travel request %s vanished before its notification was sent", request_id)
        return False

    message = build_status_message(travel_request, previous_status)
    sent = await send(travel_request.owner.email, message.subject, message.html, message.text)
    if sent:
        logger.info(
            "Status notification sent for travel request %s to %s (%s -> %s)",
            request_id, travel_request.owner.email, previous_status.value, travel_request.status.value,
        )
    return sent
