"""Celery tasks for travel request notifications.

The status change is committed before anything here runs; a notification that
cannot be delivered is retried by the queue and finally logged, never undone.
"""
import asyncio
import logging

import aiosmtplib
from celery import Task

from app.celery_app import celery_app
from app.database import SessionLocal
from app.models.travel_request import TravelRequestStatus
from app.services import auth_service
from app.services.mail_service import mail_service
from app.services.notifications import StatusChanged, deliver_status_notification

logger = logging.getLogger(__name__)


class NotificationTask(Task):
    """Celery task with an async runner and a permanent-failure log."""

    abstract = True

    def run_async(self, coro):
        """Run async coroutine in sync context"""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            "Status notification task %s failed permanently (args=%s): %s",
            task_id, args, exc,
        )


@celery_app.task(
    bind=True,
    base=NotificationTask,
    autoretry_for=(aiosmtplib.SMTPException, OSError),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=3,
)
def send_status_notification(self, request_id: str, previous_status: str) -> bool:
    """Email the owner of ``request_id`` about its status change."""
    db = SessionLocal()
    try:
        return self.run_async(
            deliver_status_notification(db, request_id, TravelRequestStatus(previous_status), mail_service.send)
        )
    finally:
        db.close()


def dispatch_status_changed(event: StatusChanged) -> None:
    """Queue the notification for ``event``. Enqueue failures are logged only."""
    try:
        send_status_notification.delay(event.request_id, event.previous_status.value)
    except Exception:
        logger.exception(
            "Could not queue status notification for travel request %s (%s -> %s)",
            event.request_id, event.previous_status.value, event.new_status.value,
        )
        return
    logger.info(
        "Queued status notification for travel request %s (%s -> %s)",
        event.request_id, event.previous_status.value, event.new_status.value,
    )


@celery_app.task
def purge_revoked_tokens() -> int:
    """Delete revocation rows for tokens that have expired on their own."""
    db = SessionLocal()
    try:
        deleted = auth_service.purge_expired_revocations(db)
    finally:
        db.close()
    logger.info("Purged %d expired token revocations", deleted)
    return deleted
