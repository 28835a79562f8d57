"""Webhook event ledger.

One row per processor event id. A row with ``processed_at`` set is a sink:
later deliveries of the same event are acknowledged without reprocessing.
A row without it (first attempt still running, or a failed attempt) lets
the next delivery run the handlers again, which is safe because they are
idempotent.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.database import Base, get_database, new_id

logger = structlog.get_logger(__name__)

MAX_ERROR_LENGTH = 2000


def _now() -> datetime:
    return datetime.now(UTC)


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    stripe_event_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    event_type: Mapped[str] = mapped_column(String(255))
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    processing_error: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None


def _find_event(session: Session, event_id: str) -> WebhookEvent | None:
    return session.scalar(select(WebhookEvent).where(WebhookEvent.stripe_event_id == event_id))


def begin_processing(event_id: str, event_type: str) -> bool:
    """Record the event if unseen. Returns False when it was already processed."""
    with get_database().unit_of_work() as session:
        existing = _find_event(session, event_id)
        if existing is not None:
            return not existing.is_processed

    try:
        with get_database().unit_of_work() as session:
            session.add(WebhookEvent(stripe_event_id=event_id, event_type=event_type))
    except IntegrityError:
        # A concurrent delivery inserted it first; fall through to its state.
        with get_database().unit_of_work() as session:
            existing = _find_event(session, event_id)
            if existing is not None and existing.is_processed:
                return False
        logger.info("webhook_event_race", event_id=event_id)

    return True


def mark_processed(event_id: str, event_type: str) -> None:
    with get_database().unit_of_work() as session:
        event = _find_event(session, event_id)
        if event is None:
            event = WebhookEvent(stripe_event_id=event_id, event_type=event_type)
            session.add(event)
        event.event_type = event_type
        event.processed_at = _now()
        event.processing_error = None


def record_failure(event_id: str, event_type: str, error: str) -> None:
    with get_database().unit_of_work() as session:
        event = _find_event(session, event_id)
        if event is None:
            return
        event.event_type = event_type
        event.processing_error = error[:MAX_ERROR_LENGTH]


def get_event(event_id: str) -> WebhookEvent | None:
    with get_database().unit_of_work() as session:
        return _find_event(session, event_id)
