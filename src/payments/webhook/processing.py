"""Webhook handling: verify, deduplicate, dispatch, record.

The signature is checked before anything is written. The ledger then
decides whether the event still needs work, and the outcome of the
handlers is stamped back onto the ledger row. A failing handler leaves the
row unprocessed with its error message so the processor's retry runs it
again.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ordering.order.finalization import finalize_paid_order, mark_async_payment_failed, upsert_order_from_session
from payments.gateway import get_gateway
from payments.gateway.port import GatewayEvent, PaymentGateway
from payments.webhook.ledger import begin_processing, mark_processed, record_failure
from shared.exceptions import WebhookProcessingError

logger = structlog.get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"
ASYNC_PAYMENT_FAILED = "checkout.session.async_payment_failed"

HANDLED_EVENT_TYPES = frozenset({CHECKOUT_COMPLETED, ASYNC_PAYMENT_SUCCEEDED, ASYNC_PAYMENT_FAILED})


@dataclass(frozen=True)
class WebhookResult:
    received: bool = True
    duplicate: bool = False


def dispatch(event: GatewayEvent, gateway: PaymentGateway) -> None:
    """Route a checkout-session event to the order handlers. Other events are ignored."""
    if event.type not in HANDLED_EVENT_TYPES:
        logger.debug("webhook_event_ignored", event_id=event.id, event_type=event.type)
        return

    view = event.checkout_session
    if view is None or not view.id:
        logger.warning("webhook_event_without_session", event_id=event.id, event_type=event.type)
        return

    line_items = gateway.list_line_items(view.id)

    if event.type == CHECKOUT_COMPLETED:
        if view.is_paid:
            finalize_paid_order(view, line_items)
        else:
            upsert_order_from_session(view, line_items)
    elif event.type == ASYNC_PAYMENT_SUCCEEDED:
        finalize_paid_order(view, line_items)
    elif event.type == ASYNC_PAYMENT_FAILED:
        mark_async_payment_failed(view, line_items)


def _record_failure(event: GatewayEvent, error: Exception) -> None:
    message = str(error) or type(error).__name__
    try:
        record_failure(event.id, event.type, message)
    except SQLAlchemyError:
        logger.exception("webhook_failure_not_recorded", event_id=event.id)


def handle_webhook(payload: bytes | str, signature: str | None) -> WebhookResult:
    gateway = get_gateway()
    event = gateway.construct_event(payload, signature)

    if not begin_processing(event.id, event.type):
        logger.info("webhook_duplicate", event_id=event.id, event_type=event.type)
        return WebhookResult(duplicate=True)

    try:
        dispatch(event, gateway)
    except Exception as exc:
        logger.exception("webhook_processing_failed", event_id=event.id, event_type=event.type)
        _record_failure(event, exc)
        raise WebhookProcessingError() from exc

    mark_processed(event.id, event.type)
    logger.info("webhook_processed", event_id=event.id, event_type=event.type)
    return WebhookResult()
