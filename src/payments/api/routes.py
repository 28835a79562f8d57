"""FastAPI routes for the Payments domain: checkout and processor webhooks."""

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from identity.access import current_identity
from identity.provider import Identity
from payments.api.schemas import CheckoutResponse, WebhookAckResponse
from payments.checkout.initiation import create_checkout_session
from payments.webhook.processing import handle_webhook
from shared.exceptions import InvalidSignatureError

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])
webhook_router = APIRouter(prefix="/stripe", tags=["webhooks"])


@checkout_router.post("", response_model=CheckoutResponse)
def start_checkout(request: Request, identity: Identity = Depends(current_identity)) -> CheckoutResponse:
    url = create_checkout_session(identity.user_id, origin=request.headers.get("origin"), email=identity.email)
    return CheckoutResponse(url=url)


@webhook_router.post("/webhook", response_model=WebhookAckResponse, response_model_exclude_none=True)
async def stripe_webhook(request: Request) -> WebhookAckResponse:
    """Processor webhook. The raw body is needed for signature verification."""
    signature = (request.headers.get("stripe-signature") or "").strip()
    if not signature:
        raise InvalidSignatureError("Missing stripe-signature header.")

    payload = await request.body()
    result = await run_in_threadpool(handle_webhook, payload, signature)

    return WebhookAckResponse(received=result.received, duplicate=True if result.duplicate else None)
