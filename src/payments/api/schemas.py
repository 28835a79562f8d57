"""Pydantic request/response schemas for the Payments API."""

from pydantic import BaseModel


class CheckoutResponse(BaseModel):
    url: str


class WebhookAckResponse(BaseModel):
    received: bool = True
    duplicate: bool | None = None
