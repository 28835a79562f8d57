"""Payments domain API package."""

from payments.api.routes import checkout_router, webhook_router

__all__ = ["checkout_router", "webhook_router"]
