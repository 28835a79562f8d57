"""Exception taxonomy shared by every bounded context.

Each class carries the HTTP status it maps to; ``shared.api`` turns them
into JSON error responses.
"""


class ShopfrontError(Exception):
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopfrontError):
    """Rejected input. ``messages`` maps field names to lists of problems."""

    status_code = 400
    default_message = "Invalid input."

    def __init__(self, messages: dict[str, list[str]]) -> None:
        self.messages = messages
        first = next((msgs[0] for msgs in messages.values() if msgs), self.default_message)
        super().__init__(first)


class InvalidOperationError(ShopfrontError):
    status_code = 400
    default_message = "Operation not allowed."


class EmptyCartError(InvalidOperationError):
    default_message = "Your cart is empty."


class InvalidSignatureError(ShopfrontError):
    status_code = 400
    default_message = "Invalid webhook signature."


class AuthenticationError(ShopfrontError):
    status_code = 401
    default_message = "Unauthorized."


class PermissionDeniedError(ShopfrontError):
    status_code = 403
    default_message = "Forbidden."


class ObjectNotFoundError(ShopfrontError):
    status_code = 404
    default_message = "Not found."


class CartItemNotFoundError(ObjectNotFoundError):
    default_message = "Cart item not found."


class ProductNotFoundError(ObjectNotFoundError):
    default_message = "Product not found."


class OrderNotFoundError(ObjectNotFoundError):
    default_message = "Order not found."


class InvalidStateError(ShopfrontError):
    status_code = 409
    default_message = "Conflicting update."


class StockConflictError(InvalidStateError):
    default_message = "Stock was changed by someone else. Reload and try again."


class ConfigurationError(ShopfrontError):
    status_code = 500
    default_message = "Service is not configured."


class WebhookProcessingError(ShopfrontError):
    status_code = 500
    default_message = "Webhook processing failed."


class PaymentGatewayError(ShopfrontError):
    status_code = 502
    default_message = "Unable to start checkout."
