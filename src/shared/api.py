"""HTTP error mapping for the shared exception taxonomy."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.exceptions import ShopfrontError, ValidationError

logger = structlog.get_logger(__name__)


def error_body(exc: ShopfrontError) -> dict:
    body = {"error": exc.message}
    if isinstance(exc, ValidationError):
        body["details"] = exc.messages
    return body


async def handle_shopfront_error(request: Request, exc: ShopfrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
    else:
        logger.info("request_rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopfrontError, handle_shopfront_error)
