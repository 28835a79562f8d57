"""Shopfront FastAPI application.

Storefront, cart, checkout, webhook and admin endpoints in one service.
All consistency is delegated to database transactions; the app keeps no
per-request state in memory beyond the log context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalogue.api import admin_product_router, product_router
from ordering.api import admin_order_router, cart_router, order_router
from payments.api import checkout_router, webhook_router
from shared.api import register_exception_handlers
from shared.config import get_settings
from shared.utils.logging import add_context, clear_context, configure_logging

configure_logging()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Shopfront API",
    description="Storefront catalogue, stock-aware carts, hosted checkout and order finalization",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to every log line emitted while handling the request."""
    clear_context()
    request_id = request.headers.get("x-request-id") or uuid4().hex
    add_context(request_id=request_id, path=request.url.path)
    response = await call_next(request)
    response.headers["x-request-id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(product_router)
app.include_router(admin_product_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(admin_order_router)
app.include_router(checkout_router)
app.include_router(webhook_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "env": get_settings().env,
        }
    )
