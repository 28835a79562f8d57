"""FastAPI dependencies for the current user and the admin allow-list."""

import structlog
from fastapi import Request

from identity.provider import Identity, get_identity_provider
from shared.config import get_settings
from shared.exceptions import AuthenticationError, PermissionDeniedError

logger = structlog.get_logger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_admin_email(email: str | None) -> bool:
    normalized = normalize_email(email)
    if not normalized:
        return False
    return normalized in get_settings().admin_email_list


def optional_identity(request: Request) -> Identity | None:
    return get_identity_provider().authenticate(request.headers)


def current_identity(request: Request) -> Identity:
    identity = optional_identity(request)
    if identity is None:
        raise AuthenticationError()
    return identity


def require_admin(request: Request) -> Identity:
    identity = current_identity(request)
    if not is_admin_email(identity.email):
        logger.warning("admin_access_denied", user_id=identity.user_id)
        raise PermissionDeniedError()
    return identity
