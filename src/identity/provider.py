"""Identity provider port.

Authentication happens upstream; the storefront only asks "who is the
current user?" for each request. ``HeaderIdentityProvider`` trusts the
``X-User-Id`` / ``X-User-Email`` headers injected by the auth gateway.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str | None = None


class IdentityProvider(ABC):
    @abstractmethod
    def authenticate(self, headers: Mapping[str, str]) -> Identity | None:
        """Return the authenticated identity for a request, or None."""
        ...


class HeaderIdentityProvider(IdentityProvider):
    user_id_header = "x-user-id"
    email_header = "x-user-email"

    def authenticate(self, headers: Mapping[str, str]) -> Identity | None:
        user_id = (headers.get(self.user_id_header) or "").strip()
        if not user_id:
            return None
        email = (headers.get(self.email_header) or "").strip() or None
        return Identity(user_id=user_id, email=email)


_current_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    global _current_provider
    if _current_provider is None:
        _current_provider = HeaderIdentityProvider()
    return _current_provider


def set_identity_provider(provider: IdentityProvider) -> None:
    """Override the active identity provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_identity_provider() -> None:
    global _current_provider
    _current_provider = None
