"""Application settings.

Values are read from ``SHOPFRONT_``-prefixed environment variables (or a
``.env`` file in the working directory). ``get_settings()`` caches a single
instance; tests call ``get_settings.cache_clear()`` after changing the
environment.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHOPFRONT_",
        env_file=".env",
        extra="ignore",
    )

    env: Literal["development", "test", "staging", "production"] = "development"
    database_url: str = "sqlite:///./shopfront.db"
    log_level: str | None = None
    log_dir: str | None = None

    payment_gateway: Literal["fake", "stripe"] = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    checkout_base_url: str = "http://localhost:3000"
    checkout_currency: str = "usd"
    shipping_countries: str = "US"

    admin_emails: str = ""

    @property
    def allowed_shipping_countries(self) -> list[str]:
        """Two-letter country codes accepted for shipping, in configured order."""
        countries: list[str] = []
        for raw in self.shipping_countries.split(","):
            code = raw.strip().upper()
            if _COUNTRY_CODE.match(code) and code not in countries:
                countries.append(code)
        return countries or ["US"]

    @property
    def admin_email_list(self) -> set[str]:
        return {email.strip().lower() for email in self.admin_emails.split(",") if email.strip()}


@lru_cache
def get_settings() -> Settings:
    return Settings()
