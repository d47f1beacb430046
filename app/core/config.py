"""Application configuration via pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import FrozenSet, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "ledger-backend"
    app_version: str = "1.0.0"
    app_env: str = "development"

    database_url: str = "sqlite:///./ledger.db"

    api_key: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = True

    # Comma separated, e.g. "ops@example.com,owner@example.com"
    super_admin_emails: str = ""

    postmark_api_token: Optional[str] = None
    postmark_api_url: str = "https://api.postmarkapp.com/email"
    email_from: Optional[str] = None
    email_timeout_seconds: float = 30.0

    invoice_page_size: int = 10
    invoice_page_size_max: int = 100

    @property
    def super_admins(self) -> FrozenSet[str]:
        return frozenset(
            email.strip().lower()
            for email in self.super_admin_emails.split(",")
            if email.strip()
        )

    @property
    def email_enabled(self) -> bool:
        return bool(self.postmark_api_token and self.email_from)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
