from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SecretConfig(BaseSettings):
    """
    Sensitive config.

    This module is safe to commit: it contains *no* secrets, only loading logic.
    Real secret values should come from:
      - environment variables (preferred)
      - optional local `.env.secrets` file (developer convenience)
    """

    model_config = SettingsConfigDict(
        env_file=".env.secrets",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # CLI login credentials; the password is also scrubbed from log output
    dashboard_email: str | None = Field(default=None, alias="DASHBOARD_EMAIL")
    dashboard_password: SecretStr | None = Field(default=None, alias="DASHBOARD_PASSWORD")
