from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PublicConfig(BaseSettings):
    """
    Non-sensitive config with safe defaults.

    Loaded from (in order):
      - process env
      - optional `.env` file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- backend API ---
    api_base_url: str = Field(
        default="http://127.0.0.1:8000/api",
        validation_alias=AliasChoices("API_BASE_URL", "DASHBOARD_API_BASE_URL"),
    )
    # Total deadline for one call (including the refresh call).
    api_timeout_sec: float = Field(default=30.0, alias="API_TIMEOUT_SEC")
    api_max_content_bytes: int = Field(default=50 * 1024 * 1024, alias="API_MAX_CONTENT_BYTES")
    api_max_body_bytes: int = Field(default=50 * 1024 * 1024, alias="API_MAX_BODY_BYTES")
    api_user_agent: str = Field(default="dashboard-client", alias="API_USER_AGENT")

    # --- logging ---
    # Unset => stdout only (no rotating file).
    log_dir: Path | None = Field(default=None, alias="DASHBOARD_LOG_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_max_bytes: int = Field(default=5 * 1024 * 1024, alias="LOG_MAX_BYTES")
    log_backup_count: int = Field(default=3, alias="LOG_BACKUP_COUNT")

    # --- inactivity logout ---
    session_timeout_enabled: bool = Field(default=True, alias="SESSION_TIMEOUT_ENABLED")
    session_idle_minutes: float = Field(default=30.0, alias="SESSION_IDLE_MINUTES")
    session_warning_minutes: float = Field(default=5.0, alias="SESSION_WARNING_MINUTES")

    def api_base(self) -> str:
        return str(self.api_base_url or "").strip().rstrip("/")
