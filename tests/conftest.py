from __future__ import annotations

import pytest

from dashboard_client.config import get_settings


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://api.test/api")
    monkeypatch.setenv("API_TIMEOUT_SEC", "5")
    monkeypatch.setenv("SESSION_TIMEOUT_ENABLED", "1")
    for name in (
        "DASHBOARD_API_BASE_URL",
        "DASHBOARD_LOG_DIR",
        "DASHBOARD_EMAIL",
        "DASHBOARD_PASSWORD",
        "API_MAX_CONTENT_BYTES",
        "API_MAX_BODY_BYTES",
        "SESSION_IDLE_MINUTES",
        "SESSION_WARNING_MINUTES",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
