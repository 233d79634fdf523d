from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from urllib.parse import urlparse

from pydantic import SecretStr

from .public_config import PublicConfig
from .secret_config import SecretConfig


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Read-only view over both config halves.

    Attribute lookup tries the secret half first, then the public one.
    """

    public: PublicConfig
    secret: SecretConfig

    def __getattr__(self, name: str) -> Any:
        if name in type(self.secret).model_fields:
            return getattr(self.secret, name)
        return getattr(self.public, name)

    def api_base(self) -> str:
        return self.public.api_base()


def _problems(pub: PublicConfig) -> list[str]:
    out: list[str] = []
    parsed = urlparse(pub.api_base())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        out.append("API_BASE_URL")
    if float(pub.api_timeout_sec) <= 0:
        out.append("API_TIMEOUT_SEC")
    if int(pub.api_max_content_bytes) <= 0:
        out.append("API_MAX_CONTENT_BYTES")
    if int(pub.api_max_body_bytes) <= 0:
        out.append("API_MAX_BODY_BYTES")
    idle = float(pub.session_idle_minutes)
    warn = float(pub.session_warning_minutes)
    if idle <= 0:
        out.append("SESSION_IDLE_MINUTES")
    if not 0 <= warn < max(idle, 0.0):
        out.append("SESSION_WARNING_MINUTES")
    return out


def _secret_marker(value: Any) -> str:
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    return "SET" if value is not None and str(value).strip() else "UNSET"


def get_safe_config_report() -> dict[str, Any]:
    """
    Config summary that is safe to print or attach to bug reports.

    Public values appear as-is (paths as strings). Secrets only ever appear
    as SET/UNSET.
    """
    s = get_settings()
    public = {
        k: (str(v) if hasattr(v, "__fspath__") else v) for k, v in s.public.model_dump().items()
    }
    secrets = {
        k: _secret_marker(getattr(s.secret, k, None))
        for k in sorted(type(s.secret).model_fields)
    }
    return {"public": public, "secrets": secrets}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings(public=PublicConfig(), secret=SecretConfig())
    problems = _problems(s.public)
    if problems:
        raise ConfigError(
            "Invalid configuration: "
            + ", ".join(sorted(set(problems)))
            + ". Fix them in the environment or `.env`."
        )
    return s
