from __future__ import annotations

import logging
import re
import sys
from collections.abc import Mapping
from contextlib import suppress
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

from dashboard_client.config import get_settings

LOGGER_NAME = "dashboard_client"
REDACTED = "***REDACTED***"

_JWT_RE = re.compile(r"\beyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\b")
_BEARER_RE = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9_\-\.=~+/]+)")
_URL_CREDS_RE = re.compile(r"(?i)([a-z][a-z0-9+\-.]*://)([^:@/]+):([^@/]+)@")
_KV_RE = re.compile(
    r"(?i)\b(access_token|refresh_token|token|password|secret|api_key)\b(\"?\s*[=:]\s*\"?)([^\s,;&\"]+)"
)
_SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "access_token",
        "refresh_token",
        "token",
        "password",
        "secret",
        "x-api-key",
    }
)


def _password_literal() -> str | None:
    # Short values would redact ordinary words.
    with suppress(Exception):
        pw = get_settings().secret.dashboard_password
        raw = pw.get_secret_value() if pw is not None else ""
        if len(raw) >= 8:
            return raw
    return None


def _redact_str(s: str) -> str:
    lit = _password_literal()
    if lit and lit in s:
        s = s.replace(lit, REDACTED)
    s = _URL_CREDS_RE.sub(rf"\1{REDACTED}@", s)
    s = _JWT_RE.sub(REDACTED, s)
    s = _BEARER_RE.sub(f"Bearer {REDACTED}", s)
    return _KV_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", s)


def safe_log_data(data: Any) -> Any:
    """
    Redacted copy of a structure (headers, payloads) that is safe to log.
    """
    if isinstance(data, Mapping):
        return {
            str(k): REDACTED if str(k).lower() in _SENSITIVE_KEYS else safe_log_data(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [safe_log_data(v) for v in data]
    if isinstance(data, str):
        return _redact_str(data)
    return data


def redact_event(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    for k, v in list(event_dict.items()):
        if isinstance(v, (str, Mapping, list, tuple)):
            event_dict[k] = safe_log_data(v)
    return event_dict


def rename_event_to_msg(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    if "event" in event_dict and "msg" not in event_dict:
        event_dict["msg"] = event_dict.pop("event")
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.stdlib.add_log_level,
        redact_event,
        structlog.processors.format_exc_info,
        rename_event_to_msg,
    ]


def _handlers(log_dir: Path | None, *, max_bytes: int, backups: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        path = Path(log_dir) / "dashboard-client.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(path),
                maxBytes=int(max_bytes),
                backupCount=int(backups),
                encoding="utf-8",
            )
        )
    return handlers


def _configure_structlog() -> structlog.stdlib.BoundLogger:
    s = get_settings()
    base = logging.getLogger(LOGGER_NAME)
    base.setLevel(str(s.log_level).upper())
    base.propagate = False

    if getattr(base, "_dashboard_client_configured", False):
        return structlog.get_logger(LOGGER_NAME)

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=_shared_processors(),
    )
    base.handlers.clear()
    for h in _handlers(s.log_dir, max_bytes=s.log_max_bytes, backups=s.log_backup_count):
        h.setFormatter(formatter)
        base.addHandler(h)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    base._dashboard_client_configured = True
    return structlog.get_logger(LOGGER_NAME)


logger = _configure_structlog()


def set_log_level(level: str) -> None:
    lvl = logging.getLevelName(str(level).upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    base = logging.getLogger(LOGGER_NAME)
    base.setLevel(lvl)
    for h in base.handlers:
        h.setLevel(lvl)
