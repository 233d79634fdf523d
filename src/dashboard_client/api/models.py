from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, fallback_refresh: str | None = None) -> TokenPair:
        access = str(data.get("access_token") or "").strip()
        if not access:
            raise ValueError("missing access_token")
        refresh = str(data.get("refresh_token") or "").strip() or fallback_refresh
        return cls(access_token=access, refresh_token=refresh)

    def __repr__(self) -> str:
        # Token values must never reach logs through repr().
        return (
            f"TokenPair(access_token={'***' if self.access_token else None}, "
            f"refresh_token={'***' if self.refresh_token else None})"
        )


class RefreshState(str, Enum):
    idle = "idle"
    refreshing = "refreshing"


@dataclass(frozen=True, slots=True)
class RequestAttempt:
    """
    Per-request retry marker, passed alongside the request (never stored on it).
    """

    number: int = 0

    @classmethod
    def first(cls) -> RequestAttempt:
        return cls(number=0)

    @property
    def is_replay(self) -> bool:
        return self.number > 0

    def next(self) -> RequestAttempt:
        return RequestAttempt(number=self.number + 1)


@dataclass(frozen=True, slots=True)
class ApiRequest:
    """
    Immutable request descriptor. Header changes always produce a copy.
    """

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json: Any = None
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_sec: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", str(self.method or "GET").upper())
        object.__setattr__(self, "headers", dict(self.headers or {}))
        if self.params is not None:
            object.__setattr__(self, "params", dict(self.params))

    def header(self, name: str) -> str | None:
        key = name.lower()
        for k, v in self.headers.items():
            if k.lower() == key:
                return v
        return None

    def with_header(self, name: str, value: str) -> ApiRequest:
        key = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != key}
        headers[name] = value
        return replace(self, headers=headers)

    def without_header(self, name: str) -> ApiRequest:
        key = name.lower()
        headers = {k: v for k, v in self.headers.items() if k.lower() != key}
        return replace(self, headers=headers)


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    title: str
    description: str
    status_code: int | None = None
    retryable: bool = False
