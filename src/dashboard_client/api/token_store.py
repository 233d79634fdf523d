from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from contextlib import suppress
from typing import Any, Protocol

from dashboard_client.api.models import TokenPair
from dashboard_client.utils.log import logger


class TokenStore(Protocol):
    def get_tokens(self) -> TokenPair | None: ...

    def set_tokens(self, pair: TokenPair) -> None: ...

    def logout(self) -> None: ...


class InMemoryTokenStore:
    """
    Process-local session state: the current TokenPair plus the logged-in user.

    Every write swaps the whole frozen pair, so readers never see one new and
    one stale token.
    """

    def __init__(self, tokens: TokenPair | None = None, user: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._tokens = tokens
        self._user: dict[str, Any] | None = dict(user) if user else None
        self._logout_listeners: list[Callable[[], None]] = []

    def get_tokens(self) -> TokenPair | None:
        with self._lock:
            return self._tokens

    def set_tokens(self, pair: TokenPair) -> None:
        if not isinstance(pair, TokenPair):
            raise TypeError("set_tokens expects a TokenPair")
        with self._lock:
            self._tokens = pair

    def set_auth(self, *, user: Mapping[str, Any] | None, tokens: TokenPair) -> None:
        with self._lock:
            self._user = dict(user) if user else None
            self._tokens = tokens

    @property
    def user(self) -> dict[str, Any] | None:
        with self._lock:
            return dict(self._user) if self._user else None

    def logout(self) -> None:
        with self._lock:
            had_session = self._tokens is not None
            self._tokens = None
            self._user = None
            listeners = list(self._logout_listeners)
        logger.info("auth_logout", had_session=had_session)
        for cb in listeners:
            with suppress(Exception):
                cb()

    def add_logout_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._logout_listeners.append(callback)

    def is_authenticated(self) -> bool:
        t = self.get_tokens()
        return bool(t and t.access_token)

    def roles(self) -> list[str]:
        u = self.user or {}
        roles = u.get("roles")
        if isinstance(roles, list):
            return [str(r) for r in roles]
        role = u.get("role")
        return [str(role)] if role else []

    def has_role(self, name: str) -> bool:
        return str(name) in self.roles()

    def has_any_role(self, names: Iterable[str]) -> bool:
        mine = set(self.roles())
        return any(str(n) in mine for n in names)
