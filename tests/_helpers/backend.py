from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from dashboard_client.api.client import ApiClient
from dashboard_client.api.models import TokenPair
from dashboard_client.api.token_store import InMemoryTokenStore
from dashboard_client.notify.base import Notification

BASE_URL = "http://api.test/api"


class RecordingNotifier:
    def __init__(self) -> None:
        self.items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.items.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.items]


class FakeBackend:
    """
    In-process dashboard API behind httpx.MockTransport.

    Protected routes answer 200 only for `Bearer <valid_token>`, otherwise
    401 {"message": "token expired"}.
    """

    def __init__(
        self,
        *,
        valid_token: str = "tok2",
        refresh_delay: float = 0.0,
        refresh_status: int = 200,
        refresh_body: Any = None,
        login_status: int = 200,
        login_body: Any = None,
    ) -> None:
        self.valid_token = valid_token
        self.refresh_delay = refresh_delay
        self.refresh_status = refresh_status
        self.refresh_body = refresh_body if refresh_body is not None else {"access_token": "tok2"}
        self.login_status = login_status
        self.login_body = login_body
        self.requests: list[httpx.Request] = []
        self.refresh_requests: list[httpx.Request] = []
        # path -> (status, json body), served regardless of auth
        self.routes: dict[str, tuple[int, Any]] = {}

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def protected(self, path: str | None = None) -> list[httpx.Request]:
        out = [r for r in self.requests if not r.url.path.endswith("/auth/refresh-token")]
        if path is not None:
            out = [r for r in out if r.url.path == path]
        return out

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/auth/refresh-token"):
            self.refresh_requests.append(request)
            if self.refresh_delay:
                await asyncio.sleep(self.refresh_delay)
            return httpx.Response(self.refresh_status, json=self.refresh_body)

        if path.endswith("/auth/login"):
            body = self.login_body
            if body is None:
                body = {
                    "access_token": "tok1",
                    "refresh_token": "r1",
                    "user": {"id": "u1", "email": "a@example.com", "roles": ["admin"]},
                }
            return httpx.Response(self.login_status, json=body)

        if path in self.routes:
            status, payload = self.routes[path]
            return httpx.Response(status, json=payload)

        if request.headers.get("authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"message": "token expired"})
        return httpx.Response(200, json={"path": path})


def make_client(
    backend: FakeBackend,
    *,
    tokens: TokenPair | None = TokenPair(access_token="tok1", refresh_token="r1"),
    notifier: RecordingNotifier | None = None,
    **kwargs: Any,
) -> tuple[ApiClient, InMemoryTokenStore, RecordingNotifier]:
    store = InMemoryTokenStore(tokens=tokens)
    notes = notifier or RecordingNotifier()
    client = ApiClient(
        token_store=store,
        notifier=notes,
        base_url=BASE_URL,
        transport=backend.transport(),
        **kwargs,
    )
    return client, store, notes


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content or b"null")
