from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from dashboard_client.api.auth_attacher import AUTHORIZATION, attach_auth
from dashboard_client.api.dispatcher import Dispatcher
from dashboard_client.api.errors import (
    ApiError,
    HttpStatusError,
    classify_error,
)
from dashboard_client.api.models import ApiRequest, RefreshState, RequestAttempt
from dashboard_client.api.public_endpoints import is_login_endpoint, is_public_endpoint
from dashboard_client.api.refresh import RefreshCoordinator
from dashboard_client.api.token_store import InMemoryTokenStore, TokenStore
from dashboard_client.notify.base import Notification, Notifier
from dashboard_client.notify.sinks import LogNotifier, safe_notify
from dashboard_client.utils.log import logger


def _sent_token(request: ApiRequest) -> str | None:
    value = request.header(AUTHORIZATION) or ""
    if value.lower().startswith("bearer "):
        return value[7:].strip() or None
    return None


class ApiClient:
    """
    Authenticated client for the dashboard REST backend.

    Every call goes: attach bearer -> dispatch -> on a first-attempt 401 from
    a protected route, join the refresh episode and replay once with the new
    token. Unrecovered failures are classified, reported to the notifier and
    raised.
    """

    def __init__(
        self,
        *,
        token_store: TokenStore | None = None,
        notifier: Notifier | None = None,
        dispatcher: Dispatcher | None = None,
        base_url: str | None = None,
        timeout_sec: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        activity: Any | None = None,
    ) -> None:
        self.token_store: TokenStore = token_store if token_store is not None else InMemoryTokenStore()
        self.notifier: Notifier = notifier if notifier is not None else LogNotifier()
        self.dispatcher = dispatcher or Dispatcher(
            base_url=base_url, timeout_sec=timeout_sec, transport=transport
        )
        self.coordinator = RefreshCoordinator(
            token_store=self.token_store,
            dispatcher=self.dispatcher,
            notifier=self.notifier,
        )
        # Optional inactivity watchdog; anything with a touch() method.
        self.activity = activity

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.coordinator.aclose()
        await self.dispatcher.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout_sec: float | None = None,
    ) -> httpx.Response:
        req = ApiRequest(
            method=method,
            path=path,
            params=params,
            json=json,
            data=data,
            headers=dict(headers or {}),
            timeout_sec=timeout_sec,
        )
        return await self.send(req)

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.request(method, path, **kwargs)
        if not response.content:
            return None
        return response.json()

    async def send(self, request: ApiRequest, attempt: RequestAttempt | None = None) -> httpx.Response:
        if self.activity is not None:
            self.activity.touch()
        # Log lines of this call, and of a refresh it starts, carry the id.
        with structlog.contextvars.bound_contextvars(call_id=uuid.uuid4().hex[:12]):
            return await self._send(request, attempt or RequestAttempt.first())

    async def _send(
        self, request: ApiRequest, attempt: RequestAttempt, *, token: str | None = None
    ) -> httpx.Response:
        # Always prepared from the caller's original descriptor, never from a previous attempt.
        prepared = attach_auth(request, self.token_store, token=token)
        try:
            return await self.dispatcher.send(prepared)
        except HttpStatusError as ex:
            if ex.status_code == 401 and self._qualifies_for_refresh(request, attempt):
                logger.warning("auth_token_expired", method=request.method, path=request.path)
                return await self._recover(request, attempt, sent_token=_sent_token(prepared))
            self._report(request, ex)
            raise
        except ApiError as ex:
            self._report(request, ex)
            raise

    def _qualifies_for_refresh(self, request: ApiRequest, attempt: RequestAttempt) -> bool:
        return not attempt.is_replay and not is_public_endpoint(request.path)

    async def _recover(
        self, request: ApiRequest, attempt: RequestAttempt, *, sent_token: str | None
    ) -> httpx.Response:
        # Marked before any refresh work so the replay can never come back here.
        replay_attempt = attempt.next()

        current = self.token_store.get_tokens()
        if (
            sent_token
            and current is not None
            and current.access_token != sent_token
            and self.coordinator.state is RefreshState.idle
        ):
            # Another episode already rotated the token after this request left.
            token = current.access_token
        else:
            token = await self.coordinator.renew(request)

        logger.info(
            "request_replay",
            method=request.method,
            path=request.path,
            attempt=replay_attempt.number,
        )
        return await self._send(request, replay_attempt, token=token)

    def _report(self, request: ApiRequest, ex: ApiError) -> None:
        if isinstance(ex, HttpStatusError):
            logger.warning(
                "request_failed",
                method=request.method,
                path=request.path,
                status=ex.status_code,
            )
            if ex.status_code == 401 and not is_login_endpoint(request.path):
                return
        else:
            logger.error(
                "request_no_response",
                method=request.method,
                path=request.path,
                error=str(ex)[:200],
            )
        safe_notify(self.notifier, Notification.from_error(classify_error(ex)))
