from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass

from dashboard_client.api.dispatcher import Dispatcher
from dashboard_client.api.errors import (
    SESSION_EXPIRED_DESCRIPTION,
    SESSION_EXPIRED_TITLE,
    ApiError,
    RefreshFailure,
)
from dashboard_client.api.models import ApiRequest, RefreshState, TokenPair
from dashboard_client.api.public_endpoints import REFRESH_TOKEN_PATH
from dashboard_client.api.token_store import TokenStore
from dashboard_client.notify.base import Notification, Notifier
from dashboard_client.notify.sinks import safe_notify
from dashboard_client.utils.log import logger


@dataclass(slots=True, eq=False)
class Waiter:
    """
    A caller suspended until the current refresh episode settles.
    """

    future: asyncio.Future[str]
    request: ApiRequest | None = None
    leader: bool = False
    seq: int = 0


class RefreshCoordinator:
    """
    Single-flight token refresh for one client.

    The first caller to observe `idle` flips the state to `refreshing` and
    starts the episode; everyone who arrives while it runs is queued. All
    callers, the leader included, are settled in arrival order once the new
    TokenPair is committed (or rejected together if the refresh fails).

    State transitions happen in plain (non-async) methods, so no other task
    can observe a half-updated coordinator.
    """

    def __init__(
        self,
        *,
        token_store: TokenStore,
        dispatcher: Dispatcher,
        notifier: Notifier | None = None,
        refresh_path: str = REFRESH_TOKEN_PATH,
    ) -> None:
        self._store = token_store
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._refresh_path = refresh_path
        self._state = RefreshState.idle
        self._waiters: deque[Waiter] = deque()
        self._episode: asyncio.Task[None] | None = None
        self._seq = 0
        self.episodes = 0
        self.refresh_calls = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending(self) -> int:
        return len(self._waiters)

    def acquire_or_enqueue(self, request: ApiRequest | None = None) -> Waiter:
        loop = asyncio.get_running_loop()
        leader = self._state is RefreshState.idle
        if leader:
            self._state = RefreshState.refreshing
            self.episodes += 1
        self._seq += 1
        waiter = Waiter(future=loop.create_future(), request=request, leader=leader, seq=self._seq)
        self._waiters.append(waiter)
        path = request.path if request is not None else None
        if leader:
            logger.info("auth_refresh_started", episode=self.episodes, path=path)
            self._episode = loop.create_task(
                self._run_episode(), name=f"auth-refresh-{self.episodes}"
            )
        else:
            logger.info("auth_refresh_queued", episode=self.episodes, path=path, pending=len(self._waiters))
        return waiter

    def resolve_episode(self, result: str | RefreshFailure) -> int:
        """
        Return to idle and settle every queued waiter in FIFO order.

        `result` is the new access token, or the episode failure. Each waiter
        gets its own RefreshFailure whose __cause__ is that episode failure.
        Returns how many waiters were settled.
        """
        self._state = RefreshState.idle
        waiters = list(self._waiters)
        self._waiters.clear()
        settled = 0
        for w in waiters:
            if w.future.done():
                continue
            if isinstance(result, RefreshFailure):
                err = RefreshFailure(str(result))
                err.__cause__ = result
                w.future.set_exception(err)
            else:
                w.future.set_result(result)
            settled += 1
        return settled

    def discard(self, waiter: Waiter) -> bool:
        """
        Drop a waiter whose caller went away; other waiters keep their order.
        """
        try:
            self._waiters.remove(waiter)
        except ValueError:
            return False
        if not waiter.future.done():
            waiter.future.cancel()
        logger.info("auth_refresh_waiter_dropped", seq=waiter.seq, leader=waiter.leader)
        return True

    async def wait(self, waiter: Waiter) -> str:
        try:
            return await waiter.future
        except asyncio.CancelledError:
            self.discard(waiter)
            raise

    async def renew(self, request: ApiRequest | None = None) -> str:
        """
        Join (or start) the current episode and return the new access token.

        Raises RefreshFailure when the episode fails.
        """
        return await self.wait(self.acquire_or_enqueue(request))

    async def aclose(self) -> None:
        task = self._episode
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def _refresh_tokens(self) -> TokenPair:
        current = self._store.get_tokens()
        refresh_token = current.refresh_token if current else None
        if not refresh_token:
            raise RefreshFailure("No refresh token available")

        self.refresh_calls += 1
        req = ApiRequest(
            method="POST",
            path=self._refresh_path,
            json={"refresh_token": refresh_token},
        )
        try:
            response = await self._dispatcher.send(req)
        except ApiError as ex:
            raise RefreshFailure(f"Token refresh failed: {ex}") from ex

        try:
            data = response.json()
        except ValueError as ex:
            raise RefreshFailure("Token refresh returned a non-JSON body") from ex
        if not isinstance(data, Mapping):
            raise RefreshFailure("Token refresh returned an unexpected body")
        try:
            return TokenPair.from_payload(data, fallback_refresh=refresh_token)
        except ValueError as ex:
            raise RefreshFailure("Token refresh response has no access_token") from ex

    async def _run_episode(self) -> None:
        episode = self.episodes
        try:
            pair = await self._refresh_tokens()
        except asyncio.CancelledError:
            self.resolve_episode(RefreshFailure("Token refresh was cancelled"))
            logger.warning("auth_refresh_cancelled", episode=episode)
            raise
        except RefreshFailure as ex:
            self._fail(ex, episode=episode)
            return
        except Exception as ex:
            failure = RefreshFailure(f"Token refresh failed: {ex}")
            failure.__cause__ = ex
            self._fail(failure, episode=episode)
            return

        if self._store.get_tokens() is None:
            # Logged out while the refresh was in flight; the session stays ended.
            settled = self.resolve_episode(RefreshFailure("Session ended during token refresh"))
            logger.info("auth_refresh_discarded", episode=episode, rejected=settled)
            return

        self._store.set_tokens(pair)
        settled = self.resolve_episode(pair.access_token)
        logger.info("auth_refresh_succeeded", episode=episode, released=settled)

    def _fail(self, failure: RefreshFailure, *, episode: int) -> None:
        settled = self.resolve_episode(failure)
        logger.error("auth_refresh_failed", episode=episode, rejected=settled, error=str(failure))
        self._store.logout()
        safe_notify(
            self._notifier,
            Notification(
                title=SESSION_EXPIRED_TITLE,
                description=SESSION_EXPIRED_DESCRIPTION,
                closable=True,
            ),
        )
