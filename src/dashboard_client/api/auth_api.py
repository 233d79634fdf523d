from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dashboard_client.api.client import ApiClient
from dashboard_client.api.errors import ApiError
from dashboard_client.api.models import TokenPair
from dashboard_client.api.public_endpoints import FORGOT_PASSWORD_PATH, LOGIN_PATH
from dashboard_client.utils.log import logger

LOGOUT_PATH = "/auth/logout"
USERS_PATH = "/users"
CURRENT_USER_PATH = "/users/me"


class AuthApi:
    """
    Session endpoints of the dashboard backend.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        data = await self.client.request_json(
            "POST", LOGIN_PATH, json={"email": email, "password": password}
        )
        if not isinstance(data, Mapping):
            raise ApiError("login response is not an object")
        try:
            tokens = TokenPair.from_payload(data)
        except ValueError as ex:
            raise ApiError("login response has no access_token") from ex

        user = data.get("user")
        store = self.client.token_store
        if hasattr(store, "set_auth"):
            store.set_auth(user=user if isinstance(user, Mapping) else None, tokens=tokens)
        else:
            store.set_tokens(tokens)
        logger.info("auth_login_ok", has_refresh=bool(tokens.refresh_token))
        return dict(data)

    async def register(self, payload: Mapping[str, Any]) -> Any:
        return await self.client.request_json("POST", USERS_PATH, json=dict(payload))

    async def logout(self) -> None:
        """
        Tell the backend (best-effort) and always drop the local session.
        """
        try:
            if self.client.token_store.get_tokens() is not None:
                await self.client.post(LOGOUT_PATH)
        except ApiError as ex:
            logger.info("auth_logout_remote_failed", error=str(ex)[:200])
        finally:
            self.client.token_store.logout()

    async def refresh_token(self) -> str:
        """
        Force a refresh. Shares the single-flight episode with 401-driven refreshes.
        """
        return await self.client.coordinator.renew()

    async def request_password_reset(self, *, email: str) -> Any:
        return await self.client.request_json("POST", FORGOT_PASSWORD_PATH, json={"email": email})

    async def get_current_user(self) -> Any:
        data = await self.client.request_json("GET", CURRENT_USER_PATH)
        if isinstance(data, Mapping) and isinstance(data.get("user"), Mapping):
            return dict(data["user"])
        return data


__all__ = ["AuthApi", "LOGOUT_PATH", "CURRENT_USER_PATH", "USERS_PATH"]
