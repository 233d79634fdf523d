from __future__ import annotations

from dashboard_client.api.models import ApiRequest
from dashboard_client.api.public_endpoints import is_public_endpoint
from dashboard_client.api.token_store import TokenStore

AUTHORIZATION = "Authorization"


def bearer(token: str) -> str:
    return f"Bearer {token}"


def attach_auth(request: ApiRequest, store: TokenStore, *, token: str | None = None) -> ApiRequest:
    """
    Return a copy of `request` carrying the current bearer token.

    Public routes never carry one, even if the caller supplied a header.
    `token` overrides the store (used when replaying after a refresh).
    """
    if is_public_endpoint(request.path):
        if request.header(AUTHORIZATION) is not None:
            return request.without_header(AUTHORIZATION)
        return request

    if token is None:
        pair = store.get_tokens()
        token = pair.access_token if pair else None
    if not token:
        return request
    return request.with_header(AUTHORIZATION, bearer(token))
