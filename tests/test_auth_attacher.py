from __future__ import annotations

from dashboard_client.api.auth_attacher import attach_auth
from dashboard_client.api.models import ApiRequest, TokenPair
from dashboard_client.api.token_store import InMemoryTokenStore


def _store(token: str | None = "tok1") -> InMemoryTokenStore:
    return InMemoryTokenStore(tokens=TokenPair(access_token=token, refresh_token="r1") if token else None)


def test_protected_request_gets_bearer_and_original_is_untouched() -> None:
    req = ApiRequest(method="GET", path="/users/me")
    out = attach_auth(req, _store())
    assert out.header("authorization") == "Bearer tok1"
    assert req.header("Authorization") is None


def test_explicit_token_overrides_store_and_replaces_header() -> None:
    req = ApiRequest(method="GET", path="/users/me", headers={"authorization": "Bearer old"})
    out = attach_auth(req, _store(), token="tok2")
    assert out.header("Authorization") == "Bearer tok2"
    assert len(out.headers) == 1


def test_public_route_never_carries_a_token() -> None:
    req = ApiRequest(method="POST", path="/auth/login", headers={"Authorization": "Bearer x"})
    out = attach_auth(req, _store())
    assert out.header("Authorization") is None

    plain = ApiRequest(method="POST", path="/auth/login")
    assert attach_auth(plain, _store()) is plain


def test_no_token_leaves_request_unchanged() -> None:
    req = ApiRequest(method="GET", path="/users/me")
    assert attach_auth(req, _store(None)) is req
