from __future__ import annotations

import asyncio

import httpx
import pytest

from dashboard_client.api.dispatcher import Dispatcher
from dashboard_client.api.errors import (
    AuthExpired,
    ClientError,
    NetworkError,
    PayloadTooLarge,
    ServerError,
)
from dashboard_client.api.models import ApiRequest
from tests._helpers.backend import BASE_URL


def _send(handler, request: ApiRequest, **kwargs):
    async def run():
        async with Dispatcher(
            base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs
        ) as d:
            return await d.send(request)

    return asyncio.run(run())


def test_url_for_joins_base_and_keeps_absolute_urls() -> None:
    d = Dispatcher(base_url=BASE_URL + "/")
    assert d.url_for("/users/me") == "http://api.test/api/users/me"
    assert d.url_for("users/me") == "http://api.test/api/users/me"
    assert d.url_for("https://other.test/x") == "https://other.test/x"
    asyncio.run(d.aclose())


def test_defaults_come_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    from dashboard_client.config import get_settings

    monkeypatch.setenv("API_BASE_URL", "https://dash.example.com/api/")
    monkeypatch.setenv("API_TIMEOUT_SEC", "7.5")
    get_settings.cache_clear()

    d = Dispatcher()
    assert d.base_url == "https://dash.example.com/api"
    assert d.timeout_sec == 7.5
    asyncio.run(d.aclose())


def test_success_returns_read_response_without_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    r = _send(handler, ApiRequest(method="get", path="/items", params={"page": 2}))
    assert r.json() == {"ok": True}
    assert seen[0].method == "GET"
    assert str(seen[0].url) == "http://api.test/api/items?page=2"
    assert seen[0].headers["accept"] == "application/json"
    assert "authorization" not in seen[0].headers


@pytest.mark.parametrize(
    "status,exc_type,title",
    [
        (401, AuthExpired, "Unauthorized"),
        (404, ClientError, "Not Found"),
        (429, ClientError, "Too Many Requests"),
        (503, ServerError, "Service Unavailable"),
    ],
)
def test_error_statuses_raise_with_classification(status, exc_type, title) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "nope"})

    with pytest.raises(exc_type) as ei:
        _send(handler, ApiRequest(method="GET", path="/items"))
    err = ei.value
    assert err.status_code == status
    assert err.classified is not None
    assert err.classified.title == title
    assert err.classified.description == "nope"


def test_timeout_is_network_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200)

    with pytest.raises(NetworkError) as ei:
        _send(handler, ApiRequest(method="GET", path="/slow"), timeout_sec=0.05)
    assert "timed out" in str(ei.value)


def test_per_request_timeout_overrides_default() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200)

    with pytest.raises(NetworkError):
        _send(handler, ApiRequest(method="GET", path="/slow", timeout_sec=0.05))


def test_transport_error_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as ei:
        _send(handler, ApiRequest(method="GET", path="/items"))
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_response_over_limit_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"x" * 64)

    with pytest.raises(PayloadTooLarge):
        _send(handler, ApiRequest(method="GET", path="/big"), max_content_bytes=16)


def test_request_body_over_limit_never_leaves() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    with pytest.raises(PayloadTooLarge):
        _send(
            handler,
            ApiRequest(method="POST", path="/upload", json={"blob": "x" * 64}),
            max_body_bytes=16,
        )
    assert seen == []
