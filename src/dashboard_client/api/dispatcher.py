from __future__ import annotations

import asyncio
import time

import httpx

from dashboard_client.api.errors import NetworkError, PayloadTooLarge, status_error_for
from dashboard_client.api.models import ApiRequest
from dashboard_client.config import get_settings
from dashboard_client.utils.log import logger


class Dispatcher:
    """
    Transport wrapper: base URL, total timeout and payload limits. No auth, no retries.

    Raises NetworkError when no response arrives and HttpStatusError
    subclasses for any status >= 400.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_sec: float | None = None,
        max_content_bytes: int | None = None,
        max_body_bytes: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        s = get_settings()
        self.base_url = str(base_url or s.api_base()).rstrip("/")
        self.timeout_sec = float(timeout_sec if timeout_sec is not None else s.api_timeout_sec)
        self.max_content_bytes = int(max_content_bytes or s.api_max_content_bytes)
        self.max_body_bytes = int(max_body_bytes or s.api_max_body_bytes)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_sec),
            transport=transport,
            headers={
                "Accept": "application/json",
                "Accept-Encoding": "gzip, deflate",
                "User-Agent": str(s.api_user_agent),
            },
        )

    async def __aenter__(self) -> Dispatcher:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def url_for(self, path: str) -> str:
        p = str(path or "")
        if p.startswith(("http://", "https://")):
            return p
        return f"{self.base_url}/{p.lstrip('/')}"

    def build(self, request: ApiRequest) -> httpx.Request:
        req = self._client.build_request(
            request.method,
            self.url_for(request.path),
            params=request.params,
            json=request.json,
            data=request.data,
            headers=dict(request.headers),
        )
        body_len = len(req.content or b"")
        if body_len > self.max_body_bytes:
            raise PayloadTooLarge(
                f"request body of {body_len} bytes exceeds limit of {self.max_body_bytes}"
            )
        return req

    async def _send_limited(self, req: httpx.Request) -> httpx.Response:
        response = await self._client.send(req, stream=True)
        try:
            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_content_bytes:
                raise PayloadTooLarge(
                    f"response of {declared} bytes exceeds limit of {self.max_content_bytes}"
                )
            await response.aread()
            if len(response.content) > self.max_content_bytes:
                raise PayloadTooLarge(
                    f"response of {len(response.content)} bytes exceeds limit of {self.max_content_bytes}"
                )
            return response
        finally:
            await response.aclose()

    async def send(self, request: ApiRequest) -> httpx.Response:
        req = self.build(request)
        timeout = float(request.timeout_sec or self.timeout_sec)
        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(self._send_limited(req), timeout=timeout)
        except asyncio.TimeoutError as ex:
            logger.warning("http_timeout", method=req.method, path=req.url.path, timeout_sec=timeout)
            raise NetworkError(f"{req.method} {req.url.path} timed out after {timeout:g}s") from ex
        except httpx.TransportError as ex:
            logger.warning("http_transport_error", method=req.method, path=req.url.path, error=str(ex)[:200])
            raise NetworkError(f"{req.method} {req.url.path} failed: {ex}") from ex

        elapsed_ms = int((time.monotonic() - t0) * 1000)
        logger.debug(
            "http_response",
            method=req.method,
            path=req.url.path,
            status=int(response.status_code),
            elapsed_ms=elapsed_ms,
        )
        if response.status_code >= 400:
            raise status_error_for(response)
        return response
