from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from dashboard_client.api.models import ClassifiedError

NETWORK_ERROR_TITLE = "Network Error"
NETWORK_ERROR_DESCRIPTION = "Please check your internet connection and try again."
GENERIC_DESCRIPTION = "Invalid request sent to the server."

SESSION_EXPIRED_TITLE = "Session Expired"
SESSION_EXPIRED_DESCRIPTION = "Your session has expired. Please login again."

STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    509: "Bandwidth Limit Exceeded",
    510: "Not Extended",
    511: "Network Authentication Required",
}

_RETRYABLE_STATUSES = {408, 425, 429}


class ApiError(RuntimeError):
    """
    Base for every failure raised by the client.
    """

    def __init__(self, message: str, *, classified: ClassifiedError | None = None) -> None:
        super().__init__(message)
        self.classified = classified


class NetworkError(ApiError):
    """No response was received (connection failure, timeout, aborted transfer)."""


class PayloadTooLarge(NetworkError):
    pass


class HttpStatusError(ApiError):
    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response,
        classified: ClassifiedError | None = None,
    ) -> None:
        super().__init__(message, classified=classified)
        self.response = response

    @property
    def status_code(self) -> int:
        return int(self.response.status_code)


class ClientError(HttpStatusError):
    pass


class ServerError(HttpStatusError):
    pass


class AuthExpired(ClientError):
    """A 401 that will not be recovered by a token refresh."""


class RefreshFailure(ApiError):
    """The refresh call failed, timed out, or no refresh token was available."""


def status_error_for(response: httpx.Response) -> HttpStatusError:
    status = int(response.status_code)
    classified = classify_response(response)
    msg = f"HTTP {status} for {response.request.method} {response.request.url.path}"
    if status == 401:
        return AuthExpired(msg, response=response, classified=classified)
    if status >= 500:
        return ServerError(msg, response=response, classified=classified)
    return ClientError(msg, response=response, classified=classified)


def status_title(status: int, reason: str | None = None) -> str:
    title = STATUS_TITLES.get(int(status))
    if title:
        return title
    return f"{int(status)} - {reason or ''}"


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except Exception:
        return None


def describe_body(body: Any) -> str:
    if isinstance(body, Mapping):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            parts = []
            for err in errors:
                if isinstance(err, Mapping):
                    parts.append(f"{err.get('field')}: {err.get('message')}")
                else:
                    parts.append(str(err))
            return ", ".join(parts)
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return GENERIC_DESCRIPTION


def is_retryable_status(status: int) -> bool:
    return int(status) in _RETRYABLE_STATUSES or int(status) >= 500


def classify_response(response: httpx.Response) -> ClassifiedError:
    status = int(response.status_code)
    return ClassifiedError(
        title=status_title(status, response.reason_phrase),
        description=describe_body(_json_body(response)),
        status_code=status,
        retryable=is_retryable_status(status),
    )


def classify_error(exc: BaseException) -> ClassifiedError:
    """
    Map a failed call to a user-presentable error.

    Deterministic; the same failure always yields the same result.
    """
    if isinstance(exc, HttpStatusError):
        return exc.classified or classify_response(exc.response)
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_response(exc.response)
    if isinstance(exc, RefreshFailure):
        return ClassifiedError(
            title=SESSION_EXPIRED_TITLE,
            description=SESSION_EXPIRED_DESCRIPTION,
            status_code=None,
            retryable=False,
        )
    return ClassifiedError(
        title=NETWORK_ERROR_TITLE,
        description=NETWORK_ERROR_DESCRIPTION,
        status_code=None,
        retryable=True,
    )
