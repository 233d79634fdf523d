from __future__ import annotations

from .api.auth_api import AuthApi
from .api.client import ApiClient
from .api.dispatcher import Dispatcher
from .api.errors import (
    ApiError,
    AuthExpired,
    ClientError,
    HttpStatusError,
    NetworkError,
    PayloadTooLarge,
    RefreshFailure,
    ServerError,
    classify_error,
)
from .api.models import ApiRequest, ClassifiedError, RefreshState, RequestAttempt, TokenPair
from .api.public_endpoints import PUBLIC_ENDPOINTS, is_public_endpoint
from .api.refresh import RefreshCoordinator, Waiter
from .api.token_store import InMemoryTokenStore, TokenStore
from .notify.base import Notification, Notifier
from .notify.sinks import CallbackNotifier, LogNotifier, NullNotifier
from .session.timeout import SessionTimeout

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiRequest",
    "AuthApi",
    "AuthExpired",
    "CallbackNotifier",
    "ClassifiedError",
    "ClientError",
    "Dispatcher",
    "HttpStatusError",
    "InMemoryTokenStore",
    "LogNotifier",
    "NetworkError",
    "Notification",
    "Notifier",
    "NullNotifier",
    "PUBLIC_ENDPOINTS",
    "PayloadTooLarge",
    "RefreshCoordinator",
    "RefreshFailure",
    "RefreshState",
    "RequestAttempt",
    "ServerError",
    "SessionTimeout",
    "TokenPair",
    "TokenStore",
    "Waiter",
    "classify_error",
    "is_public_endpoint",
]
