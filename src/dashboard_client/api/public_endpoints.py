from __future__ import annotations

from urllib.parse import urlsplit

LOGIN_PATH = "/auth/login"
FORGOT_PASSWORD_PATH = "/auth/forgot-password"
REFRESH_TOKEN_PATH = "/auth/refresh-token"

# Routes that never carry a bearer token and never trigger a token refresh.
# Matched as path suffixes so absolute URLs and prefixed mounts work too.
PUBLIC_ENDPOINTS: tuple[str, ...] = (
    LOGIN_PATH,
    FORGOT_PASSWORD_PATH,
    REFRESH_TOKEN_PATH,
)


def _path_only(url: str) -> str:
    p = urlsplit(str(url or "")).path
    if len(p) > 1:
        p = p.rstrip("/")
    return p


def is_public_endpoint(url: str | None) -> bool:
    path = _path_only(url or "")
    if not path:
        return False
    return any(path.endswith(ep) for ep in PUBLIC_ENDPOINTS)


def is_login_endpoint(url: str | None) -> bool:
    return _path_only(url or "").endswith(LOGIN_PATH)
