"""
Rate limiting per user and per IP.

Scopes:
- auth: POST under /auth, per IP per minute
- contribute: POST /contributions, per user (or IP) per hour
- api: everything else under the API prefix, per user (or IP) per minute
"""

import time
from typing import Callable, Optional, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from stackatlas.config import get_settings
from stackatlas.kernel.identity.jwt import verify_access_token
from stackatlas.logging_config import get_logger

logger = get_logger(__name__)


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _get_user_id_from_jwt(request: Request) -> Optional[str]:
    """User id from a valid Bearer token, if any. The route still authenticates."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    if not token:
        return None
    payload = verify_access_token(token)
    return payload.sub if payload else None


class InMemoryRateLimitStore:
    """Fixed-window in-memory store. Key -> (count, window_start_ts)."""

    def __init__(self):
        self._data: dict[str, Tuple[int, float]] = {}
        self._window_sec: dict[str, int] = {}

    def _key(self, scope: str, identifier: str) -> str:
        return f"{scope}:{identifier}"

    def check_and_incr(
        self,
        scope: str,
        identifier: str,
        limit: int,
        window_seconds: int,
    ) -> bool:
        """Returns True if under limit (and increments). False if over limit (no increment)."""
        key = self._key(scope, identifier)
        now = time.monotonic()
        if key not in self._data:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        count, start = self._data[key]
        win = self._window_sec.get(key, window_seconds)
        if now - start >= win:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        if count >= limit:
            return False
        self._data[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = 3600):
        """Drop windows older than max_age_seconds."""
        now = time.monotonic()
        to_remove = [k for k, (_, start) in self._data.items() if now - start > max_age_seconds]
        for k in to_remove:
            self._data.pop(k, None)
            self._window_sec.pop(k, None)

    def reset(self):
        self._data.clear()
        self._window_sec.clear()


# Single-process store; each worker keeps its own counters.
_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


def classify(request: Request, prefix: str) -> Tuple[str, int]:
    """Scope name and window length (seconds) for a request under the API prefix."""
    path = request.url.path or ""
    if request.method == "POST" and path.startswith(f"{prefix}/auth"):
        return "auth", 60
    if request.method == "POST" and path.rstrip("/") == f"{prefix}/contributions":
        return "contribute", 3600
    return "api", 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the per-scope limit with 429."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path or ""
        if not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        store = get_store()
        store.cleanup_old(max_age_seconds=7200)

        scope, window = classify(request, settings.api_v1_prefix)
        if scope == "auth":
            limit = settings.rate_limit_auth_per_minute
            identifier = _get_client_ip(request)
        else:
            limit = (
                settings.rate_limit_contributions_per_hour
                if scope == "contribute"
                else settings.rate_limit_api_per_minute
            )
            identifier = _get_user_id_from_jwt(request) or _get_client_ip(request)

        if not store.check_and_incr(scope, identifier, limit, window):
            logger.warning("Rate limit exceeded", extra={"scope": scope, "path": path})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests. Please try again later.", "kind": "rate_limited"},
                headers={"Retry-After": str(window)},
            )
        return await call_next(request)
