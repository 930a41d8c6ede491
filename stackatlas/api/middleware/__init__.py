"""HTTP middleware."""

from stackatlas.api.middleware.request_id import RequestIdMiddleware, REQUEST_ID_HEADER
from stackatlas.api.middleware.rate_limit import RateLimitMiddleware, InMemoryRateLimitStore

__all__ = [
    "RequestIdMiddleware",
    "REQUEST_ID_HEADER",
    "RateLimitMiddleware",
    "InMemoryRateLimitStore",
]
