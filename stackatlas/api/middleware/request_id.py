"""
Request correlation middleware.

Every request gets an id: the caller's ``X-Request-ID`` when it is a short
token, otherwise a fresh one. The id is echoed on the response, kept on
``request.state`` for error handlers, and bound into the log context with
the method and path so service-layer log lines can be traced back to the
request that produced them.
"""

import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from stackatlas.config import get_settings
from stackatlas.logging_config import get_logger, log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids end up in log lines; anything else is replaced
_CALLER_ID = re.compile(r"[A-Za-z0-9._:-]{1,64}")


def resolve_request_id(incoming: Optional[str]) -> str:
    if incoming and _CALLER_ID.fullmatch(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, slow_request_ms: Optional[int] = None):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms or get_settings().slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        with log_context(request_id=request_id, method=request.method, path=request.url.path):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

            response.headers[REQUEST_ID_HEADER] = request_id
            if elapsed_ms > self.slow_request_ms:
                logger.warning("Slow request", extra={"status": response.status_code, "elapsed_ms": elapsed_ms})
            else:
                logger.debug("Request handled", extra={"status": response.status_code, "elapsed_ms": elapsed_ms})
        return response
