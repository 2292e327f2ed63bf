"""Request logging middleware for Taskhub.

Every request gets a correlation id: the caller's ``X-Correlation-ID`` when
it looks sane, a fresh UUID otherwise. The id is echoed on the response,
stamped on every log event of the request and reported as ``request_id``
in the response envelope.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from taskhub.logging import clear_request_context, get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def correlation_id_for(request: Request) -> str:
    """Reuse the inbound correlation id if it is safe to log and echo."""
    inbound = request.headers.get(CORRELATION_HEADER)
    if inbound and _VALID_CORRELATION_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one completion event per request, with timing.

    Health probes are logged at debug level; they are polled constantly
    and would otherwise drown the request log. Responses with a 5xx status
    are logged as errors and 4xx as warnings.
    """

    def __init__(self, app: ASGIApp, quiet_path_prefix: str = "/api/v1/health") -> None:
        super().__init__(app)
        self.quiet_path_prefix = quiet_path_prefix

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = correlation_id_for(request)
        set_correlation_id(correlation_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=_elapsed_ms(started),
                error=str(exc),
                exc_info=True,
            )
            raise
        else:
            if path.startswith(self.quiet_path_prefix):
                log = logger.debug
            elif response.status_code >= 500:
                log = logger.error
            elif response.status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "request_completed",
                method=request.method,
                path=path,
                query=request.url.query or None,
                status_code=response.status_code,
                duration_ms=_elapsed_ms(started),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            set_correlation_id(None)
            clear_request_context()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
