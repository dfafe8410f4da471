"""Request middleware for context management and logging."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from coursegate.core.context import clear_context, set_request_id, set_trace_id


logger = structlog.get_logger(__name__)

# Tracker writes arrive once per decile per student; keep them out of INFO
HIGH_VOLUME_ROUTES: frozenset[tuple[str, str]] = frozenset(
    {
        ("PUT", "/progress"),
        ("POST", "/complete"),
    }
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id (and trace id when present) for every log line.

    Tracker progress writes are logged at debug level; failed requests are
    always logged.
    """

    REQUEST_ID_HEADER = "X-Request-ID"
    TRACE_ID_HEADER = "X-Trace-ID"
    TRACEPARENT_HEADER = "traceparent"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = exclude_paths or ["/health"]

    def _is_excluded(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.exclude_paths)

    @staticmethod
    def _is_high_volume(method: str, path: str) -> bool:
        return any(
            method == route_method and path.endswith(suffix)
            for route_method, suffix in HIGH_VOLUME_ROUTES
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start_time = time.perf_counter()
        method, path = request.method, request.url.path

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        trace_id = request.headers.get(self.TRACE_ID_HEADER) or _extract_traceparent(
            request.headers.get(self.TRACEPARENT_HEADER)
        )
        if trace_id:
            set_trace_id(trace_id)
        request.state.request_id = request_id

        should_log = self.log_requests and not self._is_excluded(path)
        quiet = self._is_high_volume(method, path)

        try:
            response = await call_next(request)

            if should_log:
                if response.status_code >= 400:
                    log_method = logger.warning
                elif quiet:
                    log_method = logger.debug
                else:
                    log_method = logger.info
                log_method(
                    "request_completed",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    duration_ms=_elapsed_ms(start_time),
                )

            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            logger.exception(
                "request_failed",
                method=method,
                path=path,
                error_type=type(e).__name__,
                duration_ms=_elapsed_ms(start_time),
            )
            raise

        finally:
            clear_context()


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def _extract_traceparent(traceparent: str | None) -> str | None:
    """Extract the trace id from ``{version}-{trace-id}-{parent-id}-{flags}``."""
    if not traceparent:
        return None
    parts = traceparent.split("-")
    return parts[1] if len(parts) >= 2 else None


__all__ = ["RequestContextMiddleware"]
