# Core infrastructure
from coursegate.core.context import (
    clear_context,
    get_context,
    get_request_id,
    set_course_id,
    set_request_id,
    set_user,
)
from coursegate.core.logging import configure_structlog, get_logger
from coursegate.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "set_course_id",
    "set_request_id",
    "set_user",
]
