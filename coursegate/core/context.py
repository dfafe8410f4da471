"""Request context management using contextvars.

Each request gets a unique ID plus the authenticated student/role and, on
course routes, the course being viewed. Everything here is merged into log
events by ``add_context_processor``.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
user_role_var: ContextVar[str | None] = ContextVar("user_role", default=None)
course_id_var: ContextVar[str | None] = ContextVar("course_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

# Optional keys, in the order they appear in log output
_OPTIONAL_VARS: dict[str, ContextVar[str | None]] = {
    "user_id": user_id_var,
    "user_role": user_role_var,
    "course_id": course_id_var,
    "trace_id": trace_id_var,
}


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context, generating one if missing."""
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def set_user(user_id: str | UUID | None, role: str | None = None) -> None:
    """Set the authenticated principal for the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)
    user_role_var.set(role)


def set_course_id(course_id: str | UUID | None) -> None:
    """Set the course being accessed in the current context."""
    course_id_var.set(str(course_id) if course_id is not None else None)


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Get all populated context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    for key, var in _OPTIONAL_VARS.items():
        value = var.get()
        if value:
            context[key] = value

    return context


def clear_context() -> None:
    """Clear all context variables at the end of a request."""
    request_id_var.set("")
    for var in _OPTIONAL_VARS.values():
        var.set(None)
