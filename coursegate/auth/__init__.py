"""Token-based principal extraction and role checks."""

from .permissions import GATE_BYPASS_ROLES, UserRole, bypasses_gate, parse_role
from .schemas import Principal


__all__ = [
    "GATE_BYPASS_ROLES",
    "Principal",
    "UserRole",
    "bypasses_gate",
    "parse_role",
]
