"""Role-based access control for coursegate.

Roles:
- ADMIN: Full system access
- SUPERVISOR: Authors and supervises courses
- STUDENT: Consumes course content behind the sequential gate

ADMIN and SUPERVISOR bypass the content gate entirely.
"""

from enum import Enum


class UserRole(str, Enum):
    """Platform roles."""

    STUDENT = "student"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


# Roles for which every content item is always reachable
GATE_BYPASS_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.ADMIN, UserRole.SUPERVISOR}
)


def parse_role(role: object) -> UserRole | None:
    """Normalize a role claim.

    Token claims are matched case-insensitively so that ``"Admin"`` and
    ``"admin"`` are the same role.

    Examples:
        >>> parse_role("Supervisor")
        <UserRole.SUPERVISOR: 'supervisor'>
        >>> parse_role("guest") is None
        True
    """
    if isinstance(role, UserRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return UserRole(role.lower())
    except ValueError:
        return None


def bypasses_gate(role: UserRole | str | None) -> bool:
    """Check if the role sees every item unlocked."""
    return parse_role(role) in GATE_BYPASS_ROLES


def is_student(role: UserRole | str | None) -> bool:
    """Check if role is STUDENT."""
    return parse_role(role) == UserRole.STUDENT
