"""Pydantic schemas for the authenticated principal."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from coursegate.auth.permissions import UserRole, bypasses_gate


class Principal(BaseModel):
    """Authenticated user as seen by the gate (built from token claims)."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole
    email: str | None = None

    @property
    def bypasses_gate(self) -> bool:
        """Admins and supervisors see every item unlocked."""
        return bypasses_gate(self.role)
