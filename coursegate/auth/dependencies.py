"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current principal extraction from a Bearer JWT
- Role restriction
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from coursegate.auth.permissions import UserRole, parse_role
from coursegate.auth.schemas import Principal
from coursegate.auth.security import decode_access_token
from coursegate.core.context import set_user


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal:
    """Get the current principal from the JWT access token.

    Raises:
        HTTPException(401): If token is missing, invalid, expired or carries
            an unknown role
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user_id = UUID(str(payload["sub"]))
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    role = parse_role(payload["role"])
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown role",
            headers={"WWW-Authenticate": "Bearer"},
        )

    set_user(user_id, role.value)
    return Principal(id=user_id, role=role, email=payload.get("email"))


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring specific role(s).

    Example:
        @router.post("/resources/{resource_id}/complete")
        async def complete(
            user: Annotated[Principal, Depends(require_role(UserRole.STUDENT))]
        ):
            ...
    """

    async def role_checker(
        user: Annotated[Principal, Depends(get_current_user)],
    ) -> Principal:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


# Basic authenticated principal
CurrentUser = Annotated[Principal, Depends(get_current_user)]

# Only students own progress records
StudentUser = Annotated[Principal, Depends(require_role(UserRole.STUDENT))]

# Course staff reading student progress
SupervisorUser = Annotated[
    Principal, Depends(require_role(UserRole.SUPERVISOR, UserRole.ADMIN))
]
