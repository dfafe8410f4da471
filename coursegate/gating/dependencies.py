"""FastAPI dependencies for the completion gate."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import GatingService


async def get_gating_service(request: Request) -> GatingService:
    """Get gating service from app state."""
    gating_service = getattr(request.app.state, "gating_service", None)
    if gating_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gating service not available",
        )
    return gating_service


GatingServiceDep = Annotated[GatingService, Depends(get_gating_service)]
