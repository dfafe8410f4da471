"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- Progress service
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressError, ProgressService


async def get_progress_service(request: Request) -> ProgressService:
    """Get progress service from app state.

    Args:
        request: FastAPI request

    Returns:
        ProgressService instance
    """
    progress_service = getattr(request.app.state, "progress_service", None)
    if progress_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return progress_service


# Type alias for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Convert progress errors to HTTP exceptions."""
    status_map = {
        "video_not_found": status.HTTP_404_NOT_FOUND,
        "resource_not_found": status.HTTP_404_NOT_FOUND,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
