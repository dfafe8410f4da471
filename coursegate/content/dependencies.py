"""FastAPI dependencies for course content."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ContentError, ContentService


async def get_content_service(request: Request) -> ContentService:
    """Get content service from app state."""
    content_service = getattr(request.app.state, "content_service", None)
    if content_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content service not available",
        )
    return content_service


ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]


def handle_content_error(error: ContentError) -> HTTPException:
    """Convert content errors to HTTP exceptions."""
    status_map = {
        "course_not_found": status.HTTP_404_NOT_FOUND,
        "content_not_found": status.HTTP_404_NOT_FOUND,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
