"""Course timeline and navigation endpoints.

The player renders lock icons and the progress bar from the timeline
endpoint and asks the access endpoint before opening an item.
"""

from uuid import UUID

from fastapi import APIRouter

from coursegate.auth.dependencies import CurrentUser
from coursegate.content.dependencies import handle_content_error
from coursegate.content.service import ContentError
from coursegate.core.context import set_course_id

from .dependencies import GatingServiceDep
from .schemas import (
    CourseProgressResponse,
    NavigationResponse,
    TimelineItemResponse,
    TimelineResponse,
)


router = APIRouter(prefix="/courses", tags=["timeline"])


@router.get(
    "/{course_id}/timeline",
    response_model=TimelineResponse,
    summary="Get course timeline",
)
async def get_course_timeline(
    course_id: UUID,
    gating_service: GatingServiceDep,
    user: CurrentUser,
) -> TimelineResponse:
    """Ordered videos, quizzes and resources with lock state and aggregate."""
    set_course_id(course_id)
    try:
        view = await gating_service.get_course_timeline(course_id, user)
    except ContentError as e:
        raise handle_content_error(e) from e

    return TimelineResponse(
        course_id=course_id,
        items=[
            TimelineItemResponse.from_access(access, view.snapshot)
            for access in view.items
        ],
        progress=CourseProgressResponse.from_progress(view.progress),
    )


@router.get(
    "/{course_id}/items/{item_id}/access",
    response_model=NavigationResponse,
    summary="Check item access",
)
async def check_item_access(
    course_id: UUID,
    item_id: UUID,
    gating_service: GatingServiceDep,
    user: CurrentUser,
) -> NavigationResponse:
    """Allow or deny opening an item.

    A denial is a 200 response with ``allowed: false`` and the blocking item.
    """
    set_course_id(course_id)
    try:
        decision = await gating_service.check_access(course_id, item_id, user)
    except ContentError as e:
        raise handle_content_error(e) from e
    return NavigationResponse.from_decision(decision)
