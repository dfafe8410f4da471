"""Course content API endpoints.

Read-only listings consumed by the course page:
- Course metadata
- Approved videos, quizzes and resources per course
"""

from uuid import UUID

from fastapi import APIRouter

from coursegate.auth.dependencies import CurrentUser
from coursegate.core.context import set_course_id

from .dependencies import ContentServiceDep, handle_content_error
from .schemas import CourseResponse, QuizResponse, ResourceResponse, VideoResponse
from .service import ContentError


courses_router = APIRouter(prefix="/courses", tags=["courses"])
videos_router = APIRouter(prefix="/videos", tags=["videos"])
quizzes_router = APIRouter(prefix="/quizzes", tags=["quizzes"])
resources_router = APIRouter(prefix="/resources", tags=["resources"])


@courses_router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course metadata",
)
async def get_course(
    course_id: UUID,
    content_service: ContentServiceDep,
    user: CurrentUser,
) -> CourseResponse:
    """Get course metadata."""
    set_course_id(course_id)
    try:
        course = await content_service.require_course(course_id)
    except ContentError as e:
        raise handle_content_error(e) from e
    return CourseResponse.from_entity(course)


@videos_router.get(
    "/course/{course_id}",
    response_model=list[VideoResponse],
    summary="List course videos",
)
async def list_course_videos(
    course_id: UUID,
    content_service: ContentServiceDep,
    user: CurrentUser,
) -> list[VideoResponse]:
    """List approved videos of a course with sequence and duration."""
    set_course_id(course_id)
    videos = await content_service.list_videos(course_id)
    return [VideoResponse.from_entity(v) for v in videos]


@quizzes_router.get(
    "/course/{course_id}",
    response_model=list[QuizResponse],
    summary="List course quizzes",
)
async def list_course_quizzes(
    course_id: UUID,
    content_service: ContentServiceDep,
    user: CurrentUser,
) -> list[QuizResponse]:
    """List active, approved quizzes of a course."""
    set_course_id(course_id)
    quizzes = await content_service.list_quizzes(course_id)
    return [QuizResponse.from_entity(q) for q in quizzes]


@resources_router.get(
    "/course/{course_id}",
    response_model=list[ResourceResponse],
    summary="List course resources",
)
async def list_course_resources(
    course_id: UUID,
    content_service: ContentServiceDep,
    user: CurrentUser,
) -> list[ResourceResponse]:
    """List active, approved resources of a course."""
    set_course_id(course_id)
    resources = await content_service.list_resources(course_id)
    return [ResourceResponse.from_entity(r) for r in resources]
