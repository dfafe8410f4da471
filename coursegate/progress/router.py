"""Student progress API endpoints.

Provides routes for:
- Video progress reads and writes (called by the playback tracker)
- Quiz attempts of the current student
- Resource completion and per-resource progress
- Enrollments with cached aggregate progress
- Supervisor reports of enrolled students
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from coursegate.auth.dependencies import CurrentUser, StudentUser, SupervisorUser
from coursegate.auth.permissions import UserRole
from coursegate.content.dependencies import ContentServiceDep, handle_content_error
from coursegate.content.service import ContentError
from coursegate.core.context import set_course_id

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    EnrollmentListResponse,
    EnrollmentResponse,
    MarkResourceCompleteRequest,
    QuizAttemptResponse,
    ResourceCompletionResponse,
    ResourceProgressResponse,
    StudentProgressListResponse,
    StudentProgressResponse,
    UpdateVideoProgressRequest,
    VideoProgressResponse,
)
from .service import ProgressError


enrollments_router = APIRouter(prefix="/courses", tags=["enrollments"])
video_progress_router = APIRouter(prefix="/videos", tags=["progress"])
quiz_attempts_router = APIRouter(prefix="/quizzes", tags=["progress"])
resource_progress_router = APIRouter(prefix="/resources", tags=["progress"])


# ==============================================================================
# Enrollment Endpoints
# ==============================================================================


@enrollments_router.get(
    "/user/enrollments",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentListResponse:
    """List the current user's enrollments, newest first."""
    enrollments = await progress_service.get_user_enrollments(user.id)
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )


@enrollments_router.get(
    "/{course_id}/student-progress",
    response_model=StudentProgressListResponse,
    summary="Get progress of enrolled students",
)
async def get_student_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    content_service: ContentServiceDep,
    user: SupervisorUser,
) -> StudentProgressListResponse:
    """Per-student progress of a course.

    Supervisors only see the courses they supervise; admins see every course.
    """
    set_course_id(course_id)
    try:
        course = await content_service.require_course(course_id)
    except ContentError as e:
        raise handle_content_error(e) from e

    if user.role != UserRole.ADMIN and course.supervisor_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a supervisor of this course",
        )

    reports = await progress_service.get_student_progress_reports(course_id)
    return StudentProgressListResponse(
        course_id=course_id,
        items=[StudentProgressResponse.from_report(r) for r in reports],
        total=len(reports),
    )


# ==============================================================================
# Video Progress Endpoints
# ==============================================================================


@video_progress_router.get(
    "/course/{course_id}/progress",
    response_model=list[VideoProgressResponse],
    summary="Get my video progress in a course",
)
async def get_course_video_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> list[VideoProgressResponse]:
    """Progress of every video the current user has watched in a course."""
    set_course_id(course_id)
    records = await progress_service.get_progress(course_id, user.id)
    return [VideoProgressResponse.from_entity(r) for r in records]


@video_progress_router.put(
    "/{video_id}/progress",
    response_model=VideoProgressResponse,
    summary="Update video progress",
)
async def update_video_progress(
    video_id: UUID,
    data: UpdateVideoProgressRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> VideoProgressResponse:
    """Persist watch progress of a video.

    Sent by the tracker at every new 10% decile and on completion. Reaching
    90% marks the video completed; completion is never reverted.
    """
    try:
        record = await progress_service.upsert_progress(
            video_id=video_id,
            student_id=user.id,
            percentage=data.progress,
            watch_time_seconds=data.watch_time,
            completed=data.completed,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return VideoProgressResponse.from_entity(record)


# ==============================================================================
# Quiz and Resource Endpoints
# ==============================================================================


@quiz_attempts_router.get(
    "/my-attempts/{quiz_id}",
    response_model=list[QuizAttemptResponse],
    summary="List my attempts on a quiz",
)
async def list_my_quiz_attempts(
    quiz_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> list[QuizAttemptResponse]:
    """A non-empty list means the quiz counts as completed on the timeline."""
    attempts = await progress_service.get_quiz_attempts(quiz_id, user.id)
    return [QuizAttemptResponse.from_entity(a) for a in attempts]


@resource_progress_router.post(
    "/{resource_id}/complete",
    response_model=ResourceCompletionResponse,
    summary="Mark resource as completed",
)
async def mark_resource_complete(
    resource_id: UUID,
    progress_service: ProgressServiceDep,
    user: StudentUser,
    data: MarkResourceCompleteRequest | None = None,
) -> ResourceCompletionResponse:
    """Mark a downloadable resource as completed by the current student."""
    try:
        completion = await progress_service.mark_resource_complete(
            resource_id=resource_id,
            student_id=user.id,
            time_spent_seconds=data.time_spent if data else None,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ResourceCompletionResponse.from_entity(completion)


@resource_progress_router.get(
    "/{resource_id}/progress",
    response_model=ResourceProgressResponse,
    summary="Get my progress on a resource",
)
async def get_resource_progress(
    resource_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ResourceProgressResponse:
    """Progress record of one resource, blank if never opened."""
    progress = await progress_service.get_resource_progress(resource_id, user.id)
    if progress is None:
        return ResourceProgressResponse.not_started(resource_id)
    return ResourceProgressResponse.from_entity(progress)


@resource_progress_router.get(
    "/course/{course_id}/progress",
    response_model=list[ResourceCompletionResponse],
    summary="Get my completed resources in a course",
)
async def get_course_resource_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> list[ResourceCompletionResponse]:
    """Resources the current user has marked complete in a course."""
    set_course_id(course_id)
    completions = await progress_service.get_resource_completions(course_id, user.id)
    return [ResourceCompletionResponse.from_entity(c) for c in completions]
