"""HTTP client used by the player to read course state and write progress.

Wraps ``httpx.AsyncClient`` with the bearer token of the viewer. Every
request failure surfaces as ``ProgressApiError``; the tracker decides
whether to swallow it.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx
import structlog

from coursegate.config import Settings, get_settings
from coursegate.content.models import QuizItem, ResourceItem, VideoItem
from coursegate.content.schemas import (
    CourseResponse,
    QuizResponse,
    ResourceResponse,
    VideoResponse,
)
from coursegate.content.sequencer import SequencingPolicy, Timeline, build_timeline
from coursegate.gating.models import StudentProgressSnapshot, VideoProgressState
from coursegate.progress.models import Enrollment
from coursegate.progress.schemas import (
    EnrollmentListResponse,
    QuizAttemptResponse,
    ResourceCompletionResponse,
    VideoProgressResponse,
)

from .tracker import ProgressWrite


logger = structlog.get_logger(__name__)


class ProgressApiError(Exception):
    """Progress API request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class CourseSession:
    """Everything the player needs to open a course page."""

    course: CourseResponse
    timeline: Timeline
    snapshot: StudentProgressSnapshot
    enrollment: Enrollment | None = None


class ProgressApiClient:
    """Async client for the course, progress and enrollment endpoints."""

    def __init__(
        self,
        token: str,
        settings: Settings | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self.policy = SequencingPolicy(settings.sequencing_policy)
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=settings.api_timeout_seconds,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ProgressApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("progress_api_timeout", method=method, path=path, error=str(e))
            raise ProgressApiError("Progress API timeout") from e
        except httpx.RequestError as e:
            logger.error(
                "progress_api_request_error", method=method, path=path, error=str(e)
            )
            raise ProgressApiError(f"Progress API request error: {e}") from e

        if response.is_error:
            logger.error(
                "progress_api_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise ProgressApiError(
                f"Progress API error: {response.status_code}",
                status_code=response.status_code,
            )

        return response.json()

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def save_progress(self, write: ProgressWrite) -> VideoProgressResponse:
        """PUT the progress of one video."""
        data = await self._request(
            "PUT",
            f"/videos/{write.video_id}/progress",
            json={
                "progress": write.progress,
                "watchTime": write.watch_time,
                "completed": write.completed,
            },
        )
        return VideoProgressResponse.model_validate(data)

    async def complete_resource(
        self, resource_id: UUID, time_spent_seconds: float | None = None
    ) -> ResourceCompletionResponse:
        body = {"timeSpent": time_spent_seconds} if time_spent_seconds else None
        data = await self._request(
            "POST", f"/resources/{resource_id}/complete", json=body
        )
        return ResourceCompletionResponse.model_validate(data)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> CourseResponse:
        data = await self._request("GET", f"/courses/{course_id}")
        return CourseResponse.model_validate(data)

    async def list_videos(self, course_id: UUID) -> list[VideoItem]:
        data = await self._request("GET", f"/videos/course/{course_id}")
        return [_video_from(VideoResponse.model_validate(item)) for item in data]

    async def list_quizzes(self, course_id: UUID) -> list[QuizItem]:
        data = await self._request("GET", f"/quizzes/course/{course_id}")
        return [_quiz_from(QuizResponse.model_validate(item)) for item in data]

    async def list_resources(self, course_id: UUID) -> list[ResourceItem]:
        data = await self._request("GET", f"/resources/course/{course_id}")
        return [_resource_from(ResourceResponse.model_validate(item)) for item in data]

    async def get_video_progress(self, course_id: UUID) -> list[VideoProgressResponse]:
        data = await self._request("GET", f"/videos/course/{course_id}/progress")
        return [VideoProgressResponse.model_validate(item) for item in data]

    async def get_resource_progress(
        self, course_id: UUID
    ) -> list[ResourceCompletionResponse]:
        data = await self._request("GET", f"/resources/course/{course_id}/progress")
        return [ResourceCompletionResponse.model_validate(item) for item in data]

    async def get_quiz_attempts(self, quiz_id: UUID) -> list[QuizAttemptResponse]:
        data = await self._request("GET", f"/quizzes/my-attempts/{quiz_id}")
        return [QuizAttemptResponse.model_validate(item) for item in data]

    async def get_enrollments(self) -> EnrollmentListResponse:
        data = await self._request("GET", "/courses/user/enrollments")
        return EnrollmentListResponse.model_validate(data)

    async def load_course_session(self, course_id: UUID) -> CourseSession:
        """Fetch course, content and progress and build the player's state."""
        course = await self.get_course(course_id)
        videos = await self.list_videos(course_id)
        quizzes = await self.list_quizzes(course_id)
        resources = await self.list_resources(course_id)
        timeline = build_timeline(videos, quizzes, resources, self.policy)

        video_progress = {
            record.video_id: VideoProgressState(
                percentage=record.progress,
                watch_time_seconds=record.watch_time,
                completed=record.completed,
            )
            for record in await self.get_video_progress(course_id)
        }

        completed_quiz_ids = set()
        for quiz in quizzes:
            if await self.get_quiz_attempts(quiz.id):
                completed_quiz_ids.add(quiz.id)

        completed_resource_ids = {
            record.resource_id
            for record in await self.get_resource_progress(course_id)
            if record.completed
        }

        enrollment = None
        for item in (await self.get_enrollments()).items:
            if item.course_id == course_id:
                enrollment = Enrollment(**item.model_dump())
                break

        logger.info(
            "course_session_loaded",
            course_id=str(course_id),
            items=len(timeline),
            enrolled=enrollment is not None,
        )
        return CourseSession(
            course=course,
            timeline=timeline,
            snapshot=StudentProgressSnapshot(
                video_progress=video_progress,
                completed_quiz_ids=frozenset(completed_quiz_ids),
                completed_resource_ids=frozenset(completed_resource_ids),
            ),
            enrollment=enrollment,
        )


def _video_from(data: VideoResponse) -> VideoItem:
    return VideoItem(
        id=data.id,
        course_id=data.course_id,
        title=data.title,
        duration_seconds=data.duration_seconds,
        sequence_number=data.sequence_number,
        video_url=data.video_url,
        created_at=data.created_at,
    )


def _quiz_from(data: QuizResponse) -> QuizItem:
    return QuizItem(
        id=data.id,
        course_id=data.course_id,
        title=data.title,
        sequence_number=data.sequence_number,
        question_count=data.question_count,
        created_at=data.created_at,
    )


def _resource_from(data: ResourceResponse) -> ResourceItem:
    return ResourceItem(
        id=data.id,
        course_id=data.course_id,
        title=data.title,
        sequence_number=data.sequence_number,
        file_url=data.file_url,
        file_type=data.file_type,
        uploaded_at=data.uploaded_at,
    )
