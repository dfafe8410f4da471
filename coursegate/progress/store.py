"""Progress store interface.

``ProgressService`` is the Cassandra implementation. The gate and the
routers depend only on this protocol, so tests can pass an in-memory store.
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from uuid import UUID

from coursegate.content.models import QuizItem, ResourceItem
from coursegate.gating.models import StudentProgressSnapshot

from .models import (
    Enrollment,
    QuizAttempt,
    ResourceCompletion,
    StudentProgressReport,
    VideoProgress,
)


@runtime_checkable
class ProgressStore(Protocol):
    """Per-student completion state and watch time."""

    async def get_progress(
        self, course_id: UUID, student_id: UUID
    ) -> list[VideoProgress]: ...

    async def upsert_progress(
        self,
        video_id: UUID,
        student_id: UUID,
        percentage: float,
        watch_time_seconds: float,
        completed: bool = False,
    ) -> VideoProgress: ...

    async def get_quiz_attempts(
        self, quiz_id: UUID, student_id: UUID
    ) -> list[QuizAttempt]: ...

    async def get_resource_progress(
        self, resource_id: UUID, student_id: UUID
    ) -> ResourceCompletion | None: ...

    async def get_resource_completion(
        self, resource_id: UUID, student_id: UUID
    ) -> bool: ...

    async def get_resource_completions(
        self, course_id: UUID, student_id: UUID
    ) -> list[ResourceCompletion]: ...

    async def mark_resource_complete(
        self,
        resource_id: UUID,
        student_id: UUID,
        course_id: UUID | None = None,
        time_spent_seconds: float | None = None,
    ) -> ResourceCompletion: ...

    async def get_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None: ...

    async def get_user_enrollments(self, student_id: UUID) -> list[Enrollment]: ...

    async def get_course_enrollments(self, course_id: UUID) -> list[Enrollment]: ...

    async def get_student_progress_reports(
        self, course_id: UUID
    ) -> list[StudentProgressReport]: ...

    async def refresh_course_progress(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None: ...

    async def build_snapshot(
        self,
        course_id: UUID,
        student_id: UUID,
        quizzes: Iterable[QuizItem],
        resources: Iterable[ResourceItem],
    ) -> StudentProgressSnapshot: ...
