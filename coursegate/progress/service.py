"""Student progress service layer.

Business logic for:
- Video progress writes (clamped, completion at the unlock threshold, sticky)
- Quiz attempt and resource completion reads
- Resource "mark complete"
- Enrollment aggregate refresh after a new completion
- Snapshot assembly for the completion gate
- Per-student progress reports for course supervisors

Each write is independent and idempotent; there are no cross-item
transactions.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursegate.content.models import QuizItem, ResourceItem, VideoItem
from coursegate.gating.models import StudentProgressSnapshot, VideoProgressState
from coursegate.utils import clamp, round_half_up

from .models import (
    Enrollment,
    EnrollmentStatus,
    QuizAttempt,
    ResourceCompletion,
    StudentProgressReport,
    VideoProgress,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursegate.content.service import ContentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class VideoNotFoundError(ProgressError):
    """Progress written for an unknown video."""

    def __init__(self, message: str = "Video not found"):
        super().__init__(message, "video_not_found")


class ResourceNotFoundError(ProgressError):
    """Completion requested for an unknown or inactive resource."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "resource_not_found")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Cassandra-backed progress store."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        content: "ContentService",
        unlock_threshold: float = 90.0,
    ):
        self.session = session
        self.keyspace = keyspace
        self.content = content
        self.unlock_threshold = unlock_threshold
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Video progress
        self._get_video_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_progress
            WHERE user_id = ? AND course_id = ? AND video_id = ?
        """)

        self._get_course_video_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.video_progress
            WHERE user_id = ? AND course_id = ?
        """)

        self._upsert_video_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.video_progress
            (user_id, course_id, video_id, percentage, watch_time_seconds,
             completed, last_watched_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # Quiz attempts (read-only)
        self._get_quiz_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE quiz_id = ? AND student_id = ?
        """)

        # Resource progress
        self._get_resource_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.resource_progress
            WHERE user_id = ? AND resource_id = ?
        """)

        self._get_user_resource_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.resource_progress
            WHERE user_id = ?
        """)

        self._upsert_resource_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.resource_progress
            (user_id, resource_id, course_id, completed, completed_at,
             accessed_at, download_count, time_spent_seconds)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # Enrollments
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND user_id = ?
        """)

        self._list_course_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ?
        """)

        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, user_id, status, enrolled_at, completed_at,
             progress_percent, lessons_completed, total_lessons)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # Enrollments by user (lookup)
        self._get_user_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ?
        """)

        self._upsert_enrollment_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_user
            (user_id, enrolled_at, course_id, status, progress_percent,
             lessons_completed, total_lessons)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

    # ==========================================================================
    # Video Progress Operations
    # ==========================================================================

    async def get_progress(
        self, course_id: UUID, student_id: UUID
    ) -> list[VideoProgress]:
        """All video progress of a student in a course."""
        rows = await self.session.aexecute(
            self._get_course_video_progress, [student_id, course_id]
        )
        return [VideoProgress.from_row(row) for row in rows]

    async def get_video_progress(
        self, course_id: UUID, student_id: UUID, video_id: UUID
    ) -> VideoProgress | None:
        result = await self.session.aexecute(
            self._get_video_progress, [student_id, course_id, video_id]
        )
        row = result.one()
        return VideoProgress.from_row(row) if row else None

    async def upsert_progress(
        self,
        video_id: UUID,
        student_id: UUID,
        percentage: float,
        watch_time_seconds: float,
        completed: bool = False,
    ) -> VideoProgress:
        """Create or update the progress record of one video.

        Percentage is clamped to 0..100 and watch time to >= 0. Reaching the
        unlock threshold counts as completion, and completion is never
        reverted by a later write.

        Raises:
            VideoNotFoundError: If the video does not exist
        """
        video = await self.content.get_video(video_id)
        if video is None:
            raise VideoNotFoundError

        percentage = clamp(percentage or 0.0, 0.0, 100.0)
        watch_time_seconds = clamp(watch_time_seconds or 0.0, 0.0)

        existing = await self.get_video_progress(video.course_id, student_id, video_id)
        was_completed = existing is not None and existing.completed
        now_completed = (
            was_completed or completed or percentage >= self.unlock_threshold
        )

        now = datetime.now(UTC)
        if was_completed:
            completed_at = existing.completed_at or now
        else:
            completed_at = now if now_completed else None

        progress = VideoProgress(
            video_id=video_id,
            student_id=student_id,
            course_id=video.course_id,
            percentage=percentage,
            watch_time_seconds=watch_time_seconds,
            completed=now_completed,
            last_watched_at=now,
            completed_at=completed_at,
        )

        await self.session.aexecute(
            self._upsert_video_progress,
            [
                student_id,
                progress.course_id,
                video_id,
                progress.percentage,
                progress.watch_time_seconds,
                progress.completed,
                progress.last_watched_at,
                progress.completed_at,
            ],
        )

        logger.info(
            "video_progress_updated",
            user_id=str(student_id),
            video_id=str(video_id),
            percentage=percentage,
            watch_time_seconds=watch_time_seconds,
            completed=now_completed,
        )

        if now_completed and not was_completed:
            logger.info(
                "video_completed",
                user_id=str(student_id),
                video_id=str(video_id),
            )
            await self._refresh_after_completion(student_id, progress.course_id)

        return progress

    # ==========================================================================
    # Quiz and Resource Operations
    # ==========================================================================

    async def get_quiz_attempts(
        self, quiz_id: UUID, student_id: UUID
    ) -> list[QuizAttempt]:
        """Attempts of a student on a quiz, newest first."""
        rows = await self.session.aexecute(
            self._get_quiz_attempts, [quiz_id, student_id]
        )
        return [QuizAttempt.from_row(row) for row in rows]

    async def get_resource_progress(
        self, resource_id: UUID, student_id: UUID
    ) -> ResourceCompletion | None:
        """Progress record of one resource, or None if never touched."""
        result = await self.session.aexecute(
            self._get_resource_progress, [student_id, resource_id]
        )
        row = result.one()
        return ResourceCompletion.from_row(row) if row else None

    async def get_resource_completion(
        self, resource_id: UUID, student_id: UUID
    ) -> bool:
        progress = await self.get_resource_progress(resource_id, student_id)
        return progress is not None and progress.completed

    async def mark_resource_complete(
        self,
        resource_id: UUID,
        student_id: UUID,
        course_id: UUID | None = None,
        time_spent_seconds: float | None = None,
    ) -> ResourceCompletion:
        """Record that a student completed a downloadable resource.

        The first record counts one download and the first completion time is
        kept on repeats. A reported time spent (floored at zero) replaces the
        stored one. The enrollment aggregate is refreshed when the resource was
        not completed before.

        Raises:
            ResourceNotFoundError: If the resource is unknown or inactive
        """
        resource = await self.content.get_resource(resource_id)
        if resource is None or not resource.is_active:
            raise ResourceNotFoundError
        course_id = course_id or resource.course_id

        existing = await self.get_resource_progress(resource_id, student_id)
        was_completed = existing is not None and existing.completed

        if time_spent_seconds:
            time_spent = clamp(time_spent_seconds, 0.0)
        else:
            time_spent = existing.time_spent_seconds if existing else 0.0

        now = datetime.now(UTC)
        completion = ResourceCompletion(
            resource_id=resource_id,
            student_id=student_id,
            course_id=course_id,
            completed=True,
            completed_at=(existing.completed_at or now) if was_completed else now,
            accessed_at=now,
            download_count=existing.download_count if existing else 1,
            time_spent_seconds=time_spent,
        )

        await self.session.aexecute(
            self._upsert_resource_progress,
            [
                student_id,
                resource_id,
                course_id,
                completion.completed,
                completion.completed_at,
                completion.accessed_at,
                completion.download_count,
                completion.time_spent_seconds,
            ],
        )

        logger.info(
            "resource_marked_complete",
            user_id=str(student_id),
            resource_id=str(resource_id),
            already_completed=was_completed,
        )

        if not was_completed:
            await self._refresh_after_completion(student_id, course_id)

        return completion

    async def get_resource_completions(
        self, course_id: UUID, student_id: UUID
    ) -> list[ResourceCompletion]:
        """Completed resources of a student in a course."""
        rows = await self.session.aexecute(
            self._get_user_resource_progress, [student_id]
        )
        return [
            ResourceCompletion.from_row(row)
            for row in rows
            if row.course_id == course_id and row.completed
        ]

    async def _completed_resource_ids(
        self, course_id: UUID, student_id: UUID
    ) -> set[UUID]:
        completions = await self.get_resource_completions(course_id, student_id)
        return {completion.resource_id for completion in completions}

    # ==========================================================================
    # Enrollment Operations
    # ==========================================================================

    async def get_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """Get enrollment by student and course."""
        result = await self.session.aexecute(
            self._get_enrollment, [course_id, student_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def get_user_enrollments(self, student_id: UUID) -> list[Enrollment]:
        """Get all enrollments of a student, newest first."""
        rows = await self.session.aexecute(self._get_user_enrollments, [student_id])
        return [Enrollment.from_row(row) for row in rows]

    async def _save_enrollment(self, enrollment: Enrollment) -> None:
        """Update enrollment in both tables (dual-write)."""
        await self.session.aexecute(
            self._upsert_enrollment,
            [
                enrollment.course_id,
                enrollment.user_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.completed_at,
                enrollment.progress_percent,
                enrollment.lessons_completed,
                enrollment.total_lessons,
            ],
        )

        # enrolled_at clusters the lookup table
        if enrollment.enrolled_at is None:
            logger.warning(
                "enrollment_lookup_skipped",
                user_id=str(enrollment.user_id),
                course_id=str(enrollment.course_id),
                reason="missing_enrolled_at",
            )
            return

        await self.session.aexecute(
            self._upsert_enrollment_by_user,
            [
                enrollment.user_id,
                enrollment.enrolled_at,
                enrollment.course_id,
                enrollment.status,
                enrollment.progress_percent,
                enrollment.lessons_completed,
                enrollment.total_lessons,
            ],
        )

    # ==========================================================================
    # Progress Aggregation
    # ==========================================================================

    async def refresh_course_progress(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """Recompute the cached aggregate of an enrollment.

        Counts every published video, quiz and resource. A quiz counts as
        completed once it has a submitted or graded attempt. Returns None when
        the student is not enrolled.
        """
        enrollment = await self.get_enrollment(student_id, course_id)
        if enrollment is None:
            return None

        videos = await self.content.list_videos(course_id)
        quizzes = await self.content.list_quizzes(course_id)
        resources = await self.content.list_resources(course_id)

        report = await self._build_report(
            enrollment, course_id, videos, quizzes, resources
        )

        total = len(videos) + len(quizzes) + len(resources)
        completed = (
            report.completed_videos
            + report.completed_quizzes
            + report.completed_resources
        )
        percentage = round_half_up(100 * completed / total) if total else 0

        enrollment.lessons_completed = completed
        enrollment.total_lessons = total
        enrollment.progress_percent = percentage
        if percentage >= 100:
            enrollment.status = EnrollmentStatus.COMPLETED.value
            enrollment.completed_at = enrollment.completed_at or datetime.now(UTC)
        else:
            enrollment.status = EnrollmentStatus.ACTIVE.value

        await self._save_enrollment(enrollment)

        logger.info(
            "course_progress_refreshed",
            user_id=str(student_id),
            course_id=str(course_id),
            completed=completed,
            total=total,
            percentage=percentage,
        )
        return enrollment

    async def _build_report(
        self,
        enrollment: Enrollment,
        course_id: UUID,
        videos: Iterable[VideoItem],
        quizzes: Iterable[QuizItem],
        resources: Iterable[ResourceItem],
    ) -> StudentProgressReport:
        """Count a student's completions against the published content.

        A quiz counts once it has a submitted or graded attempt.
        """
        student_id = enrollment.user_id
        video_ids = {video.id for video in videos}
        quizzes = list(quizzes)
        resource_ids = {resource.id for resource in resources}

        watched = [
            progress
            for progress in await self.get_progress(course_id, student_id)
            if progress.video_id in video_ids
        ]

        completed_quizzes = 0
        for quiz in quizzes:
            attempts = await self.get_quiz_attempts(quiz.id, student_id)
            if any(attempt.is_finished for attempt in attempts):
                completed_quizzes += 1

        completed_resources = len(
            await self._completed_resource_ids(course_id, student_id) & resource_ids
        )

        return StudentProgressReport(
            enrollment=enrollment,
            videos=watched,
            completed_videos=sum(1 for progress in watched if progress.completed),
            total_videos=len(video_ids),
            completed_quizzes=completed_quizzes,
            total_quizzes=len(quizzes),
            completed_resources=completed_resources,
            total_resources=len(resource_ids),
        )

    async def get_course_enrollments(self, course_id: UUID) -> list[Enrollment]:
        """Every enrollment of a course."""
        rows = await self.session.aexecute(self._list_course_enrollments, [course_id])
        return [Enrollment.from_row(row) for row in rows]

    async def get_student_progress_reports(
        self, course_id: UUID
    ) -> list[StudentProgressReport]:
        """Progress of every student enrolled in a course.

        The overall percentage is the cached enrollment aggregate; the counts
        are recomputed from the progress tables.
        """
        enrollments = await self.get_course_enrollments(course_id)
        if not enrollments:
            return []

        videos = await self.content.list_videos(course_id)
        quizzes = await self.content.list_quizzes(course_id)
        resources = await self.content.list_resources(course_id)

        reports = [
            await self._build_report(enrollment, course_id, videos, quizzes, resources)
            for enrollment in enrollments
        ]
        logger.info(
            "student_progress_reports_built",
            course_id=str(course_id),
            students=len(reports),
        )
        return reports

    async def _refresh_after_completion(self, student_id: UUID, course_id: UUID) -> None:
        """Refresh the aggregate without failing the triggering write."""
        try:
            await self.refresh_course_progress(student_id, course_id)
        except Exception:
            logger.exception(
                "course_progress_refresh_failed",
                user_id=str(student_id),
                course_id=str(course_id),
            )

    # ==========================================================================
    # Gate Snapshot
    # ==========================================================================

    async def build_snapshot(
        self,
        course_id: UUID,
        student_id: UUID,
        quizzes: Iterable[QuizItem],
        resources: Iterable[ResourceItem],
    ) -> StudentProgressSnapshot:
        """Assemble the gate's view of a student's progress in a course.

        Any attempt on a quiz counts as completed here, matching what the
        course page shows.
        """
        video_progress = {
            progress.video_id: VideoProgressState(
                percentage=progress.percentage,
                watch_time_seconds=progress.watch_time_seconds,
                completed=progress.completed,
            )
            for progress in await self.get_progress(course_id, student_id)
        }

        completed_quiz_ids = set()
        for quiz in quizzes:
            if await self.get_quiz_attempts(quiz.id, student_id):
                completed_quiz_ids.add(quiz.id)

        resource_ids = {resource.id for resource in resources}
        completed_resource_ids = (
            await self._completed_resource_ids(course_id, student_id) & resource_ids
        )

        return StudentProgressSnapshot(
            video_progress=video_progress,
            completed_quiz_ids=frozenset(completed_quiz_ids),
            completed_resource_ids=frozenset(completed_resource_ids),
        )
