"""Database models for student progress.

Cassandra table definitions for:
- Video progress: Watch time, percentage and completion per student and video
- Quiz attempts: Read-only completion signal for quizzes
- Resource progress: Explicit "mark complete" records
- Enrollments: Course enrollment with cached aggregate progress
- Lookup tables: For user-based queries

Architecture: Enrollments use the dual-write pattern so they can be
queried by both course_id and user_id.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from coursegate.content.models import ensure_utc_aware


class EnrollmentStatus(str, Enum):
    """Course enrollment status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class QuizAttemptStatus(str, Enum):
    """Quiz attempt lifecycle."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"


# Attempts that count towards the server-side aggregate
FINISHED_ATTEMPT_STATUSES = frozenset(
    {QuizAttemptStatus.SUBMITTED.value, QuizAttemptStatus.GRADED.value}
)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition key: (user_id, course_id) so the course page loads all rows at once
VIDEO_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.video_progress (
    user_id UUID,
    course_id UUID,
    video_id UUID,
    percentage DOUBLE,
    watch_time_seconds DOUBLE,
    completed BOOLEAN,
    last_watched_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY ((user_id, course_id), video_id)
)
"""

QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    quiz_id UUID,
    student_id UUID,
    attempt_id TIMEUUID,
    status TEXT,
    score DOUBLE,
    started_at TIMESTAMP,
    submitted_at TIMESTAMP,
    PRIMARY KEY ((quiz_id, student_id), attempt_id)
) WITH CLUSTERING ORDER BY (attempt_id DESC)
"""

RESOURCE_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.resource_progress (
    user_id UUID,
    resource_id UUID,
    course_id UUID,
    completed BOOLEAN,
    completed_at TIMESTAMP,
    accessed_at TIMESTAMP,
    download_count INT,
    time_spent_seconds DOUBLE,
    PRIMARY KEY (user_id, resource_id)
)
"""

ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    user_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    progress_percent INT,
    lessons_completed INT,
    total_lessons INT,
    PRIMARY KEY (course_id, user_id)
)
"""

ENROLLMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    enrolled_at TIMESTAMP,
    course_id UUID,
    status TEXT,
    progress_percent INT,
    lessons_completed INT,
    total_lessons INT,
    PRIMARY KEY (user_id, enrolled_at, course_id)
) WITH CLUSTERING ORDER BY (enrolled_at DESC, course_id ASC)
"""

PROGRESS_TABLES_CQL = [
    VIDEO_PROGRESS_TABLE_CQL,
    QUIZ_ATTEMPTS_TABLE_CQL,
    RESOURCE_PROGRESS_TABLE_CQL,
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class VideoProgress:
    """Watch progress of one student on one video.

    Attributes:
        video_id: Video UUID
        student_id: Student UUID
        course_id: Course UUID (part of the partition key)
        percentage: Stored percentage (0-100)
        watch_time_seconds: Accumulated watch time
        completed: Completion flag, sticky once set
        last_watched_at: Last write timestamp
        completed_at: First completion timestamp
    """

    def __init__(
        self,
        video_id: UUID,
        student_id: UUID,
        course_id: UUID,
        percentage: float = 0.0,
        watch_time_seconds: float = 0.0,
        completed: bool = False,
        last_watched_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.video_id = video_id
        self.student_id = student_id
        self.course_id = course_id
        self.percentage = percentage
        self.watch_time_seconds = watch_time_seconds
        self.completed = completed
        self.last_watched_at = ensure_utc_aware(last_watched_at) or datetime.now(UTC)
        self.completed_at = ensure_utc_aware(completed_at)

    @property
    def display_percentage(self) -> float:
        """Percentage shown to the student; a completed video shows 100."""
        return 100.0 if self.completed else self.percentage

    @classmethod
    def from_row(cls, row: Any) -> "VideoProgress":
        """Create VideoProgress instance from Cassandra row."""
        return cls(
            video_id=row.video_id,
            student_id=row.user_id,
            course_id=row.course_id,
            percentage=row.percentage or 0.0,
            watch_time_seconds=row.watch_time_seconds or 0.0,
            completed=bool(row.completed),
            last_watched_at=row.last_watched_at,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        return (
            f"<VideoProgress user={self.student_id} video={self.video_id} "
            f"{self.percentage:.1f}% completed={self.completed}>"
        )


class QuizAttempt:
    """Quiz attempt (written by the quiz flow, read here)."""

    def __init__(
        self,
        quiz_id: UUID,
        student_id: UUID,
        attempt_id: UUID,
        status: str = QuizAttemptStatus.IN_PROGRESS.value,
        score: float | None = None,
        started_at: datetime | None = None,
        submitted_at: datetime | None = None,
    ):
        self.quiz_id = quiz_id
        self.student_id = student_id
        self.attempt_id = attempt_id
        self.status = status
        self.score = score
        self.started_at = ensure_utc_aware(started_at)
        self.submitted_at = ensure_utc_aware(submitted_at)

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_ATTEMPT_STATUSES

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            quiz_id=row.quiz_id,
            student_id=row.student_id,
            attempt_id=row.attempt_id,
            status=row.status or QuizAttemptStatus.IN_PROGRESS.value,
            score=row.score,
            started_at=row.started_at,
            submitted_at=row.submitted_at,
        )

    def __repr__(self) -> str:
        return f"<QuizAttempt quiz={self.quiz_id} user={self.student_id} {self.status}>"


class ResourceCompletion:
    """Explicit completion of a downloadable resource."""

    def __init__(
        self,
        resource_id: UUID,
        student_id: UUID,
        course_id: UUID,
        completed: bool = False,
        completed_at: datetime | None = None,
        accessed_at: datetime | None = None,
        download_count: int = 0,
        time_spent_seconds: float = 0.0,
    ):
        self.resource_id = resource_id
        self.student_id = student_id
        self.course_id = course_id
        self.completed = completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.accessed_at = ensure_utc_aware(accessed_at) or datetime.now(UTC)
        self.download_count = download_count
        self.time_spent_seconds = time_spent_seconds

    @classmethod
    def from_row(cls, row: Any) -> "ResourceCompletion":
        """Create ResourceCompletion instance from Cassandra row."""
        return cls(
            resource_id=row.resource_id,
            student_id=row.user_id,
            course_id=row.course_id,
            completed=bool(row.completed),
            completed_at=row.completed_at,
            accessed_at=row.accessed_at,
            download_count=row.download_count or 0,
            time_spent_seconds=row.time_spent_seconds or 0.0,
        )

    def __repr__(self) -> str:
        return (
            f"<ResourceCompletion user={self.student_id} "
            f"resource={self.resource_id} completed={self.completed}>"
        )


class Enrollment:
    """Course enrollment with cached aggregate progress.

    Attributes:
        course_id: Course UUID
        user_id: Student UUID
        status: Enrollment status (pending, confirmed, active, completed, cancelled)
        enrolled_at: Enrollment timestamp (None on legacy rows)
        completed_at: Course completion timestamp
        progress_percent: Cached aggregate (0-100, rounded)
        lessons_completed: Completed items counted by the last refresh
        total_lessons: Items counted by the last refresh
    """

    def __init__(
        self,
        course_id: UUID,
        user_id: UUID,
        status: str = EnrollmentStatus.ACTIVE.value,
        enrolled_at: datetime | None = None,
        completed_at: datetime | None = None,
        progress_percent: int = 0,
        lessons_completed: int = 0,
        total_lessons: int = 0,
    ):
        self.course_id = course_id
        self.user_id = user_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at)
        self.completed_at = ensure_utc_aware(completed_at)
        self.progress_percent = progress_percent
        self.lessons_completed = lessons_completed
        self.total_lessons = total_lessons

    @property
    def is_completed(self) -> bool:
        """Check if course is completed."""
        return self.status == EnrollmentStatus.COMPLETED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row.

        Works for both the main table and the by-user lookup table.
        """
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            status=row.status or EnrollmentStatus.ACTIVE.value,
            enrolled_at=row.enrolled_at,
            completed_at=getattr(row, "completed_at", None),
            progress_percent=row.progress_percent or 0,
            lessons_completed=row.lessons_completed or 0,
            total_lessons=row.total_lessons or 0,
        )

    def __repr__(self) -> str:
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} "
            f"{self.status} {self.progress_percent}%>"
        )


@dataclass
class StudentProgressReport:
    """One enrolled student's progress in a course, as supervisors see it."""

    enrollment: Enrollment
    videos: list[VideoProgress] = field(default_factory=list)
    completed_videos: int = 0
    total_videos: int = 0
    completed_quizzes: int = 0
    total_quizzes: int = 0
    completed_resources: int = 0
    total_resources: int = 0

    @property
    def student_id(self) -> UUID:
        return self.enrollment.user_id
