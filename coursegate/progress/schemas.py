"""Pydantic schemas for student progress.

Request and response models for:
- Video progress reads and writes (camelCase on the wire, as the player
  sends and reads them)
- Quiz attempts
- Resource completion and per-resource progress
- Enrollments
- Supervisor reports of enrolled students
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import (
    Enrollment,
    EnrollmentStatus,
    QuizAttempt,
    QuizAttemptStatus,
    ResourceCompletion,
    StudentProgressReport,
    VideoProgress,
)


# ==============================================================================
# Video Progress Schemas
# ==============================================================================


class UpdateVideoProgressRequest(BaseModel):
    """Progress write sent by the player.

    Out-of-range values are clamped by the store rather than rejected.
    """

    model_config = ConfigDict(populate_by_name=True)

    progress: float = Field(0, description="Percentage watched (0-100)")
    watch_time: float = Field(
        0, alias="watchTime", description="Accumulated watch time in seconds"
    )
    completed: bool = False


class VideoProgressResponse(BaseModel):
    """Progress of one video for the current student."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: UUID = Field(alias="videoId")
    progress: float = Field(description="Displayed percentage; 100 once completed")
    watch_time: float = Field(alias="watchTime")
    completed: bool
    last_watched_at: datetime | None = Field(None, alias="lastWatchedAt")
    completed_at: datetime | None = Field(None, alias="completedAt")

    @classmethod
    def from_entity(cls, entity: VideoProgress) -> "VideoProgressResponse":
        """Create response from entity."""
        return cls(
            video_id=entity.video_id,
            progress=entity.display_percentage,
            watch_time=entity.watch_time_seconds,
            completed=entity.completed,
            last_watched_at=entity.last_watched_at,
            completed_at=entity.completed_at,
        )


# ==============================================================================
# Quiz and Resource Schemas
# ==============================================================================


class QuizAttemptResponse(BaseModel):
    """Quiz attempt of the current student."""

    model_config = ConfigDict(from_attributes=True)

    attempt_id: UUID
    quiz_id: UUID
    status: QuizAttemptStatus
    score: float | None = None
    started_at: datetime | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: QuizAttempt) -> "QuizAttemptResponse":
        return cls.model_validate(entity)


class MarkResourceCompleteRequest(BaseModel):
    """Optional body of a resource completion."""

    model_config = ConfigDict(populate_by_name=True)

    time_spent: float | None = Field(
        None, alias="timeSpent", description="Seconds spent on the resource"
    )


class ResourceCompletionResponse(BaseModel):
    """Resource completion record."""

    model_config = ConfigDict(from_attributes=True)

    resource_id: UUID
    course_id: UUID
    completed: bool
    completed_at: datetime | None = None
    download_count: int = 0
    time_spent_seconds: float = 0.0

    @classmethod
    def from_entity(cls, entity: ResourceCompletion) -> "ResourceCompletionResponse":
        return cls.model_validate(entity)


class ResourceProgressResponse(BaseModel):
    """Progress of one resource; a blank record when never opened."""

    model_config = ConfigDict(from_attributes=True)

    resource_id: UUID
    completed: bool = False
    completed_at: datetime | None = None
    accessed_at: datetime | None = None
    download_count: int = 0
    time_spent_seconds: float = 0.0

    @classmethod
    def from_entity(cls, entity: ResourceCompletion) -> "ResourceProgressResponse":
        return cls.model_validate(entity)

    @classmethod
    def not_started(cls, resource_id: UUID) -> "ResourceProgressResponse":
        return cls(resource_id=resource_id)


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollmentResponse(BaseModel):
    """Enrollment with cached aggregate progress."""

    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    user_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime | None = None
    completed_at: datetime | None = None
    progress_percent: int
    lessons_completed: int
    total_lessons: int

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        return cls.model_validate(entity)


class EnrollmentListResponse(BaseModel):
    """List of user enrollments."""

    items: list[EnrollmentResponse]
    total: int


# ==============================================================================
# Supervisor Report Schemas
# ==============================================================================


class StudentProgressResponse(BaseModel):
    """One enrolled student's progress in a course."""

    student_id: UUID
    status: EnrollmentStatus
    overall_progress: int = Field(description="Cached enrollment aggregate (0-100)")
    completed_videos: int
    total_videos: int
    completed_quizzes: int
    total_quizzes: int
    completed_resources: int
    total_resources: int
    videos: list[VideoProgressResponse]

    @classmethod
    def from_report(cls, report: StudentProgressReport) -> "StudentProgressResponse":
        """Create response from a progress report."""
        return cls(
            student_id=report.student_id,
            status=report.enrollment.status,
            overall_progress=report.enrollment.progress_percent,
            completed_videos=report.completed_videos,
            total_videos=report.total_videos,
            completed_quizzes=report.completed_quizzes,
            total_quizzes=report.total_quizzes,
            completed_resources=report.completed_resources,
            total_resources=report.total_resources,
            videos=[VideoProgressResponse.from_entity(v) for v in report.videos],
        )


class StudentProgressListResponse(BaseModel):
    """Progress of every student enrolled in a course."""

    course_id: UUID
    items: list[StudentProgressResponse]
    total: int
