"""Database models for course content.

Cassandra table definitions for:
- Courses: Course metadata
- Videos, quizzes and resources: the three content kinds merged into a
  course timeline

Content rows are written by the authoring side of the platform; this service
only reads them. Each content table carries a secondary index on course_id
for the per-course listings.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class ContentType(str, Enum):
    """Discriminator of a timeline item."""

    VIDEO = "video"
    QUIZ = "quiz"
    RESOURCE = "resource"


class ContentStatus(str, Enum):
    """Moderation status of authored content."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    supervisor_id UUID,
    status TEXT,
    created_at TIMESTAMP
)
"""

VIDEOS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.videos (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    video_url TEXT,
    duration_seconds INT,
    sequence_number INT,
    status TEXT,
    created_at TIMESTAMP
)
"""

VIDEOS_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS videos_course_idx ON {keyspace}.videos (course_id)
"""

QUIZZES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    sequence_number INT,
    question_count INT,
    status TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP
)
"""

QUIZZES_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS quizzes_course_idx ON {keyspace}.quizzes (course_id)
"""

RESOURCES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_resources (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    file_url TEXT,
    file_type TEXT,
    sequence_number INT,
    status TEXT,
    is_active BOOLEAN,
    uploaded_at TIMESTAMP
)
"""

RESOURCES_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS course_resources_course_idx
ON {keyspace}.course_resources (course_id)
"""

CONTENT_TABLES_CQL = [
    COURSES_TABLE_CQL,
    VIDEOS_TABLE_CQL,
    VIDEOS_COURSE_INDEX_CQL,
    QUIZZES_TABLE_CQL,
    QUIZZES_COURSE_INDEX_CQL,
    RESOURCES_TABLE_CQL,
    RESOURCES_COURSE_INDEX_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course metadata."""

    def __init__(
        self,
        id: UUID,
        title: str,
        description: str | None = None,
        supervisor_id: UUID | None = None,
        status: str = ContentStatus.APPROVED.value,
        created_at: datetime | None = None,
    ):
        self.id = id
        self.title = title
        self.description = description
        self.supervisor_id = supervisor_id
        self.status = status
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            supervisor_id=row.supervisor_id,
            status=row.status or ContentStatus.APPROVED.value,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.title!r}>"


class ContentItem:
    """Base of the timeline union.

    Attributes:
        id: Item UUID
        course_id: Owning course
        title: Display title (used in blocked-navigation messages)
        sequence_number: Explicit position, or None when not authored
        status: Moderation status
    """

    content_type: ContentType

    def __init__(
        self,
        id: UUID,
        course_id: UUID,
        title: str,
        sequence_number: int | None = None,
        status: str = ContentStatus.APPROVED.value,
    ):
        self.id = id
        self.course_id = course_id
        self.title = title
        # 0 is how the authoring UI stores "no position"
        self.sequence_number = sequence_number or None
        self.status = status

    @property
    def timestamp(self) -> datetime:
        """Secondary sort key within equal sequence numbers."""
        raise NotImplementedError

    @property
    def is_published(self) -> bool:
        """Check if the item is visible to students."""
        return self.status == ContentStatus.APPROVED.value

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.id} seq={self.sequence_number} "
            f"{self.title!r}>"
        )


class VideoItem(ContentItem):
    """Video lecture."""

    content_type = ContentType.VIDEO

    def __init__(
        self,
        id: UUID,
        course_id: UUID,
        title: str,
        duration_seconds: int = 0,
        sequence_number: int | None = None,
        video_url: str = "",
        status: str = ContentStatus.APPROVED.value,
        created_at: datetime | None = None,
    ):
        super().__init__(id, course_id, title, sequence_number, status)
        self.duration_seconds = duration_seconds
        self.video_url = video_url
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def timestamp(self) -> datetime:
        return self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "VideoItem":
        """Create VideoItem instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            duration_seconds=row.duration_seconds or 0,
            sequence_number=row.sequence_number,
            video_url=row.video_url or "",
            status=row.status or ContentStatus.PENDING.value,
            created_at=row.created_at,
        )


class QuizItem(ContentItem):
    """Quiz or exam; completion comes from attempts."""

    content_type = ContentType.QUIZ

    def __init__(
        self,
        id: UUID,
        course_id: UUID,
        title: str,
        sequence_number: int | None = None,
        question_count: int = 0,
        is_active: bool = True,
        status: str = ContentStatus.APPROVED.value,
        created_at: datetime | None = None,
    ):
        super().__init__(id, course_id, title, sequence_number, status)
        self.question_count = question_count
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def timestamp(self) -> datetime:
        return self.created_at

    @property
    def is_published(self) -> bool:
        return super().is_published and self.is_active

    @classmethod
    def from_row(cls, row: Any) -> "QuizItem":
        """Create QuizItem instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            sequence_number=row.sequence_number,
            question_count=row.question_count or 0,
            is_active=row.is_active if row.is_active is not None else True,
            status=row.status or ContentStatus.PENDING.value,
            created_at=row.created_at,
        )


class ResourceItem(ContentItem):
    """Downloadable resource; completion is an explicit student action."""

    content_type = ContentType.RESOURCE

    def __init__(
        self,
        id: UUID,
        course_id: UUID,
        title: str,
        sequence_number: int | None = None,
        file_url: str = "",
        file_type: str | None = None,
        is_active: bool = True,
        status: str = ContentStatus.APPROVED.value,
        uploaded_at: datetime | None = None,
    ):
        super().__init__(id, course_id, title, sequence_number, status)
        self.file_url = file_url
        self.file_type = file_type
        self.is_active = is_active
        self.uploaded_at = ensure_utc_aware(uploaded_at) or datetime.now(UTC)

    @property
    def timestamp(self) -> datetime:
        return self.uploaded_at

    @property
    def is_published(self) -> bool:
        return super().is_published and self.is_active

    @classmethod
    def from_row(cls, row: Any) -> "ResourceItem":
        """Create ResourceItem instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            sequence_number=row.sequence_number,
            file_url=row.file_url or "",
            file_type=row.file_type,
            is_active=row.is_active if row.is_active is not None else True,
            status=row.status or ContentStatus.PENDING.value,
            uploaded_at=row.uploaded_at,
        )
