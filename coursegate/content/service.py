"""Course content read service.

Business logic for:
- Course metadata lookup
- Per-course listings of published videos, quizzes and resources
- Timeline assembly (three independent reads merged by the sequencer)
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import ContentItem, Course, QuizItem, ResourceItem, VideoItem
from .sequencer import SequencingPolicy, Timeline, build_timeline, listing_order


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ContentError(Exception):
    """Base content error."""

    def __init__(self, message: str, code: str = "content_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(ContentError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class ContentNotFoundError(ContentError):
    """Video, quiz or resource not found."""

    def __init__(self, message: str = "Content not found"):
        super().__init__(message, "content_not_found")


# ==============================================================================
# Content Service
# ==============================================================================


class ContentService:
    """Read access to course content."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        policy: SequencingPolicy | str = SequencingPolicy.LEGACY_OFFSETS,
    ):
        self.session = session
        self.keyspace = keyspace
        self.policy = SequencingPolicy(policy)
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)

        self._get_video = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.videos WHERE id = ?
        """)
        self._list_videos = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.videos WHERE course_id = ?
        """)

        self._list_quizzes = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quizzes WHERE course_id = ?
        """)

        self._get_resource = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_resources WHERE id = ?
        """)
        self._list_resources = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_resources WHERE course_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course metadata."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def require_course(self, course_id: UUID) -> Course:
        """Get course metadata or raise CourseNotFoundError."""
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def get_video(self, video_id: UUID) -> VideoItem | None:
        result = await self.session.aexecute(self._get_video, [video_id])
        row = result.one()
        return VideoItem.from_row(row) if row else None

    async def get_resource(self, resource_id: UUID) -> ResourceItem | None:
        result = await self.session.aexecute(self._get_resource, [resource_id])
        row = result.one()
        return ResourceItem.from_row(row) if row else None

    # ==========================================================================
    # Course Listings
    # ==========================================================================

    async def list_videos(self, course_id: UUID) -> list[VideoItem]:
        """Approved videos of a course."""
        rows = await self.session.aexecute(self._list_videos, [course_id])
        return _published(VideoItem.from_row(row) for row in rows)

    async def list_quizzes(self, course_id: UUID) -> list[QuizItem]:
        """Approved, active quizzes of a course."""
        rows = await self.session.aexecute(self._list_quizzes, [course_id])
        return _published(QuizItem.from_row(row) for row in rows)

    async def list_resources(self, course_id: UUID) -> list[ResourceItem]:
        """Approved, active resources of a course."""
        rows = await self.session.aexecute(self._list_resources, [course_id])
        return _published(ResourceItem.from_row(row) for row in rows)

    async def get_timeline(self, course_id: UUID) -> Timeline:
        """Build the course timeline fresh from the three content lists."""
        videos = await self.list_videos(course_id)
        quizzes = await self.list_quizzes(course_id)
        resources = await self.list_resources(course_id)

        timeline = build_timeline(videos, quizzes, resources, self.policy)
        logger.debug(
            "timeline_built",
            course_id=str(course_id),
            videos=len(videos),
            quizzes=len(quizzes),
            resources=len(resources),
            policy=self.policy.value,
        )
        return timeline


def _published(items: Iterable[ContentItem]) -> list:
    # Secondary-index reads come back in token order
    return sorted((item for item in items if item.is_published), key=listing_order)
