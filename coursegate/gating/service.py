"""Server-side gate: load a course timeline and a student's progress, then
evaluate it with the pure gate functions."""

from dataclasses import dataclass
from uuid import UUID

import structlog

from coursegate.auth.schemas import Principal
from coursegate.content.models import ContentType
from coursegate.content.sequencer import Timeline
from coursegate.content.service import ContentService
from coursegate.progress.models import Enrollment
from coursegate.progress.store import ProgressStore

from .gate import check_navigation, compute_course_progress, evaluate_timeline
from .models import (
    CourseProgress,
    ItemAccess,
    NavigationDecision,
    StudentProgressSnapshot,
)


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CourseTimelineView:
    """Evaluated timeline of one course for one user."""

    course_id: UUID
    items: list[ItemAccess]
    progress: CourseProgress
    snapshot: StudentProgressSnapshot


class GatingService:
    """Combine content and progress reads with the completion gate."""

    def __init__(
        self,
        content: ContentService,
        progress: ProgressStore,
        unlock_threshold: float = 90.0,
        include_resources: bool = False,
    ):
        self.content = content
        self.progress = progress
        self.unlock_threshold = unlock_threshold
        self.include_resources = include_resources

    async def _load(
        self, course_id: UUID, user: Principal
    ) -> tuple[Timeline, StudentProgressSnapshot, Enrollment | None]:
        await self.content.require_course(course_id)
        timeline = await self.content.get_timeline(course_id)

        if user.bypasses_gate:
            return timeline, StudentProgressSnapshot(), None

        snapshot = await self.progress.build_snapshot(
            course_id,
            user.id,
            quizzes=timeline.of_type(ContentType.QUIZ),
            resources=timeline.of_type(ContentType.RESOURCE),
        )
        enrollment = await self.progress.get_enrollment(user.id, course_id)
        return timeline, snapshot, enrollment

    async def get_course_timeline(
        self, course_id: UUID, user: Principal
    ) -> CourseTimelineView:
        """Ordered timeline with per-item state and the aggregate.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        timeline, snapshot, enrollment = await self._load(course_id, user)

        items = evaluate_timeline(timeline, snapshot, user.role, self.unlock_threshold)
        progress = compute_course_progress(
            timeline,
            snapshot,
            enrollment,
            include_resources=self.include_resources,
            threshold=self.unlock_threshold,
        )
        return CourseTimelineView(
            course_id=course_id,
            items=items,
            progress=progress,
            snapshot=snapshot,
        )

    async def check_access(
        self, course_id: UUID, item_id: UUID, user: Principal
    ) -> NavigationDecision:
        """Navigation decision for one item.

        Raises:
            CourseNotFoundError: If the course does not exist
            ContentNotFoundError: If the item is not on the course timeline
        """
        timeline, snapshot, _ = await self._load(course_id, user)
        decision = check_navigation(
            timeline, snapshot, user.role, item_id, self.unlock_threshold
        )

        if not decision.allowed:
            logger.info(
                "navigation_blocked",
                course_id=str(course_id),
                item_id=str(item_id),
                blocking_item_id=(
                    str(decision.blocking_item.id) if decision.blocking_item else None
                ),
            )
        return decision
