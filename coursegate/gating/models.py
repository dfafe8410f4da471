"""Value objects of the completion gate.

The gate never touches the database. It works on a
``StudentProgressSnapshot``, an immutable view of everything one student
has done in one course, so the same rules run on the server (timeline
endpoint) and in the player session (re-derived after every tracker tick).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from uuid import UUID

from coursegate.content.models import ContentItem


class ItemState(str, Enum):
    """State of a timeline item from the student's perspective."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


@dataclass(frozen=True)
class VideoProgressState:
    """Last known progress of one video."""

    percentage: float = 0.0
    watch_time_seconds: float = 0.0
    completed: bool = False


_NO_PROGRESS = VideoProgressState()


@dataclass(frozen=True)
class StudentProgressSnapshot:
    """Immutable progress view of one student in one course.

    Attributes:
        video_progress: Progress per video id (missing ids mean no progress)
        completed_quiz_ids: Quizzes with at least one attempt
        completed_resource_ids: Resources explicitly marked complete
    """

    video_progress: Mapping[UUID, VideoProgressState] = field(
        default_factory=lambda: MappingProxyType({})
    )
    completed_quiz_ids: frozenset[UUID] = frozenset()
    completed_resource_ids: frozenset[UUID] = frozenset()

    def video(self, video_id: UUID) -> VideoProgressState:
        return self.video_progress.get(video_id, _NO_PROGRESS)

    def with_video_progress(
        self,
        video_id: UUID,
        percentage: float,
        watch_time_seconds: float | None = None,
        completed: bool = False,
    ) -> "StudentProgressSnapshot":
        """Return a copy with in-memory progress for one video.

        Completion never reverts: a video already completed stays completed.
        """
        current = self.video(video_id)
        updated = VideoProgressState(
            percentage=percentage,
            watch_time_seconds=(
                current.watch_time_seconds
                if watch_time_seconds is None
                else watch_time_seconds
            ),
            completed=current.completed or completed,
        )
        progress = dict(self.video_progress)
        progress[video_id] = updated
        return replace(self, video_progress=MappingProxyType(progress))

    def with_quiz_completed(self, quiz_id: UUID) -> "StudentProgressSnapshot":
        return replace(
            self, completed_quiz_ids=self.completed_quiz_ids | {quiz_id}
        )

    def with_resource_completed(self, resource_id: UUID) -> "StudentProgressSnapshot":
        return replace(
            self, completed_resource_ids=self.completed_resource_ids | {resource_id}
        )


@dataclass(frozen=True)
class ItemAccess:
    """Evaluated state of one timeline item."""

    item: ContentItem
    index: int
    state: ItemState

    @property
    def is_locked(self) -> bool:
        return self.state == ItemState.LOCKED


@dataclass(frozen=True)
class NavigationDecision:
    """Outcome of a navigation request.

    A denial is a normal result: ``allowed`` is False and ``blocking_item``
    names the earliest unsatisfied predecessor when one can be identified.
    """

    allowed: bool
    item: ContentItem
    index: int
    blocking_item: ContentItem | None = None
    message: str | None = None


@dataclass(frozen=True)
class CourseProgress:
    """Course-level aggregate for one student."""

    percentage: float
    completed_items: int
    total_items: int

    @property
    def is_complete(self) -> bool:
        return self.total_items > 0 and self.completed_items >= self.total_items
