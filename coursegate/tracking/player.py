"""Course page coordinator.

``CoursePlayer`` owns the timeline, the viewer's progress snapshot and the
tracker of the video being played. Selecting an item runs the gate first;
switching away from a video always stops its simulated tracker before the
next one starts. Tracker progress is folded back into the snapshot so items
unlock during the session without a reload.
"""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursegate.auth.permissions import UserRole, is_student
from coursegate.config import Settings, get_settings
from coursegate.content.models import ContentItem, VideoItem
from coursegate.content.sequencer import Timeline
from coursegate.gating.gate import (
    check_navigation,
    compute_course_progress,
    evaluate_timeline,
)
from coursegate.gating.models import (
    CourseProgress,
    ItemAccess,
    NavigationDecision,
    StudentProgressSnapshot,
)

from .simulated import SimulatedPlaybackTracker, is_embedded_player
from .tracker import WatchTimeTracker


if TYPE_CHECKING:
    from coursegate.progress.models import Enrollment

    from .client import CourseSession, ProgressApiClient

logger = structlog.get_logger(__name__)


class CoursePlayer:
    """Gate-aware playback session for one course."""

    def __init__(
        self,
        timeline: Timeline,
        snapshot: StudentProgressSnapshot,
        role: UserRole | str | None,
        client: "ProgressApiClient",
        enrollment: "Enrollment | None" = None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
        simulated_interval_seconds: float | None = None,
    ):
        self.settings = settings or get_settings()
        self.timeline = timeline
        self.snapshot = snapshot
        self.role = role
        self.client = client
        self.enrollment = enrollment
        self.current: ContentItem | None = None
        self.tracker: WatchTimeTracker | None = None
        self.simulated: SimulatedPlaybackTracker | None = None
        self._clock = clock
        self._simulated_interval = simulated_interval_seconds
        self._trackers: list[WatchTimeTracker] = []

    @classmethod
    def from_session(
        cls,
        session: "CourseSession",
        role: UserRole | str | None,
        client: "ProgressApiClient",
        **kwargs,
    ) -> "CoursePlayer":
        return cls(
            session.timeline,
            session.snapshot,
            role,
            client,
            enrollment=session.enrollment,
            **kwargs,
        )

    @property
    def threshold(self) -> float:
        return self.settings.unlock_threshold_percent

    # ==========================================================================
    # Derived State
    # ==========================================================================

    def items(self) -> list[ItemAccess]:
        """Current lock state of every item."""
        return evaluate_timeline(self.timeline, self.snapshot, self.role, self.threshold)

    def progress(self) -> CourseProgress:
        """Course-level aggregate shown in the progress bar."""
        return compute_course_progress(
            self.timeline,
            self.snapshot,
            self.enrollment,
            include_resources=self.settings.aggregate_includes_resources,
            threshold=self.threshold,
        )

    # ==========================================================================
    # Navigation
    # ==========================================================================

    async def select(self, target: UUID | int) -> NavigationDecision:
        """Open an item if the gate allows it.

        Raises:
            ContentNotFoundError: If the target is not on the timeline
        """
        decision = check_navigation(
            self.timeline, self.snapshot, self.role, target, self.threshold
        )
        if not decision.allowed:
            logger.info(
                "navigation_blocked",
                item_id=str(decision.item.id),
                blocking_item_id=(
                    str(decision.blocking_item.id) if decision.blocking_item else None
                ),
            )
            return decision

        await self._stop_simulated()
        self.current = decision.item
        self.tracker = None

        if isinstance(decision.item, VideoItem):
            await self._track(decision.item)
        return decision

    async def _track(self, video: VideoItem) -> None:
        state = self.snapshot.video(video.id)
        self.tracker = WatchTimeTracker(
            video,
            self.role,
            self.client.save_progress,
            initial_watch_time=state.watch_time_seconds,
            initial_percentage=state.percentage,
            completed=state.completed,
            settings=self.settings,
            clock=self._clock,
            on_progress=self._fold_progress,
        )
        self._trackers.append(self.tracker)

        if is_embedded_player(video.video_url, self.settings.embedded_player_hosts):
            self.simulated = SimulatedPlaybackTracker(
                self.tracker,
                settings=self.settings,
                interval_seconds=self._simulated_interval,
            )
            await self.simulated.start()

    def _fold_progress(self, tracker: WatchTimeTracker) -> None:
        self.snapshot = self.snapshot.with_video_progress(
            tracker.video.id,
            tracker.percentage,
            tracker.watch_time,
            completed=tracker.completed,
        )

    async def _stop_simulated(self) -> None:
        if self.simulated is not None:
            await self.simulated.stop()
            self.simulated = None

    # ==========================================================================
    # Completion
    # ==========================================================================

    async def mark_complete(self) -> None:
        """Explicit "mark complete" on the current video."""
        if self.tracker is None:
            return
        self.tracker.mark_complete()
        await self._stop_simulated()

    async def complete_resource(self, resource_id: UUID) -> None:
        """Mark a resource complete on the server and unlock what follows."""
        if not is_student(self.role):
            return
        await self.client.complete_resource(resource_id)
        self.snapshot = self.snapshot.with_resource_completed(resource_id)

    def record_quiz_attempt(self, quiz_id: UUID) -> None:
        """A quiz attempt was started or submitted in this session."""
        self.snapshot = self.snapshot.with_quiz_completed(quiz_id)

    # ==========================================================================
    # Teardown
    # ==========================================================================

    async def close(self) -> None:
        """Stop tracking and wait for outstanding progress writes."""
        await self._stop_simulated()
        for tracker in self._trackers:
            await tracker.drain()
        self._trackers.clear()

    async def __aenter__(self) -> "CoursePlayer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
