"""Watch-time tracker for natively played videos.

The player forwards the media element's ``timeupdate`` events here. Watch
time only grows by the wall-clock time between two consecutive ticks, and
only when that gap looks like continuous playback (0.1s to 2s); a seek or a
long pause produces a gap outside that window and counts for nothing.

Progress is persisted at most once per 10% decile, plus once on completion.
Writes are fire-and-forget tasks: a failed write is logged and dropped.
"""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

import structlog

from coursegate.auth.permissions import UserRole, is_student
from coursegate.config import Settings, get_settings
from coursegate.content.models import VideoItem
from coursegate.utils import round_half_up


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProgressWrite:
    """Payload of one progress write (rounded the way the API stores it)."""

    video_id: UUID
    progress: int
    watch_time: int
    completed: bool


ProgressWriter = Callable[[ProgressWrite], Awaitable[object]]
TrackerCallback = Callable[["WatchTimeTracker"], None]


class WatchTimeTracker:
    """Accumulates watch time of one video and decides when to persist.

    Args:
        video: Video being played
        role: Role of the viewer; only students persist progress
        writer: Coroutine function performing the progress write
        initial_watch_time: Last persisted watch time (resume across sessions)
        initial_percentage: Last known percentage; derived from watch time
            when omitted
        completed: Whether the video is already completed
        settings: Tuning values (thresholds, tick window)
        clock: Monotonic clock returning seconds
        on_progress: Called after every accepted increment
        on_eligible: Called once when the viewer may mark the video complete
    """

    def __init__(
        self,
        video: VideoItem,
        role: UserRole | str | None,
        writer: ProgressWriter,
        *,
        initial_watch_time: float = 0.0,
        initial_percentage: float | None = None,
        completed: bool = False,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_progress: TrackerCallback | None = None,
        on_eligible: TrackerCallback | None = None,
    ):
        settings = settings or get_settings()
        self.video = video
        self.role = role
        self.duration = float(video.duration_seconds or 0)
        self.watch_time = max(initial_watch_time, 0.0)
        self.completed = completed

        self.unlock_threshold = settings.unlock_threshold_percent
        self.decile_step = settings.persist_decile_step
        self.tick_min = settings.tick_min_seconds
        self.tick_max = settings.tick_max_seconds
        self.duration_tolerance = settings.duration_tolerance_seconds

        if initial_percentage is None:
            initial_percentage = self._percentage_for(self.watch_time)
        self.percentage = initial_percentage

        self.eligible_to_complete = (
            self.persists and not completed and self.percentage >= self.unlock_threshold
        )

        self._writer = writer
        self._clock = clock
        self._last_tick: float | None = None
        self._on_progress = on_progress
        self._on_eligible = on_eligible
        self._pending: set[asyncio.Task] = set()

    @property
    def persists(self) -> bool:
        """Only student sessions write progress."""
        return is_student(self.role)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _percentage_for(self, watch_time: float) -> float:
        if self.duration <= 0:
            return 0.0
        return min(100.0, 100.0 * watch_time / self.duration)

    # ==========================================================================
    # Media Events
    # ==========================================================================

    def on_loaded_metadata(self, actual_duration: float) -> bool:
        """Adopt the media's real duration when it differs from the authored one.

        Returns:
            True if the in-memory duration was replaced
        """
        observed = round_half_up(actual_duration)
        if abs(self.duration - observed) <= self.duration_tolerance:
            return False

        logger.info(
            "video_duration_corrected",
            video_id=str(self.video.id),
            authored_seconds=self.duration,
            observed_seconds=observed,
        )
        self.duration = float(observed)
        return True

    def on_time_update(self, now: float | None = None) -> bool:
        """Handle a playback tick.

        The first tick only arms the clock. Later ticks add the elapsed time
        when it falls strictly inside the accepted window.

        Returns:
            True if the tick added watch time
        """
        now = self._clock() if now is None else now
        last, self._last_tick = self._last_tick, now
        if last is None:
            return False

        elapsed = now - last
        if not self.tick_min < elapsed < self.tick_max:
            return False

        self.add_watch_time(elapsed)
        return True

    def on_pause(self) -> None:
        """Disarm the clock so the pause itself is never counted."""
        self._last_tick = None

    def on_ended(self) -> asyncio.Task | None:
        """Playback reached the end: force a completion write."""
        return self.mark_complete()

    # ==========================================================================
    # Accumulation
    # ==========================================================================

    def add_watch_time(self, seconds: float) -> None:
        """Add watch time and apply the persistence and eligibility rules."""
        self.watch_time += seconds
        if self.duration <= 0:
            return

        previous = self.percentage
        self.percentage = self._percentage_for(self.watch_time)

        if self._on_progress:
            self._on_progress(self)

        previous_decile = math.floor(previous / self.decile_step)
        current_decile = math.floor(self.percentage / self.decile_step)
        if current_decile > previous_decile and current_decile >= 1 and self.persists:
            self._schedule_write(completed=False)

        if (
            self.percentage >= self.unlock_threshold
            and not self.completed
            and not self.eligible_to_complete
            and self.persists
        ):
            self.eligible_to_complete = True
            logger.info(
                "video_eligible_to_complete",
                video_id=str(self.video.id),
                percentage=self.percentage,
            )
            if self._on_eligible:
                self._on_eligible(self)

    def mark_complete(self) -> asyncio.Task | None:
        """Explicit completion with the last known values.

        Returns:
            The write task, or None when this session does not persist
        """
        self.completed = True
        self.eligible_to_complete = False
        if self._on_progress:
            self._on_progress(self)
        if not self.persists:
            return None
        return self._schedule_write(completed=True)

    # ==========================================================================
    # Persistence
    # ==========================================================================

    def snapshot_write(self, completed: bool) -> ProgressWrite:
        return ProgressWrite(
            video_id=self.video.id,
            progress=round_half_up(self.percentage),
            watch_time=round_half_up(self.watch_time),
            completed=completed,
        )

    def _schedule_write(self, completed: bool) -> asyncio.Task:
        write = self.snapshot_write(completed)
        task = asyncio.create_task(
            self._write(write), name=f"progress_write:{write.video_id}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, write: ProgressWrite) -> None:
        try:
            await self._writer(write)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                "progress_write_failed",
                video_id=str(write.video_id),
                progress=write.progress,
                completed=write.completed,
                error=str(e),
            )
            return

        logger.debug(
            "progress_write_sent",
            video_id=str(write.video_id),
            progress=write.progress,
            watch_time=write.watch_time,
            completed=write.completed,
        )

    async def drain(self) -> None:
        """Wait for every outstanding write."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
