"""Simulated playback tracking for embedded third-party players.

Embedded players (Google Drive previews, for example) expose no playback
events, so watch time is estimated: playback is assumed to start shortly
after the embed loads, and a repeating task adds a fixed increment while
``playing`` is set.

The tracker is an owned resource. ``start()`` creates the background tasks
and ``stop()`` cancels them; use it as an async context manager so every
exit path releases it::

    async with SimulatedPlaybackTracker(tracker) as simulated:
        ...
"""

import asyncio
import contextlib
from urllib.parse import urlparse

import structlog

from coursegate.config import Settings, get_settings

from .tracker import WatchTimeTracker


logger = structlog.get_logger(__name__)


def is_embedded_player(video_url: str, hosts: list[str]) -> bool:
    """Check if a video URL points to a player without playback events."""
    hostname = (urlparse(video_url).hostname or "").lower()
    return any(hostname == host or hostname.endswith(f".{host}") for host in hosts)


class SimulatedPlaybackTracker:
    """Feeds fixed increments into a ``WatchTimeTracker``.

    Args:
        tracker: Tracker receiving the increments
        settings: Provides the increment and autoplay delay
        interval_seconds: Real time between increments; defaults to the
            increment itself
    """

    def __init__(
        self,
        tracker: WatchTimeTracker,
        settings: Settings | None = None,
        interval_seconds: float | None = None,
    ):
        settings = settings or get_settings()
        self.tracker = tracker
        self.tick_seconds = settings.simulated_tick_seconds
        self.autoplay_delay = settings.simulated_autoplay_delay_seconds
        self.interval_seconds = (
            self.tick_seconds if interval_seconds is None else interval_seconds
        )
        self.playing = False
        self._task: asyncio.Task | None = None
        self._autoplay_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> "SimulatedPlaybackTracker":
        """Start tracking; playback begins after the autoplay delay."""
        if self.running:
            logger.warning(
                "simulated_tracker_already_running",
                video_id=str(self.tracker.video.id),
            )
            return self

        self.playing = False
        video_id = self.tracker.video.id
        self._autoplay_task = asyncio.create_task(
            self._autoplay(), name=f"simulated_autoplay:{video_id}"
        )
        self._task = asyncio.create_task(
            self._worker_loop(), name=f"simulated_tracker:{video_id}"
        )
        logger.debug(
            "simulated_tracker_started",
            video_id=str(video_id),
            seed_watch_time=self.tracker.watch_time,
        )
        return self

    async def stop(self) -> None:
        """Cancel the background tasks. Safe to call more than once."""
        self.playing = False
        tasks = [t for t in (self._autoplay_task, self._task) if t is not None]
        self._task = None
        self._autoplay_task = None
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        for task in tasks:
            # Suppress CancelledError which is expected when cancelling a task
            with contextlib.suppress(asyncio.CancelledError):
                await task

        logger.debug(
            "simulated_tracker_stopped",
            video_id=str(self.tracker.video.id),
            watch_time=self.tracker.watch_time,
        )

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    async def _autoplay(self) -> None:
        await asyncio.sleep(self.autoplay_delay)
        self.playing = True

    async def _worker_loop(self) -> None:
        while not self.tracker.completed:
            await asyncio.sleep(self.interval_seconds)
            if self.playing:
                self.tracker.add_watch_time(self.tick_seconds)

    async def __aenter__(self) -> "SimulatedPlaybackTracker":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
