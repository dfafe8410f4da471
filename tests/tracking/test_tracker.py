"""Tests for the native watch-time tracker."""

from unittest.mock import AsyncMock, Mock

import pytest

from coursegate.tracking.tracker import ProgressWrite, WatchTimeTracker


@pytest.fixture
def writer() -> AsyncMock:
    return AsyncMock(return_value=None)


def _play(tracker: WatchTimeTracker, seconds: float, step: float = 0.5) -> None:
    """Feed ticks ``step`` apart covering ``seconds`` of playback."""
    now = 1000.0
    tracker.on_time_update(now)
    for _ in range(round(seconds / step)):
        now += step
        tracker.on_time_update(now)


class TestTickFiltering:
    """Only plausible gaps between ticks count as watch time."""

    @pytest.mark.asyncio
    async def test_first_tick_only_arms(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(), "student", writer)
        assert tracker.on_time_update(10.0) is False
        assert tracker.watch_time == 0.0

    @pytest.mark.asyncio
    async def test_seek_gap_is_ignored(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(), "student", writer)
        tracker.on_time_update(10.0)

        assert tracker.on_time_update(13.0) is False
        assert tracker.watch_time == 0.0

        assert tracker.on_time_update(13.5) is True
        assert tracker.watch_time == pytest.approx(0.5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("gap", [0.05, 0.1, 2.0])
    async def test_window_bounds_are_exclusive(self, make_video, writer, gap) -> None:
        tracker = WatchTimeTracker(make_video(), "student", writer)
        tracker.on_time_update(10.0)
        assert tracker.on_time_update(10.0 + gap) is False

    @pytest.mark.asyncio
    async def test_pause_disarms_clock(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(), "student", writer)
        tracker.on_time_update(10.0)
        tracker.on_pause()

        assert tracker.on_time_update(10.5) is False
        assert tracker.watch_time == 0.0

    @pytest.mark.asyncio
    async def test_uses_injected_clock(self, make_video, writer) -> None:
        clock = Mock(side_effect=[5.0, 5.25])
        tracker = WatchTimeTracker(make_video(), "student", writer, clock=clock)

        tracker.on_time_update()
        tracker.on_time_update()

        assert tracker.watch_time == pytest.approx(0.25)


class TestPersistence:
    """Progress is written once per decile and once on completion."""

    @pytest.mark.asyncio
    async def test_one_write_per_decile(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(duration_seconds=100), "student", writer)

        _play(tracker, 100)
        await tracker.drain()

        assert writer.await_count == 10
        progresses = [c.args[0].progress for c in writer.await_args_list]
        assert progresses == [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert all(not c.args[0].completed for c in writer.await_args_list)

    @pytest.mark.asyncio
    async def test_resume_continues_from_saved_watch_time(
        self, make_video, writer
    ) -> None:
        video = make_video(duration_seconds=600)
        tracker = WatchTimeTracker(
            video, "student", writer, initial_watch_time=300
        )
        assert tracker.percentage == 50.0

        tracker.add_watch_time(30)
        assert writer.await_count == 0

        tracker.add_watch_time(30)
        await tracker.drain()

        writer.assert_awaited_once_with(
            ProgressWrite(video_id=video.id, progress=60, watch_time=360, completed=False)
        )

    @pytest.mark.asyncio
    async def test_mark_complete_writes_last_values(self, make_video, writer) -> None:
        video = make_video(duration_seconds=200)
        tracker = WatchTimeTracker(video, "student", writer, initial_watch_time=181)

        task = tracker.mark_complete()
        await task

        assert tracker.completed is True
        writer.assert_awaited_once_with(
            ProgressWrite(video_id=video.id, progress=91, watch_time=181, completed=True)
        )

    @pytest.mark.asyncio
    async def test_ended_forces_completion(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(), "student", writer)
        await tracker.on_ended()
        assert writer.await_args.args[0].completed is True

    @pytest.mark.asyncio
    async def test_non_students_never_write(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(duration_seconds=100), "admin", writer)

        _play(tracker, 100)
        assert tracker.mark_complete() is None
        await tracker.drain()

        assert tracker.watch_time == pytest.approx(100)
        writer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, make_video) -> None:
        writer = AsyncMock(side_effect=RuntimeError("network down"))
        tracker = WatchTimeTracker(make_video(duration_seconds=100), "student", writer)

        tracker.add_watch_time(15)
        await tracker.drain()

        assert writer.await_count == 1
        assert tracker.pending_writes == 0
        assert tracker.watch_time == 15


class TestCompletionEligibility:
    """Crossing the unlock threshold enables "mark complete"."""

    @pytest.mark.asyncio
    async def test_eligible_signal_fires_once(self, make_video, writer) -> None:
        on_eligible = Mock()
        tracker = WatchTimeTracker(
            make_video(duration_seconds=100),
            "student",
            writer,
            on_eligible=on_eligible,
        )

        tracker.add_watch_time(89)
        assert tracker.eligible_to_complete is False

        tracker.add_watch_time(1)
        tracker.add_watch_time(5)
        await tracker.drain()

        assert tracker.eligible_to_complete is True
        on_eligible.assert_called_once_with(tracker)

    @pytest.mark.asyncio
    async def test_already_completed_is_not_eligible(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(
            make_video(duration_seconds=100),
            "student",
            writer,
            initial_watch_time=95,
            completed=True,
        )
        tracker.add_watch_time(1)
        await tracker.drain()
        assert tracker.eligible_to_complete is False

    @pytest.mark.asyncio
    async def test_progress_callback(self, make_video, writer) -> None:
        on_progress = Mock()
        tracker = WatchTimeTracker(
            make_video(duration_seconds=100),
            "student",
            writer,
            on_progress=on_progress,
        )
        tracker.add_watch_time(1)
        on_progress.assert_called_once_with(tracker)


class TestDurationCorrection:
    """The media's real duration replaces a wrong authored one."""

    @pytest.mark.asyncio
    async def test_large_difference_is_corrected(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(duration_seconds=600), "student", writer)

        assert tracker.on_loaded_metadata(650.4) is True
        assert tracker.duration == 650.0

        tracker.add_watch_time(65)
        assert tracker.percentage == pytest.approx(10.0)
        await tracker.drain()
        assert writer.await_args.args[0].progress == 10

    def test_small_difference_is_kept(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(duration_seconds=600), "student", writer)

        assert tracker.on_loaded_metadata(604.6) is False
        assert tracker.duration == 600.0

    def test_zero_duration_never_writes(self, make_video, writer) -> None:
        tracker = WatchTimeTracker(make_video(duration_seconds=0), "student", writer)
        tracker.add_watch_time(30)
        assert tracker.percentage == 0.0
        assert tracker.pending_writes == 0
