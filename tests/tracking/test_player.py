"""Tests for the gate-aware course player."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from coursegate.config import get_settings
from coursegate.content.sequencer import build_timeline
from coursegate.content.service import ContentNotFoundError
from coursegate.gating.models import ItemState, StudentProgressSnapshot
from coursegate.tracking.client import CourseSession, ProgressApiClient
from coursegate.tracking.player import CoursePlayer


DRIVE_URL = "https://drive.google.com/file/d/abc/preview"


@pytest.fixture
def api_client():
    client = Mock(spec=ProgressApiClient)
    client.save_progress = AsyncMock(return_value=None)
    client.complete_resource = AsyncMock(return_value=None)
    return client


@pytest.fixture
def settings():
    return get_settings().model_copy(
        update={"simulated_autoplay_delay_seconds": 0.0}
    )


@pytest.fixture
def content(make_video, make_quiz, make_resource):
    native = make_video("Native", 1, duration_seconds=100)
    embedded = make_video("Embedded", 2, duration_seconds=100, video_url=DRIVE_URL)
    quiz = make_quiz("Checkpoint", 3)
    resource = make_resource("Handout", 4)
    return native, embedded, quiz, resource


def _player(content, api_client, settings, role="student", snapshot=None):
    native, embedded, quiz, resource = content
    timeline = build_timeline([native, embedded], [quiz], [resource])
    return CoursePlayer(
        timeline,
        snapshot or StudentProgressSnapshot(),
        role,
        api_client,
        settings=settings,
        simulated_interval_seconds=0.01,
    )


class TestSelect:
    """Tests for navigation through the player."""

    @pytest.mark.asyncio
    async def test_blocked_selection_keeps_current_item(
        self, content, api_client, settings
    ) -> None:
        native, embedded, _, _ = content
        player = _player(content, api_client, settings)

        await player.select(native.id)
        decision = await player.select(embedded.id)

        assert decision.allowed is False
        assert decision.blocking_item is native
        assert player.current is native
        await player.close()

    @pytest.mark.asyncio
    async def test_unknown_item(self, content, api_client, settings) -> None:
        player = _player(content, api_client, settings)
        with pytest.raises(ContentNotFoundError):
            await player.select(uuid4())

    @pytest.mark.asyncio
    async def test_embedded_video_starts_simulation(
        self, content, api_client, settings
    ) -> None:
        native, embedded, _, _ = content
        snapshot = StudentProgressSnapshot().with_video_progress(
            native.id, 100, 100, completed=True
        )
        player = _player(content, api_client, settings, snapshot=snapshot)

        await player.select(embedded.id)
        simulated = player.simulated

        assert simulated is not None
        assert simulated.running is True

        await player.select(native.id)

        assert simulated.running is False
        assert player.simulated is None
        assert player.tracker.video is native
        await player.close()

    @pytest.mark.asyncio
    async def test_tracker_seeded_from_snapshot(
        self, content, api_client, settings
    ) -> None:
        native, _, _, _ = content
        snapshot = StudentProgressSnapshot().with_video_progress(native.id, 40, 40)
        player = _player(content, api_client, settings, snapshot=snapshot)

        await player.select(native.id)

        assert player.tracker.watch_time == 40
        assert player.tracker.percentage == 40
        await player.close()


class TestProgressFolding:
    """Tracker progress unlocks items during the session."""

    @pytest.mark.asyncio
    async def test_threshold_unlocks_next_item(
        self, content, api_client, settings
    ) -> None:
        native, embedded, _, _ = content
        player = _player(content, api_client, settings)
        await player.select(native.id)
        assert player.items()[1].state == ItemState.LOCKED

        player.tracker.add_watch_time(90)

        assert player.items()[1].state == ItemState.UNLOCKED
        decision = await player.select(embedded.id)
        assert decision.allowed is True
        await player.close()
        assert api_client.save_progress.await_count == 1

    @pytest.mark.asyncio
    async def test_quiz_and_resource_completion(
        self, content, api_client, settings
    ) -> None:
        native, embedded, quiz, resource = content
        snapshot = (
            StudentProgressSnapshot()
            .with_video_progress(native.id, 100, 100, completed=True)
            .with_video_progress(embedded.id, 100, 100, completed=True)
        )
        player = _player(content, api_client, settings, snapshot=snapshot)

        player.record_quiz_attempt(quiz.id)
        await player.complete_resource(resource.id)

        api_client.complete_resource.assert_awaited_once_with(resource.id)
        assert all(a.state == ItemState.COMPLETED for a in player.items())
        assert player.progress().completed_items == 3

    @pytest.mark.asyncio
    async def test_supervisor_does_not_persist(
        self, content, api_client, settings
    ) -> None:
        native, _, _, resource = content
        player = _player(content, api_client, settings, role="supervisor")

        await player.select(native.id)
        player.tracker.add_watch_time(100)
        await player.mark_complete()
        await player.complete_resource(resource.id)
        await player.close()

        api_client.save_progress.assert_not_awaited()
        api_client.complete_resource.assert_not_awaited()


class TestLifecycle:
    """Tests for construction and teardown."""

    @pytest.mark.asyncio
    async def test_context_manager_stops_simulation(
        self, content, api_client, settings
    ) -> None:
        native, embedded, _, _ = content
        snapshot = StudentProgressSnapshot().with_video_progress(native.id, 95, 95)

        async with _player(content, api_client, settings, snapshot=snapshot) as player:
            await player.select(embedded.id)
            simulated = player.simulated

        assert simulated.running is False

    def test_from_session(self, content, api_client, settings, course_id) -> None:
        native, embedded, quiz, resource = content
        session = CourseSession(
            course=Mock(),
            timeline=build_timeline([native, embedded], [quiz], [resource]),
            snapshot=StudentProgressSnapshot(),
        )

        player = CoursePlayer.from_session(
            session, "student", api_client, settings=settings
        )

        assert player.timeline is session.timeline
        assert player.enrollment is None
        assert player.progress().total_items == 4
