"""Tests for the sequential completion gate."""

from uuid import uuid4

import pytest

from coursegate.content.sequencer import build_timeline
from coursegate.content.service import ContentNotFoundError
from coursegate.gating.gate import (
    GENERIC_BLOCKED_MESSAGE,
    blocked_message,
    check_navigation,
    compute_course_progress,
    evaluate_timeline,
)
from coursegate.gating.models import ItemState, StudentProgressSnapshot
from coursegate.gating.predicates import is_completed, satisfies_predecessor
from coursegate.progress.models import Enrollment, EnrollmentStatus


@pytest.fixture
def three_videos(make_video):
    return [make_video(f"Video {i}", i) for i in (1, 2, 3)]


def _states(accesses) -> list[ItemState]:
    return [access.state for access in accesses]


# ==============================================================================
# Predicates
# ==============================================================================


class TestPredicates:
    """Tests for per-type completion predicates."""

    def test_video_completed_flag(self, make_video) -> None:
        video = make_video()
        snapshot = StudentProgressSnapshot().with_video_progress(
            video.id, 10, completed=True
        )
        assert is_completed(video, snapshot, 90)

    def test_video_threshold(self, make_video) -> None:
        video = make_video()
        below = StudentProgressSnapshot().with_video_progress(video.id, 89.9)
        at = StudentProgressSnapshot().with_video_progress(video.id, 90)
        assert not satisfies_predecessor(video, below, 90)
        assert satisfies_predecessor(video, at, 90)

    def test_quiz_needs_attempt(self, make_quiz) -> None:
        quiz = make_quiz()
        assert not is_completed(quiz, StudentProgressSnapshot(), 90)
        snapshot = StudentProgressSnapshot().with_quiz_completed(quiz.id)
        assert is_completed(quiz, snapshot, 90)

    def test_resource_needs_explicit_completion(self, make_resource) -> None:
        resource = make_resource()
        assert not satisfies_predecessor(resource, StudentProgressSnapshot(), 90)
        snapshot = StudentProgressSnapshot().with_resource_completed(resource.id)
        assert satisfies_predecessor(resource, snapshot, 90)

    def test_completion_is_sticky_in_snapshot(self, make_video) -> None:
        video = make_video()
        snapshot = (
            StudentProgressSnapshot()
            .with_video_progress(video.id, 100, completed=True)
            .with_video_progress(video.id, 20)
        )
        assert snapshot.video(video.id).completed is True
        assert snapshot.video(video.id).percentage == 20


# ==============================================================================
# Timeline Evaluation
# ==============================================================================


class TestEvaluateTimeline:
    """Tests for evaluate_timeline."""

    def test_first_item_never_locked(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        accesses = evaluate_timeline(timeline, StudentProgressSnapshot(), "student")
        assert _states(accesses) == [
            ItemState.UNLOCKED,
            ItemState.LOCKED,
            ItemState.LOCKED,
        ]

    def test_threshold_unlocks_next_video(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        snapshot = StudentProgressSnapshot().with_video_progress(
            three_videos[0].id, 95
        )

        accesses = evaluate_timeline(timeline, snapshot, "student")

        assert _states(accesses) == [
            ItemState.COMPLETED,
            ItemState.UNLOCKED,
            ItemState.LOCKED,
        ]

    @pytest.mark.parametrize("role", ["admin", "Supervisor"])
    def test_privileged_roles_see_everything_unlocked(
        self, three_videos, role: str
    ) -> None:
        timeline = build_timeline(three_videos, [], [])
        snapshot = StudentProgressSnapshot().with_video_progress(
            three_videos[0].id, 100, completed=True
        )

        accesses = evaluate_timeline(timeline, snapshot, role)

        assert _states(accesses) == [ItemState.UNLOCKED] * 3

    def test_unlocked_items_have_satisfied_predecessors(
        self, make_video, make_quiz, make_resource
    ) -> None:
        videos = [make_video(f"V{i}", i) for i in (1, 3, 5)]
        quizzes = [make_quiz("Q2", 2)]
        resources = [make_resource("R4", 4)]
        timeline = build_timeline(videos, quizzes, resources)
        snapshot = (
            StudentProgressSnapshot()
            .with_video_progress(videos[0].id, 92)
            .with_quiz_completed(quizzes[0].id)
            .with_video_progress(videos[1].id, 50)
        )

        accesses = evaluate_timeline(timeline, snapshot, "student")

        for access in accesses:
            if access.is_locked:
                continue
            for j in timeline.predecessors(access.index):
                assert satisfies_predecessor(timeline[j], snapshot, 90)
        assert [a.is_locked for a in accesses] == [False, False, False, True, True]

    def test_locked_item_stays_locked_even_if_completed(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        snapshot = StudentProgressSnapshot().with_video_progress(
            three_videos[2].id, 100, completed=True
        )

        accesses = evaluate_timeline(timeline, snapshot, "student")

        assert accesses[2].state == ItemState.LOCKED


# ==============================================================================
# Navigation
# ==============================================================================


class TestCheckNavigation:
    """Tests for check_navigation."""

    def test_blocked_names_earliest_unsatisfied_predecessor(
        self, three_videos
    ) -> None:
        timeline = build_timeline(three_videos, [], [])
        snapshot = StudentProgressSnapshot().with_video_progress(
            three_videos[0].id, 95
        )

        decision = check_navigation(timeline, snapshot, "student", three_videos[2].id)

        assert decision.allowed is False
        assert decision.index == 2
        assert decision.blocking_item is three_videos[1]
        assert decision.message == (
            'Please complete "Video 2" to at least 90% before accessing this content.'
        )

    def test_quiz_attempt_satisfies_but_video_below_threshold_blocks(
        self, make_video, make_quiz
    ) -> None:
        quiz = make_quiz("Intro quiz", 1)
        video = make_video("Lecture", 2)
        target = make_video("Follow-up", 3)
        timeline = build_timeline([video, target], [quiz], [])
        snapshot = (
            StudentProgressSnapshot()
            .with_quiz_completed(quiz.id)
            .with_video_progress(video.id, 40)
        )

        accesses = evaluate_timeline(timeline, snapshot, "student")
        decision = check_navigation(timeline, snapshot, "student", 2)

        assert accesses[2].state == ItemState.LOCKED
        assert decision.allowed is False
        assert decision.blocking_item is video

    def test_first_item_allowed(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        decision = check_navigation(timeline, StudentProgressSnapshot(), "student", 0)
        assert decision.allowed is True
        assert decision.blocking_item is None
        assert decision.message is None

    def test_admin_allowed_anywhere(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        decision = check_navigation(timeline, StudentProgressSnapshot(), "admin", 2)
        assert decision.allowed is True

    def test_unknown_item_raises(self, three_videos) -> None:
        timeline = build_timeline(three_videos, [], [])
        with pytest.raises(ContentNotFoundError):
            check_navigation(timeline, StudentProgressSnapshot(), "student", uuid4())

    def test_index_out_of_range_raises(self) -> None:
        timeline = build_timeline([], [], [])
        with pytest.raises(ContentNotFoundError):
            check_navigation(timeline, StudentProgressSnapshot(), "student", 0)

    def test_blocked_message_without_item(self) -> None:
        assert blocked_message(None, 90) == GENERIC_BLOCKED_MESSAGE


# ==============================================================================
# Aggregate
# ==============================================================================


class TestComputeCourseProgress:
    """Tests for compute_course_progress."""

    def test_empty_course(self) -> None:
        progress = compute_course_progress(
            build_timeline([], [], []), StudentProgressSnapshot()
        )
        assert progress.percentage == 0.0
        assert progress.total_items == 0
        assert progress.is_complete is False

    def test_counts_videos_and_quizzes(
        self, make_video, make_quiz, make_resource
    ) -> None:
        video = make_video("V1", 1)
        quiz = make_quiz("Q2", 2)
        resource = make_resource("R3", 3)
        timeline = build_timeline([video], [quiz], [resource])
        snapshot = (
            StudentProgressSnapshot()
            .with_video_progress(video.id, 100, completed=True)
            .with_quiz_completed(quiz.id)
            .with_resource_completed(resource.id)
        )

        progress = compute_course_progress(timeline, snapshot)

        assert progress.completed_items == 2
        assert progress.total_items == 3
        assert progress.percentage == pytest.approx(66.6667, rel=1e-3)

    def test_resources_counted_when_enabled(self, make_video, make_resource) -> None:
        video = make_video("V1", 1)
        resource = make_resource("R2", 2)
        timeline = build_timeline([video], [], [resource])
        snapshot = StudentProgressSnapshot().with_resource_completed(resource.id)

        progress = compute_course_progress(timeline, snapshot, include_resources=True)

        assert progress.percentage == 50.0

    def test_completed_enrollment_overrides(
        self, three_videos, course_id, student_id
    ) -> None:
        timeline = build_timeline(three_videos, [], [])
        enrollment = Enrollment(
            course_id=course_id,
            user_id=student_id,
            status=EnrollmentStatus.COMPLETED.value,
        )

        progress = compute_course_progress(
            timeline, StudentProgressSnapshot(), enrollment
        )

        assert progress.percentage == 100.0
        assert progress.is_complete is True
