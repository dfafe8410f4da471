"""Tests for timeline ordering."""

import random

from coursegate.content.models import ContentType
from coursegate.content.sequencer import SequencingPolicy, Timeline, build_timeline


def _titles(timeline: Timeline) -> list[str]:
    return [item.title for item in timeline]


class TestLegacyOffsets:
    """Default policy: unsequenced items get per-type offsets."""

    def test_explicit_sequence_interleaves_types(
        self, make_video, make_quiz, make_resource
    ) -> None:
        videos = [make_video("V1", 1), make_video("V3", 3)]
        quizzes = [make_quiz("Q2", 2)]
        resources = [make_resource("R4", 4)]

        timeline = build_timeline(videos, quizzes, resources)

        assert _titles(timeline) == ["V1", "Q2", "V3", "R4"]

    def test_unsequenced_items_use_type_offsets(
        self, make_video, make_quiz, make_resource
    ) -> None:
        videos = [make_video("V-a"), make_video("V-b", minutes=1)]
        quizzes = [make_quiz("Q-a")]
        resources = [make_resource("R-a")]

        timeline = build_timeline(videos, quizzes, resources)

        assert _titles(timeline) == ["V-a", "V-b", "Q-a", "R-a"]

    def test_large_sequence_interleaves_with_defaults(
        self, make_video, make_quiz
    ) -> None:
        # Quiz default is 1000 + index; an authored 1500 lands after it
        timeline = build_timeline(
            [make_video("V-late", 1500)], [make_quiz("Q-default")], []
        )
        assert _titles(timeline) == ["Q-default", "V-late"]

    def test_zero_sequence_treated_as_missing(self, make_video, make_quiz) -> None:
        quiz = make_quiz("Q0", 0)
        assert quiz.sequence_number is None

        timeline = build_timeline([make_video("V5", 5)], [quiz], [])
        assert _titles(timeline) == ["V5", "Q0"]

    def test_timestamp_breaks_sequence_ties(self, make_video, make_quiz) -> None:
        late_video = make_video("V-late", 2, minutes=10)
        early_quiz = make_quiz("Q-early", 2, minutes=1)

        timeline = build_timeline([late_video], [early_quiz], [])

        assert _titles(timeline) == ["Q-early", "V-late"]


class TestTypePriority:
    """Alternative policy: authored first, then grouped by type."""

    def test_unsequenced_follow_authored(
        self, make_video, make_quiz, make_resource
    ) -> None:
        videos = [make_video("V-free", minutes=5), make_video("V2", 2)]
        quizzes = [make_quiz("Q-free", minutes=1)]
        resources = [make_resource("R1", 1), make_resource("R-free")]

        timeline = build_timeline(
            videos, quizzes, resources, SequencingPolicy.TYPE_PRIORITY
        )

        assert _titles(timeline) == ["R1", "V2", "V-free", "Q-free", "R-free"]

    def test_policy_accepts_string(self, make_video) -> None:
        timeline = build_timeline([make_video("V")], [], [], "type_priority")
        assert len(timeline) == 1


class TestDeterminism:
    """Same inputs, same order, regardless of list order."""

    def test_repeated_invocations(self, make_video, make_quiz, make_resource) -> None:
        videos = [make_video(f"V{i}", i % 3) for i in range(6)]
        quizzes = [make_quiz(f"Q{i}", 2) for i in range(3)]
        resources = [make_resource(f"R{i}") for i in range(3)]

        first = build_timeline(videos, quizzes, resources)
        for _ in range(5):
            assert build_timeline(videos, quizzes, resources) == first

    def test_input_order_does_not_matter_for_sequenced_items(
        self, make_video, make_quiz
    ) -> None:
        videos = [make_video(f"V{i}", 5) for i in range(5)]
        quizzes = [make_quiz(f"Q{i}", 5) for i in range(3)]

        expected = _titles(build_timeline(videos, quizzes, []))
        shuffled = videos[:]
        random.Random(7).shuffle(shuffled)

        assert _titles(build_timeline(shuffled, quizzes, [])) == expected

    def test_unsequenced_offsets_follow_age_not_input_order(
        self, make_video, make_quiz
    ) -> None:
        older = make_video("V-old", minutes=0)
        newer = make_video("V-new", minutes=5)
        quizzes = [make_quiz("Q-new", minutes=3), make_quiz("Q-old", minutes=1)]

        timeline = build_timeline([newer, older], quizzes, [])

        assert _titles(timeline) == ["V-old", "V-new", "Q-old", "Q-new"]


class TestTimeline:
    """Tests for Timeline helpers."""

    def test_empty(self) -> None:
        timeline = build_timeline([], [], [])
        assert timeline.is_empty
        assert len(timeline) == 0
        assert timeline.index_of(None) is None

    def test_lookup_helpers(self, make_video, make_quiz) -> None:
        video = make_video("V1", 1)
        quiz = make_quiz("Q2", 2)
        timeline = build_timeline([video], [quiz], [])

        assert timeline.index_of(quiz.id) == 1
        assert timeline[0] is video
        assert list(timeline.predecessors(1)) == [0]
        assert timeline.of_type(ContentType.QUIZ) == [quiz]
