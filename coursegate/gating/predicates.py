"""Completion predicates keyed by content type.

Adding a content type means registering one entry in each table here; the
gate itself has no per-type branches.
"""

from collections.abc import Callable

from coursegate.content.models import ContentItem, ContentType

from .models import StudentProgressSnapshot


Predicate = Callable[[ContentItem, StudentProgressSnapshot, float], bool]


def _video_completed(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    progress = snapshot.video(item.id)
    return progress.completed or progress.percentage >= threshold


def _video_reached_threshold(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    return snapshot.video(item.id).percentage >= threshold


def _quiz_attempted(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    return item.id in snapshot.completed_quiz_ids


def _resource_marked_complete(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    return item.id in snapshot.completed_resource_ids


COMPLETION_PREDICATES: dict[ContentType, Predicate] = {
    ContentType.VIDEO: _video_completed,
    ContentType.QUIZ: _quiz_attempted,
    ContentType.RESOURCE: _resource_marked_complete,
}

# Partial credit that unlocks the next item without full completion.
# Only videos have one; quizzes and resources must be completed.
PARTIAL_CREDIT_PREDICATES: dict[ContentType, Predicate] = {
    ContentType.VIDEO: _video_reached_threshold,
}


def is_completed(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    """Check the completion predicate registered for the item's type."""
    return COMPLETION_PREDICATES[item.content_type](item, snapshot, threshold)


def satisfies_predecessor(
    item: ContentItem, snapshot: StudentProgressSnapshot, threshold: float
) -> bool:
    """Check whether the item lets the items after it unlock."""
    if is_completed(item, snapshot, threshold):
        return True
    partial = PARTIAL_CREDIT_PREDICATES.get(item.content_type)
    return partial is not None and partial(item, snapshot, threshold)
