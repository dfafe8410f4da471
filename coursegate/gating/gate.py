"""Sequential completion gate.

Pure functions over a ``Timeline`` and a ``StudentProgressSnapshot``:

- ``evaluate_timeline``: LOCKED / UNLOCKED / COMPLETED for every item
- ``check_navigation``: allow or deny opening one item, naming the blocker
- ``compute_course_progress``: course-level aggregate shown on the page

Admins and supervisors bypass the gate before any rule is evaluated.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.auth.permissions import UserRole, bypasses_gate
from coursegate.content.models import ContentItem, ContentType
from coursegate.content.sequencer import Timeline
from coursegate.content.service import ContentNotFoundError

from .models import (
    CourseProgress,
    ItemAccess,
    ItemState,
    NavigationDecision,
    StudentProgressSnapshot,
)
from .predicates import is_completed, satisfies_predecessor


if TYPE_CHECKING:
    from coursegate.progress.models import Enrollment


DEFAULT_UNLOCK_THRESHOLD = 90.0

GENERIC_BLOCKED_MESSAGE = (
    "Please complete the previous content before accessing this item."
)


def blocked_message(blocking_item: ContentItem | None, threshold: float) -> str:
    """User-facing message for a denied navigation."""
    if blocking_item is None:
        return GENERIC_BLOCKED_MESSAGE
    return (
        f'Please complete "{blocking_item.title}" to at least {threshold:g}% '
        "before accessing this content."
    )


def evaluate_timeline(
    timeline: Timeline,
    snapshot: StudentProgressSnapshot,
    role: UserRole | str | None,
    threshold: float = DEFAULT_UNLOCK_THRESHOLD,
) -> list[ItemAccess]:
    """Evaluate the state of every item on the timeline.

    Item 0 is never locked. Item ``i`` is locked unless every item before it
    satisfies its unlock predicate.
    """
    if bypasses_gate(role):
        return [
            ItemAccess(item=item, index=index, state=ItemState.UNLOCKED)
            for index, item in enumerate(timeline)
        ]

    result: list[ItemAccess] = []
    reachable = True
    for index, item in enumerate(timeline):
        if not reachable:
            state = ItemState.LOCKED
        elif is_completed(item, snapshot, threshold):
            state = ItemState.COMPLETED
        else:
            state = ItemState.UNLOCKED
        result.append(ItemAccess(item=item, index=index, state=state))
        reachable = reachable and satisfies_predecessor(item, snapshot, threshold)
    return result


def find_blocking_item(
    timeline: Timeline,
    snapshot: StudentProgressSnapshot,
    index: int,
    threshold: float = DEFAULT_UNLOCK_THRESHOLD,
) -> ContentItem | None:
    """Lowest-index predecessor of ``index`` that is not satisfied."""
    for j in timeline.predecessors(index):
        item = timeline[j]
        if not satisfies_predecessor(item, snapshot, threshold):
            return item
    return None


def _resolve_index(timeline: Timeline, target: UUID | int) -> int:
    if isinstance(target, int):
        if 0 <= target < len(timeline):
            return target
        raise ContentNotFoundError
    index = timeline.index_of(target)
    if index is None:
        raise ContentNotFoundError
    return index


def check_navigation(
    timeline: Timeline,
    snapshot: StudentProgressSnapshot,
    role: UserRole | str | None,
    target: UUID | int,
    threshold: float = DEFAULT_UNLOCK_THRESHOLD,
) -> NavigationDecision:
    """Decide whether the student may open ``target`` (item id or index).

    Raises:
        ContentNotFoundError: If the target is not on the timeline
    """
    index = _resolve_index(timeline, target)
    item = timeline[index]

    if bypasses_gate(role) or index == 0:
        return NavigationDecision(allowed=True, item=item, index=index)

    blocking = find_blocking_item(timeline, snapshot, index, threshold)
    if blocking is None:
        return NavigationDecision(allowed=True, item=item, index=index)

    return NavigationDecision(
        allowed=False,
        item=item,
        index=index,
        blocking_item=blocking,
        message=blocked_message(blocking, threshold),
    )


def compute_course_progress(
    timeline: Timeline,
    snapshot: StudentProgressSnapshot,
    enrollment: "Enrollment | None" = None,
    include_resources: bool = False,
    threshold: float = DEFAULT_UNLOCK_THRESHOLD,
) -> CourseProgress:
    """Course-level aggregate for the progress bar.

    The denominator is the whole timeline. Completed resources only count
    towards the numerator when ``include_resources`` is set.
    """
    total = len(timeline)

    if enrollment is not None and enrollment.is_completed:
        return CourseProgress(percentage=100.0, completed_items=total, total_items=total)

    counted = {ContentType.VIDEO, ContentType.QUIZ}
    if include_resources:
        counted.add(ContentType.RESOURCE)

    completed = sum(
        1
        for item in timeline
        if item.content_type in counted and is_completed(item, snapshot, threshold)
    )
    percentage = 100.0 * completed / total if total else 0.0
    return CourseProgress(
        percentage=percentage, completed_items=completed, total_items=total
    )
