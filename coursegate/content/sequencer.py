"""Content sequencer: merge videos, quizzes and resources into one timeline.

Ordering rules
--------------
Every item sorts by an *effective sequence* and then by its timestamp
(``created_at`` for videos and quizzes, ``uploaded_at`` for resources).
Remaining ties fall back to content-type priority and item id, so the result
never depends on how the three input lists happened to be ordered by the
database.

Two policies decide the effective sequence of items with no authored
position:

``LEGACY_OFFSETS``
    Videos get ``index + 1``, quizzes ``1000 + index`` and resources
    ``2000 + index`` where ``index`` is the item's position in its own list
    ordered by timestamp (then id). Kept for compatibility with timelines
    students have already seen; an authored sequence above 1000 interleaves
    with these defaults.

``TYPE_PRIORITY``
    Authored items come first in sequence order; unsequenced items follow,
    grouped by type (video, quiz, resource) and ordered by timestamp.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from .models import ContentItem, ContentType, QuizItem, ResourceItem, VideoItem


class SequencingPolicy(str, Enum):
    """How unsequenced items are placed on the timeline."""

    LEGACY_OFFSETS = "legacy_offsets"
    TYPE_PRIORITY = "type_priority"


TYPE_PRIORITY: dict[ContentType, int] = {
    ContentType.VIDEO: 0,
    ContentType.QUIZ: 1,
    ContentType.RESOURCE: 2,
}

LEGACY_DEFAULT_OFFSETS: dict[ContentType, int] = {
    ContentType.VIDEO: 1,
    ContentType.QUIZ: 1000,
    ContentType.RESOURCE: 2000,
}


@dataclass(frozen=True)
class Timeline:
    """Ordered content of one course."""

    items: tuple[ContentItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> ContentItem:
        return self.items[index]

    @property
    def is_empty(self) -> bool:
        return not self.items

    def index_of(self, item_id) -> int | None:
        """Position of an item, or None if it is not on this timeline."""
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return None

    def predecessors(self, index: int) -> range:
        """Indices that must be satisfied before ``index`` is reachable."""
        return range(max(0, min(index, len(self.items))))

    def of_type(self, content_type: ContentType) -> list[ContentItem]:
        return [item for item in self.items if item.content_type == content_type]


def _tie_break(item: ContentItem) -> tuple:
    return (item.timestamp, TYPE_PRIORITY[item.content_type], str(item.id))


def listing_order(item: ContentItem) -> tuple:
    """Stable per-type listing key: authored positions first, then by age."""
    return (
        item.sequence_number is None,
        item.sequence_number or 0,
        item.timestamp,
        str(item.id),
    )


def _legacy_keys(items: Sequence[ContentItem]) -> list[tuple[tuple, ContentItem]]:
    ordered = sorted(items, key=lambda item: (item.timestamp, str(item.id)))
    keyed = []
    for index, item in enumerate(ordered):
        default = LEGACY_DEFAULT_OFFSETS[item.content_type] + index
        sequence = item.sequence_number or default
        keyed.append(((sequence, *_tie_break(item)), item))
    return keyed


def _type_priority_keys(items: Sequence[ContentItem]) -> list[tuple[tuple, ContentItem]]:
    keyed = []
    for item in items:
        if item.sequence_number is not None:
            key = (0, item.sequence_number, *_tie_break(item))
        else:
            key = (
                1,
                TYPE_PRIORITY[item.content_type],
                item.timestamp,
                str(item.id),
            )
        keyed.append((key, item))
    return keyed


def build_timeline(
    videos: Sequence[VideoItem],
    quizzes: Sequence[QuizItem],
    resources: Sequence[ResourceItem],
    policy: SequencingPolicy | str = SequencingPolicy.LEGACY_OFFSETS,
) -> Timeline:
    """Merge the three content lists of a course into one ordered timeline.

    Pure function: identical inputs always produce the same order.
    """
    policy = SequencingPolicy(policy)

    if policy is SequencingPolicy.LEGACY_OFFSETS:
        keyed = [
            *_legacy_keys(videos),
            *_legacy_keys(quizzes),
            *_legacy_keys(resources),
        ]
    else:
        keyed = _type_priority_keys([*videos, *quizzes, *resources])

    keyed.sort(key=lambda pair: pair[0])
    return Timeline(items=tuple(item for _, item in keyed))
