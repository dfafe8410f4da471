"""Course content module.

Provides:
- Content item union (videos, quizzes, resources)
- Timeline sequencing
- Read-only content listings
"""

from .models import (
    CONTENT_TABLES_CQL,
    ContentItem,
    ContentType,
    Course,
    QuizItem,
    ResourceItem,
    VideoItem,
)
from .sequencer import SequencingPolicy, Timeline, build_timeline


__all__ = [
    "CONTENT_TABLES_CQL",
    "ContentItem",
    "ContentType",
    "Course",
    "QuizItem",
    "ResourceItem",
    "SequencingPolicy",
    "Timeline",
    "VideoItem",
    "build_timeline",
]
