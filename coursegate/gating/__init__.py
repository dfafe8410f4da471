"""Completion gate module.

Provides:
- Per-item lock state (LOCKED / UNLOCKED / COMPLETED)
- Navigation decisions naming the blocking item
- Course-level aggregate progress
"""

from .gate import (
    blocked_message,
    check_navigation,
    compute_course_progress,
    evaluate_timeline,
    find_blocking_item,
)
from .models import (
    CourseProgress,
    ItemAccess,
    ItemState,
    NavigationDecision,
    StudentProgressSnapshot,
    VideoProgressState,
)


__all__ = [
    "CourseProgress",
    "ItemAccess",
    "ItemState",
    "NavigationDecision",
    "StudentProgressSnapshot",
    "VideoProgressState",
    "blocked_message",
    "check_navigation",
    "compute_course_progress",
    "evaluate_timeline",
    "find_blocking_item",
]
