"""Playback tracking module.

Provides:
- Native watch-time tracking with decile-throttled persistence
- Simulated tracking for embedded players
- Gate-aware course player
- HTTP client for progress writes and course session loading
"""

from .client import CourseSession, ProgressApiClient, ProgressApiError
from .player import CoursePlayer
from .simulated import SimulatedPlaybackTracker, is_embedded_player
from .tracker import ProgressWrite, WatchTimeTracker


__all__ = [
    "CoursePlayer",
    "CourseSession",
    "ProgressApiClient",
    "ProgressApiError",
    "ProgressWrite",
    "SimulatedPlaybackTracker",
    "WatchTimeTracker",
    "is_embedded_player",
]
