"""Student progress module.

Provides:
- Video watch progress with sticky completion
- Quiz attempt and resource completion reads
- Enrollment aggregate refresh
- Snapshot assembly for the completion gate
"""

from .models import (
    PROGRESS_TABLES_CQL,
    Enrollment,
    EnrollmentStatus,
    QuizAttempt,
    QuizAttemptStatus,
    ResourceCompletion,
    VideoProgress,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "Enrollment",
    "EnrollmentStatus",
    "QuizAttempt",
    "QuizAttemptStatus",
    "ResourceCompletion",
    "VideoProgress",
]
