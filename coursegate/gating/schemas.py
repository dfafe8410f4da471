"""Pydantic schemas for the course timeline and navigation checks."""

from uuid import UUID

from pydantic import BaseModel, Field

from coursegate.content.models import ContentItem, ContentType, VideoItem
from coursegate.content.schemas import ContentItemSummary

from .models import (
    CourseProgress,
    ItemAccess,
    ItemState,
    NavigationDecision,
    StudentProgressSnapshot,
)


def summarize(item: ContentItem) -> ContentItemSummary:
    return ContentItemSummary(
        id=item.id,
        content_type=item.content_type,
        title=item.title,
        sequence_number=item.sequence_number,
    )


class TimelineItemResponse(BaseModel):
    """One timeline item with its state for the caller."""

    id: UUID
    content_type: ContentType
    title: str
    sequence_number: int | None = None
    index: int
    state: ItemState
    duration_seconds: int | None = None
    progress: float | None = Field(
        None, description="Displayed percentage of a video; null for other items"
    )

    @classmethod
    def from_access(
        cls, access: ItemAccess, snapshot: StudentProgressSnapshot
    ) -> "TimelineItemResponse":
        item = access.item
        duration = None
        progress = None
        if isinstance(item, VideoItem):
            duration = item.duration_seconds
            video = snapshot.video(item.id)
            progress = 100.0 if video.completed else video.percentage
        return cls(
            id=item.id,
            content_type=item.content_type,
            title=item.title,
            sequence_number=item.sequence_number,
            index=access.index,
            state=access.state,
            duration_seconds=duration,
            progress=progress,
        )


class CourseProgressResponse(BaseModel):
    """Course-level aggregate."""

    percentage: float
    completed_items: int
    total_items: int

    @classmethod
    def from_progress(cls, progress: CourseProgress) -> "CourseProgressResponse":
        return cls(
            percentage=progress.percentage,
            completed_items=progress.completed_items,
            total_items=progress.total_items,
        )


class TimelineResponse(BaseModel):
    """Ordered course timeline for the caller."""

    course_id: UUID
    items: list[TimelineItemResponse]
    progress: CourseProgressResponse


class NavigationResponse(BaseModel):
    """Whether the caller may open an item."""

    allowed: bool
    item: ContentItemSummary
    index: int
    blocking_item: ContentItemSummary | None = None
    message: str | None = None

    @classmethod
    def from_decision(cls, decision: NavigationDecision) -> "NavigationResponse":
        return cls(
            allowed=decision.allowed,
            item=summarize(decision.item),
            index=decision.index,
            blocking_item=(
                summarize(decision.blocking_item) if decision.blocking_item else None
            ),
            message=decision.message,
        )
