"""Pydantic schemas for course content listings."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import ContentType, Course, QuizItem, ResourceItem, VideoItem


class CourseResponse(BaseModel):
    """Course metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    supervisor_id: UUID | None = None
    status: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Course) -> "CourseResponse":
        return cls.model_validate(entity)


class VideoResponse(BaseModel):
    """Approved video of a course."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    sequence_number: int | None = None
    duration_seconds: int = Field(description="Authored duration in seconds")
    video_url: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: VideoItem) -> "VideoResponse":
        return cls.model_validate(entity)


class QuizResponse(BaseModel):
    """Active, approved quiz of a course."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    sequence_number: int | None = None
    question_count: int = 0
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: QuizItem) -> "QuizResponse":
        return cls.model_validate(entity)


class ResourceResponse(BaseModel):
    """Active, approved downloadable resource of a course."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    title: str
    sequence_number: int | None = None
    file_url: str
    file_type: str | None = None
    uploaded_at: datetime

    @classmethod
    def from_entity(cls, entity: ResourceItem) -> "ResourceResponse":
        return cls.model_validate(entity)


class ContentItemSummary(BaseModel):
    """Compact reference to any timeline item."""

    id: UUID
    content_type: ContentType
    title: str
    sequence_number: int | None = None
