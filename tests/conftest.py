"""Shared fixtures for coursegate tests."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from coursegate.config import get_settings
from coursegate.content.models import QuizItem, ResourceItem, VideoItem
from coursegate.main import create_app


BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


# ==============================================================================
# Application
# ==============================================================================


@pytest.fixture
def app() -> FastAPI:
    """Fresh application without lifespan (no database)."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_token():
    """Factory for signed access tokens."""
    settings = get_settings()

    def _make(user_id: UUID | None = None, role: str = "student", **claims) -> str:
        payload = {
            "sub": str(user_id or uuid4()),
            "role": role,
            "email": "user@example.com",
            "type": "access",
            "exp": datetime.now(UTC) + timedelta(minutes=15),
        }
        payload.update(claims)
        return jwt.encode(
            payload, settings.auth_secret_key, algorithm=settings.auth_algorithm
        )

    return _make


# ==============================================================================
# Content
# ==============================================================================


@pytest.fixture
def course_id() -> UUID:
    return uuid4()


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_video(course_id):
    def _make(
        title: str = "Video",
        sequence_number: int | None = None,
        duration_seconds: int = 600,
        minutes: int = 0,
        video_url: str = "https://cdn.example.com/lecture.mp4",
        **kwargs,
    ) -> VideoItem:
        return VideoItem(
            id=uuid4(),
            course_id=course_id,
            title=title,
            duration_seconds=duration_seconds,
            sequence_number=sequence_number,
            video_url=video_url,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_quiz(course_id):
    def _make(
        title: str = "Quiz",
        sequence_number: int | None = None,
        minutes: int = 0,
        **kwargs,
    ) -> QuizItem:
        return QuizItem(
            id=uuid4(),
            course_id=course_id,
            title=title,
            sequence_number=sequence_number,
            question_count=5,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_resource(course_id):
    def _make(
        title: str = "Resource",
        sequence_number: int | None = None,
        minutes: int = 0,
        **kwargs,
    ) -> ResourceItem:
        return ResourceItem(
            id=uuid4(),
            course_id=course_id,
            title=title,
            sequence_number=sequence_number,
            file_url="https://cdn.example.com/handout.pdf",
            file_type="pdf",
            uploaded_at=BASE_TIME + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make
