"""Tests for bearer token validation and the auth dependencies."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import JWTError

from coursegate.auth.dependencies import get_current_user, get_token_from_header
from coursegate.auth.permissions import UserRole
from coursegate.auth.security import decode_access_token


class TestDecodeAccessToken:
    """Tests for decode_access_token."""

    def test_valid_token(self, make_token) -> None:
        user_id = uuid4()
        payload = decode_access_token(make_token(user_id, role="student"))
        assert payload["sub"] == str(user_id)
        assert payload["role"] == "student"

    def test_refresh_token_rejected(self, make_token) -> None:
        with pytest.raises(JWTError):
            decode_access_token(make_token(type="refresh"))

    def test_missing_role_rejected(self, make_token) -> None:
        with pytest.raises(JWTError):
            decode_access_token(make_token(role=""))

    def test_expired_token_rejected(self, make_token) -> None:
        token = make_token(exp=datetime.now(UTC) - timedelta(minutes=1))
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_garbage_rejected(self) -> None:
        with pytest.raises(JWTError):
            decode_access_token("not-a-token")


class TestGetTokenFromHeader:
    """Tests for Authorization header parsing."""

    def _request(self, value: str | None):
        class _Request:
            headers = {"Authorization": value} if value is not None else {}

        return _Request()

    def test_bearer(self) -> None:
        assert get_token_from_header(self._request("Bearer abc")) == "abc"

    def test_missing(self) -> None:
        assert get_token_from_header(self._request(None)) is None

    def test_wrong_scheme(self) -> None:
        assert get_token_from_header(self._request("Basic abc")) is None


class TestGetCurrentUser:
    """Tests for get_current_user."""

    @pytest.mark.asyncio
    async def test_principal_from_token(self, make_token) -> None:
        user_id = uuid4()
        principal = await get_current_user(make_token(user_id, role="Supervisor"))
        assert principal.id == user_id
        assert principal.role == UserRole.SUPERVISOR
        assert principal.bypasses_gate is True

    @pytest.mark.asyncio
    async def test_missing_token(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_role(self, make_token) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_token(role="guest"))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Unknown role"

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self, make_token) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_token(sub="user-1"))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_non_string_role(self, make_token) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(make_token(role=7))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Unknown role"
