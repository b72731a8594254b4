"""Unit tests for AuthRetryingClient."""

from unittest.mock import AsyncMock

import pytest

from paylink.core.exceptions import APIError, AuthenticationError, LinkLookupNotFoundError
from paylink.link import AuthRetryingClient


class TestSuccessPath:
    async def test_success_needs_no_refresh(self):
        refresh = AsyncMock()
        call = AsyncMock(return_value="value")

        result = await AuthRetryingClient(refresh).execute(call)

        assert result == "value"
        call.assert_awaited_once()
        refresh.assert_not_awaited()


class TestAuthFailure:
    async def test_refresh_then_single_replay(self):
        """Exactly one refresh and one replay; the replay's result is returned."""
        refresh = AsyncMock()
        call = AsyncMock(side_effect=[AuthenticationError(), "replayed"])

        result = await AuthRetryingClient(refresh).execute(call)

        assert result == "replayed"
        assert call.await_count == 2
        refresh.assert_awaited_once()

    async def test_refresh_runs_before_replay(self):
        order = []
        attempts = 0

        async def refresh():
            order.append("refresh")

        async def call():
            nonlocal attempts
            attempts += 1
            order.append(f"call{attempts}")
            if attempts == 1:
                raise AuthenticationError()
            return "ok"

        await AuthRetryingClient(refresh).execute(call)

        assert order == ["call1", "refresh", "call2"]

    async def test_replay_failure_is_surfaced_without_second_refresh(self):
        """An auth error on the replay is returned as-is, not retried again."""
        second = AuthenticationError(message="still expired")
        refresh = AsyncMock()
        call = AsyncMock(side_effect=[AuthenticationError(), second])

        with pytest.raises(AuthenticationError) as exc_info:
            await AuthRetryingClient(refresh).execute(call)

        assert exc_info.value is second
        refresh.assert_awaited_once()
        assert call.await_count == 2

    async def test_replay_non_auth_error_surfaced(self):
        failure = APIError(500)
        call = AsyncMock(side_effect=[AuthenticationError(), failure])

        with pytest.raises(APIError) as exc_info:
            await AuthRetryingClient(AsyncMock()).execute(call)

        assert exc_info.value is failure

    async def test_refresh_failure_surfaces_original_error(self):
        """When refresh fails the original auth error is raised and no replay happens."""
        original = AuthenticationError(message="session expired")
        refresh = AsyncMock(side_effect=LinkLookupNotFoundError("gone"))
        call = AsyncMock(side_effect=[original, "never"])

        with pytest.raises(AuthenticationError) as exc_info:
            await AuthRetryingClient(refresh).execute(call)

        assert exc_info.value is original
        call.assert_awaited_once()
        refresh.assert_awaited_once()


class TestOtherFailures:
    @pytest.mark.parametrize(
        "error",
        [APIError(500), APIError(202, code="202"), ValueError("bad")],
    )
    async def test_non_auth_errors_propagate_without_refresh(self, error):
        refresh = AsyncMock()
        call = AsyncMock(side_effect=error)

        with pytest.raises(type(error)) as exc_info:
            await AuthRetryingClient(refresh).execute(call)

        assert exc_info.value is error
        call.assert_awaited_once()
        refresh.assert_not_awaited()
