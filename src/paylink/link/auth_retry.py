"""Session refresh and replay for authenticated calls.

Consumer sessions are short lived. When a call fails because the session
expired, the session is refreshed once and the call is replayed once. A
failed refresh surfaces the original authentication error; the refresh error
itself is only logged.
"""

from typing import Awaitable, Callable, TypeVar

import structlog

from paylink.core.exceptions import ErrorKind, classify_error

log = structlog.get_logger()

T = TypeVar("T")


class AuthRetryingClient:
    """Runs calls with at most one refresh-and-replay on auth failure.

    Args:
        refresh: Coroutine function that re-establishes credentials. It must
            update whatever state the call reads its credentials from.
    """

    def __init__(self, refresh: Callable[[], Awaitable[object]]) -> None:
        self._refresh = refresh

    async def execute(self, call: Callable[[], Awaitable[T]]) -> T:
        """Await ``call``; on an authentication error refresh and replay once.

        The replay's outcome, success or failure, is returned as-is. Errors
        other than authentication errors propagate without a refresh.
        """
        try:
            return await call()
        except Exception as original:
            if classify_error(original) is not ErrorKind.AUTHENTICATION_EXPIRED:
                raise

            log.info("auth_retry_refreshing", error=str(original))
            try:
                await self._refresh()
            except Exception as refresh_error:
                log.warning(
                    "auth_retry_refresh_failed",
                    error_class=type(refresh_error).__name__,
                    error=str(refresh_error),
                )
                raise original

        log.info("auth_retry_replaying")
        return await call()
