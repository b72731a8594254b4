"""Polling helper for endpoints that answer "still processing".

Some endpoints return a 202 processing error until a server-side result is
ready. ``APIPoller`` calls such an endpoint after an initial delay and keeps
calling it at a fixed interval while it reports processing, up to a bounded
number of retries.

Usage:
    from paylink.polling import APIPoller, PollTimingOptions

    poller = APIPoller(lambda: api.fetch_results(session_id))
    results = await poller.start()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from paylink.core.config import PollingConfig
from paylink.core.exceptions import ErrorKind, RetriesExhausted, classify_error
from paylink.polling.registry import PollRegistry, default_registry

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class PollTimingOptions:
    """Delay schedule and retry budget for a poll.

    Attributes:
        initial_delay: Seconds to wait before the first attempt.
        max_retries: Retries allowed after the first attempt. 0 = one attempt.
        retry_interval: Seconds to wait after a processing response.
    """

    initial_delay: float = 1.75
    max_retries: int = 180
    retry_interval: float = 0.25

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_interval < 0:
            raise ValueError("retry_interval must be >= 0")

    @classmethod
    def from_config(cls, config: PollingConfig) -> PollTimingOptions:
        return cls(
            initial_delay=config.initial_delay,
            max_retries=config.max_retries,
            retry_interval=config.retry_interval,
        )


def is_processing_error(error: BaseException) -> bool:
    """Default retry predicate: the server's "processing, try again" signal."""
    return classify_error(error) is ErrorKind.RETRYABLE_PROCESSING


class APIPoller(Generic[T]):
    """Drives one API call until it succeeds, fails, or runs out of retries.

    Attempts are strictly sequential: a new attempt is only made after the
    previous one has returned or raised. The outcome task is fulfilled
    exactly once:
    - first success → its value
    - first non-processing error → that error, unchanged
    - processing error with no retries left → RetriesExhausted

    A poller can be started once. The running task is held by a
    PollRegistry until it finishes, so callers may drop the poller.
    """

    def __init__(
        self,
        api_call: Callable[[], Awaitable[T]],
        options: Optional[PollTimingOptions] = None,
        *,
        should_retry: Callable[[BaseException], bool] = is_processing_error,
        registry: Optional[PollRegistry] = None,
    ) -> None:
        self._api_call = api_call
        self._options = options or PollTimingOptions()
        self._should_retry = should_retry
        self._registry = registry if registry is not None else default_registry

        self._retries_left = self._options.max_retries
        self._attempts = 0
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "asyncio.Task[T]":
        """Schedule the poll on the running loop and return its task.

        The task can be awaited by any number of callers; all of them see
        the same result or exception.

        Raises:
            RuntimeError: If the poller was already started, or no event
                loop is running.
        """
        if self._task is not None:
            raise RuntimeError("Poller already started")

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        self._registry.track(self._task)
        log.debug(
            "poll_started",
            initial_delay=self._options.initial_delay,
            max_retries=self._options.max_retries,
        )
        return self._task

    def cancel(self) -> bool:
        """Abandon the poll. Awaiters receive ``asyncio.CancelledError``.

        Returns:
            True if a running poll was cancelled.
        """
        if self._task is None or self._task.done():
            return False
        log.info("poll_cancelled", attempts=self._attempts)
        return self._task.cancel()

    @property
    def attempts(self) -> int:
        """Number of times the API call has been invoked."""
        return self._attempts

    @property
    def retries_left(self) -> int:
        return self._retries_left

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def _run(self) -> T:
        delay = self._options.initial_delay

        while True:
            await asyncio.sleep(delay)
            self._attempts += 1

            try:
                result = await self._api_call()
            except Exception as e:
                if not self._should_retry(e):
                    log.info(
                        "poll_failed",
                        attempts=self._attempts,
                        error_class=type(e).__name__,
                        error=str(e),
                    )
                    raise

                if self._retries_left <= 0:
                    log.warning("poll_retries_exhausted", attempts=self._attempts)
                    raise RetriesExhausted(attempts=self._attempts, last_error=e) from e

                self._retries_left -= 1
                delay = self._options.retry_interval
                log.debug(
                    "poll_retry",
                    attempt=self._attempts,
                    retries_left=self._retries_left,
                    delay=delay,
                )
                continue

            log.debug("poll_succeeded", attempts=self._attempts)
            return result


async def poll(
    api_call: Callable[[], Awaitable[T]],
    options: Optional[PollTimingOptions] = None,
    **kwargs,
) -> T:
    """Start an APIPoller and wait for its outcome."""
    return await APIPoller(api_call, options, **kwargs).start()
