"""Unit tests for PollRegistry."""

import asyncio
import gc

import pytest

from paylink.core.exceptions import APIError
from paylink.polling import APIPoller, PollRegistry, PollTimingOptions


async def test_tracks_running_poll_until_done(registry):
    release = asyncio.Event()

    async def call():
        await release.wait()
        return "ok"

    task = APIPoller(call, PollTimingOptions(initial_delay=0), registry=registry).start()
    assert task in registry
    assert registry.active == 1

    release.set()
    assert await task == "ok"
    assert task not in registry
    assert len(registry) == 0


async def test_released_after_failure(registry):
    async def call():
        raise APIError(500)

    task = APIPoller(call, PollTimingOptions(initial_delay=0), registry=registry).start()
    with pytest.raises(APIError):
        await task
    assert registry.active == 0


async def test_unreferenced_poll_still_completes(registry):
    """A poll nobody holds a reference to runs to completion."""
    completed = asyncio.Event()
    calls = 0

    async def call():
        nonlocal calls
        calls += 1
        if calls < 3:
            raise APIError(202, code="202")
        completed.set()
        return "ok"

    APIPoller(
        call,
        PollTimingOptions(initial_delay=0, max_retries=5, retry_interval=0.01),
        registry=registry,
    ).start()
    gc.collect()

    await asyncio.wait_for(completed.wait(), timeout=1)
    assert calls == 3


async def test_cancel_all():
    registry = PollRegistry()

    async def call():
        raise APIError(202, code="202")

    options = PollTimingOptions(initial_delay=0, max_retries=1000, retry_interval=0.01)
    tasks = [APIPoller(call, options, registry=registry).start() for _ in range(3)]
    await asyncio.sleep(0.02)

    await registry.cancel_all()

    assert all(t.cancelled() for t in tasks)
    assert registry.active == 0


async def test_cancel_all_when_empty(registry):
    await registry.cancel_all()
    assert registry.active == 0
