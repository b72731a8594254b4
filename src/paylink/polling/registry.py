"""Registry of in-flight polls.

The event loop keeps only weak references to tasks, so a poll that nobody
awaits could be garbage collected mid-flight. The registry holds a strong
reference for exactly as long as the task runs and drops it when the task
finishes, whatever the outcome.
"""

import asyncio
from typing import Any, Set

import structlog

log = structlog.get_logger()


class PollRegistry:
    """Tracks running poll tasks until they complete."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def track(self, task: asyncio.Task) -> asyncio.Task:
        """Hold a reference to ``task`` until it is done."""
        self._tasks.add(task)
        task.add_done_callback(self._release)
        return task

    def _release(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

    def __contains__(self, task: Any) -> bool:
        return task in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def active(self) -> int:
        """Number of polls still running."""
        return len(self._tasks)

    async def cancel_all(self) -> None:
        """Cancel every running poll and wait for them to unwind."""
        tasks = list(self._tasks)
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        log.info("polls_cancelled", count=len(tasks))


# Shared registry used when a poller is not given one explicitly
default_registry = PollRegistry()
