"""Polling primitives for endpoints with deferred results."""

from .poller import APIPoller, PollTimingOptions, is_processing_error, poll
from .registry import PollRegistry, default_registry

__all__ = [
    "APIPoller",
    "PollTimingOptions",
    "PollRegistry",
    "default_registry",
    "is_processing_error",
    "poll",
]
