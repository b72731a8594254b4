"""
PayLink - Client library for consumer payment accounts

Session-aware API bindings with polling and transparent session refresh.
"""

from paylink.link import AuthRetryingClient, LinkAccount
from paylink.polling import APIPoller, PollTimingOptions

__version__ = "0.1.0"

__all__ = [
    "APIPoller",
    "AuthRetryingClient",
    "LinkAccount",
    "PollTimingOptions",
]
