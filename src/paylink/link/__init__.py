"""Consumer account and session refresh."""

from .account import LinkAccount
from .auth_retry import AuthRetryingClient

__all__ = [
    "AuthRetryingClient",
    "LinkAccount",
]
