"""Cookie store protocol for PayLink.

The consumer-session API remembers the session client secret and the hashed
email of the last logged-out consumer between app launches. Storage is
platform specific, so the API bindings depend only on this protocol.

Usage:
    from paylink.protocols import CookieStoreProtocol

    assert isinstance(InMemoryCookieStore(), CookieStoreProtocol)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, runtime_checkable


class CookieKey(str, Enum):
    """Keys written by the consumer-session API."""

    SESSION = "com.stripe.pay_sid"
    LAST_LOGOUT_EMAIL = "com.stripe.link_account"


@runtime_checkable
class CookieStoreProtocol(Protocol):
    """Key-value storage for session cookies.

    Note:
        Implementations do NOT need to inherit from this class.
    """

    def read(self, key: CookieKey) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        ...

    def write(self, key: CookieKey, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: CookieKey) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
        ...
