"""Protocol abstractions for PayLink.

Protocols:
    CookieStoreProtocol: Interface for session cookie storage.
"""

from __future__ import annotations

from paylink.protocols.cookie_store import CookieKey, CookieStoreProtocol

__all__ = [
    "CookieKey",
    "CookieStoreProtocol",
]
