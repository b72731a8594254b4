"""In-memory cookie store."""

import threading
from typing import Dict, Optional

from paylink.protocols.cookie_store import CookieKey


class InMemoryCookieStore:
    """Process-local cookie store, used by default and in tests."""

    def __init__(self) -> None:
        self._values: Dict[CookieKey, str] = {}
        self._lock = threading.Lock()

    def read(self, key: CookieKey) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def write(self, key: CookieKey, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: CookieKey) -> None:
        with self._lock:
            self._values.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
