from __future__ import annotations
import time
from threading import Lock
from typing import Any, Dict, Optional, Tuple

from pitchlab.core.ports.session import ISessionStore


class InMemorySessionStore(ISessionStore):
    """Session values with a sliding TTL; expired entries vanish on read or sweep."""

    def __init__(self, ttl_sec: float = 3600.0) -> None:
        self.ttl_sec = ttl_sec
        self._items: Dict[str, Tuple[Any, float]] = {}
        self._lock = Lock()

    def get(self, session_id: str, now: float | None = None) -> Optional[Any]:
        now = time.time() if now is None else now
        with self._lock:
            item = self._items.get(session_id)
            if item is None:
                return None
            if now >= item[1]:
                del self._items[session_id]
                return None
            return item[0]

    def put(self, session_id: str, value: Any, now: float | None = None) -> None:
        now = time.time() if now is None else now
        with self._lock:
            self._items[session_id] = (value, now + self.ttl_sec)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._items.pop(session_id, None)

    def sweep(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            expired = [k for k, (_, expires) in self._items.items() if now >= expires]
            for k in expired:
                del self._items[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._items)
