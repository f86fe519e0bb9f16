from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional


class ISessionStore(ABC):
    """Per-session values with a time-to-live, refreshed on every write."""

    @abstractmethod
    def get(self, session_id: str, now: float | None = None) -> Optional[Any]: ...
    @abstractmethod
    def put(self, session_id: str, value: Any, now: float | None = None) -> None: ...
    @abstractmethod
    def delete(self, session_id: str) -> None: ...
    @abstractmethod
    def sweep(self, now: float | None = None) -> int: ...
