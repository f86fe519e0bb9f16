from __future__ import annotations
import math
import time
from threading import Lock
from typing import Dict, Tuple

from pitchlab.core.ports.admission import AdmissionDecision, IAdmissionStore


class InMemoryAdmissionStore(IAdmissionStore):
    """
    Single-instance fixed-window counters: { key: (count, reset_at) }.
    Expired windows are dropped when read, and by the periodic sweep.
    """

    def __init__(self) -> None:
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = Lock()

    def hit(self, key: str, limit: int, window_sec: float, now: float | None = None) -> AdmissionDecision:
        now = time.time() if now is None else now
        with self._lock:
            entry = self._windows.get(key)
            if entry is None or now >= entry[1]:
                count, reset_at = 1, now + window_sec
            else:
                count, reset_at = entry[0] + 1, entry[1]
            self._windows[key] = (count, reset_at)

        if count > limit:
            return AdmissionDecision(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(1, int(math.ceil(reset_at - now))),
            )
        return AdmissionDecision(allowed=True, limit=limit, remaining=limit - count, reset_at=reset_at)

    def sweep(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            expired = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
            for k in expired:
                del self._windows[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
