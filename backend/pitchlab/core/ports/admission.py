from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds
    retry_after: int = 0


class IAdmissionStore(ABC):
    @abstractmethod
    def hit(self, key: str, limit: int, window_sec: float, now: float | None = None) -> AdmissionDecision:
        """Count one request against ``key`` and decide whether it is admitted."""
        ...
    @abstractmethod
    def sweep(self, now: float | None = None) -> int:
        """Drop expired counters; returns how many were removed."""
        ...
