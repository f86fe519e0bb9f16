from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence
from pitchlab.core.entities import DuplicateCheckResult, PitchFingerprint, ValidatedPitch


class IFingerprintEngine(ABC):
    @abstractmethod
    def fingerprint(self, owner_id: int, pitch: ValidatedPitch) -> PitchFingerprint: ...
    @abstractmethod
    async def check(self, owner_id: int, pitches: Sequence[ValidatedPitch]) -> DuplicateCheckResult: ...
