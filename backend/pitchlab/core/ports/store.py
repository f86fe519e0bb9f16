from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence
from pitchlab.core.entities import ReferenceStats, ValidatedPitch


class IReferencePitchStore(ABC):
    """Reference (third-party Statcast) table."""

    @abstractmethod
    async def has_reference_data(self) -> bool: ...
    @abstractmethod
    async def reference_stats(self) -> ReferenceStats: ...
    @abstractmethod
    async def insert_reference(self, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert rows, skipping any whose primary identity already exists.
        Returns the number actually inserted."""
        ...
    @abstractmethod
    async def truncate_reference(self) -> None: ...
    @abstractmethod
    async def refresh_stats_view(self) -> None: ...


class IUserPitchStore(ABC):
    """User-uploaded pitch measurements, owned by a pitcher profile."""

    @abstractmethod
    async def owner_exists(self, pitcher_id: int, uid: str) -> bool: ...
    @abstractmethod
    async def find_owner_pitches(self, pitcher_id: int, pitch_types: Sequence[str]) -> List[Dict[str, Any]]: ...
    @abstractmethod
    async def insert_user_pitches(self, pitcher_id: int, pitches: Sequence[ValidatedPitch]) -> int: ...


class IPitchStore(IReferencePitchStore, IUserPitchStore):
    """One backend serving both tables; what the container wires."""
