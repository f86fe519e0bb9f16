from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List
from pitchlab.core.entities import IngestionWindow


class IPitchSource(ABC):
    @abstractmethod
    async def fetch_window(self, window: IngestionWindow) -> List[Dict[str, str]]:
        """Raw source rows for one inclusive window. Raises UpstreamFailure."""
        ...
