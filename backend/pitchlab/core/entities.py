from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class IngestionWindow:
    start: date
    end: date  # inclusive

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> Dict[str, str]:
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}


@dataclass(frozen=True)
class PitchFingerprint:
    owner_id: int
    pitch_type: str
    velocity: Optional[float]
    spin_rate: Optional[int]
    horizontal_break: Optional[float]
    vertical_break: Optional[float]
    date: Optional[date]


@dataclass(frozen=True)
class ValidatedPitch:
    pitch_type: str
    velocity_mph: Optional[float]
    spin_rate: Optional[int]
    horizontal_break: Optional[float]
    vertical_break: Optional[float]
    date: Optional[date]
    notes: Optional[str]


@dataclass(frozen=True)
class DuplicateCheckResult:
    duplicate_indices: List[int]

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_indices)

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_count > 0


@dataclass(frozen=True)
class PreviewResult:
    estimated_rows: int
    total_days: int
    sampled: bool
    window: IngestionWindow

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimatedRows": self.estimated_rows,
            "totalDays": self.total_days,
            "sampled": self.sampled,
            "dateRange": self.window.to_dict(),
        }


class SeedMode(str, Enum):
    APPEND = "append"
    REPLACE = "replace"


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.CANCELLED, JobStatus.FAILED)


@dataclass
class SeedResult:
    status: JobStatus
    inserted: int = 0
    skipped: int = 0
    windows_total: int = 0
    windows_done: int = 0
    last_window: Optional[IngestionWindow] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "inserted": self.inserted,
            "skipped": self.skipped,
            "windowsTotal": self.windows_total,
            "windowsDone": self.windows_done,
            # lets a caller resume from the day after this one
            "completedThrough": self.last_window.end.isoformat() if self.last_window else None,
        }


@dataclass(frozen=True)
class SeedProgress:
    window_index: int
    windows_total: int
    window: IngestionWindow
    inserted: int
    skipped: int


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    role: str
    session_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass
class ReferenceStats:
    total_pitches: int = 0
    unique_pitchers: int = 0
    pitch_type_counts: Dict[str, int] = field(default_factory=dict)
    min_date: Optional[date] = None
    max_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPitches": self.total_pitches,
            "uniquePitchers": self.unique_pitchers,
            "pitchTypeCounts": dict(self.pitch_type_counts),
            "dateRange": {
                "min": self.min_date.isoformat() if self.min_date else None,
                "max": self.max_date.isoformat() if self.max_date else None,
            },
        }
