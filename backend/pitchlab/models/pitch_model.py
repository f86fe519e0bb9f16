# backend/pitchlab/models/pitch_model.py
from __future__ import annotations
import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pitchlab.core.entities import ValidatedPitch
from pitchlab.core.services.fingerprint_engine import normalize_spin


class PitchIn(BaseModel):
    """One user-submitted pitch row, as it arrives in a batch upload."""

    model_config = ConfigDict(extra="ignore")

    pitch_type: str
    velocity_mph: Optional[float] = Field(default=None, ge=0, le=120, allow_inf_nan=False)
    spin_rate: Optional[float] = Field(default=None, ge=0, le=5000, allow_inf_nan=False)
    horizontal_break: Optional[float] = Field(default=None, allow_inf_nan=False)
    vertical_break: Optional[float] = Field(default=None, allow_inf_nan=False)
    date: Optional[dt.date] = None
    notes: Optional[str] = None

    @field_validator("pitch_type", mode="before")
    @classmethod
    def _pitch_type(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("pitch_type is required")
        if len(v.strip()) > 50:
            raise ValueError("pitch_type must be 50 characters or less")
        return v.strip()

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return None if v == "" else v

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, v: Any) -> Optional[str]:
        if v is None or not isinstance(v, str):
            return None
        if len(v) > 2000:
            raise ValueError("notes must be 2000 characters or less")
        return v.strip() or None

    def to_validated(self) -> ValidatedPitch:
        return ValidatedPitch(
            pitch_type=self.pitch_type,
            velocity_mph=self.velocity_mph,
            spin_rate=normalize_spin(self.spin_rate),
            horizontal_break=self.horizontal_break,
            vertical_break=self.vertical_break,
            date=self.date,
            notes=self.notes,
        )


def describe_errors(exc: ValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts: List[str] = []
    for err in exc.errors():
        field = ".".join(str(x) for x in err.get("loc", ())) or "row"
        msg = str(err.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            parts.append(msg[len("Value error, "):])
        else:
            parts.append(f"{field}: {msg}")
    return "; ".join(parts)


class BatchUploadRequest(BaseModel):
    """Shape is checked loosely here; the coordinator owns the real input rules."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    pitcher_id: Any = None
    pitches: Any = None
    skip_duplicates: bool = Field(default=False, alias="skipDuplicates")
    check_only: bool = Field(default=False, alias="checkOnly")
    force_insert: bool = Field(default=False, alias="forceInsert")
