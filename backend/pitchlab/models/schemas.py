from __future__ import annotations
import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from pitchlab.core.entities import SeedMode


class SeedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_date: dt.date = Field(default=dt.date(2024, 9, 1), alias="startDate")
    end_date: dt.date = Field(default=dt.date(2024, 9, 30), alias="endDate")
    force: bool = False    # replace: wipe existing rows first
    append: bool = False   # append: add without wiping, even when data exists
    mode: Optional[SeedMode] = None  # explicit override of force/append


class PreviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_date: dt.date = Field(default=dt.date(2024, 9, 1), alias="startDate")
    end_date: dt.date = Field(default=dt.date(2024, 9, 30), alias="endDate")


