from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from timetable_engine.schemas.timetable import ScheduleEntry

CompletionLevel = Literal["low", "partial", "good"]


class CompletionSummary(BaseModel):
    filled_slots: int = Field(alias="filledSlots")
    total_slots: int = Field(alias="totalSlots")
    percentage: int = Field(ge=0, le=100)
    is_complete: bool = Field(alias="isComplete")
    level: CompletionLevel

    model_config = ConfigDict(populate_by_name=True)


class CompletionRequest(BaseModel):
    schedule: list[ScheduleEntry] = Field(default_factory=list)
    teaching_days: int | None = Field(default=None, ge=1, le=7, alias="teachingDays")
    period_count: int = Field(ge=1, le=24, alias="periodCount")

    model_config = ConfigDict(populate_by_name=True)
