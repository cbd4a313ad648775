from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, List

from timetable_engine.schemas.timetable import ScheduleEntry

ConflictType = Literal["teacher_conflict", "room_conflict", "duplicate_slot"]


class ConflictDetail(BaseModel):
    id: str
    conflict_type: ConflictType = Field(alias="conflictType")
    description: str
    severity: Literal["hard", "soft"] = "hard"
    week_day: str = Field(alias="weekDay")
    time_start: str = Field(alias="timeStart")
    affected_entries: List[str] = Field(alias="affectedEntries")  # schedule entry ids involved

    model_config = ConfigDict(populate_by_name=True)


class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class ConflictCheckRequest(BaseModel):
    candidate: ScheduleEntry
    existing: List[ScheduleEntry] = Field(default_factory=list)


class ConflictDetectRequest(BaseModel):
    entries: List[ScheduleEntry] = Field(default_factory=list)
