from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from timetable_engine.schemas.conflict import ConflictDetail
from timetable_engine.schemas.timetable import (
    DAY_VALUES,
    DEFAULT_TEACHING_DAYS,
    RecessActivity,
    ScheduleEntry,
    SchoolDayStructure,
    SubjectRef,
    TeacherRef,
    TimeSlot,
)

IMPORT_COLUMNS: tuple[str, ...] = (
    "Day",
    "TimeStart",
    "TimeEnd",
    "SubjectName",
    "TeacherFirstName",
    "TeacherLastName",
    "Room",
    "Notes",
)

ImportErrorKind = Literal[
    "invalid_day",
    "invalid_time",
    "unknown_subject",
    "unknown_teacher",
    "invalid_row",
    "duplicate_slot",
    "conflict",
]


class RawImportRow(BaseModel):
    line_number: int = Field(ge=1, alias="lineNumber")
    day: str = ""
    time_start: str = Field(default="", alias="timeStart")
    time_end: str = Field(default="", alias="timeEnd")
    subject_name: str = Field(default="", alias="subjectName")
    teacher_first_name: str = Field(default="", alias="teacherFirstName")
    teacher_last_name: str = Field(default="", alias="teacherLastName")
    room: str = ""
    notes: str = ""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ImportCatalog(BaseModel):
    subjects: list[SubjectRef] = Field(default_factory=list)
    teachers: list[TeacherRef] = Field(default_factory=list)


class ImportRowError(BaseModel):
    line_number: int = Field(alias="lineNumber")
    kind: ImportErrorKind
    message: str
    conflicts: list[ConflictDetail] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ImportResult(BaseModel):
    accepted: list[ScheduleEntry] = Field(default_factory=list)
    errors: list[ImportRowError] = Field(default_factory=list)
    skipped: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class ImportRequest(BaseModel):
    csv_text: str | None = Field(default=None, alias="csvText")
    rows: list[RawImportRow] | None = None
    catalog: ImportCatalog = Field(default_factory=ImportCatalog)
    existing: list[ScheduleEntry] = Field(default_factory=list)
    context: list[ScheduleEntry] = Field(default_factory=list)
    slots: list[TimeSlot] | None = None

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def validate_source(self) -> "ImportRequest":
        if (self.csv_text is None) == (self.rows is None):
            raise ValueError("Provide exactly one of csvText or rows")
        return self


class TemplateRequest(BaseModel):
    structure: SchoolDayStructure
    teaching_days: list[str] = Field(default_factory=lambda: list(DEFAULT_TEACHING_DAYS), alias="teachingDays")
    recess_activities: list[RecessActivity] | None = Field(default=None, alias="recessActivities")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("teaching_days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        cleaned = [day.strip() for day in value if day.strip()]
        invalid = [day for day in cleaned if day not in DAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid teaching day(s): {', '.join(invalid)}")
        return cleaned
