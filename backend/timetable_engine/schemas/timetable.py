from __future__ import annotations

import re
import uuid
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY_VALUES = set(WEEKDAYS)

# Sunday is not a teaching day in the default school calendar.
DEFAULT_TEACHING_DAYS: tuple[str, ...] = WEEKDAYS[:6]

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

ActivityType = Literal["break", "lunch", "assembly", "other"]


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


def _clean_time(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


def _clean_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class BreakDefinition(BaseModel):
    enabled: bool = True
    label: str = Field(min_length=1, max_length=100, alias="description")
    time_start: str = Field(alias="timeStart")
    time_end: str = Field(alias="timeEnd")
    activity_type: ActivityType = Field(default="break", alias="activityType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("label")
    @classmethod
    def normalize_label(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Break label cannot be empty")
        return trimmed

    @field_validator("time_start", "time_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _clean_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BreakDefinition":
        if parse_time_to_minutes(self.time_end) <= parse_time_to_minutes(self.time_start):
            raise ValueError("Break end time must be after start time")
        return self


class SchoolDayStructure(BaseModel):
    start_time: str = Field(alias="schoolStartTime")
    end_time: str = Field(alias="schoolEndTime")
    # Positivity is checked by the slot builder so a bad day surfaces as a StructuralError.
    period_duration_minutes: int = Field(alias="periodDuration")
    period_count: int = Field(alias="numberOfPeriods")
    breaks: tuple[BreakDefinition, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _clean_time(value)


class TimeSlot(BaseModel):
    time_start: str = Field(alias="timeStart")
    time_end: str = Field(alias="timeEnd")
    period_number: int = Field(ge=1, alias="periodNumber")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def label(self) -> str:
        return f"{self.time_start}-{self.time_end}"


class RecessActivity(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    description: str = Field(min_length=1, max_length=100)
    time_start: str = Field(alias="timeStart")
    time_end: str = Field(alias="timeEnd")
    activity_type: ActivityType = Field(default="break", alias="activityType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("time_start", "time_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _clean_time(value)


class SubjectRef(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    code: str | None = Field(default=None, max_length=50)

    model_config = ConfigDict(frozen=True)


class TeacherRef(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    first_name: str = Field(default="", max_length=100, alias="firstName")
    last_name: str = Field(default="", max_length=100, alias="lastName")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.id


class ScheduleEntry(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1, max_length=64)
    week_day: str = Field(alias="weekDay")
    subject: SubjectRef
    teacher: TeacherRef | None = None
    time_start: str = Field(alias="timeStart")
    time_end: str = Field(alias="timeEnd")
    room: str | None = Field(default=None, max_length=100)
    period_number: int | None = Field(default=None, ge=1, alias="periodNumber")
    is_recurring: bool = Field(default=True, alias="isRecurring")
    notes: str | None = Field(default=None, max_length=500)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("week_day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day

    @field_validator("time_start", "time_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _clean_time(value)

    @field_validator("room", "notes")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _clean_optional_text(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "ScheduleEntry":
        if parse_time_to_minutes(self.time_end) <= parse_time_to_minutes(self.time_start):
            raise ValueError("End time must be after start time")
        return self

    @property
    def slot_key(self) -> tuple[str, str]:
        return self.week_day, self.time_start


class Timetable(BaseModel):
    id: str | None = Field(default=None, max_length=64)
    class_ref: str | None = Field(default=None, max_length=64, alias="class")
    site_ref: str | None = Field(default=None, max_length=64, alias="site")
    school_ref: str | None = Field(default=None, max_length=64, alias="school")
    academic_year: str | None = Field(default=None, max_length=20, alias="academicYear")
    academic_term: int = Field(default=1, ge=1, le=3, alias="academicTerm")
    effective_from: date = Field(default_factory=date.today, alias="effectiveFrom")
    effective_to: date | None = Field(default=None, alias="effectiveTo")
    schedule: tuple[ScheduleEntry, ...] = Field(default_factory=tuple)
    recess_activities: tuple[RecessActivity, ...] = Field(default_factory=tuple, alias="recessActivities")
    version: int = Field(default=1, ge=1)
    is_active: bool = Field(default=False, alias="isActive")
    version_note: str | None = Field(default=None, max_length=500, alias="versionNote")
    created_by: str | None = Field(default=None, max_length=64, alias="createdBy")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("class_ref", "site_ref", "school_ref", "academic_year", "version_note")
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _clean_optional_text(value)

    @property
    def key(self) -> tuple[str | None, str | None, int]:
        return self.class_ref, self.academic_year, self.academic_term

    def schedule_for_day(self, week_day: str) -> list[ScheduleEntry]:
        entries = [entry for entry in self.schedule if entry.week_day == week_day]
        return sorted(entries, key=lambda entry: parse_time_to_minutes(entry.time_start))

    def unique_subject_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for entry in self.schedule:
            seen.setdefault(entry.subject.id, None)
        return list(seen)


DEFAULT_BREAKS: tuple[BreakDefinition, ...] = (
    BreakDefinition(label="Morning Assembly", time_start="07:30", time_end="08:00", activity_type="assembly", enabled=False),
    BreakDefinition(label="Mid-Morning Break", time_start="10:10", time_end="10:30", activity_type="break"),
    BreakDefinition(label="Lunch Break", time_start="12:30", time_end="13:15", activity_type="lunch"),
    BreakDefinition(label="Afternoon Break", time_start="14:30", time_end="14:45", activity_type="break", enabled=False),
)

DEFAULT_SCHOOL_DAY = SchoolDayStructure(
    start_time="07:30",
    end_time="15:30",
    period_duration_minutes=40,
    period_count=8,
    breaks=DEFAULT_BREAKS,
)
