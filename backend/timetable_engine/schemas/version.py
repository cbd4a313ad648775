from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from timetable_engine.core.exceptions import ActivationError
from timetable_engine.schemas.conflict import ConflictDetail
from timetable_engine.schemas.insights import CompletionSummary
from timetable_engine.schemas.timetable import ScheduleEntry, Timetable

DraftStrategy = Literal["new_version", "overwrite"]


class ExistingTimetableCheck(BaseModel):
    status: Literal["none", "active_exists"]
    existing: Timetable | None = None
    next_version: int = Field(ge=1, alias="nextVersion")

    model_config = ConfigDict(populate_by_name=True)


class DraftOutcome(BaseModel):
    timetable: Timetable
    replaced_draft_id: str | None = Field(default=None, alias="replacedDraftId")
    conflicts: list[ConflictDetail] = Field(default_factory=list)
    completion: CompletionSummary | None = None

    model_config = ConfigDict(populate_by_name=True)


class ActivationOutcome(BaseModel):
    timetable: Timetable
    deactivated: list[Timetable] = Field(default_factory=list)
    conflicts: list[ConflictDetail] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    completion: CompletionSummary | None = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def ok(self) -> bool:
        return not self.conflicts and not self.missing_fields

    def raise_for_errors(self) -> None:
        if self.ok:
            return
        problems: list[str] = []
        if self.missing_fields:
            problems.append(f"missing {', '.join(self.missing_fields)}")
        if self.conflicts:
            problems.append(f"{len(self.conflicts)} unresolved conflict(s)")
        raise ActivationError(
            f"Timetable cannot be activated: {'; '.join(problems)}",
            details={
                "missing_fields": list(self.missing_fields),
                "conflicts": [conflict.model_dump(by_alias=True) for conflict in self.conflicts],
                "completion": self.completion.model_dump(by_alias=True) if self.completion else None,
            },
        )


class CheckExistingRequest(BaseModel):
    class_ref: str = Field(min_length=1, max_length=64, alias="classId")
    academic_year: str = Field(min_length=1, max_length=20, alias="academicYear")
    academic_term: int = Field(ge=1, le=3, alias="academicTerm")
    timetables: list[Timetable] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class DraftRequest(BaseModel):
    timetable: Timetable
    timetables: list[Timetable] = Field(default_factory=list)
    # Entries of other classes to check teacher and room clashes against
    context: list[ScheduleEntry] = Field(default_factory=list)
    strategy: DraftStrategy = "new_version"
    teaching_days: int | None = Field(default=None, ge=1, le=7, alias="teachingDays")
    period_count: int | None = Field(default=None, ge=1, le=24, alias="periodCount")

    model_config = ConfigDict(populate_by_name=True)


class ActivationRequest(BaseModel):
    timetable: Timetable
    timetables: list[Timetable] = Field(default_factory=list)
    context: list[ScheduleEntry] = Field(default_factory=list)
    teaching_days: int | None = Field(default=None, ge=1, le=7, alias="teachingDays")
    period_count: int | None = Field(default=None, ge=1, le=24, alias="periodCount")
    activated_on: date | None = Field(default=None, alias="activatedOn")

    model_config = ConfigDict(populate_by_name=True)
