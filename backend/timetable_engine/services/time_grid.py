from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from timetable_engine.core.config import get_settings
from timetable_engine.core.exceptions import StructuralError
from timetable_engine.schemas.timetable import (
    RecessActivity,
    ScheduleEntry,
    SchoolDayStructure,
    TimeSlot,
    format_minutes,
    parse_time_to_minutes,
)

logger = logging.getLogger(__name__)


class SlotGrid(BaseModel):
    slots: list[TimeSlot] = Field(default_factory=list)
    recess_activities: list[RecessActivity] = Field(default_factory=list, alias="recessActivities")

    model_config = ConfigDict(populate_by_name=True)


def realize_breaks(structure: SchoolDayStructure) -> list[RecessActivity]:
    """Turn the enabled break definitions of a school day into recess activities."""
    enabled = sorted(
        (item for item in structure.breaks if item.enabled),
        key=lambda item: parse_time_to_minutes(item.time_start),
    )
    return [
        RecessActivity(
            id=f"break-{index}",
            description=item.label,
            time_start=item.time_start,
            time_end=item.time_end,
            activity_type=item.activity_type,
        )
        for index, item in enumerate(enabled)
    ]


def break_windows(breaks: Iterable[RecessActivity]) -> list[tuple[int, int]]:
    return sorted(
        (parse_time_to_minutes(item.time_start), parse_time_to_minutes(item.time_end)) for item in breaks
    )


def validate_breaks(breaks: Sequence[RecessActivity]) -> None:
    """Raise StructuralError for inverted or overlapping break windows."""
    for item in breaks:
        if parse_time_to_minutes(item.time_end) <= parse_time_to_minutes(item.time_start):
            raise StructuralError(
                f"Break {item.description} must end after it starts",
                details={"break_id": item.id},
            )

    ordered = sorted(breaks, key=lambda item: parse_time_to_minutes(item.time_start))
    for previous, current in zip(ordered, ordered[1:]):
        if parse_time_to_minutes(current.time_start) < parse_time_to_minutes(previous.time_end):
            raise StructuralError(
                f"Breaks {previous.description} and {current.description} overlap",
                details={"break_ids": [previous.id, current.id]},
            )


def _snap_after_period(period_end: int, windows: list[tuple[int, int]], tolerance: int) -> int:
    for break_start, break_end in windows:
        if period_end <= break_start <= period_end + tolerance:
            return break_end
        if break_start <= period_end < break_end:
            return break_end
    return period_end


def build_slots(
    structure: SchoolDayStructure,
    breaks: Sequence[RecessActivity],
    tolerance_minutes: int | None = None,
) -> list[TimeSlot]:
    """Generate the ordered teaching slots of one school day.

    Periods are laid back to back from ``structure.start_time``. When a
    period ends on (or within ``tolerance_minutes`` before) a break start, or
    inside a break, the clock jumps to the end of that break before the next
    period. A slot starting on a break start is the grid row for that break
    (see ``get_break_for_slot``). Raises StructuralError if the day is
    malformed or the periods do not fit before ``structure.end_time``.
    """
    if structure is None:
        raise TypeError("A school day structure is required")
    if tolerance_minutes is None:
        tolerance_minutes = get_settings().break_snap_tolerance_minutes

    if structure.period_duration_minutes <= 0:
        raise StructuralError(
            "Period duration must be positive",
            details={"period_duration_minutes": structure.period_duration_minutes},
        )
    if structure.period_count <= 0:
        raise StructuralError(
            "Number of periods must be positive",
            details={"period_count": structure.period_count},
        )

    day_start = parse_time_to_minutes(structure.start_time)
    day_end = parse_time_to_minutes(structure.end_time)
    if day_end <= day_start:
        raise StructuralError(
            "School end time must be after start time",
            details={"start_time": structure.start_time, "end_time": structure.end_time},
        )

    validate_breaks(breaks)
    windows = break_windows(breaks)
    period_minutes = structure.period_duration_minutes

    slots: list[TimeSlot] = []
    cursor = day_start
    for index in range(structure.period_count):
        period_end = cursor + period_minutes
        if period_end > day_end:
            logger.warning(
                "Period %d of %d would end at %s, after school end %s",
                index + 1,
                structure.period_count,
                format_minutes(period_end),
                structure.end_time,
            )
            raise StructuralError(
                f"Only {index} of {structure.period_count} periods fit before {structure.end_time}",
                details={
                    "periods_generated": index,
                    "period_count": structure.period_count,
                    "overflow_end": format_minutes(period_end),
                    "school_end": structure.end_time,
                },
            )
        slots.append(
            TimeSlot(
                time_start=format_minutes(cursor),
                time_end=format_minutes(period_end),
                period_number=index + 1,
            )
        )
        cursor = _snap_after_period(period_end, windows, tolerance_minutes)

    return slots


def build_day_grid(structure: SchoolDayStructure, tolerance_minutes: int | None = None) -> SlotGrid:
    recess_activities = realize_breaks(structure)
    slots = build_slots(structure, recess_activities, tolerance_minutes)
    return SlotGrid(slots=slots, recess_activities=recess_activities)


def get_break_for_slot(time_start: str, breaks: Iterable[RecessActivity]) -> RecessActivity | None:
    for item in breaks:
        if item.time_start == time_start:
            return item
    return None


def get_entry_for_slot(week_day: str, slot: TimeSlot, entries: Iterable[ScheduleEntry]) -> ScheduleEntry | None:
    for entry in entries:
        if entry.week_day == week_day and entry.time_start == slot.time_start and entry.time_end == slot.time_end:
            return entry
    return None
