from __future__ import annotations

import math
from collections.abc import Sized

from timetable_engine.schemas.insights import CompletionLevel, CompletionSummary


def completion(schedule: Sized, teaching_days: int, period_count: int) -> int:
    """Percentage (0-100, rounded half up) of grid slots that hold an entry."""
    total = teaching_days * period_count
    if total <= 0:
        return 0
    percentage = math.floor(100 * len(schedule) / total + 0.5)
    return max(0, min(100, percentage))


def completion_level(percentage: int) -> CompletionLevel:
    if percentage < 50:
        return "low"
    if percentage < 80:
        return "partial"
    return "good"


def completion_summary(schedule: Sized, teaching_days: int, period_count: int) -> CompletionSummary:
    percentage = completion(schedule, teaching_days, period_count)
    return CompletionSummary(
        filled_slots=len(schedule),
        total_slots=max(0, teaching_days * period_count),
        percentage=percentage,
        is_complete=percentage == 100,
        level=completion_level(percentage),
    )
