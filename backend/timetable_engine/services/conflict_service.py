from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from timetable_engine.schemas.conflict import ConflictDetail, ConflictReport
from timetable_engine.schemas.timetable import ScheduleEntry


def _room_key(entry: ScheduleEntry) -> str | None:
    if entry.room is None:
        return None
    return entry.room.strip() or None


def _shares_teacher(first: ScheduleEntry, second: ScheduleEntry) -> bool:
    return first.teacher is not None and second.teacher is not None and first.teacher.id == second.teacher.id


def _shares_room(first: ScheduleEntry, second: ScheduleEntry) -> bool:
    room = _room_key(first)
    return room is not None and room == _room_key(second)


def _teacher_conflict(candidate: ScheduleEntry, other: ScheduleEntry) -> ConflictDetail:
    return ConflictDetail(
        id=f"teacher-{candidate.id}-{other.id}",
        conflict_type="teacher_conflict",
        description=f"{candidate.teacher.display_name} is already teaching another class at this time",
        week_day=candidate.week_day,
        time_start=candidate.time_start,
        affected_entries=[candidate.id, other.id],
    )


def _room_conflict(candidate: ScheduleEntry, other: ScheduleEntry) -> ConflictDetail:
    return ConflictDetail(
        id=f"room-{candidate.id}-{other.id}",
        conflict_type="room_conflict",
        description=f"Room {_room_key(candidate)} is already occupied at this time",
        week_day=candidate.week_day,
        time_start=candidate.time_start,
        affected_entries=[candidate.id, other.id],
    )


def check_conflicts(candidate: ScheduleEntry, existing: Iterable[ScheduleEntry]) -> List[ConflictDetail]:
    """Return the teacher and room double-bookings ``candidate`` would create.

    Only entries with a different id on the same weekday and start time are
    compared. Subjects are never compared. At most one conflict per resource
    is reported.
    """
    teacher_clash: ScheduleEntry | None = None
    room_clash: ScheduleEntry | None = None
    for other in existing:
        if other.id == candidate.id or other.slot_key != candidate.slot_key:
            continue
        if teacher_clash is None and _shares_teacher(candidate, other):
            teacher_clash = other
        if room_clash is None and _shares_room(candidate, other):
            room_clash = other

    conflicts: List[ConflictDetail] = []
    if teacher_clash is not None:
        conflicts.append(_teacher_conflict(candidate, teacher_clash))
    if room_clash is not None:
        conflicts.append(_room_conflict(candidate, room_clash))
    return conflicts


class ConflictService:
    """Pairwise conflict detection over a full entry set.

    Callers that need cross-class checks merge the entries of several
    timetables before building the service.
    """

    def __init__(self, entries: Sequence[ScheduleEntry]):
        self.entries: List[ScheduleEntry] = list(entries)

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        slots: Dict[Tuple[str, str], List[ScheduleEntry]] = defaultdict(list)
        for entry in self.entries:
            slots[entry.slot_key].append(entry)

        for slot_entries in slots.values():
            n = len(slot_entries)
            for i in range(n):
                first = slot_entries[i]
                for j in range(i + 1, n):
                    second = slot_entries[j]
                    if first.id == second.id:
                        continue
                    if _shares_teacher(first, second):
                        conflicts.append(_teacher_conflict(first, second))
                    if _shares_room(first, second):
                        conflicts.append(_room_conflict(first, second))

        return ConflictReport(conflicts=conflicts)

    def check(self, candidate: ScheduleEntry) -> List[ConflictDetail]:
        return check_conflicts(candidate, self.entries)
