from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from timetable_engine.core.exceptions import ConflictError, StructuralError
from timetable_engine.schemas.conflict import ConflictDetail
from timetable_engine.schemas.timetable import ScheduleEntry
from timetable_engine.services.conflict_service import check_conflicts


def duplicate_slot_conflict(candidate: ScheduleEntry, occupant: ScheduleEntry) -> ConflictDetail:
    return ConflictDetail(
        id=f"slot-{candidate.id}-{occupant.id}",
        conflict_type="duplicate_slot",
        description=f"{candidate.week_day} {candidate.time_start} is already assigned to {occupant.subject.name}",
        week_day=candidate.week_day,
        time_start=candidate.time_start,
        affected_entries=[candidate.id, occupant.id],
    )


class AssignmentStore:
    """Immutable set of schedule entries holding at most one entry per (weekday, start time)."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ScheduleEntry] = ()):
        self._entries: tuple[ScheduleEntry, ...] = tuple(entries)

    @classmethod
    def from_entries(cls, entries: Iterable[ScheduleEntry]) -> AssignmentStore:
        """Build a store from one snapshot.

        Raises StructuralError if two entries share a slot or an id.
        """
        occupied: dict[tuple[str, str], ScheduleEntry] = {}
        seen_ids: set[str] = set()
        kept: list[ScheduleEntry] = []
        for entry in entries:
            if entry.id in seen_ids:
                raise StructuralError(
                    f"Entry id {entry.id} appears more than once",
                    details={"entry_ids": [entry.id]},
                )
            occupant = occupied.get(entry.slot_key)
            if occupant is not None:
                raise StructuralError(
                    f"Duplicate entries for {entry.week_day} {entry.time_start}",
                    details={"entry_ids": [occupant.id, entry.id]},
                )
            seen_ids.add(entry.id)
            occupied[entry.slot_key] = entry
            kept.append(entry)
        return cls(kept)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssignmentStore):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"AssignmentStore({len(self._entries)} entries)"

    def all(self) -> list[ScheduleEntry]:
        return list(self._entries)

    def get(self, week_day: str, time_start: str) -> ScheduleEntry | None:
        for entry in self._entries:
            if entry.week_day == week_day and entry.time_start == time_start:
                return entry
        return None

    def get_by_id(self, entry_id: str) -> ScheduleEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def upsert(
        self,
        entry: ScheduleEntry,
        *,
        enforce_conflicts: bool = True,
        context: Iterable[ScheduleEntry] = (),
    ) -> StoreOutcome:
        """Insert or replace ``entry``.

        ``context`` holds entries of other timetables (other classes) the
        caller wants teacher and room clashes checked against.
        """
        occupant = self.get(entry.week_day, entry.time_start)
        if occupant is not None and occupant.id != entry.id:
            return StoreOutcome(store=self, errors=[duplicate_slot_conflict(entry, occupant)])

        if enforce_conflicts:
            others = [item for item in self._entries if item.id != entry.id]
            conflicts = check_conflicts(entry, [*others, *context])
            if conflicts:
                return StoreOutcome(store=self, errors=conflicts)

        if self.get_by_id(entry.id) is not None:
            # Update in place so the entry keeps its position in the grid listing.
            updated = tuple(entry if item.id == entry.id else item for item in self._entries)
        else:
            updated = self._entries + (entry,)
        return StoreOutcome(store=AssignmentStore(updated), entry=entry)

    def remove(self, entry_id: str) -> AssignmentStore:
        if self.get_by_id(entry_id) is None:
            return self
        return AssignmentStore(item for item in self._entries if item.id != entry_id)


class StoreOutcome(BaseModel):
    store: AssignmentStore
    entry: ScheduleEntry | None = None
    errors: list[ConflictDetail] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.ok:
            return
        details = {"conflicts": [error.model_dump(by_alias=True) for error in self.errors]}
        first = self.errors[0]
        if first.conflict_type == "duplicate_slot":
            raise StructuralError(first.description, details=details)
        raise ConflictError(first.description, details=details)
