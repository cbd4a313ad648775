"""Draft/Active lifecycle of timetable versions.

Persistence belongs to the caller: every operation receives the sibling
timetables it needs as a snapshot and returns new values, including the
records it deactivated, for the caller to store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date

from timetable_engine.core.config import get_settings
from timetable_engine.core.exceptions import SetupIncompleteError, TimetableLockedError
from timetable_engine.schemas.conflict import ConflictDetail
from timetable_engine.schemas.insights import CompletionSummary
from timetable_engine.schemas.timetable import ScheduleEntry, Timetable
from timetable_engine.schemas.version import (
    ActivationOutcome,
    DraftOutcome,
    DraftStrategy,
    ExistingTimetableCheck,
)
from timetable_engine.services.assignment_store import AssignmentStore
from timetable_engine.services.completion import completion_summary
from timetable_engine.services.conflict_service import ConflictService, check_conflicts
from timetable_engine.services.time_grid import validate_breaks

logger = logging.getLogger(__name__)

TimetableKey = tuple[str | None, str | None, int]

REQUIRED_SETUP_FIELDS: tuple[tuple[str, str], ...] = (
    ("class", "class_ref"),
    ("site", "site_ref"),
    ("academicYear", "academic_year"),
)


def missing_setup_fields(timetable: Timetable) -> list[str]:
    return [label for label, attribute in REQUIRED_SETUP_FIELDS if not getattr(timetable, attribute)]


def validate_structure(timetable: Timetable) -> None:
    """Raise StructuralError for duplicate slots or malformed breaks."""
    AssignmentStore.from_entries(timetable.schedule)
    validate_breaks(timetable.recess_activities)


def versions_for_key(key: TimetableKey, timetables: Sequence[Timetable]) -> list[Timetable]:
    return [item for item in timetables if item.key == key]


def next_version(key: TimetableKey, timetables: Sequence[Timetable]) -> int:
    versions = [item.version for item in versions_for_key(key, timetables)]
    return max(versions) + 1 if versions else 1


def check_existing(
    class_ref: str,
    academic_year: str,
    academic_term: int,
    timetables: Sequence[Timetable],
) -> ExistingTimetableCheck:
    key = (class_ref, academic_year, academic_term)
    active = [item for item in versions_for_key(key, timetables) if item.is_active]
    if not active:
        return ExistingTimetableCheck(status="none", next_version=next_version(key, timetables))
    current = max(active, key=lambda item: item.version)
    return ExistingTimetableCheck(
        status="active_exists",
        existing=current,
        next_version=next_version(key, timetables),
    )


def _completion(
    timetable: Timetable,
    teaching_days: int | None,
    period_count: int | None,
) -> CompletionSummary | None:
    if period_count is None:
        return None
    if teaching_days is None:
        teaching_days = get_settings().teaching_days
    return completion_summary(timetable.schedule, teaching_days, period_count)


def find_conflicts(timetable: Timetable, context: Sequence[ScheduleEntry] = ()) -> list[ConflictDetail]:
    """Conflicts among the timetable's own entries and against ``context``.

    ``context`` is the caller's merge of other classes' entries. Clashes that
    only involve ``context`` entries are not reported.
    """
    conflicts = ConflictService(timetable.schedule).detect_conflicts().conflicts
    for entry in timetable.schedule:
        conflicts.extend(check_conflicts(entry, context))
    return conflicts


def _find_by_id(timetable_id: str | None, timetables: Sequence[Timetable]) -> Timetable | None:
    if timetable_id is None:
        return None
    for item in timetables:
        if item.id == timetable_id:
            return item
    return None


def save_draft(
    timetable: Timetable,
    timetables: Sequence[Timetable] = (),
    *,
    strategy: DraftStrategy = "new_version",
    teaching_days: int | None = None,
    period_count: int | None = None,
    context: Sequence[ScheduleEntry] = (),
) -> DraftOutcome:
    """Validate and stamp a Draft.

    Incomplete grids and conflicts are tolerated and reported. Missing setup
    fields, duplicate slots and malformed breaks raise. A draft that already
    exists in ``timetables`` keeps its id and version; otherwise ``strategy``
    decides between replacing the latest draft for the same class and term
    (``overwrite``) and starting a new version.
    """
    missing = missing_setup_fields(timetable)
    if missing:
        raise SetupIncompleteError(missing)
    validate_structure(timetable)

    replaced_draft_id: str | None = None
    current = _find_by_id(timetable.id, timetables)
    if current is not None and current.is_active:
        raise TimetableLockedError(current.id, current.version)

    if current is not None:
        timetable_id, version = current.id, current.version
    else:
        drafts = [item for item in versions_for_key(timetable.key, timetables) if not item.is_active]
        if strategy == "overwrite" and drafts:
            target = max(drafts, key=lambda item: item.version)
            timetable_id, version = target.id, target.version
            replaced_draft_id = target.id
        else:
            timetable_id = timetable.id or str(uuid.uuid4())
            version = next_version(timetable.key, timetables)

    draft = timetable.model_copy(update={"id": timetable_id, "version": version, "is_active": False})
    conflicts = find_conflicts(draft, context)
    logger.info(
        "Saved draft %s (version %d) for class %s with %d entries and %d conflict(s)",
        draft.id,
        draft.version,
        draft.class_ref,
        len(draft.schedule),
        len(conflicts),
    )
    return DraftOutcome(
        timetable=draft,
        replaced_draft_id=replaced_draft_id,
        conflicts=conflicts,
        completion=_completion(draft, teaching_days, period_count),
    )


def branch_draft(active: Timetable, timetables: Sequence[Timetable]) -> Timetable:
    """Start a new Draft version from an Active timetable."""
    return active.model_copy(
        update={
            "id": str(uuid.uuid4()),
            "version": next_version(active.key, timetables),
            "is_active": False,
            "effective_to": None,
            "version_note": None,
        }
    )


def activate(
    timetable: Timetable,
    timetables: Sequence[Timetable] = (),
    *,
    teaching_days: int | None = None,
    period_count: int | None = None,
    activated_on: date | None = None,
    context: Sequence[ScheduleEntry] = (),
) -> ActivationOutcome:
    """Make ``timetable`` the single Active version for its class and term.

    Conflicts and missing setup fields block activation; the returned outcome
    then carries the untouched input. Completion is advisory only. On success
    every other Active timetable for the same key is returned deactivated.
    """
    validate_structure(timetable)
    summary = _completion(timetable, teaching_days, period_count)
    current = _find_by_id(timetable.id, timetables)
    if current is not None and current.is_active:
        if current.model_copy(update={"is_active": timetable.is_active}) != timetable:
            raise TimetableLockedError(current.id, current.version)
        return ActivationOutcome(timetable=current, completion=summary)

    missing = missing_setup_fields(timetable)
    conflicts = find_conflicts(timetable, context)
    if missing or conflicts:
        logger.warning(
            "Activation of timetable %s rejected: missing=%s conflicts=%d",
            timetable.id,
            missing,
            len(conflicts),
        )
        return ActivationOutcome(
            timetable=timetable,
            conflicts=conflicts,
            missing_fields=missing,
            completion=summary,
        )

    if current is not None:
        timetable_id, version = current.id, current.version
    else:
        timetable_id = timetable.id or str(uuid.uuid4())
        version = next_version(timetable.key, timetables)

    activated_on = activated_on or date.today()
    activated = timetable.model_copy(update={"id": timetable_id, "version": version, "is_active": True})
    deactivated = [
        item.model_copy(update={"is_active": False, "effective_to": activated_on})
        for item in versions_for_key(timetable.key, timetables)
        if item.is_active and item.id != activated.id
    ]
    logger.info(
        "Activated timetable %s (version %d) for class %s; deactivated %d previous version(s)",
        activated.id,
        activated.version,
        activated.class_ref,
        len(deactivated),
    )
    return ActivationOutcome(timetable=activated, deactivated=deactivated, completion=summary)
