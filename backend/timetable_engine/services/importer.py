from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable, Sequence

from pydantic import ValidationError

from timetable_engine.core.exceptions import StructuralError
from timetable_engine.schemas.imports import (
    IMPORT_COLUMNS,
    ImportCatalog,
    ImportErrorKind,
    ImportResult,
    ImportRowError,
    RawImportRow,
)
from timetable_engine.schemas.timetable import (
    DEFAULT_TEACHING_DAYS,
    WEEKDAYS,
    TIME_PATTERN,
    RecessActivity,
    ScheduleEntry,
    SubjectRef,
    TeacherRef,
    TimeSlot,
    parse_time_to_minutes,
)
from timetable_engine.services.assignment_store import duplicate_slot_conflict
from timetable_engine.services.conflict_service import check_conflicts
from timetable_engine.services.time_grid import get_break_for_slot

logger = logging.getLogger(__name__)

SHORT_HOUR_PATTERN = re.compile(r"^\d:[0-5]\d$")
DAY_LOOKUP = {day.lower(): day for day in WEEKDAYS}

TEMPLATE_PREAMBLE = (
    "# Timetable Import Template",
    "# Fill in the rows below with your timetable data",
    "# Do not modify the header row",
    "# Leave TeacherFirstName, TeacherLastName, Room, and Notes blank if not applicable",
)


def parse_import_csv(text: str, max_rows: int | None = None) -> list[RawImportRow]:
    """Split CSV text into raw rows.

    Blank lines and lines starting with ``#`` are ignored and the first
    remaining line is the header. Rows keep their physical line numbers.
    """
    numbered = [
        (number, line)
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip() and not line.lstrip().startswith("#")
    ]
    data_lines = numbered[1:]
    if max_rows is not None and len(data_lines) > max_rows:
        raise StructuralError(
            f"Import has {len(data_lines)} rows; at most {max_rows} are allowed",
            details={"rows": len(data_lines), "max_rows": max_rows},
        )

    rows: list[RawImportRow] = []
    for number, line in data_lines:
        values = next(csv.reader([line]))
        values += [""] * (len(IMPORT_COLUMNS) - len(values))
        day, time_start, time_end, subject_name, first_name, last_name, room, notes = values[: len(IMPORT_COLUMNS)]
        rows.append(
            RawImportRow(
                line_number=number,
                day=day,
                time_start=time_start,
                time_end=time_end,
                subject_name=subject_name,
                teacher_first_name=first_name,
                teacher_last_name=last_name,
                room=room,
                notes=notes,
            )
        )
    return rows


def _normalize_time(value: str) -> str | None:
    if SHORT_HOUR_PATTERN.match(value):
        value = f"0{value}"
    if not TIME_PATTERN.match(value):
        return None
    return value


def _is_blank_template_row(row: RawImportRow) -> bool:
    if not (row.day and row.time_start and row.time_end):
        return True
    return not any((row.subject_name, row.teacher_first_name, row.teacher_last_name, row.room, row.notes))


def _row_error(row: RawImportRow, kind: ImportErrorKind, message: str, conflicts=None) -> ImportRowError:
    return ImportRowError(
        line_number=row.line_number,
        kind=kind,
        message=f"Line {row.line_number}: {message}",
        conflicts=conflicts or [],
    )


class _Catalog:
    def __init__(self, catalog: ImportCatalog):
        self.subjects: dict[str, SubjectRef] = {}
        for subject in catalog.subjects:
            self.subjects.setdefault(subject.name.strip().lower(), subject)
        self.teachers: dict[tuple[str, str], TeacherRef] = {}
        for teacher in catalog.teachers:
            key = (teacher.first_name.strip().lower(), teacher.last_name.strip().lower())
            self.teachers.setdefault(key, teacher)

    def subject(self, name: str) -> SubjectRef | None:
        return self.subjects.get(name.strip().lower())

    def teacher(self, first_name: str, last_name: str) -> TeacherRef | None:
        return self.teachers.get((first_name.strip().lower(), last_name.strip().lower()))


def _reconcile_row(
    row: RawImportRow,
    catalog: _Catalog,
    pool: list[ScheduleEntry],
    slot_numbers: dict[str, int],
    context: Sequence[ScheduleEntry],
) -> ScheduleEntry | ImportRowError:
    day = DAY_LOOKUP.get(row.day.lower())
    if day is None:
        return _row_error(row, "invalid_day", f'Invalid day "{row.day}"')

    time_start = _normalize_time(row.time_start)
    time_end = _normalize_time(row.time_end)
    if time_start is None or time_end is None:
        return _row_error(row, "invalid_time", f'Invalid time "{row.time_start}-{row.time_end}"')
    if parse_time_to_minutes(time_end) <= parse_time_to_minutes(time_start):
        return _row_error(row, "invalid_time", f"End time {time_end} must be after start time {time_start}")

    if not row.subject_name:
        return _row_error(row, "unknown_subject", "Subject is required")
    subject = catalog.subject(row.subject_name)
    if subject is None:
        return _row_error(row, "unknown_subject", f'Subject "{row.subject_name}" not found')

    teacher = None
    if row.teacher_first_name or row.teacher_last_name:
        teacher = catalog.teacher(row.teacher_first_name, row.teacher_last_name)
        if teacher is None:
            name = f"{row.teacher_first_name} {row.teacher_last_name}".strip()
            return _row_error(row, "unknown_teacher", f'Teacher "{name}" not found')

    try:
        candidate = ScheduleEntry(
            week_day=day,
            subject=subject,
            teacher=teacher,
            time_start=time_start,
            time_end=time_end,
            room=row.room or None,
            period_number=slot_numbers.get(time_start),
            notes=row.notes or None,
        )
    except ValidationError as exc:
        return _row_error(row, "invalid_row", exc.errors()[0]["msg"])

    for occupant in pool:
        if occupant.slot_key == candidate.slot_key:
            clash = duplicate_slot_conflict(candidate, occupant)
            return _row_error(row, "duplicate_slot", clash.description, [clash])

    conflicts = check_conflicts(candidate, [*pool, *context])
    if conflicts:
        return _row_error(row, "conflict", conflicts[0].description, conflicts)
    return candidate


def reconcile(
    rows: Iterable[RawImportRow],
    catalog: ImportCatalog,
    existing: Sequence[ScheduleEntry] = (),
    slots: Sequence[TimeSlot] | None = None,
    *,
    context: Sequence[ScheduleEntry] = (),
) -> ImportResult:
    """Resolve raw rows into schedule entries.

    Every row is checked against ``existing`` and against the rows accepted
    before it, so two rows of one file never share a slot. Teacher and room
    clashes are also checked against ``context``, the entries of other
    classes. A bad row is recorded in the error ledger and never stops the
    batch.
    """
    lookup = _Catalog(catalog)
    slot_numbers = {slot.time_start: slot.period_number for slot in slots or ()}
    pool = list(existing)
    result = ImportResult()

    for row in rows:
        if _is_blank_template_row(row):
            result.skipped += 1
            continue
        outcome = _reconcile_row(row, lookup, pool, slot_numbers, context)
        if isinstance(outcome, ImportRowError):
            logger.debug("Import row rejected: %s", outcome.message)
            result.errors.append(outcome)
            continue
        pool.append(outcome)
        result.accepted.append(outcome)

    logger.info(
        "Import reconciled: %d accepted, %d rejected, %d blank",
        len(result.accepted),
        len(result.errors),
        result.skipped,
    )
    return result


def build_import_template(
    slots: Sequence[TimeSlot],
    recess_activities: Sequence[RecessActivity] = (),
    teaching_days: Sequence[str] = DEFAULT_TEACHING_DAYS,
) -> str:
    """CSV template with one blank row per teaching day and slot."""
    buffer = io.StringIO()
    buffer.write("\n".join(TEMPLATE_PREAMBLE))
    buffer.write("\n\n")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(IMPORT_COLUMNS)
    for day in teaching_days:
        for slot in slots:
            if get_break_for_slot(slot.time_start, recess_activities) is not None:
                continue
            writer.writerow([day, slot.time_start, slot.time_end, "", "", "", "", ""])
    return buffer.getvalue()
