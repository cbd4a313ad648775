from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from timetable_engine.core.config import Settings, get_settings
from timetable_engine.schemas.imports import ImportRequest, ImportResult, TemplateRequest
from timetable_engine.schemas.insights import CompletionRequest, CompletionSummary
from timetable_engine.schemas.timetable import SchoolDayStructure
from timetable_engine.schemas.version import (
    ActivationOutcome,
    ActivationRequest,
    CheckExistingRequest,
    DraftOutcome,
    DraftRequest,
    ExistingTimetableCheck,
)
from timetable_engine.services.completion import completion_summary
from timetable_engine.services.importer import build_import_template, parse_import_csv, reconcile
from timetable_engine.services.lifecycle import activate, check_existing, save_draft
from timetable_engine.services.time_grid import SlotGrid, build_day_grid, build_slots, realize_breaks

router = APIRouter()


@router.post("/slots", response_model=SlotGrid)
def generate_slots(structure: SchoolDayStructure) -> SlotGrid:
    return build_day_grid(structure)


@router.post("/completion", response_model=CompletionSummary)
def grid_completion(
    payload: CompletionRequest,
    settings: Settings = Depends(get_settings),
) -> CompletionSummary:
    teaching_days = payload.teaching_days or settings.teaching_days
    return completion_summary(payload.schedule, teaching_days, payload.period_count)


@router.post("/check-existing", response_model=ExistingTimetableCheck)
def existing_timetable(payload: CheckExistingRequest) -> ExistingTimetableCheck:
    return check_existing(payload.class_ref, payload.academic_year, payload.academic_term, payload.timetables)


@router.post("/drafts", response_model=DraftOutcome)
def save_timetable_draft(payload: DraftRequest) -> DraftOutcome:
    return save_draft(
        payload.timetable,
        payload.timetables,
        strategy=payload.strategy,
        teaching_days=payload.teaching_days,
        period_count=payload.period_count,
        context=payload.context,
    )


@router.post("/activate", response_model=ActivationOutcome)
def activate_timetable(payload: ActivationRequest) -> ActivationOutcome:
    outcome = activate(
        payload.timetable,
        payload.timetables,
        teaching_days=payload.teaching_days,
        period_count=payload.period_count,
        context=payload.context,
        activated_on=payload.activated_on,
    )
    outcome.raise_for_errors()
    return outcome


@router.post("/import", response_model=ImportResult)
def import_schedule(
    payload: ImportRequest,
    settings: Settings = Depends(get_settings),
) -> ImportResult:
    if payload.csv_text is not None:
        rows = parse_import_csv(payload.csv_text, max_rows=settings.max_import_rows)
    else:
        rows = payload.rows
    return reconcile(rows, payload.catalog, payload.existing, payload.slots, context=payload.context)


@router.post("/import/template", response_class=PlainTextResponse)
def import_template(payload: TemplateRequest) -> PlainTextResponse:
    recess_activities = payload.recess_activities
    if recess_activities is None:
        recess_activities = realize_breaks(payload.structure)
    slots = build_slots(payload.structure, recess_activities)
    content = build_import_template(slots, recess_activities, payload.teaching_days)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="timetable_template.csv"'},
    )
