from fastapi import APIRouter

from timetable_engine.schemas.conflict import (
    ConflictCheckRequest,
    ConflictDetectRequest,
    ConflictReport,
)
from timetable_engine.services.conflict_service import ConflictService, check_conflicts

router = APIRouter()


@router.post("/check", response_model=ConflictReport)
def check_candidate(payload: ConflictCheckRequest):
    return ConflictReport(conflicts=check_conflicts(payload.candidate, payload.existing))


@router.post("/detect", response_model=ConflictReport)
def detect_conflicts(payload: ConflictDetectRequest):
    # Entries from several timetables may be merged here for cross-class checks.
    service = ConflictService(payload.entries)
    return service.detect_conflicts()
