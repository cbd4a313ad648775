from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from timetable_engine.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.project_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
