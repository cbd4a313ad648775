import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.

from timetable_engine.main import app
from timetable_engine.schemas.timetable import (
    ScheduleEntry,
    SchoolDayStructure,
    SubjectRef,
    TeacherRef,
    Timetable,
)


@pytest.fixture() #test client
def client():
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def subjects():
    return {
        "math": SubjectRef(id="sub-math", name="Mathematics", code="MTH"),
        "english": SubjectRef(id="sub-eng", name="English"),
        "science": SubjectRef(id="sub-sci", name="Science"),
        "ict": SubjectRef(id="sub-ict", name="ICT"),
    }


@pytest.fixture()
def teachers():
    return {
        "doe": TeacherRef(id="t-doe", first_name="John", last_name="Doe"),
        "smith": TeacherRef(id="t-smith", first_name="Jane", last_name="Smith"),
        "mensah": TeacherRef(id="t-mensah", first_name="Kofi", last_name="Mensah"),
    }


@pytest.fixture()
def make_entry(subjects, teachers):
    def _make(entry_id, day="Monday", start="08:00", end="08:40", subject="math", teacher=None, room=None):
        return ScheduleEntry(
            id=entry_id,
            week_day=day,
            subject=subjects[subject],
            teacher=teachers[teacher] if teacher else None,
            time_start=start,
            time_end=end,
            room=room,
        )

    return _make


@pytest.fixture()
def school_day():
    # 07:30 start, 40 minute periods, mid-morning break and lunch enabled
    return SchoolDayStructure(
        start_time="07:30",
        end_time="15:30",
        period_duration_minutes=40,
        period_count=8,
        breaks=[
            {"description": "Mid-Morning Break", "timeStart": "10:10", "timeEnd": "10:30", "activityType": "break"},
            {"description": "Lunch Break", "timeStart": "12:30", "timeEnd": "13:15", "activityType": "lunch"},
        ],
    )


@pytest.fixture()
def make_timetable():
    def _make(timetable_id=None, schedule=(), version=1, is_active=False, class_ref="class-5a", **overrides):
        values = {
            "id": timetable_id,
            "class_ref": class_ref,
            "site_ref": "site-main",
            "school_ref": "school-1",
            "academic_year": "2026/2027",
            "academic_term": 1,
            "schedule": list(schedule),
            "version": version,
            "is_active": is_active,
        }
        values.update(overrides)
        return Timetable(**values)

    return _make
