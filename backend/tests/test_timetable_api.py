import pytest

from timetable_engine.core.config import get_settings

SCHOOL_DAY = {
    "schoolStartTime": "07:30",
    "schoolEndTime": "15:30",
    "periodDuration": 40,
    "numberOfPeriods": 8,
    "breaks": [
        {"description": "Mid-Morning Break", "timeStart": "10:10", "timeEnd": "10:30", "activityType": "break"},
        {"description": "Lunch Break", "timeStart": "12:30", "timeEnd": "13:15", "activityType": "lunch"},
    ],
}

MATH = {"id": "sub-math", "name": "Mathematics"}
DOE = {"id": "t-doe", "firstName": "John", "lastName": "Doe"}


def entry_payload(entry_id, day="Monday", start="08:00", end="08:40", teacher=DOE, room=None):
    return {
        "id": entry_id,
        "weekDay": day,
        "subject": MATH,
        "teacher": teacher,
        "timeStart": start,
        "timeEnd": end,
        "room": room,
    }


def timetable_payload(timetable_id=None, schedule=(), version=1, is_active=False, **overrides):
    payload = {
        "id": timetable_id,
        "class": "class-5a",
        "site": "site-main",
        "school": "school-1",
        "academicYear": "2026/2027",
        "academicTerm": 1,
        "schedule": list(schedule),
        "version": version,
        "isActive": is_active,
    }
    payload.update(overrides)
    return payload


def test_generate_slots(client):
    response = client.post("/api/timetable/slots", json=SCHOOL_DAY)

    assert response.status_code == 200
    body = response.json()
    assert [slot["timeStart"] for slot in body["slots"]][-2:] == ["11:50", "13:15"]
    assert [item["id"] for item in body["recessActivities"]] == ["break-0", "break-1"]


def test_generate_slots_rejects_bad_time(client):
    response = client.post("/api/timetable/slots", json={**SCHOOL_DAY, "schoolStartTime": "7.30"})

    assert response.status_code == 422


def test_completion_uses_configured_teaching_days(client):
    schedule = [entry_payload(f"e{i}", start=f"{8 + i:02d}:00", end=f"{8 + i:02d}:40") for i in range(6)]

    response = client.post("/api/timetable/completion", json={"schedule": schedule, "periodCount": 8})

    assert response.status_code == 200
    body = response.json()
    assert body["totalSlots"] == get_settings().teaching_days * 8
    assert body["filledSlots"] == 6


def test_check_existing(client):
    response = client.post(
        "/api/timetable/check-existing",
        json={
            "classId": "class-5a",
            "academicYear": "2026/2027",
            "academicTerm": 1,
            "timetables": [timetable_payload("tt-1", is_active=True)],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "active_exists"
    assert body["existing"]["id"] == "tt-1"
    assert body["nextVersion"] == 2


def test_save_draft_reports_conflicts_without_blocking(client):
    response = client.post(
        "/api/timetable/drafts",
        json={
            "timetable": timetable_payload(schedule=[entry_payload("e1")]),
            "context": [entry_payload("5b-1")],
            "periodCount": 8,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["timetable"]["isActive"] is False
    assert body["timetable"]["version"] == 1
    assert body["conflicts"][0]["conflictType"] == "teacher_conflict"
    assert body["completion"]["filledSlots"] == 1


def test_save_draft_without_setup_fields_is_rejected(client):
    response = client.post("/api/timetable/drafts", json={"timetable": timetable_payload(site=None)})

    assert response.status_code == 400
    assert response.json()["details"]["missing_fields"] == ["site"]


def test_save_draft_with_duplicate_slot_is_rejected(client):
    schedule = [entry_payload("e1", teacher=None), entry_payload("e2", teacher=None)]

    response = client.post("/api/timetable/drafts", json={"timetable": timetable_payload(schedule=schedule)})

    assert response.status_code == 400
    assert response.json()["details"]["entry_ids"] == ["e1", "e2"]


def test_activate_deactivates_previous_version(client):
    response = client.post(
        "/api/timetable/activate",
        json={
            "timetable": timetable_payload("tt-2", schedule=[entry_payload("e1")], version=2),
            "timetables": [timetable_payload("tt-1", is_active=True)],
            "activatedOn": "2027-01-10",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["timetable"]["isActive"] is True
    assert body["deactivated"][0]["id"] == "tt-1"
    assert body["deactivated"][0]["isActive"] is False
    assert body["deactivated"][0]["effectiveTo"] == "2027-01-10"


def test_activate_with_conflicts_returns_409(client):
    response = client.post(
        "/api/timetable/activate",
        json={
            "timetable": timetable_payload("tt-2", schedule=[entry_payload("e1", room="Room 101")]),
            "context": [entry_payload("5b-1", teacher=None, room="Room 101")],
        },
    )

    assert response.status_code == 409
    body = response.json()
    assert body["details"]["conflicts"][0]["conflictType"] == "room_conflict"
    assert body["details"]["missing_fields"] == []


def test_activate_locked_timetable_returns_409(client):
    response = client.post(
        "/api/timetable/activate",
        json={
            "timetable": timetable_payload("tt-1", schedule=[entry_payload("e1")]),
            "timetables": [timetable_payload("tt-1", is_active=True)],
        },
    )

    assert response.status_code == 409
    assert response.json()["details"] == {"timetable_id": "tt-1", "version": 1}


def test_import_csv_text(client):
    csv_text = "\n".join(
        [
            "# Timetable Import Template",
            "Day,TimeStart,TimeEnd,SubjectName,TeacherFirstName,TeacherLastName,Room,Notes",
            "Monday,08:00,08:40,Mathematics,John,Doe,Room 101,",
            "Tuesday,08:00,08:40,Mathematics,Ama,Owusu,,",
            "Wednesday,08:00,08:40,,,,,",
        ]
    )

    response = client.post(
        "/api/timetable/import",
        json={"csvText": csv_text, "catalog": {"subjects": [MATH], "teachers": [DOE]}},
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body["accepted"]) == 1
    assert body["accepted"][0]["teacher"]["id"] == "t-doe"
    assert body["errors"][0]["lineNumber"] == 4
    assert body["errors"][0]["kind"] == "unknown_teacher"
    assert body["skipped"] == 1


def test_import_rows(client):
    response = client.post(
        "/api/timetable/import",
        json={
            "rows": [{"lineNumber": 2, "day": "Friday", "timeStart": "09:00", "timeEnd": "09:40", "subjectName": "mathematics"}],
            "catalog": {"subjects": [MATH]},
        },
    )

    assert response.status_code == 200
    assert response.json()["accepted"][0]["weekDay"] == "Friday"


@pytest.mark.parametrize(
    "payload",
    [
        {"catalog": {}},
        {"csvText": "Day\n", "rows": []},
    ],
)
def test_import_requires_exactly_one_source(client, payload):
    response = client.post("/api/timetable/import", json=payload)

    assert response.status_code == 422


def test_import_template_download(client):
    response = client.post(
        "/api/timetable/import/template",
        json={"structure": SCHOOL_DAY, "teachingDays": ["Monday"]},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "timetable_template.csv" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert "Day,TimeStart,TimeEnd,SubjectName,TeacherFirstName,TeacherLastName,Room,Notes" in lines
    assert lines[-1] == "Monday,13:15,13:55,,,,,"


def test_import_template_rejects_unknown_day(client):
    response = client.post(
        "/api/timetable/import/template",
        json={"structure": SCHOOL_DAY, "teachingDays": ["Caturday"]},
    )

    assert response.status_code == 422


def test_conflict_check_endpoint(client):
    response = client.post(
        "/api/conflicts/check",
        json={"candidate": entry_payload("e1", room="Lab 1"), "existing": [entry_payload("e2", room="Lab 1")]},
    )

    assert response.status_code == 200
    kinds = [conflict["conflictType"] for conflict in response.json()["conflicts"]]
    assert kinds == ["teacher_conflict", "room_conflict"]


def test_conflict_detect_endpoint(client):
    entries = [
        entry_payload("5a-1"),
        entry_payload("5b-1"),
        entry_payload("5c-1", start="08:40", end="09:20"),
    ]

    response = client.post("/api/conflicts/detect", json={"entries": entries})

    assert response.status_code == 200
    conflicts = response.json()["conflicts"]
    assert len(conflicts) == 1
    assert sorted(conflicts[0]["affectedEntries"]) == ["5a-1", "5b-1"]


def test_oversized_request_is_rejected(client):
    limit = get_settings().max_request_size_bytes

    response = client.post(
        "/api/timetable/import",
        content=b"x" * (limit + 1),
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json()["details"]["max_bytes"] == limit
