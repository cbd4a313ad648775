from timetable_engine.core.config import get_settings


def test_health_endpoints(client):
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    payload = live.json()
    assert payload["status"] == "ok"
    assert payload["service"] == get_settings().project_name
    assert "timestamp" in payload
