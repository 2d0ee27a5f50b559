from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import JSONResponse

from classgrid.core.middleware import RequestSizeLimitMiddleware
from classgrid.services.kv_store import SqlKeyValueStore


def test_health_live(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"


def test_ready_reports_dataset_versions(seeded_client):
    ready = seeded_client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["missing"] == []
    assert payload["datasets"]["timetable"] == {"ok": True, "version": 0, "entries": 0}

    seeded_client.post(
        "/api/timetable/entries",
        json={"classId": "10-A", "day": "Monday", "periodId": 1, "subjectId": "MATH", "teacherId": "T1"},
    )
    seeded_client.post("/api/timetable/templates/10-A")

    datasets = seeded_client.get("/api/health/ready").json()["datasets"]
    assert datasets["timetable"]["version"] == 1
    assert datasets["timetable"]["entries"] == 1
    assert datasets["schedule_templates"]["templates"] == 1


def test_ready_is_degraded_when_timetable_is_corrupt(client, session_factory):
    with session_factory() as db:
        SqlKeyValueStore(db).save("timetable", [{"id": "TT-1", "day": "Sunday"}])

    ready = client.get("/api/health/ready")

    assert ready.status_code == 503
    assert ready.json()["status"] == "degraded"
    assert ready.json()["datasets"]["timetable"]["ok"] is False


async def echo_body_size(scope, receive, send):
    body = await Request(scope, receive).body()
    await JSONResponse({"size": len(body)})(scope, receive, send)


def test_request_size_limit():
    limited = TestClient(RequestSizeLimitMiddleware(echo_body_size, max_bytes=10))

    assert limited.post("/", content=b"x" * 10).json() == {"size": 10}

    declared = limited.post("/", content=b"x" * 11)
    assert declared.status_code == 413
    assert declared.json()["details"] == {"maxBytes": 10}

    streamed = limited.post("/", content=iter([b"x" * 6, b"x" * 6]))
    assert streamed.status_code == 413


def test_oversized_timetable_request_is_rejected(client):
    response = client.post(
        "/api/timetable/entries",
        content=b"{" + b" " * 3_000_000 + b"}",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 413
    assert "message" in response.json()
