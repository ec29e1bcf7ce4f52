import pytest
from fastapi.testclient import TestClient

from scholarprep.db import init_db
from scholarprep.main import app
from scholarprep.sessions import get_content_provider, reset_sessions


@pytest.fixture
def client(provider):
    init_db()
    app.dependency_overrides[get_content_provider] = lambda: provider
    client = TestClient(app)
    r = client.post("/auth/token", data={"username": "guest", "password": "unused"})
    assert r.status_code == 200
    client.headers["Authorization"] = f"Bearer {r.json()['access_token']}"
    yield client
    app.dependency_overrides.clear()
    reset_sessions()


ONBOARDING = {"subjects": ["English", "Mathematics"], "target_date": "2025-06-01", "weaknesses": ""}


def _onboard(client):
    r = client.post("/session/onboarding", json=ONBOARDING)
    assert r.status_code == 200, r.text
    return r.json()


def test_health_and_info():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/info").json()["status"] == "ok"


def test_session_requires_auth():
    client = TestClient(app)
    assert client.get("/session").status_code == 401


def test_new_session_starts_in_onboarding(client):
    body = client.get("/session").json()
    assert body["view"] == "onboarding"
    assert body["mastery_score"] == 70
    assert body["completion_percentage"] == 10


def test_identical_subjects_are_rejected(client, provider):
    r = client.post("/session/onboarding", json={**ONBOARDING, "subjects": ["Biology", "Biology"]})
    assert r.status_code == 422
    assert provider.calls == []
    assert client.get("/session").json()["view"] == "onboarding"


def test_unknown_or_blank_subjects_are_rejected(client, provider):
    for subjects in (["English", "Astrology"], ["", "Mathematics"], ["English", " english"]):
        r = client.post("/session/onboarding", json={**ONBOARDING, "subjects": subjects})
        assert r.status_code == 422
    assert provider.calls == []


def test_roadmap_failure_is_reported(client, provider):
    provider.fail = True
    r = client.post("/session/onboarding", json=ONBOARDING)
    assert r.status_code == 502
    body = client.get("/session").json()
    assert body["view"] == "onboarding"
    assert body["last_error"] == "provider unavailable"


def test_full_exam_flow(client, provider):
    body = _onboard(client)
    assert body["view"] == "dashboard"
    task = body["roadmap"]["schedule"][0]["tasks"][1]
    assert task["task_type"] == "practice"
    assert body["roadmap"]["startDate"] == "2025-04-01"

    r = client.post("/session/tasks/start", json=task)
    assert r.json()["view"] == "exam"

    view = client.post("/task/load").json()
    assert view["state"] == "in_progress"
    assert view["total"] == 2
    assert "correct_answer" not in view["question"]

    client.post("/task/answer", json={"index": 0, "answer": " 4 "})
    view = client.post("/task/advance").json()
    assert view["index"] == 1
    assert view["is_last"] is True

    client.post("/task/answer", json={"index": 1, "answer": "7"})
    result = client.post("/task/advance").json()
    assert result["score"] == 1
    assert result["total"] == 2
    assert result["mastery_score"] == 74
    assert result["completion_percentage"] == 15

    session = client.get("/session").json()
    assert session["view"] == "dashboard"
    assert session["errors_count"] == 1
    assert session["active_task"] is None

    review = client.get("/review").json()
    assert len(review) == 1
    assert review[0]["error"]["subject"] == "Mathematics"

    insights = client.get("/insights").json()
    assert insights["has_data"] is True
    assert insights["recurring_errors"] == [{"topic_id": "math_algebra_linear", "count": 1}]

    stored = client.get("/progress").json()
    assert stored["exams_finished"] == 1
    assert stored["mastery_score"] == 74
    assert stored["subjects"] == "English & Mathematics"


def test_review_actions(client):
    body = _onboard(client)
    task = body["roadmap"]["schedule"][0]["tasks"][1]
    client.post("/session/tasks/start", json=task)
    client.post("/task/load")
    assert client.post("/task/submit").status_code == 200

    r = client.post("/session/errors/0/analyze")
    assert r.json()["view"] == "lesson"
    assert r.json()["lesson_topic"]["context"].startswith("My incorrect answer was")
    lesson = client.post("/task/load").json()
    assert lesson["kind"] == "lesson"
    assert lesson["lesson"]["content"].startswith("# Lesson")

    r = client.post("/session/errors/1/practice")
    assert r.json()["view"] == "exam"
    assert r.json()["active_task"]["subject"] == "Mathematics"

    assert client.post("/session/errors/9/practice").status_code == 404


def test_navigation_rules(client, lesson_task):
    assert client.post("/session/navigate", json={"target": "review"}).status_code == 409
    _onboard(client)
    client.post("/session/tasks/start", json=lesson_task.model_dump())
    r = client.post("/session/navigate", json={"target": "insights"})
    assert r.json()["view"] == "insights"
    assert r.json()["lesson_topic"] is None
    assert client.post("/session/navigate", json={"target": "exam"}).status_code == 422
    assert client.get("/task").status_code == 409


def test_question_fetch_failure_leaves_runner_failed(client, provider):
    _onboard(client)
    client.post("/session/practice", json={"topic": "math_fractions", "subject": "Mathematics"})
    provider.fail = True
    assert client.post("/task/load").status_code == 502
    view = client.get("/task").json()
    assert view["state"] == "failed"
    assert view["error"] == "provider unavailable"
    assert client.get("/session").json()["view"] == "exam"
