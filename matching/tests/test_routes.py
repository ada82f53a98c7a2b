"""
Tests for the /roomy-ai-core endpoint.
"""

import pytest
from fastapi.testclient import TestClient

from main import app
from matching.routes import get_engine
from matching.logic.engine import MatchEngine, BASIC_TIER_MESSAGE
from matching.logic.rate_limiter import RateLimiter
from matching.ai.enricher import TemplateEnricher
from matching.models import AIMatchLog, AIEvent, AIFeedback
from utils.auth_utils import create_token

from conftest import auth_header

URL = "/roomy-ai-core"

SURVEY = {
    "personality_test_completed": True,
    "personality_sleep_schedule": "early",
    "personality_cleanliness_level": "clean",
    "personality_noise_tolerance": "quiet",
    "personality_intro_extro": "ambivert",
}


@pytest.fixture
def limiter():
    return RateLimiter(max_requests=100, window_seconds=60)


@pytest.fixture
def client(db, limiter):
    app.dependency_overrides[get_engine] = lambda: MatchEngine(db, enricher=TemplateEnricher(), limiter=limiter)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# ERROR PATHS
# =============================================================================

def test_missing_token_is_401(client):
    response = client.post(URL, json={"mode": "dorm"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


def test_invalid_token_is_401(client):
    response = client.post(URL, json={"mode": "dorm"}, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid authentication"}


def test_non_bearer_header_is_401(client):
    response = client.post(URL, json={"mode": "dorm"}, headers={"Authorization": "Basic abc"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid authentication"}


def test_unknown_user_is_404(client):
    headers = {"Authorization": f"Bearer {create_token('nobody')}"}

    response = client.post(URL, json={"mode": "dorm"}, headers=headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Student profile not found"}


def test_rate_limit_is_429_with_retry_after(db, make_student):
    student = make_student()
    limiter = RateLimiter(max_requests=2, window_seconds=60)
    app.dependency_overrides[get_engine] = lambda: MatchEngine(db, enricher=TemplateEnricher(), limiter=limiter)
    try:
        client = TestClient(app)
        codes = [client.post(URL, json={"mode": "dorm"}, headers=auth_header(student)).status_code
                 for _ in range(3)]
        last = client.post(URL, json={"mode": "dorm"}, headers=auth_header(student))
    finally:
        app.dependency_overrides.clear()

    assert codes == [200, 200, 429]
    assert last.status_code == 429
    assert last.headers["Retry-After"] == "60"
    assert last.json()["error"].startswith("Too many requests")


def test_invalid_mode_is_400(client, make_student):
    student = make_student()

    response = client.post(URL, json={"mode": "castle"}, headers=auth_header(student))

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid mode: castle"}


def test_invalid_action_is_400(client, make_student):
    student = make_student()

    response = client.post(URL, json={"action": "delete_everything"}, headers=auth_header(student))

    assert response.status_code == 400


def test_non_object_body_is_400(client, make_student):
    student = make_student()

    response = client.post(URL, json=["dorm"], headers=auth_header(student))

    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be a JSON object"}


def test_unexpected_error_is_500(db):
    class ExplodingEngine:
        def handle(self, body, authorization, client_ip):
            raise RuntimeError("database on fire")

    app.dependency_overrides[get_engine] = lambda: ExplodingEngine()
    try:
        response = TestClient(app).post(URL, json={"mode": "dorm"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "database on fire"}


# =============================================================================
# MATCHING
# =============================================================================

def test_dorm_mode_response_shape(client, db, make_student, make_dorm):
    student = make_student(budget=400)
    dorm = make_dorm(monthly_price=380)

    response = client.post(URL, json={"mode": "dorm"}, headers=auth_header(student))
    body = response.json()

    assert response.status_code == 200
    assert body["ai_mode"] == "dorm"
    assert body["match_tier"] == "basic"
    assert body["personality_used"] is False
    assert body["fallback"] is None
    assert body["tier_info"] == {"current_tier": "basic", "personality_enabled": False, "match_limit": 1}
    assert body["insights_banner"]

    match = body["matches"][0]
    assert match["id"] == dorm.id
    assert match["type"] == "dorm"
    assert 0 <= match["score"] <= 100
    assert set(match["subScores"]) >= {"location_score", "budget_score", "room_type_score", "amenities_score"}
    assert match["explanations"][0] == "Perfect budget fit at $380/month"
    assert match["explanation"] == "Match #1: Fits your budget and location preferences"
    assert match["personality_visible"] is False
    assert match["availableRooms"]

    assert db.query(AIMatchLog).count() == 1
    assert db.query(AIEvent).filter(AIEvent.event_type == "match_request").count() == 1


def test_failed_log_write_keeps_the_response(client, db, make_student, make_dorm, monkeypatch):
    student = make_student(budget=400)
    dorm = make_dorm(monthly_price=380)

    def broken_log(**kwargs):
        raise RuntimeError("analytics table missing")

    monkeypatch.setattr("matching.logic.engine.AIMatchLog", broken_log)

    response = client.post(URL, json={"mode": "dorm"}, headers=auth_header(student))

    assert response.status_code == 200
    assert [m["id"] for m in response.json()["matches"]] == [dorm.id]
    assert db.query(AIMatchLog).count() == 0
    assert db.query(AIEvent).count() == 0


def test_dorm_limit_caps_results(client, make_student, make_dorm):
    student = make_student()
    for _ in range(4):
        make_dorm()

    response = client.post(URL, json={"mode": "dorm", "limit": 2}, headers=auth_header(student))

    assert len(response.json()["matches"]) == 2


def test_fallback_is_reported(client, make_student, make_dorm):
    student = make_student(budget=400)
    make_dorm(monthly_price=460)

    body = client.post(URL, json={"mode": "dorm"}, headers=auth_header(student)).json()

    assert body["fallback"]["type"] == "dorm_no_match"
    assert len(body["matches"]) == 1
    assert body["matches"][0]["budgetWarning"] == "$60 over your budget"


def test_empty_result_still_200_with_suggestions(client, make_student):
    student = make_student()

    response = client.post(URL, json={"mode": "dorm"}, headers=auth_header(student))
    body = response.json()

    assert response.status_code == 200
    assert body["matches"] == []
    assert body["fallback"]["suggestions"]


def test_basic_tier_roommates_limited_and_gated(client, make_student):
    student = make_student(**SURVEY)
    for _ in range(3):
        make_student(needs_roommate_new_dorm=True, **SURVEY)

    # client-declared tier is advisory only
    body = client.post(
        URL,
        json={"mode": "roommate", "match_tier": "vip", "personality_enabled": True},
        headers=auth_header(student),
    ).json()

    assert body["match_tier"] == "basic"
    assert body["personality_used"] is False
    assert len(body["matches"]) == 1
    match = body["matches"][0]
    assert match["personality_visible"] is False
    assert match["tier_message"] == BASIC_TIER_MESSAGE
    assert "Nearly identical sleep schedules" not in match["explanations"]


def test_vip_tier_uses_personality(client, make_student, make_plan):
    student = make_student(**SURVEY)
    make_plan(student, "vip")
    for _ in range(3):
        make_student(needs_roommate_new_dorm=True, **SURVEY)

    body = client.post(URL, json={"mode": "roommate"}, headers=auth_header(student)).json()

    assert body["personality_used"] is True
    assert body["tier_info"]["match_limit"] == 10
    assert len(body["matches"]) == 3
    assert all(m["personality_visible"] for m in body["matches"])
    assert all("tier_message" not in m for m in body["matches"])
    assert "personality_breakdown" in body["matches"][0]["subScores"]


def test_request_can_opt_out_of_personality(client, make_student, make_plan):
    student = make_student(**SURVEY)
    make_plan(student, "advanced")
    make_student(needs_roommate_new_dorm=True, **SURVEY)

    body = client.post(
        URL, json={"mode": "roommate", "personality_enabled": False}, headers=auth_header(student)
    ).json()

    assert body["match_tier"] == "advanced"
    assert body["personality_used"] is False
    assert body["matches"][0]["subScores"]["personality_score"] is None


def test_combined_mode_returns_dorms_and_roommates(client, make_student, make_dorm):
    student = make_student()
    make_dorm()
    make_student(needs_roommate_new_dorm=True)

    body = client.post(URL, json={"mode": "combined"}, headers=auth_header(student)).json()

    assert {m["type"] for m in body["matches"]} == {"dorm", "roommate"}


def test_rooms_mode(client, make_student, make_dorm):
    student = make_student()
    make_dorm(rooms=[{"name": "7", "price": 350, "capacity": 2, "capacity_occupied": 0}])

    body = client.post(URL, json={"mode": "rooms"}, headers=auth_header(student)).json()

    assert body["ai_mode"] == "rooms"
    assert body["matches"][0]["type"] == "room"
    assert body["matches"][0]["name"] == "7"


def test_exclude_ids(client, make_student, make_dorm):
    student = make_student()
    dismissed = make_dorm()
    kept = make_dorm()

    body = client.post(
        URL, json={"mode": "dorm", "exclude_ids": [dismissed.id]}, headers=auth_header(student)
    ).json()

    assert [m["id"] for m in body["matches"]] == [kept.id]


# =============================================================================
# ACTIONS
# =============================================================================

def test_record_feedback_and_aggregate(client, db, make_student):
    student = make_student()
    payload = {
        "action": "record_feedback",
        "ai_action": "dorm_match",
        "target_id": "dorm-1",
        "helpful_score": 5,
        "feedback_text": "Loved it",
    }

    response = client.post(URL, json=payload, headers=auth_header(student))

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert db.query(AIFeedback).count() == 1

    aggregate = client.post(URL, json={"action": "get_aggregate_scores"})

    assert aggregate.status_code == 200
    assert aggregate.json()["by_action"]["dorm_match"] == {"total": 5, "count": 1, "average": 5.0}


def test_record_feedback_requires_auth(client):
    response = client.post(URL, json={"action": "record_feedback", "ai_action": "x", "helpful_score": 3})

    assert response.status_code == 401


def test_record_feedback_rejects_out_of_range_score(client, make_student):
    student = make_student()

    response = client.post(
        URL,
        json={"action": "record_feedback", "ai_action": "dorm_match", "helpful_score": 9},
        headers=auth_header(student),
    )

    assert response.status_code == 400


def test_health(client):
    assert client.get(f"{URL}/health").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "ok"}
