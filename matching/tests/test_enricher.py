"""
Tests for the enrichment stage: templated default, model re-ranking and
graceful degradation.
"""

from matching.ai.enricher import (
    TemplateEnricher,
    OpenAIEnricher,
    apply_ranking,
    generic_insights,
    get_enricher,
)
from matching.ai.prompt_builder import build_system_prompt, build_user_prompt
from matching.logic.contracts import ScoredMatch, StudentProfile


def make_matches():
    return [
        ScoredMatch(candidate={"id": "d1", "name": "One"}, type="dorm", score=90),
        ScoredMatch(candidate={"id": "d2", "name": "Two"}, type="dorm", score=80),
        ScoredMatch(candidate={"id": "m1", "full_name": "Mate", "email": "x@y.z"}, type="roommate", score=70),
    ]


def student():
    return StudentProfile(id="s1", budget=400, preferred_university="AUB")


def test_template_enricher_keeps_order_and_writes_reasoning():
    matches, insights = TemplateEnricher().rank(make_matches(), student(), "combined", False)

    assert [m.candidate_id for m in matches] == ["d1", "d2", "m1"]
    assert matches[0].reasoning == "Match #1: Fits your budget and location preferences"
    assert matches[2].reasoning == "Match #3: Compatible lifestyle and study habits"
    assert insights == generic_insights("combined")


def test_apply_ranking_reorders_and_appends_unlisted():
    payload = {
        "insights": "Strong picks near AUB.",
        "ranked_ids": ["m1", "ghost", "d2"],
        "reasons": {"m1": "Same study habits.", "d2": "  "},
    }

    matches, insights = apply_ranking(make_matches(), payload, "combined")

    assert [m.candidate_id for m in matches] == ["m1", "d2", "d1"]
    assert matches[0].reasoning == "Same study habits."
    assert matches[1].reasoning == "Match #2: Fits your budget and location preferences"
    assert insights == "Strong picks near AUB."


def test_apply_ranking_with_malformed_payload_keeps_engine_order():
    matches, insights = apply_ranking(make_matches(), {"ranked_ids": None, "reasons": []}, "dorm")

    assert [m.candidate_id for m in matches] == ["d1", "d2", "m1"]
    assert insights == generic_insights("dorm")


def test_openai_enricher_degrades_on_failure(monkeypatch):
    enricher = OpenAIEnricher(api_key="test-key")

    def boom(*args, **kwargs):
        raise TimeoutError("gateway timed out")

    monkeypatch.setattr(enricher, "_complete", boom)

    matches, insights = enricher.rank(make_matches(), student(), "dorm", False)

    assert [m.candidate_id for m in matches] == ["d1", "d2", "m1"]
    assert matches[0].reasoning.startswith("Match #1:")
    assert insights == generic_insights("dorm")


def test_openai_enricher_uses_model_ranking(monkeypatch):
    enricher = OpenAIEnricher(api_key="test-key")
    monkeypatch.setattr(enricher, "_complete", lambda *a, **k: {"ranked_ids": ["d2"], "insights": "Nice."})

    matches, insights = enricher.rank(make_matches(), student(), "dorm", False)

    assert matches[0].candidate_id == "d2"
    assert insights == "Nice."


def test_get_enricher_without_key_is_template(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert isinstance(get_enricher(), TemplateEnricher)


def test_generic_insights_for_unknown_mode():
    assert generic_insights("weird") == generic_insights("dorm")


def test_prompts_exclude_private_fields():
    system = build_system_prompt()
    user = build_user_prompt(make_matches(), student(), "combined", True)

    assert "JSON" in system
    assert "ranked_ids" in system
    assert "CANDIDATE TYPES:" in system
    assert "- roommate: Another student of the same gender" in system
    assert "x@y.z" not in user
    assert "Consider personality compatibility." in user
    assert '"id": "m1"' in user
