"""
Tests for feedback recording, boosts and aggregates.
"""

import pytest

from matching.logic.contracts import FeedbackRequest
from matching.logic.feedback import record_feedback, aggregate_scores, fetch_feedback_boosts
from matching.models import AIFeedback


def test_record_feedback_persists_row(db):
    payload = FeedbackRequest(
        ai_action="dorm_match",
        target_id="dorm-1",
        helpful_score=4,
        feedback_text="Great place",
        context={"mode": "dorm"},
    )

    feedback = record_feedback(db, "user-1", payload)
    db.commit()

    stored = db.get(AIFeedback, feedback.id)
    assert stored.user_id == "user-1"
    assert stored.helpful_score == 4
    assert stored.context == {"mode": "dorm"}


@pytest.mark.parametrize("score", [0, 6])
def test_helpful_score_must_be_1_to_5(score):
    with pytest.raises(ValueError):
        FeedbackRequest(ai_action="dorm_match", helpful_score=score)


def test_feedback_boosts(db, add_feedback):
    add_feedback("dorm-1", 5, 5, 4)
    add_feedback("dorm-2", 1)

    boosts = fetch_feedback_boosts(db, ["dorm-1", "dorm-2", "dorm-3"])

    assert boosts["dorm-1"] == pytest.approx(25 / 3)
    assert boosts["dorm-2"] == pytest.approx(-10)
    assert "dorm-3" not in boosts


def test_feedback_boosts_with_no_ids(db):
    assert fetch_feedback_boosts(db, []) == {}


def test_aggregate_scores(db, add_feedback):
    add_feedback("dorm-1", 5, 3)
    add_feedback("mate-1", 4, ai_action="roommate_match")

    result = aggregate_scores(db)

    assert result["by_action"]["dorm_match"] == {"total": 8, "count": 2, "average": 4.0}
    assert result["by_action"]["roommate_match"]["count"] == 1
    assert result["by_target"]["dorm-1"]["average"] == 4.0
    assert result["by_target"]["mate-1"]["total"] == 4
