"""
Feedback

Append-only feedback records, the historical feedback boost applied to
dorm scores, and the aggregate view used by analytics.
"""

import logging
from typing import Dict, Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from .contracts import FeedbackRequest
from .constants import FEEDBACK_PIVOT, FEEDBACK_MULTIPLIER
from ..models import AIFeedback

logger = logging.getLogger(__name__)


def fetch_feedback_boosts(db: Session, target_ids: Iterable[str]) -> Dict[str, float]:
    """
    Score adjustment per target from prior feedback:
    (average helpful_score - 3) * 5. Targets without feedback are absent.
    """
    ids = [t for t in target_ids if t]
    if not ids:
        return {}

    rows = (
        db.query(AIFeedback.target_id, func.avg(AIFeedback.helpful_score))
        .filter(AIFeedback.target_id.in_(ids))
        .group_by(AIFeedback.target_id)
        .all()
    )
    return {
        target_id: (float(avg) - FEEDBACK_PIVOT) * FEEDBACK_MULTIPLIER
        for target_id, avg in rows
        if avg is not None
    }


def record_feedback(db: Session, user_id: str, payload: FeedbackRequest) -> AIFeedback:
    feedback = AIFeedback(
        user_id=user_id,
        ai_action=payload.ai_action,
        target_id=payload.target_id,
        helpful_score=payload.helpful_score,
        feedback_text=payload.feedback_text,
        context=payload.context,
    )
    db.add(feedback)
    db.flush()
    logger.info(f"Recorded feedback {payload.ai_action}/{payload.target_id}: {payload.helpful_score}")
    return feedback


def aggregate_scores(db: Session) -> Dict[str, Any]:
    """
    Aggregate all feedback rows into per-action and per-target totals.

    Returns:
        {"by_action": {action: {total, count, average}},
         "by_target": {target_id: {total, count, average}}}
    """
    by_action = _aggregate(
        db.query(
            AIFeedback.ai_action,
            func.sum(AIFeedback.helpful_score),
            func.count(AIFeedback.id),
        ).group_by(AIFeedback.ai_action).all()
    )
    by_target = _aggregate(
        db.query(
            AIFeedback.target_id,
            func.sum(AIFeedback.helpful_score),
            func.count(AIFeedback.id),
        )
        .filter(AIFeedback.target_id.isnot(None))
        .group_by(AIFeedback.target_id)
        .all()
    )
    return {"by_action": by_action, "by_target": by_target}


def _aggregate(rows) -> Dict[str, Dict[str, float]]:
    result = {}
    for key, total, count in rows:
        total = int(total or 0)
        result[key] = {
            "total": total,
            "count": count,
            "average": round(total / count, 2) if count else 0.0,
        }
    return result
