"""
Match Plan Resolution

The effective tier is always resolved server-side from the student's
active, unexpired plans. Whatever tier the client asks for is advisory.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .constants import MatchTier, TIER_RANK, TIER_MATCH_LIMITS
from ..models import StudentMatchPlan


def _utcnow() -> datetime:
    # plan timestamps are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def resolve_tier(db: Session, student_id: str) -> str:
    """Highest active, unexpired plan tier, or basic if none."""
    plans = (
        db.query(StudentMatchPlan)
        .filter(
            StudentMatchPlan.student_id == student_id,
            StudentMatchPlan.status == "active",
            StudentMatchPlan.expires_at > _utcnow(),
        )
        .all()
    )

    tier = MatchTier.BASIC.value
    for plan in plans:
        plan_type = (plan.plan_type or "").lower()
        if plan_type in TIER_RANK and TIER_RANK[plan_type] > TIER_RANK[tier]:
            tier = plan_type
    return tier


def tier_match_limit(tier: str) -> int:
    return TIER_MATCH_LIMITS.get(tier, TIER_MATCH_LIMITS[MatchTier.BASIC])
