"""
Matching Logic Module

Provides the deterministic scoring and filtering engine for dorm, room
and roommate matches.
"""

from .contracts import (
    StudentProfile,
    MatchContext,
    MatchRequest,
    FeedbackRequest,
    ScoredMatch,
    Accepted,
    Rejected,
    FallbackInfo,
    TierInfo,
    MatchResponse,
)
from .engine import MatchEngine
from .constants import MatchMode, MatchTier, MatchAction, FallbackType

__all__ = [
    # Main engine
    "MatchEngine",

    # Contracts
    "StudentProfile",
    "MatchContext",
    "MatchRequest",
    "FeedbackRequest",
    "ScoredMatch",
    "Accepted",
    "Rejected",
    "FallbackInfo",
    "TierInfo",
    "MatchResponse",

    # Enums
    "MatchMode",
    "MatchTier",
    "MatchAction",
    "FallbackType",
]
