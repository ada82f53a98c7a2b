"""
Matching Engine Constants

Defines all weights, tolerances, ordinal tables, thresholds and tier limits
used by the Roomy matching engine. Scores are deterministic; nothing here
depends on the optional LLM enrichment step.
"""

import os
from enum import Enum
from typing import Dict, List

# =============================================================================
# ENUMS
# =============================================================================

class MatchMode(str, Enum):
    """Requested matching mode."""
    DORM = "dorm"
    ROOMMATE = "roommate"
    COMBINED = "combined"
    ROOMS = "rooms"


class MatchTier(str, Enum):
    """Effective match plan tier."""
    BASIC = "basic"
    ADVANCED = "advanced"
    VIP = "vip"


class MatchAction(str, Enum):
    """Auxiliary request actions that bypass the matching pipeline."""
    RECORD_FEEDBACK = "record_feedback"
    GET_AGGREGATE_SCORES = "get_aggregate_scores"


class FallbackType(str, Enum):
    DORM_NO_MATCH = "dorm_no_match"
    ROOM_NO_MATCH = "room_no_match"
    ROOMMATE_NO_MATCH = "roommate_no_match"


# =============================================================================
# TIERS
# =============================================================================

# Max roommate results per tier
TIER_MATCH_LIMITS: Dict[str, int] = {
    MatchTier.BASIC: 1,
    MatchTier.ADVANCED: 3,
    MatchTier.VIP: 10,
}

# Only these tiers may use personality-based scoring
PERSONALITY_TIERS = (MatchTier.ADVANCED, MatchTier.VIP)

# Higher rank wins when a student holds several active plans
TIER_RANK: Dict[str, int] = {
    MatchTier.BASIC: 0,
    MatchTier.ADVANCED: 1,
    MatchTier.VIP: 2,
}

DEFAULT_DORM_LIMIT = 10

# =============================================================================
# CANDIDATE FILTERS
# =============================================================================

VERIFIED_STATUS = "Verified"

PRIMARY_BUDGET_TOLERANCE = 1.10    # price <= budget * 1.10
FALLBACK_BUDGET_TOLERANCE = 1.20   # price <= budget * 1.20

PRIMARY_QUERY_LIMIT = 30
FALLBACK_QUERY_LIMIT = 10

# Dorm gender_preference values admitted for each student gender
GENDER_COMPATIBLE_POLICIES: Dict[str, List[str]] = {
    "male": ["male", "mixed", "any"],
    "female": ["female", "mixed", "any"],
}

ANY_ROOM_TYPE = "any"
SINGLE_ROOM_MARKER = "single"

# Dealbreaker tag -> candidate attribute that triggers a hard reject on "yes"
DEALBREAKER_ATTRIBUTES: Dict[str, str] = {
    "smoking": "personality_smoking",
    "drinking": "personality_drinking",
}

# =============================================================================
# DORM WEIGHTS (sum to 1.0)
# =============================================================================

DORM_WEIGHTS: Dict[str, float] = {
    "location": 0.30,
    "budget": 0.25,
    "room_type": 0.15,
    "amenities": 0.10,
    "ai_heuristics": 0.20,
}

# Placeholder for future learned signal
AI_HEURISTICS_SCORE = 60.0

BUDGET_UNDER_FLOOR = 70.0
BUDGET_UNDER_SLOPE = 30.0
BUDGET_OVER_CEILING = 50.0
BUDGET_OVER_FLOOR = 20.0
BUDGET_OVER_SLOPE = 100.0

LOCATION_BASE = 50.0
LOCATION_UNIVERSITY_BONUS = 35.0
LOCATION_AREA_BONUS = 15.0

ROOM_TYPE_NO_PREFERENCE = 50.0
ROOM_TYPE_NO_MATCH = 40.0
ROOM_TYPE_MATCH_BASE = 80.0
ROOM_TYPE_MATCH_STEP = 10.0

AMENITIES_NO_PREFERENCE = 50.0
AMENITIES_NONE_LISTED = 30.0
AMENITIES_BASE = 40.0
AMENITIES_RATIO_WEIGHT = 60.0

# Historical feedback boost: (avg_helpful_score - pivot) * multiplier
FEEDBACK_PIVOT = 3.0
FEEDBACK_MULTIPLIER = 5.0

# =============================================================================
# ROOM WEIGHTS (ad hoc per-room score)
# =============================================================================

ROOM_WEIGHTS: Dict[str, float] = {
    "base": 50.0,
    "budget_max": 30.0,
    "budget_min_bonus": 10.0,
    "area": 15.0,
    "university": 15.0,
    "room_type": 10.0,
}

# =============================================================================
# ROOMMATE WEIGHTS
# =============================================================================

ROOMMATE_BASIC_WEIGHTS: Dict[str, float] = {
    "lifestyle": 0.40,
    "cleanliness": 0.30,
    "study_focus": 0.20,
    "budget": 0.10,
}

ROOMMATE_PERSONALITY_WEIGHTS: Dict[str, float] = {
    "lifestyle": 0.35,
    "cleanliness": 0.20,
    "sleep_schedule": 0.10,
    "noise_compatibility": 0.10,
    "social_style": 0.10,
    "pets": 0.05,
    "guests": 0.05,
    "budget": 0.05,
}

LIFESTYLE_BASE = 50.0
LIFESTYLE_NOISE_WEIGHT = 20.0
LIFESTYLE_SOCIAL_WEIGHT = 15.0
LIFESTYLE_BUDGET_WEIGHT = 15.0

# Habit proxies are on a 1-5 scale
HABIT_SCALE_SPAN = 4.0

CLEANLINESS_STEP_PENALTY = 20.0
CLEANLINESS_FLOOR = 30.0

STUDY_FOCUS_BASE = 50.0
STUDY_FOCUS_UNIVERSITY_BONUS = 30.0
STUDY_FOCUS_YEAR_WEIGHT = 20.0
STUDY_FOCUS_MAX_YEAR_DIFF = 4

# Roommate fallback keeps scores within [40, 100]
FALLBACK_ROOMMATE_FLOOR = 40.0
FALLBACK_ROOMMATE_SPAN = 0.6

FALLBACK_DORM_SCORE = 60.0
FALLBACK_DORM_SUB_SCORES: Dict[str, float] = {
    "location_score": 50.0,
    "budget_score": 70.0,
    "room_type_score": 50.0,
    "amenities_score": 50.0,
}
FALLBACK_OVER_BUDGET_SCORE = 40.0

NEUTRAL_SCORE = 50.0
NEUTRAL_AXIS = 0.5

# =============================================================================
# PERSONALITY ORDINAL TABLES
# =============================================================================

SLEEP_SCHEDULE_ORDER = ["early", "regular", "late"]
SLEEP_SCHEDULE_TABLE = {0: 1.0, 1: 0.6, 2: 0.2}

CLEANLINESS_ORDER = ["messy", "average", "clean", "very_clean"]
NOISE_TOLERANCE_ORDER = ["very_quiet", "quiet", "normal", "loud"]
GUESTS_ORDER = ["never", "rarely", "sometimes", "often"]
COOKING_ORDER = ["never", "rarely", "sometimes", "often"]
STUDY_TIME_ORDER = ["morning", "afternoon", "evening", "late_night"]
SLEEP_SENSITIVITY_ORDER = ["very_light", "light", "normal", "heavy"]
# 0 diff -> 1.0, 1 -> 0.7, 2 -> 0.4, >=3 -> 0.2
FOUR_STEP_TABLE = {0: 1.0, 1: 0.7, 2: 0.4}
FOUR_STEP_FLOOR = 0.2

SOCIAL_STYLE_ORDER = ["introvert", "ambivert", "extrovert"]
SOCIAL_STYLE_TABLE = {0: 1.0, 1: 0.7, 2: 0.3}

PETS_ORDER = ["no", "okay", "yes"]
PETS_TABLE = {0: 1.0, 1: 0.7, 2: 0.2}

# =============================================================================
# EXPLANATIONS
# =============================================================================

MAX_EXPLANATIONS = 4
PERSONALITY_REASON_THRESHOLD = 0.75
PERSONALITY_STRONG_THRESHOLD = 0.9
BUDGET_NEAR_DELTA = 100
LIFESTYLE_REASON_THRESHOLD = 70
STUDY_FOCUS_REASON_THRESHOLD = 70

# =============================================================================
# RATE LIMITING
# =============================================================================

RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# =============================================================================
# FEEDBACK
# =============================================================================

MIN_HELPFUL_SCORE = 1
MAX_HELPFUL_SCORE = 5
