"""
Sub-score Calculators

Pure scoring functions, one per compatibility axis.
Housing and lifestyle scorers return 0-100; personality axis scorers
return a 0.0-1.0 compatibility value. No I/O, no randomness.
"""

from typing import Dict, Iterable, List, Optional

from .contracts import StudentProfile
from .constants import (
    BUDGET_UNDER_FLOOR,
    BUDGET_UNDER_SLOPE,
    BUDGET_OVER_CEILING,
    BUDGET_OVER_FLOOR,
    BUDGET_OVER_SLOPE,
    LOCATION_BASE,
    LOCATION_UNIVERSITY_BONUS,
    LOCATION_AREA_BONUS,
    ROOM_TYPE_NO_PREFERENCE,
    ROOM_TYPE_NO_MATCH,
    ROOM_TYPE_MATCH_BASE,
    ROOM_TYPE_MATCH_STEP,
    AMENITIES_NO_PREFERENCE,
    AMENITIES_NONE_LISTED,
    AMENITIES_BASE,
    AMENITIES_RATIO_WEIGHT,
    LIFESTYLE_BASE,
    LIFESTYLE_NOISE_WEIGHT,
    LIFESTYLE_SOCIAL_WEIGHT,
    LIFESTYLE_BUDGET_WEIGHT,
    HABIT_SCALE_SPAN,
    CLEANLINESS_STEP_PENALTY,
    CLEANLINESS_FLOOR,
    STUDY_FOCUS_BASE,
    STUDY_FOCUS_UNIVERSITY_BONUS,
    STUDY_FOCUS_YEAR_WEIGHT,
    STUDY_FOCUS_MAX_YEAR_DIFF,
    SLEEP_SCHEDULE_ORDER,
    SLEEP_SCHEDULE_TABLE,
    CLEANLINESS_ORDER,
    NOISE_TOLERANCE_ORDER,
    GUESTS_ORDER,
    COOKING_ORDER,
    STUDY_TIME_ORDER,
    SLEEP_SENSITIVITY_ORDER,
    FOUR_STEP_TABLE,
    FOUR_STEP_FLOOR,
    SOCIAL_STYLE_ORDER,
    SOCIAL_STYLE_TABLE,
    PETS_ORDER,
    PETS_TABLE,
    DORM_WEIGHTS,
    AI_HEURISTICS_SCORE,
    ROOM_WEIGHTS,
    ROOMMATE_BASIC_WEIGHTS,
    ROOMMATE_PERSONALITY_WEIGHTS,
    ANY_ROOM_TYPE,
    NEUTRAL_SCORE,
    NEUTRAL_AXIS,
)


# =============================================================================
# DORM / ROOM SCORERS
# =============================================================================

def score_budget(price: Optional[float], budget: Optional[float]) -> float:
    """
    Score how well a monthly price fits the student's budget.

    Under budget the score stays in [70, 100], rising as the price gets
    closer to the budget. Over budget it drops from 50 toward a floor of 20
    as the overage grows.
    """
    if not budget or price is None:
        return NEUTRAL_SCORE

    percent_diff = abs(budget - price) / budget
    if price <= budget:
        return max(BUDGET_UNDER_FLOOR, 100 - percent_diff * BUDGET_UNDER_SLOPE)
    return max(BUDGET_OVER_FLOOR, BUDGET_OVER_CEILING - percent_diff * BUDGET_OVER_SLOPE)


def score_location(
    dorm_university: Optional[str],
    dorm_area: Optional[str],
    preferred_university: Optional[str],
    favorite_areas: Iterable[str],
) -> float:
    """Base 50, +35 for a university match, +15 for a favorite area."""
    score = LOCATION_BASE

    if preferred_university and _contains(dorm_university, preferred_university):
        score += LOCATION_UNIVERSITY_BONUS

    if dorm_area and any(_contains(dorm_area, area) for area in favorite_areas or []):
        score += LOCATION_AREA_BONUS

    return min(100.0, score)


def score_room_type(dorm_room_types: Iterable[str], preferred_room_types: Iterable[str]) -> float:
    preferences = meaningful_room_types(preferred_room_types)
    if not preferences:
        return ROOM_TYPE_NO_PREFERENCE

    listed = [t for t in dorm_room_types if t]
    match_count = sum(
        1 for pref in preferences
        if any(_contains(t, pref) for t in listed)
    )
    if match_count == 0:
        return ROOM_TYPE_NO_MATCH
    return min(100.0, ROOM_TYPE_MATCH_BASE + ROOM_TYPE_MATCH_STEP * match_count)


def score_amenities(dorm_amenities: Iterable[str], preferred_amenities: Iterable[str]) -> float:
    """
    Fraction of the student's preferred amenities the dorm lists,
    mapped onto [40, 100].
    """
    preferred = [a for a in preferred_amenities or [] if a]
    if not preferred:
        return AMENITIES_NO_PREFERENCE

    listed = [a for a in dorm_amenities or [] if a]
    if not listed:
        return AMENITIES_NONE_LISTED

    found = sum(1 for pref in preferred if any(_contains(a, pref) for a in listed))
    match_ratio = found / len(preferred)
    return AMENITIES_BASE + AMENITIES_RATIO_WEIGHT * match_ratio


def score_dorm(sub_scores: Dict[str, float]) -> float:
    """Weighted dorm score from the four housing sub-scores."""
    score = (
        sub_scores["location_score"] * DORM_WEIGHTS["location"]
        + sub_scores["budget_score"] * DORM_WEIGHTS["budget"]
        + sub_scores["room_type_score"] * DORM_WEIGHTS["room_type"]
        + sub_scores["amenities_score"] * DORM_WEIGHTS["amenities"]
        + AI_HEURISTICS_SCORE * DORM_WEIGHTS["ai_heuristics"]
    )
    return clamp_score(score)


def score_room(
    price: Optional[float],
    room_type: Optional[str],
    dorm_area: Optional[str],
    dorm_university: Optional[str],
    budget: Optional[float],
    favorite_areas: Iterable[str],
    preferred_university: Optional[str],
    preferred_room_types: Iterable[str],
) -> float:
    """
    Ad hoc per-room score: base 50 adjusted by budget fit, area,
    university and room type. Clamped to [0, 100].
    """
    score = ROOM_WEIGHTS["base"]

    if budget and price is not None:
        percent_diff = abs(budget - price) / budget
        if price <= budget:
            score += max(ROOM_WEIGHTS["budget_min_bonus"], ROOM_WEIGHTS["budget_max"] * (1 - percent_diff))
        else:
            score -= min(ROOM_WEIGHTS["budget_max"], percent_diff * 100)

    if dorm_area and any(_contains(dorm_area, area) for area in favorite_areas or []):
        score += ROOM_WEIGHTS["area"]

    if preferred_university and _contains(dorm_university, preferred_university):
        score += ROOM_WEIGHTS["university"]

    preferences = meaningful_room_types(preferred_room_types)
    if room_type and any(_contains(room_type, pref) for pref in preferences):
        score += ROOM_WEIGHTS["room_type"]

    return clamp_score(score)


# =============================================================================
# ROOMMATE SCORERS
# =============================================================================

def score_budget_closeness(student_budget: Optional[float], candidate_budget: Optional[float]) -> float:
    """100 when budgets are equal, falling to 0 at a 100% difference."""
    if not student_budget or not candidate_budget:
        return NEUTRAL_SCORE
    diff = abs(student_budget - candidate_budget) / student_budget
    return 100.0 * (1 - min(diff, 1.0))


def score_lifestyle(student: StudentProfile, candidate: StudentProfile) -> float:
    """
    Base 50 plus closeness bonuses for noise habits (+20), social
    habits (+15) and budget (+15).
    """
    score = LIFESTYLE_BASE

    if student.habit_noise and candidate.habit_noise:
        diff = abs(student.habit_noise - candidate.habit_noise) / HABIT_SCALE_SPAN
        score += LIFESTYLE_NOISE_WEIGHT * (1 - min(diff, 1.0))

    if student.habit_social and candidate.habit_social:
        diff = abs(student.habit_social - candidate.habit_social) / HABIT_SCALE_SPAN
        score += LIFESTYLE_SOCIAL_WEIGHT * (1 - min(diff, 1.0))

    if student.budget and candidate.budget:
        diff = abs(student.budget - candidate.budget) / student.budget
        score += LIFESTYLE_BUDGET_WEIGHT * (1 - min(diff, 1.0))

    return min(100.0, score)


def score_cleanliness(student_level: Optional[int], candidate_level: Optional[int]) -> float:
    if not student_level or not candidate_level:
        return NEUTRAL_SCORE
    diff = abs(student_level - candidate_level)
    return max(CLEANLINESS_FLOOR, 100 - CLEANLINESS_STEP_PENALTY * diff)


def score_study_focus(student: StudentProfile, candidate: StudentProfile) -> float:
    score = STUDY_FOCUS_BASE

    if student.university and candidate.university and student.university == candidate.university:
        score += STUDY_FOCUS_UNIVERSITY_BONUS

    if student.year_of_study and candidate.year_of_study:
        diff = min(abs(student.year_of_study - candidate.year_of_study), STUDY_FOCUS_MAX_YEAR_DIFF)
        score += STUDY_FOCUS_YEAR_WEIGHT * (1 - diff / STUDY_FOCUS_MAX_YEAR_DIFF)

    return min(100.0, score)


def score_roommate_basic(sub_scores: Dict[str, float]) -> float:
    """Deterministic roommate score used whenever personality is off."""
    score = (
        sub_scores["lifestyle_score"] * ROOMMATE_BASIC_WEIGHTS["lifestyle"]
        + sub_scores["cleanliness_score"] * ROOMMATE_BASIC_WEIGHTS["cleanliness"]
        + sub_scores["study_focus_score"] * ROOMMATE_BASIC_WEIGHTS["study_focus"]
        + sub_scores["budget_score"] * ROOMMATE_BASIC_WEIGHTS["budget"]
    )
    return clamp_score(score)


def score_roommate_personality(sub_scores: Dict[str, float], breakdown: Dict[str, float]) -> float:
    weights = ROOMMATE_PERSONALITY_WEIGHTS
    score = (
        sub_scores["lifestyle_score"] * weights["lifestyle"]
        + sub_scores["cleanliness_score"] * weights["cleanliness"]
        + breakdown["sleep_schedule"] * 100 * weights["sleep_schedule"]
        + breakdown["noise_compatibility"] * 100 * weights["noise_compatibility"]
        + breakdown["social_style"] * 100 * weights["social_style"]
        + breakdown["pets"] * 100 * weights["pets"]
        + breakdown["guests"] * 100 * weights["guests"]
        + sub_scores["budget_score"] * weights["budget"]
    )
    return clamp_score(score)


# =============================================================================
# PERSONALITY AXES (0.0 - 1.0)
# =============================================================================

def score_sleep_schedule(a: Optional[str], b: Optional[str]) -> float:
    """Exact match 1.0, one step apart 0.6, opposite ends 0.2."""
    return _ordinal_compatibility(a, b, SLEEP_SCHEDULE_ORDER, SLEEP_SCHEDULE_TABLE, 0.2)


def score_cleanliness_level(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, CLEANLINESS_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_noise_compatibility(a: Optional[str], b: Optional[str]) -> float:
    """Compares both parties' noise tolerance: 0 diff 1.0, 1 0.7, 2 0.4, 3+ 0.2."""
    return _ordinal_compatibility(a, b, NOISE_TOLERANCE_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_social_style(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, SOCIAL_STYLE_ORDER, SOCIAL_STYLE_TABLE, 0.3)


def score_smoking(a: Optional[str], b: Optional[str]) -> float:
    """
    1.0 only if both are non-smokers. This is a soft signal; the hard
    reject lives in the dealbreaker filter.
    """
    return 1.0 if _norm(a) == "no" and _norm(b) == "no" else 0.0


def score_cooking(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, COOKING_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_sleep_sensitivity(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, SLEEP_SENSITIVITY_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_study_time(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, STUDY_TIME_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_guests(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, GUESTS_ORDER, FOUR_STEP_TABLE, FOUR_STEP_FLOOR)


def score_pets(a: Optional[str], b: Optional[str]) -> float:
    return _ordinal_compatibility(a, b, PETS_ORDER, PETS_TABLE, 0.2)


def compute_personality_breakdown(student: StudentProfile, candidate: StudentProfile) -> Dict[str, float]:
    """Per-axis personality compatibility for two surveyed students."""
    return {
        "sleep_schedule": score_sleep_schedule(
            student.personality_sleep_schedule, candidate.personality_sleep_schedule),
        "cleanliness": score_cleanliness_level(
            student.personality_cleanliness_level, candidate.personality_cleanliness_level),
        "noise_compatibility": score_noise_compatibility(
            student.personality_noise_tolerance, candidate.personality_noise_tolerance),
        "social_style": score_social_style(
            student.personality_intro_extro, candidate.personality_intro_extro),
        "smoking": score_smoking(student.personality_smoking, candidate.personality_smoking),
        "cooking": score_cooking(
            student.personality_cooking_frequency, candidate.personality_cooking_frequency),
        "sleep_sensitivity": score_sleep_sensitivity(
            student.personality_sleep_sensitivity, candidate.personality_sleep_sensitivity),
        "study_time": score_study_time(
            student.personality_study_time, candidate.personality_study_time),
        "guests": score_guests(
            student.personality_guests_frequency, candidate.personality_guests_frequency),
        "pets": score_pets(student.personality_pets, candidate.personality_pets),
    }


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clamp_score(score: float) -> float:
    return max(0.0, min(100.0, score))


def meaningful_room_types(preferred_room_types: Iterable[str]) -> List[str]:
    """Drop blanks and the 'Any' wildcard."""
    return [
        t for t in preferred_room_types or []
        if t and t.strip().lower() != ANY_ROOM_TYPE
    ]


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    """Case-insensitive substring check."""
    if not haystack or not needle:
        return False
    return needle.strip().lower() in haystack.lower()


def _ordinal_compatibility(
    a: Optional[str],
    b: Optional[str],
    order: List[str],
    table: Dict[int, float],
    floor: float,
) -> float:
    """Map two categorical answers onto an ordered scale and look up their distance."""
    a_norm, b_norm = _norm(a), _norm(b)
    if a_norm not in order or b_norm not in order:
        return NEUTRAL_AXIS
    diff = abs(order.index(a_norm) - order.index(b_norm))
    return table.get(diff, floor)
