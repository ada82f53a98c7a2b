"""
Match Explanations

Turns scores and sub-scores into short, human-readable reasons.
Personality-derived reasons are only produced for Advanced/VIP tiers
with personality matching active.
"""

from typing import List, Dict, Any, Optional

from .contracts import ScoredMatch, StudentProfile
from .constants import (
    MatchTier,
    MAX_EXPLANATIONS,
    PERSONALITY_REASON_THRESHOLD,
    PERSONALITY_STRONG_THRESHOLD,
    BUDGET_NEAR_DELTA,
    LIFESTYLE_REASON_THRESHOLD,
    STUDY_FOCUS_REASON_THRESHOLD,
)

# axis -> (strong phrase above 0.9, regular phrase above 0.75)
PERSONALITY_PHRASES = {
    "sleep_schedule": ("Nearly identical sleep schedules", "Similar sleep schedules"),
    "cleanliness": ("Same cleanliness standards", "Both prefer clean living spaces"),
    "noise_compatibility": ("Perfectly matched noise tolerance", "Compatible noise tolerance levels"),
    "social_style": ("Same social energy", "Similar social preferences"),
    "guests": ("Same expectations about guests", "Compatible guest policies"),
    "pets": ("Fully aligned on pets", "Compatible about pets"),
}

GENERIC_REASONS = {
    "dorm": ["Verified listing with great facilities", "Highly rated by AI matching engine"],
    "room": ["Verified listing with great facilities", "Highly rated by AI matching engine"],
    "roommate": ["Compatible profile based on preferences", "Vetted by AI matching system"],
}

SINGLE_REASON_FILLER = "Recommended by Roomy AI"


def generate_match_explanations(
    match: ScoredMatch,
    student: StudentProfile,
    tier: str,
    use_personality: bool,
) -> List[str]:
    """
    Build up to four reasons for a match, in priority order.

    Args:
        match: Scored dorm, room or roommate match
        student: The requesting student
        tier: Effective tier (basic/advanced/vip)
        use_personality: Whether personality scoring is active for this request

    Returns:
        List of reason strings (at most 4)
    """
    if match.type == "roommate":
        explanations = _roommate_reasons(match, student, tier, use_personality)
    else:
        explanations = _housing_reasons(match, student)

    if not explanations:
        explanations = list(GENERIC_REASONS.get(match.type, GENERIC_REASONS["dorm"]))
    elif len(explanations) == 1:
        explanations.append(SINGLE_REASON_FILLER)

    return explanations[:MAX_EXPLANATIONS]


def _housing_reasons(match: ScoredMatch, student: StudentProfile) -> List[str]:
    c = match.candidate
    reasons: List[str] = []

    price = c.get("monthly_price") if match.type == "dorm" else c.get("price")
    budget_reason = _budget_reason(price, student.budget)
    if budget_reason:
        reasons.append(budget_reason)

    university = c.get("university")
    if university and student.preferred_university and \
            student.preferred_university.lower() in university.lower():
        reasons.append(f"Near {student.preferred_university}")

    area = c.get("area")
    if area:
        if any(a and a.lower() in area.lower() for a in student.favorite_areas or []):
            reasons.append(f"Located in your preferred area: {area}")
        else:
            reasons.append(f"Located in {area}")

    policy = (c.get("gender_preference") or "").lower()
    if policy in ("mixed", "any"):
        reasons.append("Mixed-gender dorm compatible with your profile")
    elif policy and student.gender and student.gender.lower() == policy:
        reasons.append(f"{student.gender.capitalize()}-friendly accommodation")

    if match.type == "room":
        spots = (c.get("capacity") or 0) - (c.get("capacity_occupied") or 0)
        if c.get("type"):
            reasons.append(f"{c['type']} room")
    else:
        spots = sum(
            (room.get("capacity") or 0) - (room.get("capacity_occupied") or 0)
            for room in match.available_rooms
        )
    if spots > 0:
        reasons.append(f"{spots} available spot{'s' if spots > 1 else ''} currently")

    amenities = c.get("amenities") or []
    if amenities and student.preferred_amenities:
        matched = [
            a for a in amenities
            if any(pa and pa.lower() in a.lower() for pa in student.preferred_amenities)
        ]
        if matched:
            reasons.append(f"Includes {' & '.join(matched[:2])}")

    return reasons


def _roommate_reasons(
    match: ScoredMatch,
    student: StudentProfile,
    tier: str,
    use_personality: bool,
) -> List[str]:
    c = match.candidate
    reasons: List[str] = []

    academic = _academic_overlap(c, student)
    if academic:
        reasons.append(academic)

    budget = c.get("budget")
    if budget and student.budget and abs(budget - student.budget) < BUDGET_NEAR_DELTA:
        reasons.append(f"Similar budget (${budget:.0f}/month)")

    housing_area = c.get("preferred_housing_area")
    if housing_area and any(a and a.lower() in housing_area.lower() for a in student.favorite_areas or []):
        reasons.append(f"Prefers {housing_area} area like you")

    context_note = _context_note(match, student)
    if context_note:
        reasons.append(context_note)

    if student.seeking_roommate_for_current_place and match.current_room:
        room = match.current_room
        available = (room.get("capacity") or 0) - (room.get("capacity_occupied") or 0)
        if available > 0:
            reasons.append(
                f"Can join your dorm ({available} spot{'s' if available > 1 else ''} "
                f"available in Room {room.get('name')})"
            )
        else:
            reasons.append("Room currently full - can find new shared dorm together")

    breakdown = match.sub_scores.get("personality_breakdown")
    if tier != MatchTier.BASIC.value and use_personality and breakdown:
        reasons.extend(_personality_reasons(breakdown))
    elif tier == MatchTier.BASIC.value:
        gender = c.get("gender")
        if gender and student.gender and gender.lower() == student.gender.lower():
            reasons.append(f"Same gender ({gender})")

    if (match.sub_scores.get("lifestyle_score") or 0) > LIFESTYLE_REASON_THRESHOLD:
        reasons.append("Compatible lifestyle habits")
    if (match.sub_scores.get("study_focus_score") or 0) > STUDY_FOCUS_REASON_THRESHOLD:
        reasons.append("Similar study schedules")

    return reasons


def _personality_reasons(breakdown: Dict[str, float]) -> List[str]:
    reasons = []
    for axis, (strong, regular) in PERSONALITY_PHRASES.items():
        value = breakdown.get(axis)
        if value is None:
            continue
        if value > PERSONALITY_STRONG_THRESHOLD:
            reasons.append(strong)
        elif value > PERSONALITY_REASON_THRESHOLD:
            reasons.append(regular)
    return reasons


def _budget_reason(price: Optional[float], budget: Optional[float]) -> Optional[str]:
    if not price or not budget:
        return None
    diff = budget - price
    if 0 <= diff < BUDGET_NEAR_DELTA:
        return f"Perfect budget fit at ${price:.0f}/month"
    if diff >= BUDGET_NEAR_DELTA:
        return f"Budget-friendly at ${price:.0f}/month ({round(diff / budget * 100)}% under budget)"
    return None


def _academic_overlap(c: Dict[str, Any], student: StudentProfile) -> Optional[str]:
    university = c.get("university")
    same_university = bool(
        university and student.preferred_university
        and university.lower() == student.preferred_university.lower()
    ) or bool(university and student.university and university == student.university)

    if same_university and c.get("major") and student.major and c["major"].lower() == student.major.lower():
        return f"Both study {c['major']} at {university}"
    if same_university:
        if c.get("year_of_study") and c.get("year_of_study") == student.year_of_study:
            return f"Both in year {student.year_of_study} at {university}"
        return f"Both study at {university}"
    if c.get("major") and student.major and c["major"].lower() == student.major.lower():
        return f"Both study {c['major']}"
    return None


def _context_note(match: ScoredMatch, student: StudentProfile) -> Optional[str]:
    c = match.candidate
    if student.seeking_roommate_for_current_place:
        return None
    if c.get("needs_roommate_current_place") and match.current_room:
        return f"Has a place at {match.current_room.get('dorm_name')}"
    if c.get("needs_roommate_new_dorm") and student.needs_roommate_new_dorm:
        return "Both looking for a dorm together"
    return None
