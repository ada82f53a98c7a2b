"""
Fallback Filter

Runs only when the primary fetch returned nothing. Relaxes budget, area,
room type and university constraints while keeping every safety rule
(gender, dealbreakers, seeking-a-roommate) strict. Results are flagged
with lower, fixed-shape scores to signal reduced confidence.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .contracts import StudentProfile, MatchContext, ScoredMatch, FallbackInfo, Accepted
from .constants import (
    MatchMode,
    FallbackType,
    FALLBACK_BUDGET_TOLERANCE,
    FALLBACK_QUERY_LIMIT,
    FALLBACK_DORM_SCORE,
    FALLBACK_DORM_SUB_SCORES,
    FALLBACK_OVER_BUDGET_SCORE,
    FALLBACK_ROOMMATE_FLOOR,
    FALLBACK_ROOMMATE_SPAN,
)
from .candidate_fetchers import (
    dorm_base_query,
    room_base_query,
    roommate_base_query,
    seeking_roommate_clause,
    load_available_rooms,
    evaluate_roommate_rows,
    evaluate_join_rows,
    load_own_place,
    effective_budget,
    effective_university,
    budget_warning,
    room_has_space,
    row_to_dict,
    sort_matches,
)
from .sub_scorers import score_budget, score_roommate_basic
from ..models import Dorm, Room, Student

logger = logging.getLogger(__name__)

DORM_FILTERS_RELAXED = ["budget (+20%)", "area", "room_type"]
ROOMMATE_FILTERS_RELAXED = ["university", "area"]

SUGGESTIONS = {
    MatchMode.DORM: [
        "Increase your monthly budget",
        "Add more preferred areas to your profile",
        "Check back later as new verified dorms are added regularly",
    ],
    MatchMode.ROOMS: [
        "Increase your monthly budget",
        "Consider a different room type",
        "Check back later as rooms free up each semester",
    ],
    MatchMode.ROOMMATE: [
        "Complete your profile so more students can find you",
        "Take the personality survey for better matches",
        "Check back later as new students join Roomy",
    ],
}


def fetch_with_relaxed_filters(
    db: Session,
    student: StudentProfile,
    context: Optional[MatchContext],
    mode: str,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    logger.info(f"🔁 Applying relaxed filters for fallback matches (mode={mode})")
    context = context or MatchContext()

    if mode == MatchMode.DORM:
        return fetch_relaxed_dorms(db, student, context, exclude_ids)
    if mode == MatchMode.ROOMS:
        return fetch_relaxed_rooms(db, student, context, exclude_ids)
    if mode == MatchMode.ROOMMATE:
        return fetch_relaxed_roommates(db, student, exclude_ids)
    return []


def fetch_relaxed_dorms(
    db: Session,
    student: StudentProfile,
    context: MatchContext,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    # gender stays strict inside dorm_base_query
    query = dorm_base_query(db, student, exclude_ids)

    budget = effective_budget(student, context)
    if budget:
        max_budget = budget * FALLBACK_BUDGET_TOLERANCE
        query = query.filter(Dorm.monthly_price <= max_budget)
        logger.info(f"Fallback budget expanded to +20% (max: ${max_budget:.0f})")

    university = effective_university(student, context)
    if university:
        query = query.filter(Dorm.university.ilike(f"%{university}%"))

    dorms = query.order_by(Dorm.id).limit(FALLBACK_QUERY_LIMIT).all()
    rooms_by_dorm = load_available_rooms(db, [d.id for d in dorms], student, respect_room_type=False)

    matches = []
    for dorm in dorms:
        rooms = rooms_by_dorm.get(dorm.id, [])
        if not rooms:
            continue
        warning = budget_warning(dorm.monthly_price, budget)
        sub_scores = dict(FALLBACK_DORM_SUB_SCORES)
        if warning:
            sub_scores["budget_score"] = FALLBACK_OVER_BUDGET_SCORE
        matches.append(ScoredMatch(
            candidate=row_to_dict(dorm),
            type="dorm",
            score=FALLBACK_DORM_SCORE,
            sub_scores=sub_scores,
            budget_warning=warning,
            available_rooms=[row_to_dict(room) for room in rooms],
        ))
    return sort_matches(matches)


def fetch_relaxed_rooms(
    db: Session,
    student: StudentProfile,
    context: MatchContext,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    query = room_base_query(db, student, exclude_ids)

    budget = effective_budget(student, context)
    if budget:
        query = query.filter(Room.price <= budget * FALLBACK_BUDGET_TOLERANCE)

    university = effective_university(student, context)
    if university:
        query = query.filter(Dorm.university.ilike(f"%{university}%"))

    matches = []
    for room, dorm in query.order_by(Room.id).limit(FALLBACK_QUERY_LIMIT).all():
        if not room_has_space(room):
            continue
        candidate = row_to_dict(room)
        candidate.update({
            "dorm_name": dorm.dorm_name or dorm.name,
            "area": dorm.area,
            "university": dorm.university,
            "gender_preference": dorm.gender_preference,
        })
        matches.append(ScoredMatch(
            candidate=candidate,
            type="room",
            score=FALLBACK_DORM_SCORE,
            sub_scores={"budget_score": score_budget(room.price, budget)},
            budget_warning=budget_warning(room.price, budget),
        ))
    return sort_matches(matches)


def fetch_relaxed_roommates(
    db: Session,
    student: StudentProfile,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    """
    Drops university and area filters. Gender, dealbreakers, the own
    dorm's gender policy and the seeking-a-roommate requirement still
    apply. Personality is never used.
    """
    place = None
    if student.seeking_roommate_for_current_place:
        place = load_own_place(db, student)
        if place is None:
            return []

    rows = (
        roommate_base_query(db, student, exclude_ids)
        .filter(seeking_roommate_clause())
        .order_by(Student.id)
        .limit(FALLBACK_QUERY_LIMIT)
        .all()
    )

    if place is not None:
        decisions = evaluate_join_rows(student, rows, False, *place)
    else:
        decisions = evaluate_roommate_rows(db, student, rows, use_personality=False)

    matches = []
    for decision in decisions:
        if not isinstance(decision, Accepted):
            continue
        match = decision.match
        match.score = FALLBACK_ROOMMATE_FLOOR + FALLBACK_ROOMMATE_SPAN * score_roommate_basic(match.sub_scores)
        match.sub_scores["personality_score"] = None
        matches.append(match)
    return sort_matches(matches)


def build_fallback_info(mode: str, fallback_matches: List[ScoredMatch]) -> FallbackInfo:
    """Describe what was relaxed, or suggest next steps when nothing worked."""
    modes = [MatchMode.DORM, MatchMode.ROOMMATE] if mode == MatchMode.COMBINED else [MatchMode(mode)]

    found_types = {m.type for m in fallback_matches}
    if not fallback_matches:
        suggestions = []
        for m in modes:
            for suggestion in SUGGESTIONS[m]:
                if suggestion not in suggestions:
                    suggestions.append(suggestion)
        return FallbackInfo(
            type=_fallback_type(modes[0]),
            message="No matches found, even after relaxing your filters.",
            suggestions=suggestions,
        )

    if "dorm" in found_types or "room" in found_types:
        primary = MatchMode.ROOMS if "room" in found_types else MatchMode.DORM
        filters = list(DORM_FILTERS_RELAXED)
        if "roommate" in found_types:
            filters += [f for f in ROOMMATE_FILTERS_RELAXED if f not in filters]
        message = "No exact matches found. Showing options with a higher budget limit across all areas and room types."
    else:
        primary = MatchMode.ROOMMATE
        filters = list(ROOMMATE_FILTERS_RELAXED)
        message = "No exact roommate matches found. Showing students from other universities and areas."

    return FallbackInfo(type=_fallback_type(primary), message=message, filters_relaxed=filters)


def _fallback_type(mode: MatchMode) -> str:
    return {
        MatchMode.DORM: FallbackType.DORM_NO_MATCH,
        MatchMode.ROOMS: FallbackType.ROOM_NO_MATCH,
        MatchMode.ROOMMATE: FallbackType.ROOMMATE_NO_MATCH,
    }[mode].value
