"""
Candidate Fetchers

Query dorm, room and roommate candidates for a student, apply the hard
filters, and annotate every survivor with its sub-scores and final score.

Every per-candidate decision is an explicit Accepted/Rejected value so the
reason a candidate was dropped can be inspected instead of disappearing.
"""

import logging
from datetime import date, datetime
from typing import List, Dict, Any, Optional, Iterable, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .contracts import (
    StudentProfile,
    MatchContext,
    ScoredMatch,
    Accepted,
    Rejected,
    MatchDecision,
)
from .constants import (
    VERIFIED_STATUS,
    PRIMARY_BUDGET_TOLERANCE,
    PRIMARY_QUERY_LIMIT,
    SINGLE_ROOM_MARKER,
)
from .safety_filter import gender_policy_clause, check_roommate_safety, dorm_admits_gender
from .sub_scorers import (
    score_budget,
    score_location,
    score_room_type,
    score_amenities,
    score_dorm,
    score_room,
    score_lifestyle,
    score_cleanliness,
    score_study_focus,
    score_budget_closeness,
    score_roommate_basic,
    score_roommate_personality,
    compute_personality_breakdown,
    clamp_score,
    meaningful_room_types,
)
from .feedback import fetch_feedback_boosts
from ..models import Dorm, Room, Student

logger = logging.getLogger(__name__)

# Never exposed on roommate cards
PRIVATE_STUDENT_FIELDS = ("user_id", "email", "dealbreakers")


# =============================================================================
# EFFECTIVE FILTER VALUES
# =============================================================================

def effective_budget(student: StudentProfile, context: MatchContext) -> Optional[float]:
    return context.budget or student.budget


def effective_areas(student: StudentProfile, context: MatchContext) -> List[str]:
    if context.area:
        return [context.area]
    return list(student.favorite_areas or [])


def effective_university(student: StudentProfile, context: MatchContext) -> Optional[str]:
    return context.university or student.preferred_university


# =============================================================================
# DORMS
# =============================================================================

def dorm_base_query(db: Session, student: StudentProfile, exclude_ids: Iterable[str]):
    """Verified, available dorms the student's gender may see."""
    query = db.query(Dorm).filter(
        Dorm.verification_status == VERIFIED_STATUS,
        Dorm.available.is_(True),
        gender_policy_clause(Dorm.gender_preference, student.gender),
    )
    exclude = [i for i in exclude_ids or [] if i]
    if exclude:
        query = query.filter(Dorm.id.notin_(exclude))
    return query


def fetch_dorm_matches(
    db: Session,
    student: StudentProfile,
    context: Optional[MatchContext] = None,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    """
    Primary dorm search.

    Filters: verified + available, gender policy, price within +10% of
    budget, favorite areas, university substring. Dorms without a free
    eligible room are dropped.

    Returns:
        ScoredMatch list sorted by score (descending)
    """
    context = context or MatchContext()
    query = dorm_base_query(db, student, exclude_ids)

    budget = effective_budget(student, context)
    if budget:
        query = query.filter(Dorm.monthly_price <= budget * PRIMARY_BUDGET_TOLERANCE)

    areas = effective_areas(student, context)
    if areas:
        query = query.filter(Dorm.area.in_(areas))

    university = effective_university(student, context)
    if university:
        query = query.filter(Dorm.university.ilike(f"%{university}%"))

    dorms = query.order_by(Dorm.id).limit(PRIMARY_QUERY_LIMIT).all()
    logger.info(f"🏠 Dorm candidates after filters: {len(dorms)}")

    rooms_by_dorm = load_available_rooms(db, [d.id for d in dorms], student)
    boosts = fetch_feedback_boosts(db, [d.id for d in dorms])

    decisions = [
        evaluate_dorm(dorm, rooms_by_dorm.get(dorm.id, []), student, context, boosts.get(dorm.id))
        for dorm in dorms
    ]
    return sort_matches(_accepted(decisions))


def evaluate_dorm(
    dorm: Dorm,
    available_rooms: List[Room],
    student: StudentProfile,
    context: MatchContext,
    feedback_boost: Optional[float] = None,
) -> MatchDecision:
    """Score a single dorm, rejecting it when no eligible room is free."""
    if not available_rooms:
        return Rejected(candidate_id=dorm.id, reason="no_available_rooms")

    budget = effective_budget(student, context)
    price = dorm.monthly_price

    listed_types = [t.strip() for t in (dorm.room_types or "").split(",")]
    listed_types += [room.type for room in available_rooms]

    sub_scores = {
        "location_score": score_location(
            dorm.university, dorm.area,
            effective_university(student, context),
            effective_areas(student, context),
        ),
        "budget_score": score_budget(price, budget),
        "room_type_score": score_room_type(listed_types, student.preferred_room_types),
        "amenities_score": score_amenities(dorm.amenities or [], student.preferred_amenities),
    }

    score = score_dorm(sub_scores)
    if feedback_boost is not None:
        score = clamp_score(score + feedback_boost)

    return Accepted(match=ScoredMatch(
        candidate=row_to_dict(dorm),
        type="dorm",
        score=score,
        sub_scores=sub_scores,
        budget_warning=budget_warning(price, budget),
        available_rooms=[row_to_dict(room) for room in available_rooms],
    ))


def load_available_rooms(
    db: Session,
    dorm_ids: List[str],
    student: StudentProfile,
    respect_room_type: bool = True,
) -> Dict[str, List[Room]]:
    """
    Rooms with free capacity per dorm. Single rooms are skipped for
    students who want a roommate and have no room-type preference.
    """
    if not dorm_ids:
        return {}

    rooms = (
        db.query(Room)
        .filter(
            Room.dorm_id.in_(dorm_ids),
            or_(Room.available.is_(True), Room.available.is_(None)),
        )
        .order_by(Room.id)
        .all()
    )

    skip_singles = respect_room_type and excludes_single_rooms(student)
    by_dorm: Dict[str, List[Room]] = {}
    for room in rooms:
        if not room_has_space(room):
            continue
        if skip_singles and is_single_room(room):
            continue
        by_dorm.setdefault(room.dorm_id, []).append(room)
    return by_dorm


# =============================================================================
# ROOMS
# =============================================================================

def room_base_query(db: Session, student: StudentProfile, exclude_ids: Iterable[str]):
    query = (
        db.query(Room, Dorm)
        .join(Dorm, Room.dorm_id == Dorm.id)
        .filter(
            Dorm.verification_status == VERIFIED_STATUS,
            Dorm.available.is_(True),
            or_(Room.available.is_(True), Room.available.is_(None)),
            func.coalesce(Room.capacity_occupied, 0) < func.coalesce(Room.capacity, 0),
            gender_policy_clause(Dorm.gender_preference, student.gender),
        )
    )
    exclude = [i for i in exclude_ids or [] if i]
    if exclude:
        query = query.filter(Room.id.notin_(exclude))
    return query


def fetch_room_matches(
    db: Session,
    student: StudentProfile,
    context: Optional[MatchContext] = None,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    """
    Primary room search: individual rooms joined with their dorm, same
    verification, capacity and gender rules as dorms, priced within +10%.
    """
    context = context or MatchContext()
    query = room_base_query(db, student, exclude_ids)

    budget = effective_budget(student, context)
    if budget:
        query = query.filter(Room.price <= budget * PRIMARY_BUDGET_TOLERANCE)

    if context.area:
        query = query.filter(Dorm.area == context.area)

    rows = query.order_by(Room.id).limit(PRIMARY_QUERY_LIMIT).all()
    logger.info(f"🚪 Room candidates after filters: {len(rows)}")

    decisions = [evaluate_room(room, dorm, student, context) for room, dorm in rows]
    return sort_matches(_accepted(decisions))


def evaluate_room(room: Room, dorm: Dorm, student: StudentProfile, context: MatchContext) -> MatchDecision:
    if not room_has_space(room):
        return Rejected(candidate_id=room.id, reason="room_full")
    if excludes_single_rooms(student) and is_single_room(room):
        return Rejected(candidate_id=room.id, reason="single_room_for_roommate_seeker")

    budget = effective_budget(student, context)
    score = score_room(
        price=room.price,
        room_type=room.type,
        dorm_area=dorm.area,
        dorm_university=dorm.university,
        budget=budget,
        favorite_areas=effective_areas(student, context),
        preferred_university=effective_university(student, context),
        preferred_room_types=student.preferred_room_types,
    )

    candidate = row_to_dict(room)
    candidate.update({
        "dorm_name": dorm.dorm_name or dorm.name,
        "area": dorm.area,
        "university": dorm.university,
        "gender_preference": dorm.gender_preference,
        "amenities": dorm.amenities or [],
    })

    return Accepted(match=ScoredMatch(
        candidate=candidate,
        type="room",
        score=score,
        sub_scores={"budget_score": score_budget(room.price, budget)},
        budget_warning=budget_warning(room.price, budget),
    ))


# =============================================================================
# ROOMMATES
# =============================================================================

def fetch_roommate_matches(
    db: Session,
    student: StudentProfile,
    use_personality: bool,
    limit: int,
    exclude_ids: Optional[List[str]] = None,
) -> List[ScoredMatch]:
    """
    Roommate search.

    Two directions:
    - the student has a confirmed place and wants someone to join it
    - standard mutual matching between students who both seek a roommate

    Returns:
        Top `limit` ScoredMatch objects sorted by score (descending)
    """
    decisions = evaluate_roommate_candidates(db, student, use_personality, exclude_ids)

    for decision in decisions:
        if isinstance(decision, Rejected):
            logger.debug(f"Roommate candidate {decision.candidate_id} rejected: {decision.reason}")

    return sort_matches(_accepted(decisions))[:limit]


def evaluate_roommate_candidates(
    db: Session,
    student: StudentProfile,
    use_personality: bool,
    exclude_ids: Optional[List[str]] = None,
) -> List[MatchDecision]:
    if student.seeking_roommate_for_current_place:
        return _evaluate_join_my_place(db, student, use_personality, exclude_ids)
    return _evaluate_mutual(db, student, use_personality, exclude_ids)


def roommate_base_query(db: Session, student: StudentProfile, exclude_ids: Iterable[str]):
    """Other students of the same gender."""
    query = db.query(Student).filter(Student.id != student.id)
    if student.gender:
        query = query.filter(func.lower(Student.gender) == student.gender.strip().lower())
    exclude = [i for i in exclude_ids or [] if i]
    if exclude:
        query = query.filter(Student.id.notin_(exclude))
    return query


def seeking_roommate_clause():
    return or_(
        Student.needs_roommate_current_place.is_(True),
        Student.needs_roommate_new_dorm.is_(True),
    )


def _evaluate_join_my_place(
    db: Session,
    student: StudentProfile,
    use_personality: bool,
    exclude_ids: Optional[List[str]],
) -> List[MatchDecision]:
    place = load_own_place(db, student)
    if place is None:
        return []

    candidates = (
        roommate_base_query(db, student, exclude_ids)
        .filter(Student.accommodation_status == "need_dorm")
        .order_by(Student.id)
        .limit(PRIMARY_QUERY_LIMIT)
        .all()
    )
    return evaluate_join_rows(student, candidates, use_personality, *place)


def load_own_place(db: Session, student: StudentProfile) -> Optional[Tuple[Dict[str, Any], Optional[Dorm]]]:
    """
    The room a student wants filled, with its dorm.

    Returns None when the room is full or missing, or when the dorm's
    gender policy no longer admits the student themselves.
    """
    room = db.get(Room, student.current_room_id) if student.current_room_id else None
    if room is None or not room_has_space(room):
        logger.info(f"Current room {student.current_room_id} is full or missing; no roommate search")
        return None

    dorm_id = room.dorm_id or student.current_dorm_id
    dorm = db.get(Dorm, dorm_id) if dorm_id else None

    # the owner of the place must still be admitted by their own dorm
    if dorm is not None and not dorm_admits_gender(dorm.gender_preference, student.gender):
        logger.warning(f"Student {student.id} gender not admitted by dorm {dorm.id}")
        return None

    current_room = row_to_dict(room)
    if dorm is not None:
        current_room["dorm_name"] = dorm.dorm_name or dorm.name
    return current_room, dorm


def evaluate_join_rows(
    student: StudentProfile,
    rows: List[Student],
    use_personality: bool,
    current_room: Dict[str, Any],
    dorm: Optional[Dorm],
) -> List[MatchDecision]:
    """Hard checks and scoring for candidates joining the student's own room."""
    dorm_policy = dorm.gender_preference if dorm else None

    decisions = []
    for row in rows:
        candidate = StudentProfile.model_validate(row)
        reason = check_roommate_safety(
            student, candidate,
            dorm_gender_preference=dorm_policy,
            enforce_dorm_policy=dorm is not None,
        )
        if reason:
            decisions.append(Rejected(candidate_id=candidate.id, reason=reason))
            continue
        decisions.append(score_roommate(student, candidate, row, use_personality, current_room))
    return decisions


def _evaluate_mutual(
    db: Session,
    student: StudentProfile,
    use_personality: bool,
    exclude_ids: Optional[List[str]],
) -> List[MatchDecision]:
    query = roommate_base_query(db, student, exclude_ids).filter(seeking_roommate_clause())

    if student.preferred_university:
        query = query.filter(func.lower(Student.university) == student.preferred_university.strip().lower())

    if student.favorite_areas:
        query = query.filter(or_(
            Student.preferred_housing_area.is_(None),
            Student.preferred_housing_area.in_(student.favorite_areas),
        ))

    rows = query.order_by(Student.id).limit(PRIMARY_QUERY_LIMIT).all()
    return evaluate_roommate_rows(db, student, rows, use_personality)


def evaluate_roommate_rows(
    db: Session,
    student: StudentProfile,
    rows: List[Student],
    use_personality: bool,
) -> List[MatchDecision]:
    """Hard checks and scoring for candidates of the mutual-matching direction."""
    places = _load_current_places(db, rows)

    decisions = []
    for row in rows:
        candidate = StudentProfile.model_validate(row)
        place = places.get(row.id)

        # a candidate offering their confirmed room must be in a dorm that admits the student
        reason = check_roommate_safety(
            student, candidate,
            dorm_gender_preference=place.get("gender_preference") if place else None,
            enforce_dorm_policy=bool(candidate.room_confirmed and place),
        )
        if reason:
            decisions.append(Rejected(candidate_id=candidate.id, reason=reason))
            continue
        decisions.append(score_roommate(student, candidate, row, use_personality, place))
    return decisions


def score_roommate(
    student: StudentProfile,
    candidate: StudentProfile,
    row: Student,
    use_personality: bool,
    current_room: Optional[Dict[str, Any]] = None,
) -> Accepted:
    sub_scores: Dict[str, Any] = {
        "lifestyle_score": score_lifestyle(student, candidate),
        "cleanliness_score": score_cleanliness(student.habit_cleanliness, candidate.habit_cleanliness),
        "study_focus_score": score_study_focus(student, candidate),
        "budget_score": score_budget_closeness(student.budget, candidate.budget),
    }

    personality_ready = (
        use_personality
        and student.personality_test_completed
        and candidate.personality_test_completed
    )
    if personality_ready:
        breakdown = compute_personality_breakdown(student, candidate)
        score = score_roommate_personality(sub_scores, breakdown)
        sub_scores["personality_breakdown"] = breakdown
        sub_scores["personality_score"] = round(score, 2)
    else:
        score = score_roommate_basic(sub_scores)
        sub_scores["personality_score"] = None

    return Accepted(match=ScoredMatch(
        candidate=row_to_dict(row, exclude=PRIVATE_STUDENT_FIELDS),
        type="roommate",
        score=score,
        sub_scores=sub_scores,
        current_room=current_room,
    ))


def _load_current_places(db: Session, rows: List[Student]) -> Dict[str, Dict[str, Any]]:
    """Current room + dorm summary for candidates that offer their place."""
    room_ids = [r.current_room_id for r in rows if r.needs_roommate_current_place and r.current_room_id]
    if not room_ids:
        return {}

    pairs = (
        db.query(Room, Dorm)
        .join(Dorm, Room.dorm_id == Dorm.id)
        .filter(Room.id.in_(room_ids))
        .all()
    )
    by_room = {}
    for room, dorm in pairs:
        place = row_to_dict(room)
        place.update({
            "dorm_name": dorm.dorm_name or dorm.name,
            "area": dorm.area,
            "gender_preference": dorm.gender_preference,
        })
        by_room[room.id] = place

    return {
        r.id: by_room[r.current_room_id]
        for r in rows
        if r.current_room_id in by_room and r.needs_roommate_current_place
    }


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def room_has_space(room: Room) -> bool:
    return (room.capacity_occupied or 0) < (room.capacity or 0)


def is_single_room(room: Room) -> bool:
    return SINGLE_ROOM_MARKER in (room.type or "").lower() or (room.capacity or 0) == 1


def excludes_single_rooms(student: StudentProfile) -> bool:
    """'Any'/unset room type + wanting a roommate means singles are not suggested."""
    return not meaningful_room_types(student.preferred_room_types) and student.needs_roommate_new_dorm


def budget_warning(price: Optional[float], budget: Optional[float]) -> Optional[str]:
    if budget and price is not None and price > budget:
        return f"${price - budget:.0f} over your budget"
    return None


def sort_matches(matches: List[ScoredMatch]) -> List[ScoredMatch]:
    """Descending score; id breaks ties so repeated calls give the same order."""
    return sorted(matches, key=lambda m: (-m.score, str(m.candidate_id)))


def row_to_dict(row, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    data = {}
    for column in row.__table__.columns:
        if column.name in exclude:
            continue
        value = getattr(row, column.name)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        data[column.name] = value
    return data


def _accepted(decisions: List[MatchDecision]) -> List[ScoredMatch]:
    return [d.match for d in decisions if isinstance(d, Accepted)]
