"""
Tests for the match explanation generator.
"""

from matching.logic.contracts import ScoredMatch, StudentProfile
from matching.logic.explanations import (
    generate_match_explanations,
    PERSONALITY_PHRASES,
    GENERIC_REASONS,
    SINGLE_REASON_FILLER,
)

PERSONALITY_STRINGS = {phrase for pair in PERSONALITY_PHRASES.values() for phrase in pair}


def student(**fields):
    return StudentProfile(id="s1", **fields)


def roommate_match(candidate=None, **fields):
    return ScoredMatch(candidate=candidate or {"id": "c1"}, type="roommate", score=80, **fields)


def dorm_match(candidate, **fields):
    return ScoredMatch(candidate=candidate, type="dorm", score=80, **fields)


def test_basic_tier_never_shows_personality_reasons():
    match = roommate_match(
        {"id": "c1", "gender": "female"},
        sub_scores={"personality_breakdown": {"sleep_schedule": 0.95, "cleanliness": 1.0}},
    )

    explanations = generate_match_explanations(match, student(gender="female"), "basic", True)

    assert not PERSONALITY_STRINGS.intersection(explanations)
    assert "Same gender (female)" in explanations


def test_advanced_tier_shows_personality_reasons():
    match = roommate_match(
        sub_scores={"personality_breakdown": {"sleep_schedule": 0.95, "cleanliness": 0.8, "pets": 0.5}},
    )

    explanations = generate_match_explanations(match, student(), "advanced", True)

    assert explanations == ["Nearly identical sleep schedules", "Both prefer clean living spaces"]


def test_personality_reasons_need_personality_active():
    match = roommate_match(sub_scores={"personality_breakdown": {"sleep_schedule": 1.0}})

    explanations = generate_match_explanations(match, student(), "vip", False)

    assert not PERSONALITY_STRINGS.intersection(explanations)


def test_roommate_academic_and_budget_reasons():
    match = roommate_match({
        "id": "c1",
        "university": "AUB",
        "major": "Biology",
        "budget": 450,
        "preferred_housing_area": "Hamra",
    })
    me = student(university="AUB", preferred_university="AUB", major="biology", budget=400, favorite_areas=["Hamra"])

    explanations = generate_match_explanations(match, me, "basic", False)

    assert explanations[:3] == [
        "Both study Biology at AUB",
        "Similar budget ($450/month)",
        "Prefers Hamra area like you",
    ]


def test_join_my_place_capacity_notes():
    me = student(accommodation_status="have_dorm", needs_roommate_current_place=True, current_room_id="r1")

    open_room = roommate_match(current_room={"name": "12", "capacity": 3, "capacity_occupied": 1})
    assert "Can join your dorm (2 spots available in Room 12)" in generate_match_explanations(
        open_room, me, "basic", False)

    full_room = roommate_match(current_room={"name": "12", "capacity": 2, "capacity_occupied": 2})
    assert "Room currently full - can find new shared dorm together" in generate_match_explanations(
        full_room, me, "basic", False)


def test_candidate_with_a_place_is_described():
    match = roommate_match(
        {"id": "c1", "needs_roommate_current_place": True},
        current_room={"dorm_name": "Bliss House", "capacity": 2, "capacity_occupied": 1},
    )

    assert "Has a place at Bliss House" in generate_match_explanations(match, student(), "basic", False)


def test_both_looking_for_dorm_together():
    match = roommate_match({"id": "c1", "needs_roommate_new_dorm": True})

    explanations = generate_match_explanations(match, student(needs_roommate_new_dorm=True), "basic", False)

    assert "Both looking for a dorm together" in explanations


def test_dorm_reasons_in_priority_order_and_truncated():
    match = dorm_match(
        {
            "id": "d1",
            "monthly_price": 380,
            "university": "American University of Beirut (AUB)",
            "area": "Hamra",
            "gender_preference": "mixed",
            "amenities": ["WiFi", "Gym"],
        },
        available_rooms=[{"capacity": 2, "capacity_occupied": 1}],
    )
    me = student(budget=400, preferred_university="AUB", favorite_areas=["Hamra"], preferred_amenities=["wifi"])

    explanations = generate_match_explanations(match, me, "basic", False)

    assert explanations == [
        "Perfect budget fit at $380/month",
        "Near AUB",
        "Located in your preferred area: Hamra",
        "Mixed-gender dorm compatible with your profile",
    ]


def test_budget_friendly_dorm():
    match = dorm_match({"id": "d1", "monthly_price": 300})

    explanations = generate_match_explanations(match, student(budget=400), "basic", False)

    assert explanations[0] == "Budget-friendly at $300/month (25% under budget)"


def test_single_reason_gets_filler():
    match = dorm_match({"id": "d1", "area": "Jounieh"})

    assert generate_match_explanations(match, student(), "basic", False) == [
        "Located in Jounieh",
        SINGLE_REASON_FILLER,
    ]


def test_no_reasons_falls_back_to_generic_lines():
    assert generate_match_explanations(dorm_match({"id": "d1"}), student(), "basic", False) == GENERIC_REASONS["dorm"]
    assert generate_match_explanations(roommate_match(), student(), "advanced", False) == GENERIC_REASONS["roommate"]


def test_spots_are_counted_across_available_rooms():
    match = dorm_match(
        {"id": "d1"},
        available_rooms=[
            {"capacity": 2, "capacity_occupied": 1},
            {"capacity": 3, "capacity_occupied": 1},
        ],
    )

    assert "3 available spots currently" in generate_match_explanations(match, student(), "basic", False)
