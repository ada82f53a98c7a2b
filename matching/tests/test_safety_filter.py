"""
Tests for the gender and dealbreaker hard filters.
"""

from matching.logic.contracts import StudentProfile
from matching.logic.safety_filter import (
    allowed_gender_policies,
    dorm_admits_gender,
    genders_match,
    check_dealbreakers,
    check_roommate_safety,
)


def profile(id="s1", **fields):
    return StudentProfile(id=id, **fields)


def test_allowed_gender_policies():
    assert allowed_gender_policies("Female") == ["female", "mixed", "any"]
    assert allowed_gender_policies("male") == ["male", "mixed", "any"]
    # unknown gender only sees open dorms
    assert allowed_gender_policies(None) == ["mixed", "any"]


def test_dorm_admits_gender():
    assert dorm_admits_gender(None, "male")
    assert dorm_admits_gender("Mixed", "female")
    assert dorm_admits_gender("female", "Female")
    assert not dorm_admits_gender("female", "male")
    assert not dorm_admits_gender("male", "female")
    assert not dorm_admits_gender("female", None)


def test_genders_match_is_case_insensitive():
    assert genders_match("Female", "female ")
    assert not genders_match("female", "male")
    assert not genders_match(None, "female")


def test_smoking_dealbreaker_rejects_smoker():
    student = profile(dealbreakers=["Smoking"])
    assert check_dealbreakers(student, profile("c1", personality_smoking="yes")) == "dealbreaker:smoking"
    assert check_dealbreakers(student, profile("c2", personality_smoking="no")) is None
    assert check_dealbreakers(student, profile("c3")) is None


def test_unknown_dealbreaker_tags_are_ignored():
    student = profile(dealbreakers=["pineapple_pizza", "drinking"])
    assert check_dealbreakers(student, profile("c1", personality_drinking="Yes")) == "dealbreaker:drinking"
    assert check_dealbreakers(student, profile("c2", personality_smoking="yes")) is None


def test_roommate_safety_sequence():
    student = profile(gender="female", dealbreakers=["smoking"])

    assert check_roommate_safety(student, profile("c1", gender="male")) == "gender_mismatch"
    assert check_roommate_safety(
        student, profile("c2", gender="female", personality_smoking="yes")
    ) == "dealbreaker:smoking"
    assert check_roommate_safety(student, profile("c3", gender="Female")) is None


def test_roommate_safety_enforces_dorm_policy_only_when_asked():
    student = profile(gender="female")
    candidate = profile("c1", gender="female")

    assert check_roommate_safety(student, candidate, dorm_gender_preference="male") is None
    assert check_roommate_safety(
        student, candidate, dorm_gender_preference="male", enforce_dorm_policy=True
    ) == "dorm_gender_policy"
    assert check_roommate_safety(
        student, candidate, dorm_gender_preference="mixed", enforce_dorm_policy=True
    ) is None
