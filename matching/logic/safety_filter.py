"""
Dealbreaker & Safety Filter

Hard-reject rules applied before scoring. These are never relaxed,
not even by the fallback path. A rule returns a reason string when the
candidate must be dropped, or None when it passes.
"""

from typing import List, Optional

from sqlalchemy import func, or_

from .contracts import StudentProfile
from .constants import GENDER_COMPATIBLE_POLICIES, DEALBREAKER_ATTRIBUTES

# Policies open to any student regardless of gender
OPEN_POLICIES = ["mixed", "any"]


def allowed_gender_policies(student_gender: Optional[str]) -> List[str]:
    """Dorm gender_preference values a student may see (null is always allowed)."""
    gender = (student_gender or "").strip().lower()
    return GENDER_COMPATIBLE_POLICIES.get(gender, OPEN_POLICIES)


def dorm_admits_gender(gender_preference: Optional[str], student_gender: Optional[str]) -> bool:
    if not gender_preference:
        return True
    return gender_preference.strip().lower() in allowed_gender_policies(student_gender)


def gender_policy_clause(column, student_gender: Optional[str]):
    """SQL filter equivalent of dorm_admits_gender for a gender_preference column."""
    return or_(
        column.is_(None),
        func.lower(column).in_(allowed_gender_policies(student_gender)),
    )


def genders_match(a: Optional[str], b: Optional[str]) -> bool:
    """Roommates must share the same gender, compared case-insensitively."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def check_dealbreakers(student: StudentProfile, candidate: StudentProfile) -> Optional[str]:
    """
    Reject a roommate candidate whose habits hit one of the student's
    declared dealbreakers (e.g. smoking, drinking).
    """
    for tag in student.dealbreakers or []:
        attribute = DEALBREAKER_ATTRIBUTES.get((tag or "").strip().lower())
        if not attribute:
            continue
        value = getattr(candidate, attribute, None)
        if (value or "").strip().lower() == "yes":
            return f"dealbreaker:{tag.lower()}"
    return None


def check_roommate_safety(
    student: StudentProfile,
    candidate: StudentProfile,
    dorm_gender_preference: Optional[str] = None,
    enforce_dorm_policy: bool = False,
) -> Optional[str]:
    """
    Full hard-check sequence for a roommate candidate.

    When a specific dorm is involved (joining a confirmed room), its gender
    policy must admit the incoming roommate even if the general check passed.
    """
    if not genders_match(student.gender, candidate.gender):
        return "gender_mismatch"

    reason = check_dealbreakers(student, candidate)
    if reason:
        return reason

    if enforce_dorm_policy and not dorm_admits_gender(dorm_gender_preference, candidate.gender):
        return "dorm_gender_policy"

    return None
