"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite schema plus small factories for
seeding students, dorms, rooms, plans and feedback.
"""

import os

# Must be set before db.py is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("OPENAI_API_KEY", None)

import uuid
from datetime import timedelta

import pytest

from db import Base, engine, SessionLocal
from matching.models import Student, Dorm, Room, StudentMatchPlan, AIFeedback
from matching.logic.contracts import StudentProfile
from matching.logic.plans import _utcnow
from utils.auth_utils import create_token


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_student(db):
    def _make(**overrides):
        fields = {
            "user_id": f"user-{uuid.uuid4()}",
            "full_name": "Test Student",
            "gender": "female",
            "university": "AUB",
            "preferred_university": "AUB",
            "budget": 400.0,
            "favorite_areas": [],
            "preferred_room_types": [],
            "preferred_amenities": [],
            "dealbreakers": [],
            "accommodation_status": "need_dorm",
        }
        fields.update(overrides)
        student = Student(**fields)
        db.add(student)
        db.commit()
        return student
    return _make


@pytest.fixture
def make_dorm(db):
    def _make(rooms=None, **overrides):
        fields = {
            "name": "Dorm",
            "dorm_name": "Dorm",
            "area": "Hamra",
            "university": "AUB",
            "monthly_price": 380.0,
            "gender_preference": "female",
            "amenities": [],
            "verification_status": "Verified",
            "available": True,
        }
        fields.update(overrides)
        dorm = Dorm(**fields)
        db.add(dorm)
        db.flush()
        for extra in rooms if rooms is not None else [{"capacity": 2, "capacity_occupied": 1}]:
            room_fields = {"name": "101", "type": "Double", "price": fields["monthly_price"] or 0}
            room_fields.update(extra)
            db.add(Room(dorm_id=dorm.id, **room_fields))
        db.commit()
        return dorm
    return _make


@pytest.fixture
def make_plan(db):
    def _make(student, plan_type, days=30, status="active"):
        plan = StudentMatchPlan(
            student_id=student.id,
            plan_type=plan_type,
            status=status,
            expires_at=_utcnow() + timedelta(days=days),
        )
        db.add(plan)
        db.commit()
        return plan
    return _make


@pytest.fixture
def add_feedback(db):
    def _add(target_id, *scores, ai_action="dorm_match", user_id="user-feedback"):
        for score in scores:
            db.add(AIFeedback(
                user_id=user_id,
                ai_action=ai_action,
                target_id=target_id,
                helpful_score=score,
            ))
        db.commit()
    return _add


def profile_of(student: Student) -> StudentProfile:
    return StudentProfile.model_validate(student)


def auth_header(student: Student) -> dict:
    return {"Authorization": f"Bearer {create_token(student.user_id)}"}
