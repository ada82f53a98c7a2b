import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, JSON

from .base import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    email = Column(String(255))
    gender = Column(String(16))
    age = Column(Integer)

    # Academic
    university = Column(String(255))
    preferred_university = Column(String(255))
    major = Column(String(255))
    year_of_study = Column(Integer)

    # Housing preferences
    budget = Column(Float)
    favorite_areas = Column(JSON, default=list)
    preferred_housing_area = Column(String(255))
    preferred_room_types = Column(JSON, default=list)
    preferred_amenities = Column(JSON, default=list)
    accommodation_status = Column(String(32))  # need_dorm / have_dorm
    current_dorm_id = Column(String(36))
    current_room_id = Column(String(36))
    room_confirmed = Column(Boolean, default=False)
    needs_roommate_current_place = Column(Boolean, default=False)
    needs_roommate_new_dorm = Column(Boolean, default=False)
    dealbreakers = Column(JSON, default=list)

    # Habit proxies (1-5 scale)
    habit_cleanliness = Column(Integer)
    habit_noise = Column(Integer)
    habit_social = Column(Integer)

    # Personality survey
    personality_test_completed = Column(Boolean, default=False)
    enable_personality_matching = Column(Boolean, default=True)
    personality_sleep_schedule = Column(String(32))
    personality_cleanliness_level = Column(String(32))
    personality_noise_tolerance = Column(String(32))
    personality_intro_extro = Column(String(32))
    personality_smoking = Column(String(8))
    personality_drinking = Column(String(8))
    personality_cooking_frequency = Column(String(32))
    personality_guests_frequency = Column(String(32))
    personality_study_time = Column(String(32))
    personality_sleep_sensitivity = Column(String(32))
    personality_pets = Column(String(16))

    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
