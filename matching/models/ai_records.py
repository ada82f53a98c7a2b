import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON

from .base import Base


class AIFeedback(Base):
    __tablename__ = "ai_feedback"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), index=True)
    ai_action = Column(String(64), nullable=False)
    target_id = Column(String(64), index=True)
    helpful_score = Column(Integer, nullable=False)
    feedback_text = Column(Text)
    context = Column(JSON)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow)


class AIMatchLog(Base):
    __tablename__ = "ai_match_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), nullable=False)
    mode = Column(String(16), nullable=False)
    match_tier = Column(String(16), nullable=False)
    personality_used = Column(Boolean)
    result_count = Column(Integer)
    insights_generated = Column(Boolean)
    processing_time_ms = Column(Integer)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow)


class AIEvent(Base):
    __tablename__ = "ai_events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64))
    event_type = Column(String(64), nullable=False)
    payload = Column(JSON)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow)
