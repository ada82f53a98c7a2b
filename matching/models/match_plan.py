import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey

from .base import Base


class StudentMatchPlan(Base):
    __tablename__ = "student_match_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), ForeignKey("students.id"), index=True, nullable=False)
    plan_type = Column(String(16), nullable=False)  # basic / advanced / vip
    status = Column(String(16), default="active")
    started_at = Column(DateTime(timezone=False), default=datetime.utcnow)
    expires_at = Column(DateTime(timezone=False), nullable=False)
