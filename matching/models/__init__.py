# Export all matching models for easy imports
from .base import Base
from .student import Student
from .dorm import Dorm, Room
from .match_plan import StudentMatchPlan
from .ai_records import AIFeedback, AIMatchLog, AIEvent

__all__ = [
    "Base",
    "Student",
    "Dorm",
    "Room",
    "StudentMatchPlan",
    "AIFeedback",
    "AIMatchLog",
    "AIEvent",
]
