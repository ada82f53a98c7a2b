"""
Data Contracts for the Roomy Matching Engine

Defines Pydantic models for the request/response boundary and the
intermediate scored-match structures passed between pipeline stages.
"""

from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field

from .constants import MatchTier, MIN_HELPFUL_SCORE, MAX_HELPFUL_SCORE


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class StudentProfile(BaseModel):
    """
    Housing attributes of a student, either the requester or a roommate
    candidate. Built from the `students` row.
    """
    id: str
    user_id: Optional[str] = None
    full_name: str = ""
    gender: Optional[str] = None
    age: Optional[int] = None

    university: Optional[str] = None
    preferred_university: Optional[str] = None
    major: Optional[str] = None
    year_of_study: Optional[int] = None

    budget: Optional[float] = None
    favorite_areas: Optional[List[str]] = Field(default_factory=list)
    preferred_housing_area: Optional[str] = None
    preferred_room_types: Optional[List[str]] = Field(default_factory=list)
    preferred_amenities: Optional[List[str]] = Field(default_factory=list)
    accommodation_status: Optional[str] = None  # need_dorm / have_dorm
    current_dorm_id: Optional[str] = None
    current_room_id: Optional[str] = None
    room_confirmed: Optional[bool] = False
    needs_roommate_current_place: Optional[bool] = False
    needs_roommate_new_dorm: Optional[bool] = False
    dealbreakers: Optional[List[str]] = Field(default_factory=list)

    habit_cleanliness: Optional[int] = None
    habit_noise: Optional[int] = None
    habit_social: Optional[int] = None

    personality_test_completed: Optional[bool] = False
    enable_personality_matching: Optional[bool] = True
    personality_sleep_schedule: Optional[str] = None
    personality_cleanliness_level: Optional[str] = None
    personality_noise_tolerance: Optional[str] = None
    personality_intro_extro: Optional[str] = None
    personality_smoking: Optional[str] = None
    personality_drinking: Optional[str] = None
    personality_cooking_frequency: Optional[str] = None
    personality_guests_frequency: Optional[str] = None
    personality_study_time: Optional[str] = None
    personality_sleep_sensitivity: Optional[str] = None
    personality_pets: Optional[str] = None

    class Config:
        from_attributes = True

    def model_post_init(self, __context: Any) -> None:
        # JSON columns may come back as None
        for name in ("favorite_areas", "preferred_room_types", "preferred_amenities", "dealbreakers"):
            if getattr(self, name) is None:
                setattr(self, name, [])
        self.room_confirmed = bool(self.room_confirmed)
        self.needs_roommate_current_place = bool(self.needs_roommate_current_place)
        self.needs_roommate_new_dorm = bool(self.needs_roommate_new_dorm)
        self.personality_test_completed = bool(self.personality_test_completed)
        if self.enable_personality_matching is None:
            self.enable_personality_matching = True

    @property
    def seeking_roommate_for_current_place(self) -> bool:
        """Student has a place and wants someone to join it."""
        return (
            self.accommodation_status == "have_dorm"
            and self.needs_roommate_current_place
            and bool(self.current_room_id)
        )


class MatchContext(BaseModel):
    """Per-request overrides of profile defaults."""
    budget: Optional[float] = None
    area: Optional[str] = None
    university: Optional[str] = None


class MatchRequest(BaseModel):
    """Request body for the matching endpoint."""
    mode: Optional[str] = None
    match_tier: Optional[str] = None          # advisory only
    personality_enabled: Optional[bool] = None  # advisory only
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    context: Optional[MatchContext] = Field(default_factory=MatchContext)
    exclude_ids: Optional[List[str]] = Field(default_factory=list)
    action: Optional[str] = None

    # record_feedback payload
    ai_action: Optional[str] = None
    target_id: Optional[str] = None
    helpful_score: Optional[int] = None
    feedback_text: Optional[str] = None
    feedback_context: Optional[Dict[str, Any]] = None

    def model_post_init(self, __context: Any) -> None:
        if self.context is None:
            self.context = MatchContext()
        if self.exclude_ids is None:
            self.exclude_ids = []


class FeedbackRequest(BaseModel):
    ai_action: str = Field(min_length=1)
    target_id: Optional[str] = None
    helpful_score: int = Field(ge=MIN_HELPFUL_SCORE, le=MAX_HELPFUL_SCORE)
    feedback_text: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


# =============================================================================
# INTERMEDIATE DATA STRUCTURES
# =============================================================================

class ScoredMatch(BaseModel):
    """
    A candidate (dorm, room or roommate) with computed scores.
    Created fresh per request and never persisted.
    """
    candidate: Dict[str, Any]
    type: str  # dorm / room / roommate
    score: float = Field(ge=0.0, le=100.0)
    sub_scores: Dict[str, Any] = Field(default_factory=dict)
    budget_warning: Optional[str] = None
    available_rooms: List[Dict[str, Any]] = Field(default_factory=list)
    current_room: Optional[Dict[str, Any]] = None
    explanations: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None
    personality_visible: bool = False
    tier_message: Optional[str] = None

    @property
    def candidate_id(self) -> Optional[str]:
        return self.candidate.get("id")

    def to_response(self) -> Dict[str, Any]:
        """Flatten into the wire shape: candidate fields plus match metadata."""
        data = dict(self.candidate)
        data.update({
            "type": self.type,
            "score": round(self.score, 2),
            "subScores": self.sub_scores,
            "explanations": self.explanations,
            "explanation": self.reasoning or (self.explanations[0] if self.explanations else ""),
            "reasoning": self.reasoning,
            "personality_visible": self.personality_visible,
        })
        if self.budget_warning:
            data["budgetWarning"] = self.budget_warning
        if self.available_rooms:
            data["availableRooms"] = self.available_rooms
        if self.current_room is not None:
            data["current_room"] = self.current_room
        if self.tier_message:
            data["tier_message"] = self.tier_message
        return data


class Accepted(BaseModel):
    """Candidate passed every hard check."""
    match: ScoredMatch


class Rejected(BaseModel):
    """Candidate removed by a hard rule."""
    candidate_id: Optional[str] = None
    reason: str


MatchDecision = Union[Accepted, Rejected]


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class FallbackInfo(BaseModel):
    type: str
    message: str
    filters_relaxed: Optional[List[str]] = None
    suggestions: Optional[List[str]] = None


class TierInfo(BaseModel):
    current_tier: str = MatchTier.BASIC.value
    personality_enabled: bool = False
    match_limit: int = 1


class MatchResponse(BaseModel):
    ai_mode: str
    match_tier: str
    personality_used: bool = False
    insights_banner: str = ""
    matches: List[Dict[str, Any]] = Field(default_factory=list)
    fallback: Optional[FallbackInfo] = None
    tier_info: TierInfo = Field(default_factory=TierInfo)
