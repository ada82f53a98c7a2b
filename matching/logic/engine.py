"""
Roomy Matching Engine

Main orchestrator for the matching endpoint. Runs one request through
the pipeline and shapes the response.

Pipeline flow:
1. Authenticate - resolve the bearer token to a user id
2. Rate limit - fixed window per client IP
3. Load profile - the requesting student's row
4. Resolve plan - effective tier from active plans
5. Dispatch - dorm / rooms / roommate / combined fetchers
6. Explain - reasons on every match
7. Enrich - optional re-ranking and insights banner
8. Fallback - relaxed filters when nothing matched
9. Log - best-effort request analytics
"""

import time
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from utils.auth_utils import decode_token, extract_bearer
from .contracts import (
    StudentProfile,
    MatchRequest,
    FeedbackRequest,
    ScoredMatch,
    MatchResponse,
    TierInfo,
)
from .constants import (
    MatchMode,
    MatchAction,
    MatchTier,
    PERSONALITY_TIERS,
    DEFAULT_DORM_LIMIT,
)
from .exceptions import AuthError, NotFoundError, RateLimitError, ValidationError
from .candidate_fetchers import fetch_dorm_matches, fetch_room_matches, fetch_roommate_matches
from .fallback import fetch_with_relaxed_filters, build_fallback_info
from .explanations import generate_match_explanations
from .feedback import record_feedback, aggregate_scores
from .plans import resolve_tier, tier_match_limit
from .rate_limiter import RateLimiter, rate_limiter
from ..ai import enricher as enrichment
from ..models import Student, AIMatchLog, AIEvent

logger = logging.getLogger(__name__)

BASIC_TIER_MESSAGE = "Upgrade to Advanced or VIP to unlock personality compatibility insights."


class MatchEngine:
    """
    Orchestrates one matching request against a database session.

    The enricher and rate limiter are injectable so the pipeline can run
    without network calls and with isolated limiter state.
    """

    def __init__(
        self,
        db: Session,
        enricher: Optional["enrichment.Enricher"] = None,
        limiter: Optional[RateLimiter] = None,
    ):
        self.db = db
        self.enricher = enricher or enrichment.get_enricher()
        self.limiter = limiter or rate_limiter

    def handle(self, body: Any, authorization: Optional[str], client_ip: str) -> Dict[str, Any]:
        """
        Entry point for the POST endpoint.

        Args:
            body: Raw JSON request body
            authorization: Value of the Authorization header
            client_ip: Caller IP used as the rate-limit key

        Returns:
            JSON-serializable response dict

        Raises:
            RoomyAIError subclasses mapped to HTTP status by the route
        """
        request = self._parse(body)

        if request.action == MatchAction.GET_AGGREGATE_SCORES:
            self._check_rate_limit(client_ip)
            return aggregate_scores(self.db)

        user_id = self._authenticate(authorization)
        self._check_rate_limit(client_ip)

        if request.action == MatchAction.RECORD_FEEDBACK:
            return self._record_feedback(user_id, request)
        if request.action:
            raise ValidationError(f"Invalid action: {request.action}")

        student = self._load_student(user_id)
        return self.match(student, request).model_dump()

    # -------------------------------------------------------------------------
    # Matching pipeline
    # -------------------------------------------------------------------------

    def match(self, student: StudentProfile, request: MatchRequest) -> MatchResponse:
        start_time = time.perf_counter()

        mode = self._parse_mode(request.mode)
        tier = resolve_tier(self.db, student.id)
        tier_limit = tier_match_limit(tier)
        use_personality = self._use_personality(tier, student, request)
        housing_limit = request.limit or DEFAULT_DORM_LIMIT

        logger.info(
            f"🔎 Matching student {student.id}: mode={mode.value}, tier={tier}, "
            f"personality={use_personality}"
        )

        matches = self._dispatch(mode, student, request, use_personality, housing_limit, tier_limit)
        logger.info(f"Primary matches: {len(matches)}")

        for m in matches:
            m.explanations = generate_match_explanations(m, student, tier, use_personality)

        insights_banner = ""
        if matches:
            matches, insights_banner = self.enricher.rank(matches, student, mode.value, use_personality)
            if mode != MatchMode.COMBINED:
                matches = matches[:tier_limit if mode == MatchMode.ROOMMATE else housing_limit]

        fallback = None
        if not matches:
            logger.info(f"🔁 No primary matches for mode={mode.value}, activating fallback")
            matches = self._fallback(mode, student, request, housing_limit, tier_limit)
            for m in matches:
                m.explanations = generate_match_explanations(m, student, tier, use_personality)
            fallback = build_fallback_info(mode.value, matches)

        for m in matches:
            self._apply_visibility(m, tier, use_personality)

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(f"✅ Returning {len(matches)} matches in {processing_time_ms}ms")

        self._log_request(student, mode.value, tier, use_personality, len(matches),
                          bool(insights_banner), processing_time_ms)

        return MatchResponse(
            ai_mode=mode.value,
            match_tier=tier,
            personality_used=use_personality,
            insights_banner=insights_banner,
            matches=[m.to_response() for m in matches],
            fallback=fallback,
            tier_info=TierInfo(
                current_tier=tier,
                personality_enabled=use_personality,
                match_limit=tier_limit,
            ),
        )

    def _dispatch(
        self,
        mode: MatchMode,
        student: StudentProfile,
        request: MatchRequest,
        use_personality: bool,
        housing_limit: int,
        tier_limit: int,
    ) -> List[ScoredMatch]:
        matches: List[ScoredMatch] = []
        if mode in (MatchMode.DORM, MatchMode.COMBINED):
            matches += fetch_dorm_matches(self.db, student, request.context, request.exclude_ids)[:housing_limit]
        if mode == MatchMode.ROOMS:
            matches += fetch_room_matches(self.db, student, request.context, request.exclude_ids)[:housing_limit]
        if mode in (MatchMode.ROOMMATE, MatchMode.COMBINED):
            matches += fetch_roommate_matches(
                self.db, student, use_personality, tier_limit, request.exclude_ids
            )
        return matches

    def _fallback(
        self,
        mode: MatchMode,
        student: StudentProfile,
        request: MatchRequest,
        housing_limit: int,
        tier_limit: int,
    ) -> List[ScoredMatch]:
        if mode == MatchMode.COMBINED:
            dorms = fetch_with_relaxed_filters(self.db, student, request.context, MatchMode.DORM, request.exclude_ids)
            roommates = fetch_with_relaxed_filters(
                self.db, student, request.context, MatchMode.ROOMMATE, request.exclude_ids
            )
            return dorms[:housing_limit] + roommates[:tier_limit]

        relaxed = fetch_with_relaxed_filters(self.db, student, request.context, mode, request.exclude_ids)
        return relaxed[:tier_limit if mode == MatchMode.ROOMMATE else housing_limit]

    @staticmethod
    def _use_personality(tier: str, student: StudentProfile, request: MatchRequest) -> bool:
        # the request may opt out, never opt in beyond the resolved tier
        return (
            tier in PERSONALITY_TIERS
            and request.personality_enabled is not False
            and bool(student.enable_personality_matching)
            and student.personality_test_completed
        )

    @staticmethod
    def _apply_visibility(match: ScoredMatch, tier: str, use_personality: bool) -> None:
        if match.type != "roommate":
            return
        match.personality_visible = use_personality and match.sub_scores.get("personality_score") is not None
        if tier == MatchTier.BASIC.value:
            match.tier_message = BASIC_TIER_MESSAGE

    # -------------------------------------------------------------------------
    # Request handling helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse(body: Any) -> MatchRequest:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            return MatchRequest(**body)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid request: {e.errors()[0].get('msg', 'malformed body')}")

    @staticmethod
    def _parse_mode(mode: Optional[str]) -> MatchMode:
        try:
            return MatchMode(mode)
        except ValueError:
            raise ValidationError(f"Invalid mode: {mode}")

    @staticmethod
    def _authenticate(authorization: Optional[str]) -> str:
        if not authorization:
            raise AuthError("Authentication required")
        token = extract_bearer(authorization)
        if not token:
            raise AuthError("Invalid authentication")
        try:
            data = decode_token(token)
        except Exception as e:
            logger.warning(f"Token decode failed: {e}")
            raise AuthError("Invalid authentication")
        user_id = data.get("sub")
        if not user_id:
            raise AuthError("Invalid authentication")
        return str(user_id)

    def _check_rate_limit(self, client_ip: str) -> None:
        if self.limiter.is_rate_limited(client_ip):
            logger.warning(f"⛔ Rate limit exceeded for {client_ip}")
            raise RateLimitError(
                "Too many requests. Please try again later.",
                retry_after=self.limiter.window_seconds,
            )

    def _load_student(self, user_id: str) -> StudentProfile:
        row = self.db.query(Student).filter(Student.user_id == user_id).first()
        if row is None:
            raise NotFoundError("Student profile not found")
        return StudentProfile.model_validate(row)

    def _record_feedback(self, user_id: str, request: MatchRequest) -> Dict[str, Any]:
        try:
            payload = FeedbackRequest(
                ai_action=request.ai_action or "",
                target_id=request.target_id,
                helpful_score=request.helpful_score,
                feedback_text=request.feedback_text,
                context=request.feedback_context,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid feedback: {e.errors()[0].get('msg', 'malformed feedback')}")

        feedback = record_feedback(self.db, user_id, payload)
        self.db.commit()
        return {"success": True, "feedback_id": feedback.id}

    def _log_request(
        self,
        student: StudentProfile,
        mode: str,
        tier: str,
        use_personality: bool,
        result_count: int,
        insights_generated: bool,
        processing_time_ms: int,
    ) -> None:
        """Persist analytics rows. Failures are logged and never raised."""
        try:
            self.db.add(AIMatchLog(
                student_id=student.id,
                mode=mode,
                match_tier=tier,
                personality_used=use_personality,
                result_count=result_count,
                insights_generated=insights_generated,
                processing_time_ms=processing_time_ms,
            ))
            self.db.add(AIEvent(
                user_id=student.user_id,
                event_type="match_request",
                payload={"mode": mode, "tier": tier, "result_count": result_count},
            ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"⚠️ Failed to persist match log: {e}")
