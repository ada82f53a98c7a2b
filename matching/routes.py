"""
Roomy AI Core API Routes

Exposes the matching engine via REST API.
Single endpoint: POST /roomy-ai-core
"""

import logging
from typing import Optional, Any

from fastapi import APIRouter, Depends, Body, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from db import get_db
from .logic.engine import MatchEngine
from .logic.exceptions import RoomyAIError, RateLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roomy-ai-core", tags=["roomy-ai-core"])


def get_engine(db: Session = Depends(get_db)) -> MatchEngine:
    return MatchEngine(db)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("", summary="Dorm, room and roommate matching")
@router.post("/", summary="Dorm, room and roommate matching", include_in_schema=False)
def roomy_ai_core(
    request: Request,
    body: Any = Body(...),
    authorization: Optional[str] = Header(default=None),
    engine: MatchEngine = Depends(get_engine),
):
    """
    Run the matching pipeline or an auxiliary action.

    **Request Body:**
    - `mode`: dorm, roommate, combined or rooms
    - `limit`: cap on dorm/room results (default: 10)
    - `context`: per-request budget/area/university overrides
    - `exclude_ids`: candidate ids to omit
    - `action`: record_feedback or get_aggregate_scores

    **Response:**
    - Scored matches with explanations, fallback descriptor and tier info
    """
    try:
        return engine.handle(body, authorization, client_ip(request))
    except RateLimitError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message},
            headers={"Retry-After": str(e.retry_after)},
        )
    except RoomyAIError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        logger.exception(f"❌ roomy-ai-core failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", summary="Matching engine health check")
def health_check():
    """Check if matching engine is operational."""
    return {"status": "ok", "engine": "roomy-ai-core", "version": "1.0.0"}
