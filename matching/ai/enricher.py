"""
Match Enrichment

Optional post-processing stage that re-ranks scored matches and writes
an insights banner. The scoring core never depends on it: when no API key
is configured, or the model call fails or times out, the template
enricher's degraded output is used instead.
"""

import os
import json
import logging
from typing import List, Tuple, Dict, Any

import openai
from dotenv import load_dotenv

from .prompt_builder import build_system_prompt, build_user_prompt
from ..logic.contracts import ScoredMatch, StudentProfile
from ..logic.constants import MatchMode
from ..logic.exceptions import EnrichmentError

# Load env vars (if not already loaded)
load_dotenv()

logger = logging.getLogger(__name__)

GENERIC_INSIGHTS = {
    MatchMode.DORM: "Top dorms matched based on your budget, location, and preferences.",
    MatchMode.ROOMS: "Top rooms matched based on your budget, location, and room preferences.",
    MatchMode.ROOMMATE: "Top roommates matched based on university and lifestyle compatibility.",
    MatchMode.COMBINED: "Top dorms and roommates matched based on your budget, university, and lifestyle.",
}

TEMPLATE_REASONS = {
    "dorm": "Fits your budget and location preferences",
    "room": "Fits your budget and location preferences",
    "roommate": "Compatible lifestyle and study habits",
}


class Enricher:
    """Capability interface: rank(matches) -> (ranked matches, insights banner)."""

    def rank(
        self,
        matches: List[ScoredMatch],
        student: StudentProfile,
        mode: str,
        use_personality: bool,
    ) -> Tuple[List[ScoredMatch], str]:
        raise NotImplementedError


class TemplateEnricher(Enricher):
    """Degraded default. Keeps engine order and writes templated reasoning."""

    def rank(self, matches, student, mode, use_personality):
        for index, match in enumerate(matches):
            match.reasoning = f"Match #{index + 1}: {TEMPLATE_REASONS.get(match.type, TEMPLATE_REASONS['dorm'])}"
        return matches, generic_insights(mode)


class OpenAIEnricher(Enricher):
    def __init__(self, api_key: str, base_url: str = None, model: str = "gpt-4o-mini", timeout: float = 8.0):
        # Fire once: no retries on the critical path
        self.client = openai.OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.model = model
        self.max_tokens = 700
        self.temperature = 0.3
        self.fallback = TemplateEnricher()

    def rank(self, matches, student, mode, use_personality):
        try:
            payload = self._complete(matches, student, mode, use_personality)
            return apply_ranking(matches, payload, mode)
        except Exception as e:
            logger.warning(f"⚠️ Enrichment failed, using templated reasoning: {e}")
            return self.fallback.rank(matches, student, mode, use_personality)

    def _complete(self, matches, student, mode, use_personality) -> Dict[str, Any]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": build_system_prompt()},
                {"role": "user", "content": build_user_prompt(matches, student, mode, use_personality)},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content
        if not content:
            raise EnrichmentError("Empty completion")

        parsed = json.loads(content)
        if not isinstance(parsed, dict):
            raise EnrichmentError("Completion is not a JSON object")
        return parsed


def apply_ranking(
    matches: List[ScoredMatch],
    payload: Dict[str, Any],
    mode: str,
) -> Tuple[List[ScoredMatch], str]:
    """
    Reorder matches by the model's ranked ids. Unknown ids are ignored and
    unlisted matches keep their engine order after the ranked ones.
    """
    by_id = {m.candidate_id: m for m in matches}
    ranked: List[ScoredMatch] = []
    for candidate_id in payload.get("ranked_ids") or []:
        match = by_id.pop(str(candidate_id), None)
        if match is not None:
            ranked.append(match)
    ranked.extend(m for m in matches if m.candidate_id in by_id)

    reasons = payload.get("reasons") or {}
    if not isinstance(reasons, dict):
        reasons = {}
    for index, match in enumerate(ranked):
        reason = reasons.get(match.candidate_id)
        if isinstance(reason, str) and reason.strip():
            match.reasoning = reason.strip()
        else:
            match.reasoning = f"Match #{index + 1}: {TEMPLATE_REASONS.get(match.type, TEMPLATE_REASONS['dorm'])}"

    insights = payload.get("insights")
    if not isinstance(insights, str) or not insights.strip():
        insights = generic_insights(mode)
    return ranked, insights.strip()


def generic_insights(mode: str) -> str:
    try:
        return GENERIC_INSIGHTS[MatchMode(mode)]
    except ValueError:
        return GENERIC_INSIGHTS[MatchMode.DORM]


def get_enricher() -> Enricher:
    """Pick the enricher from the environment."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.info("OPENAI_API_KEY not set, using template enricher")
        return TemplateEnricher()
    return OpenAIEnricher(
        api_key=api_key,
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        model=os.getenv("ROOMY_AI_MODEL", "gpt-4o-mini"),
        timeout=float(os.getenv("ROOMY_AI_TIMEOUT_SECONDS", "8")),
    )
