from typing import Dict, Any, List
import json
from .safety_rules import SAFETY_RULES, CANDIDATE_TYPES, SYSTEM_ROLE_DEFINITION, JSON_OUTPUT_FORMAT_INSTRUCTION
from ..logic.contracts import ScoredMatch, StudentProfile


def build_system_prompt() -> str:
    """Constructs the static system prompt."""
    rules_str = "\n".join([f"- {rule}" for rule in SAFETY_RULES])
    types_str = "\n".join([f"- {kind}: {description}" for kind, description in CANDIDATE_TYPES.items()])

    return f"""{SYSTEM_ROLE_DEFINITION}

RULES (NON-NEGOTIABLE):
{rules_str}

CANDIDATE TYPES:
{types_str}

Scores run from 0 to 100; a higher score is a better fit.

OUTPUT FORMAT:
{JSON_OUTPUT_FORMAT_INSTRUCTION}
"""


def build_user_prompt(
    matches: List[ScoredMatch],
    student: StudentProfile,
    mode: str,
    use_personality: bool,
) -> str:
    """
    Constructs the user prompt from the student profile and scored matches.
    Only non-identifying fields are sent.
    """
    profile_summary = {
        "budget": student.budget,
        "university": student.university,
        "preferred_university": student.preferred_university,
        "favorite_areas": student.favorite_areas,
        "preferred_room_types": student.preferred_room_types,
        "accommodation_status": student.accommodation_status,
    }

    focus = "Consider personality compatibility." if use_personality else ""

    return f"""
STUDENT PROFILE:
{json.dumps(profile_summary, indent=2)}

MODE: {mode}

SCORED MATCHES (engine order):
{json.dumps(_minimize_match_data(matches), indent=2)}

TASK:
Re-rank these matches for the student and give one reason per match. {focus}
Adhere strictly to the rules.
"""


def _minimize_match_data(matches: List[ScoredMatch]) -> List[Dict[str, Any]]:
    """Helper to reduce match size for prompt."""
    minimized = []
    for m in matches:
        c = m.candidate
        entry = {
            "id": m.candidate_id,
            "type": m.type,
            "score": round(m.score, 1),
            "sub_scores": {k: v for k, v in m.sub_scores.items() if k != "personality_breakdown"},
        }
        if m.type == "roommate":
            entry.update({
                "name": c.get("full_name"),
                "university": c.get("university"),
                "major": c.get("major"),
                "budget": c.get("budget"),
            })
        else:
            entry.update({
                "name": c.get("dorm_name") or c.get("name"),
                "area": c.get("area"),
                "university": c.get("university"),
                "price": c.get("monthly_price") if m.type == "dorm" else c.get("price"),
            })
        minimized.append(entry)
    return minimized
