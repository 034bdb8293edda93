"""LLM qualification scoring for a batch of parsed candidates.

One tool-call request scores every candidate against the original requirement.
The tool arguments are untrusted input: ``decode_scores`` clamps, coerces and
defaults every field before anything reaches the rest of the pipeline. Any
failure yields Fallback with an empty map; candidates then stay unscored.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from leadfinder.core.config import LLMConfig
from leadfinder.core.errors import LeadFinderError
from leadfinder.core.schemas import (
    CredentialProfile,
    Enhanced,
    Fallback,
    ParsedCandidate,
    ScoreResult,
)
from leadfinder.llm.base import LLMProvider, ToolDefinition, loads_json_object

logger = logging.getLogger(__name__)

PROFILE_EXCERPT_LENGTH = 300
MAX_NOTES_LENGTH = 500

_SCORING_SYSTEM_PROMPT = (
    "You are a healthcare recruitment qualification engine. Score each candidate "
    "against the job requirements.\n\n"
    "Scoring is additive, 100 points total:\n"
    "  LICENSE (30): required license held (RN, NP, LPN, ...)\n"
    "  CERTIFICATIONS (20): required certifications held (BLS, ACLS, ...)\n"
    "  EXPERIENCE (30): specialty and years of experience match\n"
    "  LOCATION (20): candidate is in or near the required location\n\n"
    "Give partial credit when information is missing rather than contradicted. "
    "Submit one result per candidate index using the submit_scores tool."
)

SUBMIT_SCORES_TOOL = ToolDefinition(
    name="submit_scores",
    description="Submit scores for all candidates",
    parameters={
        "type": "object",
        "properties": {
            "results": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "index": {"type": "number"},
                        "match_score": {"type": "number"},
                        "license_match": {"type": "boolean"},
                        "cert_match": {"type": "boolean"},
                        "experience_match": {"type": "boolean"},
                        "location_match": {"type": "boolean"},
                        "notes": {"type": "string"},
                    },
                    "required": [
                        "index",
                        "match_score",
                        "license_match",
                        "cert_match",
                        "experience_match",
                        "location_match",
                        "notes",
                    ],
                },
            },
        },
        "required": ["results"],
    },
)


class ScoringInput:
    """A candidate as presented to the scoring model."""

    def __init__(
        self,
        candidate: ParsedCandidate,
        credentials: CredentialProfile,
        profile_text: str = "",
    ) -> None:
        self.candidate = candidate
        self.credentials = credentials
        self.profile_text = profile_text


def _summary_line(index: int, item: ScoringInput) -> str:
    c = item.candidate
    creds = item.credentials
    excerpt = (item.profile_text or c.summary)[:PROFILE_EXCERPT_LENGTH]
    return (
        f"[{index}] {c.name}"
        f" | Title: {c.title or 'N/A'}"
        f" | Location: {c.location or 'N/A'}"
        f" | Certs: {creds.certifications or 'N/A'}"
        f" | Licenses: {creds.licenses or 'N/A'}"
        f" | Specialty: {creds.specialty or 'N/A'}"
        f" | Profile: {excerpt}"
    )


def build_scoring_prompt(items: Sequence[ScoringInput], requirement: str) -> str:
    """Assemble the user prompt: requirement first, then one numbered line per candidate."""
    lines = "\n".join(_summary_line(i, item) for i, item in enumerate(items))
    return f"JOB REQUIREMENTS:\n{requirement}\n\nCANDIDATES:\n{lines}"


# --- Untrusted output decoding ---


def coerce_score(value: Any) -> float:
    """Number-ish value → float in [0, 100]; garbage becomes 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0.0
    if isinstance(value, int):
        return float(max(0, min(100, value)))
    if not isinstance(value, float) or math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "y", "1"}
    return False


def _coerce_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def decode_scores(arguments: str | dict[str, Any], count: int) -> dict[int, ScoreResult]:
    """Decode ``submit_scores`` arguments into validated ScoreResults.

    Items with a missing or out-of-range index are dropped; the first entry for
    a duplicated index wins. Raises ValueError when the payload is not a JSON
    object with a ``results`` list.
    """
    data = loads_json_object(arguments) if isinstance(arguments, str) else arguments
    results = data.get("results")
    if not isinstance(results, list):
        msg = "Scoring response missing 'results' list"
        raise ValueError(msg)

    scores: dict[int, ScoreResult] = {}
    for item in results:
        if not isinstance(item, dict):
            continue
        index = _coerce_index(item.get("index"))
        if index is None or not 0 <= index < count or index in scores:
            continue
        notes = item.get("notes")
        scores[index] = ScoreResult(
            match_score=coerce_score(item.get("match_score")),
            license_match=coerce_bool(item.get("license_match")),
            cert_match=coerce_bool(item.get("cert_match")),
            experience_match=coerce_bool(item.get("experience_match")),
            location_match=coerce_bool(item.get("location_match")),
            notes=(notes if isinstance(notes, str) else "")[:MAX_NOTES_LENGTH],
        )
    return scores


def score_candidates(
    items: Sequence[ScoringInput],
    requirement: str,
    provider: LLMProvider | None,
    config: LLMConfig,
) -> Enhanced[dict[int, ScoreResult]] | Fallback[dict[int, ScoreResult]]:
    """Score a batch in one LLM call.

    Returns Enhanced with the index → ScoreResult map, or Fallback with an
    empty map when scoring is disabled or anything goes wrong.
    """
    if not items:
        return Enhanced({})
    if not config.scoring_enabled or provider is None:
        return Fallback({}, "scoring disabled")

    prompt = build_scoring_prompt(items, requirement)
    try:
        arguments = provider.complete_with_tool(
            prompt,
            SUBMIT_SCORES_TOOL,
            model=config.scoring_model,
            system=_SCORING_SYSTEM_PROMPT,
        )
        scores = decode_scores(arguments, len(items))
    except LeadFinderError as e:
        logger.warning("Scoring failed (%s) - returning unscored candidates", e.code, exc_info=True)
        return Fallback({}, e.code)
    except ValueError:
        logger.warning("Scoring response malformed - returning unscored candidates", exc_info=True)
        return Fallback({}, "malformed response")
    except Exception:
        logger.warning("Scoring failed - returning unscored candidates", exc_info=True)
        return Fallback({}, "provider error")

    logger.info("Scored %d/%d candidates", len(scores), len(items))
    return Enhanced(scores)


def score(
    items: Sequence[ScoringInput],
    requirement: str,
    provider: LLMProvider | None,
    config: LLMConfig,
) -> dict[int, ScoreResult]:
    """Index → ScoreResult map; empty on any failure."""
    return score_candidates(items, requirement, provider, config).value
