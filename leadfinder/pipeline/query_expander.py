"""LLM query expansion: rewrite a short requirement into a richer people-search string.

Best effort only. Any failure yields Fallback carrying the raw query unchanged.
"""

import logging

from leadfinder.core.config import LLMConfig
from leadfinder.core.errors import LeadFinderError
from leadfinder.core.schemas import Enhanced, Fallback
from leadfinder.llm.base import LLMProvider

logger = logging.getLogger(__name__)

MIN_EXPANDED_LENGTH = 5
MAX_EXPANDED_LENGTH = 300

_EXPANSION_SYSTEM_PROMPT = (
    "You are a healthcare recruitment search query optimizer. Given a job "
    "description, produce a single optimized search string for finding matching "
    "healthcare professionals on LinkedIn.\n"
    "Rules:\n"
    "- Output ONLY the optimized search string, nothing else\n"
    "- Keep it under 200 characters\n"
    "- Include role synonyms and location variations\n"
    "- Include relevant license types and certifications\n"
    "- Focus on LinkedIn profile language"
)


def _clean_expansion(raw_text: str) -> str:
    """Trim whitespace and a pair of wrapping quotes the model sometimes adds."""
    text = raw_text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        text = text[1:-1].strip()
    return text


def is_valid_expansion(text: str) -> bool:
    return MIN_EXPANDED_LENGTH < len(text) < MAX_EXPANDED_LENGTH


def expand_query(
    raw_query: str,
    provider: LLMProvider | None,
    config: LLMConfig,
) -> Enhanced[str] | Fallback[str]:
    """Ask the LLM for an expanded search string.

    Returns Enhanced with the new string, or Fallback with ``raw_query`` when
    expansion is disabled, the call fails, or the answer fails validation.
    """
    if not config.expansion_enabled or provider is None:
        return Fallback(raw_query, "expansion disabled")

    try:
        raw = provider.complete(
            raw_query, model=config.expansion_model, system=_EXPANSION_SYSTEM_PROMPT,
        )
    except LeadFinderError as e:
        logger.warning("Query expansion failed (%s) - using raw query", e.code, exc_info=True)
        return Fallback(raw_query, e.code)
    except Exception:
        logger.warning("Query expansion failed - using raw query", exc_info=True)
        return Fallback(raw_query, "provider error")

    expanded = _clean_expansion(raw or "")
    if not is_valid_expansion(expanded):
        logger.warning(
            "Query expansion returned %d characters - using raw query", len(expanded),
        )
        return Fallback(raw_query, "invalid expansion")

    logger.info("Expanded query: %s", expanded)
    return Enhanced(expanded)


def expand(raw_query: str, provider: LLMProvider | None, config: LLMConfig) -> str:
    """Expanded query string, or ``raw_query`` unchanged on any failure."""
    return expand_query(raw_query, provider, config).value
