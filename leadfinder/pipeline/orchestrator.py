"""Orchestrator: wires validation, rate limit, expansion, search, parsing, credentials and scoring.

Data flow:
  1. Query validation (before the gate, so bad input never costs quota)
  2. Rate-limit gate: denial short-circuits everything downstream
  3. Query expansion (best effort)
  4. People search → raw results
  5. Parse with early stop at the tier's candidate cap
  6. Credential extraction per survivor
  7. Batch scoring (best effort)
  8. Merge by index, stable sort, shape response
"""

import asyncio
import logging
from dataclasses import dataclass

from leadfinder.core.config import Settings, TierConfig
from leadfinder.core.errors import LeadFinderError, QueryValidationError, RateLimitExceeded
from leadfinder.core.schemas import (
    Denied,
    Enhanced,
    Fallback,
    PipelineResponse,
    RankedCandidate,
    ScoreResult,
    SearchRequest,
)
from leadfinder.llm.base import LLMProvider
from leadfinder.pipeline.credentials import extract_credentials
from leadfinder.pipeline.llm_scorer import ScoringInput, score_candidates
from leadfinder.pipeline.query_expander import expand_query
from leadfinder.pipeline.rate_limiter import RateLimiter
from leadfinder.search.base import PeopleSearchBackend
from leadfinder.search.parser import parse_results

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineRun:
    """Everything one invocation produced, including how the best-effort stages went."""

    candidates: list[RankedCandidate]
    expansion: Enhanced[str] | Fallback[str]
    scoring: Enhanced[dict[int, ScoreResult]] | Fallback[dict[int, ScoreResult]]
    raw_count: int


def sort_ranked(candidates: list[RankedCandidate]) -> list[RankedCandidate]:
    """Scored candidates by match_score descending, then unscored in discovery order.

    Both halves keep their relative input order for ties.
    """
    scored = [c for c in candidates if c.score is not None]
    unscored = [c for c in candidates if c.score is None]
    scored.sort(key=lambda c: c.score.match_score, reverse=True)  # type: ignore[union-attr]
    return scored + unscored


def validate_query(query: str, tier: TierConfig) -> str:
    """Return the trimmed query or raise QueryValidationError."""
    trimmed = query.strip()
    if len(trimmed) < tier.min_query_length:
        msg = f"Search query must be at least {tier.min_query_length} characters"
        raise QueryValidationError(msg)
    if len(trimmed) > tier.max_query_length:
        msg = f"Search query must be {tier.max_query_length} characters or less"
        raise QueryValidationError(msg)
    return trimmed


class DiscoveryPipeline:
    """Turns a recruiting query into ranked, credential-scored candidates.

    Nothing is persisted except the rate-limit counter.
    """

    def __init__(
        self,
        settings: Settings,
        rate_limiter: RateLimiter,
        search_backend: PeopleSearchBackend,
        provider: LLMProvider | None = None,
    ) -> None:
        self._settings = settings
        self._rate_limiter = rate_limiter
        self._search = search_backend
        self._provider = provider

    async def run(self, request: SearchRequest) -> list[RankedCandidate]:
        """Run the pipeline and return the ranked candidates.

        Raises QueryValidationError, RateLimitExceeded, ConfigurationError or
        UpstreamSearchError. Expansion and scoring failures never raise.
        """
        return (await self.run_detailed(request)).candidates

    async def run_detailed(self, request: SearchRequest) -> PipelineRun:
        tier = self._settings.tier(request.tier)
        query = validate_query(request.query, tier)

        # Step 2: Rate-limit gate
        decision = self._rate_limiter.check_tier(request.caller_key, request.tier)
        if isinstance(decision, Denied):
            msg = "Daily search limit reached. Please try again later."
            raise RateLimitExceeded(
                msg, retry_after=decision.retry_after_seconds, reset_at=decision.reset_at,
            )

        # Step 3: Expansion
        expansion = await asyncio.to_thread(
            expand_query, query, self._provider, self._settings.llm,
        )
        logger.info(
            "Searching '%s' (%s)",
            expansion.value,
            "expanded" if isinstance(expansion, Enhanced) else "raw",
        )

        # Step 4: Search
        raw_results = await self._search.search(
            expansion.value,
            tier.max_results,
            include_summary=tier.include_summary,
            max_text_characters=tier.max_text_characters,
        )
        raw_results = raw_results[: tier.max_results]

        # Step 5-6: Parse and extract credentials
        parsed = parse_results(raw_results, tier.candidate_cap)
        items = [
            ScoringInput(
                candidate=candidate,
                credentials=extract_credentials(f"{raw.text} {raw.title}"),
                profile_text=raw.text,
            )
            for candidate, raw in parsed
        ]

        # Step 7: Scoring
        scoring = await asyncio.to_thread(
            score_candidates, items, query, self._provider, self._settings.llm,
        )

        # Step 8: Merge and sort
        ranked = [
            RankedCandidate(
                candidate=item.candidate,
                credentials=item.credentials,
                score=scoring.value.get(i),
            )
            for i, item in enumerate(items)
        ]
        ranked = sort_ranked(ranked)

        logger.info(
            "Pipeline '%s': %d raw, %d candidates, %d scored",
            query, len(raw_results), len(ranked), len(scoring.value),
        )
        return PipelineRun(
            candidates=ranked,
            expansion=expansion,
            scoring=scoring,
            raw_count=len(raw_results),
        )

    async def handle(self, request: SearchRequest) -> PipelineResponse:
        """Run the pipeline and shape the result into the response contract."""
        try:
            result = await self.run_detailed(request)
        except RateLimitExceeded as e:
            return PipelineResponse(
                success=False,
                status_code=e.status_code,
                error=e.message,
                error_code=e.code,
                retry_after=e.retry_after,
            )
        except LeadFinderError as e:
            if e.status_code >= 500:
                logger.error("Pipeline failed for '%s': %s", request.caller_key, e.message)
            return PipelineResponse(
                success=False,
                status_code=e.status_code,
                error=e.message,
                error_code=e.code,
            )
        except Exception:
            logger.exception("Unexpected pipeline error for '%s'", request.caller_key)
            return PipelineResponse(
                success=False,
                status_code=500,
                error="Unknown error",
                error_code="internal_error",
            )

        tier = self._settings.tier(request.tier)
        return PipelineResponse(
            success=True,
            leads=[
                c.to_lead(include_locked=tier.expose_locked_fields) for c in result.candidates
            ],
            expanded_query=result.expansion.value,
        )
