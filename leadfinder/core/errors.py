"""Error taxonomy for the discovery pipeline.

Every error carries a stable ``code`` and an HTTP-like ``status_code`` so the
response layer can map it without isinstance ladders.
"""

from datetime import datetime


class LeadFinderError(Exception):
    """Base class for all pipeline errors."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(LeadFinderError):
    """Missing upstream credentials or unusable settings. Never retried."""

    code = "configuration_error"
    status_code = 500


class QueryValidationError(LeadFinderError):
    """The search query is empty, too short or too long."""

    code = "invalid_query"
    status_code = 400


class RateLimitExceeded(LeadFinderError):
    """The caller has used up its quota for the current window."""

    code = "rate_limited"
    status_code = 429

    def __init__(self, message: str, *, retry_after: int, reset_at: datetime) -> None:
        super().__init__(message)
        self.retry_after = retry_after
        self.reset_at = reset_at


class UpstreamSearchError(LeadFinderError):
    """The people-search index answered with a non-2xx status or was unreachable."""

    code = "search_failed"
    status_code = 502

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class LLMError(LeadFinderError):
    """An LLM call failed for a reason other than rate limiting or quota."""

    code = "llm_error"
    status_code = 502


class LLMRateLimitedError(LLMError):
    """The LLM gateway answered 429."""

    code = "llm_rate_limited"
    status_code = 429


class LLMQuotaExhaustedError(LLMError):
    """The LLM gateway answered 402 (credits exhausted)."""

    code = "llm_quota_exhausted"
    status_code = 402


def llm_error_for_status(status: int | None, message: str) -> LLMError:
    """Map an upstream LLM HTTP status onto the matching error class."""
    if status == 429:
        return LLMRateLimitedError(message)
    if status == 402:
        return LLMQuotaExhaustedError(message)
    return LLMError(message)
