"""Core data models for the candidate discovery pipeline."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

Tier = Literal["preview", "full"]

T = TypeVar("T")


def anonymous_caller_key(ip: str) -> str:
    """Rate-limit identity for an anonymous caller."""
    return f"ip:{ip.strip() or 'unknown'}"


def user_caller_key(user_id: str) -> str:
    """Rate-limit identity for an authenticated caller."""
    return f"user:{user_id.strip()}"


class SearchRequest(BaseModel):
    """A single pipeline invocation. Length limits are checked per tier by the pipeline."""

    model_config = ConfigDict(frozen=True)

    query: str
    caller_key: str
    tier: Tier = "preview"

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        return v.strip()


class RawResult(BaseModel):
    """One item of the search index response. Discarded after parsing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = ""
    title: str = ""
    text: str = ""
    summary: str | dict[str, Any] | None = None
    properties: dict[str, Any] | None = None
    id: str | None = None
    score: float | None = None

    @field_validator("url", "title", "text", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> Any:
        return None if v is None else str(v)


class ParsedCandidate(BaseModel):
    """A profile-shaped search result that survived parsing.

    Frozen. Only the parser constructs these; it guarantees the name and URL invariants.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=60)
    title: str | None = None
    company: str | None = None
    location: str | None = None
    years_experience: int | None = None
    summary: str = ""
    profile_url: str
    email: str | None = None


class CredentialProfile(BaseModel):
    """Comma-joined credential labels. None means no pattern matched."""

    model_config = ConfigDict(frozen=True)

    certifications: str | None = None
    licenses: str | None = None
    specialty: str | None = None


class ScoreResult(BaseModel):
    """Per-candidate qualification score returned by the scoring model."""

    model_config = ConfigDict(frozen=True)

    match_score: float = 0.0
    license_match: bool = False
    cert_match: bool = False
    experience_match: bool = False
    location_match: bool = False
    notes: str = ""

    @field_validator("match_score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return max(0.0, min(100.0, v))


class RankedCandidate(BaseModel):
    """Parsed candidate plus credentials plus an optional score."""

    model_config = ConfigDict(frozen=True)

    candidate: ParsedCandidate
    credentials: CredentialProfile = Field(default_factory=CredentialProfile)
    score: ScoreResult | None = None

    @property
    def match_score(self) -> float | None:
        return self.score.match_score if self.score is not None else None

    def to_lead(self, *, include_locked: bool = True) -> dict[str, Any]:
        """Flatten into the lead dict returned to the caller.

        Locked fields (profile URL, email) are omitted for preview responses.
        """
        exclude = None if include_locked else {"profile_url", "email"}
        lead: dict[str, Any] = self.candidate.model_dump(exclude=exclude)
        lead.update(self.credentials.model_dump())
        if self.score is not None:
            lead.update(self.score.model_dump())
        return lead


@dataclass(frozen=True)
class Allowed:
    """The caller may proceed; the counter has been incremented."""

    remaining: int
    reset_at: datetime


@dataclass(frozen=True)
class Denied:
    """The caller is over quota; the counter was not touched."""

    reset_at: datetime
    retry_after_seconds: int


RateLimitDecision = Allowed | Denied


@dataclass(frozen=True)
class Enhanced(Generic[T]):
    """A best-effort stage succeeded."""

    value: T

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """A best-effort stage degraded; ``value`` is the documented fallback."""

    value: T
    reason: str

    @property
    def is_fallback(self) -> bool:
        return True


class PipelineResponse(BaseModel):
    """Response contract handed back to the calling UI or service."""

    success: bool
    status_code: int = 200
    leads: list[dict[str, Any]] | None = None
    error: str | None = None
    error_code: str | None = None
    retry_after: int | None = None
    expanded_query: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON body without unset top-level keys. Lead fields keep explicit nulls."""
        data = self.model_dump(exclude={"status_code"})
        return {key: value for key, value in data.items() if value is not None}
