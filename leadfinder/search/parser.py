"""Search result parser: converts raw people-search results into ParsedCandidate objects.

Rules:
  - Results whose URL lacks the profile-path marker are discarded outright.
  - Name, title, company and location come from an ordered strategy chain.
    Strategies run until one yields a name; earlier strategies win, later
    ones only fill gaps.
  - Junk names (search pages, error pages) are discarded, never emitted blank.
  - Every function here is pure: same RawResult in, same result out.
"""

import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import unquote

from leadfinder.core.schemas import ParsedCandidate, RawResult

logger = logging.getLogger(__name__)

PROFILE_PATH_MARKER = "linkedin.com/in/"
JUNK_NAME_TOKENS = ("job", "search", "result", "linkedin", "couldn't find")

MAX_NAME_LENGTH = 60
MAX_COMPANY_LENGTH = 60
MAX_LOCATION_LENGTH = 50
SUMMARY_LENGTH = 200

_LINKEDIN_SUFFIX_RE = re.compile(r"\s*[|·]\s*LinkedIn.*$", re.IGNORECASE)
_PIPE_SPLIT_RE = re.compile(r"\s*\|\s*")
# Hyphens must be spaced so hyphenated names ("Mary-Jane") survive; dashes need not be.
_DASH_SPLIT_RE = re.compile(r"\s+-\s+|\s*[–—]\s*")
_AT_CONNECTOR_RE = re.compile(r"^(.+?)\s+(?:at|@)\s+(.+)$", re.IGNORECASE)
_SLUG_RE = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)
_SLUG_HASH_RE = re.compile(r"-[a-f0-9]{6,}$", re.IGNORECASE)

_KNOWN_PLACES = (
    "Netherlands", "Amsterdam", "Rotterdam", "The Hague", "Utrecht", "Germany",
    "Berlin", "Munich", "France", "Paris", "United Kingdom", "UK", "London",
    "USA", "United States", "New York", "San Francisco", "Los Angeles",
    "Canada", "Toronto", "Vancouver", "Australia", "Sydney", "Melbourne",
    "India", "Bangalore", "Mumbai",
)

# Ordered: explicit phrasing, then "City, ST", then known place names.
LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?:\b(?:based in|located in|from)\b|📍)\s*([^|\n,]+(?:,\s*[^|\n]+)?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?,\s*(?:[A-Z]{2}|[A-Z][a-z]+))\s*(?:\||·|area|$)",
        re.MULTILINE,
    ),
    re.compile(
        r"\b(" + "|".join(re.escape(p) for p in _KNOWN_PLACES) + r")\b",
        re.IGNORECASE,
    ),
)

_YEARS_RE = re.compile(
    r"(\d+)\+?\s*(?:years?|yrs?)\s*(?:of\s+)?(?:experience|nursing|healthcare)",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w{2,}")


@dataclass(frozen=True)
class ProfileFields:
    """Partial identity fields produced by one extraction strategy."""

    name: str = ""
    title: str = ""
    company: str = ""
    location: str = ""

    def fill_from(self, other: "ProfileFields") -> "ProfileFields":
        """Keep existing values; take ``other``'s only where ours are empty."""
        return replace(
            self,
            name=self.name or other.name,
            title=self.title or other.title,
            company=self.company or other.company,
            location=self.location or other.location,
        )


Strategy = Callable[[RawResult], ProfileFields | None]


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


# --- Extraction strategies (each pure, each falls through with None) ---


def from_summary(raw: RawResult) -> ProfileFields | None:
    """Structured summary payload (JSON string or object)."""
    summary = raw.summary
    if summary is None:
        return None
    if isinstance(summary, str):
        try:
            summary = json.loads(summary)
        except json.JSONDecodeError:
            return None
    if not isinstance(summary, dict):
        return None
    return ProfileFields(
        name=_text(summary.get("name")) or _text(summary.get("fullName")),
        title=(
            _text(summary.get("jobTitle"))
            or _text(summary.get("title"))
            or _text(summary.get("position"))
        ),
        company=_text(summary.get("company")) or _text(summary.get("companyName")),
        location=_text(summary.get("location")),
    )


def from_person_property(raw: RawResult) -> ProfileFields | None:
    """Structured ``properties.person`` object attached by the index."""
    props = raw.properties or {}
    person = props.get("person")
    if props.get("type") != "person" or not isinstance(person, dict):
        return None
    company = person.get("company")
    return ProfileFields(
        name=_text(person.get("name")),
        title=_text(person.get("position")),
        company=_text(company.get("name")) if isinstance(company, dict) else _text(company),
        location=_text(person.get("location")),
    )


def split_title_company(segment: str) -> tuple[str, str]:
    """Split "Title at Company" / "Title @ Company"; no connector means title only."""
    match = _AT_CONNECTOR_RE.match(segment.strip())
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return segment.strip(), ""


def from_title_string(raw: RawResult) -> ProfileFields | None:
    """Heuristic split of "Name | Title at Company" or "Name - Title at Company - Company"."""
    clean = _LINKEDIN_SUFFIX_RE.sub("", raw.title).strip()
    if not clean:
        return None

    pipe_parts = _PIPE_SPLIT_RE.split(clean)
    if len(pipe_parts) >= 2:
        title, company = split_title_company(pipe_parts[1])
        return ProfileFields(name=pipe_parts[0].strip(), title=title, company=company)

    parts = [p.strip() for p in _DASH_SPLIT_RE.split(clean)]
    title, company = split_title_company(parts[1]) if len(parts) >= 2 else ("", "")
    if len(parts) >= 3 and not company:
        company = parts[2]
    return ProfileFields(name=parts[0], title=title, company=company)


def name_from_slug(url: str) -> str:
    """Derive "John Doe" from ".../in/john-doe-a1b2c3d4"."""
    match = _SLUG_RE.search(url)
    if not match:
        return ""
    slug = _SLUG_HASH_RE.sub("", unquote(match.group(1)))
    words = [w for w in slug.split("-") if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def from_url_slug(raw: RawResult) -> ProfileFields | None:
    """Last resort: the profile slug in the URL."""
    name = name_from_slug(raw.url)
    return ProfileFields(name=name) if name else None


STRATEGIES: tuple[Strategy, ...] = (
    from_summary,
    from_person_property,
    from_title_string,
    from_url_slug,
)


# --- Free-text field recovery ---


def extract_location(text: str) -> str | None:
    """First location pattern match under the length cap wins."""
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1) and len(match.group(1)) < MAX_LOCATION_LENGTH:
            return match.group(1).strip()
    return None


def extract_years_experience(text: str) -> int | None:
    """Recover "<N>+ years of experience" style statements."""
    match = _YEARS_RE.search(text)
    if match is None:
        return None
    years = int(match.group(1))
    return years if years <= 60 else None


def extract_email(text: str) -> str | None:
    match = _EMAIL_RE.search(text)
    return match.group(0) if match else None


def is_profile_url(url: str) -> bool:
    return PROFILE_PATH_MARKER in url.lower()


def is_junk_name(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in JUNK_NAME_TOKENS)


def extract_profile_fields(
    raw: RawResult,
    strategies: Iterable[Strategy] = STRATEGIES,
) -> ProfileFields:
    """Run strategies in order until one yields a name, merging gap-fills."""
    fields = ProfileFields()
    for strategy in strategies:
        found = strategy(raw)
        if found is None:
            continue
        fields = fields.fill_from(found)
        if fields.name:
            break
    return fields


def parse_result(raw: RawResult) -> ParsedCandidate | None:
    """Parse one raw result. Returns None when the record must be discarded."""
    if not is_profile_url(raw.url):
        return None

    fields = extract_profile_fields(raw)
    name = fields.name.strip()
    if len(name) < 2 or is_junk_name(name):
        return None

    text = raw.text
    company = fields.company[:MAX_COMPANY_LENGTH].strip()
    return ParsedCandidate(
        name=name[:MAX_NAME_LENGTH].strip(),
        title=fields.title or None,
        company=company or None,
        location=fields.location or extract_location(text),
        years_experience=extract_years_experience(text),
        summary=text[:SUMMARY_LENGTH],
        profile_url=raw.url,
        email=extract_email(text),
    )


def parse_results(raws: Iterable[RawResult], limit: int) -> list[tuple[ParsedCandidate, RawResult]]:
    """Parse results in discovery order, stopping once ``limit`` candidates are accepted.

    Returns (candidate, source) pairs so callers can reach the full text.
    """
    accepted: list[tuple[ParsedCandidate, RawResult]] = []
    skipped = 0
    for raw in raws:
        if len(accepted) >= limit:
            break
        candidate = parse_result(raw)
        if candidate is None:
            skipped += 1
            logger.debug("Discarded search result '%s'", raw.url)
            continue
        accepted.append((candidate, raw))
    logger.info("Parsed %d candidates, skipped %d results", len(accepted), skipped)
    return accepted
