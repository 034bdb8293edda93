"""HTTP client for the neural people-search index.

Pure transport: builds the request body, maps non-2xx answers onto
UpstreamSearchError and validates result items into RawResult. No retries.
"""

import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from leadfinder.core.config import SearchConfig
from leadfinder.core.errors import UpstreamSearchError
from leadfinder.core.schemas import RawResult
from leadfinder.search.base import PeopleSearchBackend

logger = logging.getLogger(__name__)

# JSON schema for the per-result structured summary requested on the full tier.
PERSON_SUMMARY_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Person Profile",
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Full name of the person"},
        "jobTitle": {"type": "string", "description": "Current job title or role"},
        "company": {"type": "string", "description": "Current company or employer"},
        "location": {"type": "string", "description": "City and/or country"},
    },
    "required": ["name"],
}


def build_search_body(
    query: str,
    max_results: int,
    *,
    include_summary: bool = False,
    max_text_characters: int = 1500,
) -> dict[str, Any]:
    """Build the search request body."""
    contents: dict[str, Any] = {"text": {"maxCharacters": max_text_characters}}
    if include_summary:
        contents["summary"] = {
            "query": "Extract the person's professional information",
            "schema": PERSON_SUMMARY_SCHEMA,
        }
    return {
        "query": query,
        "type": "neural",
        "category": "people",
        "numResults": max_results,
        "contents": contents,
    }


def parse_search_response(payload: Any, max_results: int) -> list[RawResult]:
    """Validate result items, skipping anything that is not a result object."""
    if not isinstance(payload, dict):
        msg = "Search response was not a JSON object"
        raise UpstreamSearchError(msg)

    items = payload.get("results") or []
    if not isinstance(items, list):
        msg = "Search response 'results' was not a list"
        raise UpstreamSearchError(msg)

    results: list[RawResult] = []
    for item in items:
        if len(results) >= max_results:
            break
        if not isinstance(item, dict):
            logger.debug("Skipping non-object search result: %r", item)
            continue
        try:
            results.append(RawResult.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed search result", exc_info=True)
    return results


class ExaSearchClient(PeopleSearchBackend):
    """Async client for the people-search API.

    Usage::

        async with ExaSearchClient(settings.search) as client:
            results = await client.search("ICU nurse Los Angeles", max_results=10)
    """

    def __init__(
        self,
        config: SearchConfig,
        api_key: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._api_key = api_key or config.resolve_api_key()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)

    @property
    def backend_id(self) -> str:
        return "exa"

    async def __aenter__(self) -> "ExaSearchClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search(
        self,
        query: str,
        max_results: int,
        *,
        include_summary: bool = False,
        max_text_characters: int = 1500,
    ) -> list[RawResult]:
        body = build_search_body(
            query,
            max_results,
            include_summary=include_summary,
            max_text_characters=max_text_characters,
        )
        url = f"{self._config.base_url.rstrip('/')}/search"

        try:
            response = await self._client.post(
                url,
                json=body,
                headers={"x-api-key": self._api_key, "Content-Type": "application/json"},
                timeout=self._config.timeout_seconds,
            )
        except httpx.RequestError as e:
            msg = f"Search request failed: {e.__class__.__name__}"
            raise UpstreamSearchError(msg) from e

        if not response.is_success:
            logger.error("Search error: %d %s", response.status_code, response.text[:500])
            msg = f"Search failed: {response.status_code}"
            raise UpstreamSearchError(msg, upstream_status=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            msg = "Search response was not valid JSON"
            raise UpstreamSearchError(msg, upstream_status=response.status_code) from e

        results = parse_search_response(payload, max_results)
        logger.info("Search returned %d results", len(results))
        return results
