"""Abstract base class for people-search backends."""

from abc import ABC, abstractmethod

from leadfinder.core.schemas import RawResult


class PeopleSearchBackend(ABC):
    """Base class that every people-search backend must implement."""

    @property
    @abstractmethod
    def backend_id(self) -> str:
        """Unique identifier for this backend (e.g. 'exa')."""

    @abstractmethod
    async def search(
        self,
        query: str,
        max_results: int,
        *,
        include_summary: bool = False,
        max_text_characters: int = 1500,
    ) -> list[RawResult]:
        """Run a search and return raw (unparsed) results, at most ``max_results``."""
