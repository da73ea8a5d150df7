"""Data contracts for web research module."""

from dataclasses import dataclass

from .classification import domain_of


@dataclass(frozen=True)
class SearchResult:
    """Raw hit from a search backend, before content fetch and scoring."""

    title: str
    url: str
    snippet: str = ""

    @property
    def domain(self) -> str:
        return domain_of(self.url)
