"""Data models used across the Craigslist job search reporter."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import CATEGORY_PATHS


@dataclass(frozen=True, slots=True)
class Region:
    """A country searched as one unit; identified by its code."""

    name: str = field(compare=False)
    code: str


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """One search term run against a job category."""

    term: str
    category: str = "all-jobs"
    telecommute: bool = False

    def __post_init__(self) -> None:
        if self.category not in CATEGORY_PATHS:
            raise ValueError(
                f"Unknown category {self.category!r}; expected one of {', '.join(CATEGORY_PATHS)}"
            )

    @property
    def category_path(self) -> str:
        return CATEGORY_PATHS[self.category]


@dataclass(slots=True)
class Anchor:
    """A hyperlink pulled from a page.

    ``tag`` is the canonical opening tag ``<a href="...">`` and ``text`` the
    visible text of the anchor (or of its enclosing paragraph).
    """

    tag: str
    text: str


@dataclass(slots=True)
class ResultEntry:
    """A listing link found on a city's results page."""

    tag: str
    text: str
    city_title: str
    city_url: str
    site_header: bool = False


@dataclass(slots=True)
class RunStats:
    """Counters emitted into each report."""

    sites_searched: int = 0
    sites_with_results: int = 0
    results_found: int = 0

    def add(self, other: RunStats) -> None:
        self.sites_searched += other.sites_searched
        self.sites_with_results += other.sites_with_results
        self.results_found += other.results_found

    def reset(self) -> None:
        self.sites_searched = 0
        self.sites_with_results = 0
        self.results_found = 0


@dataclass(slots=True)
class CitySearchResult:
    entries: list[ResultEntry]
    stats: RunStats


@dataclass(slots=True)
class CountryResult:
    entries: list[ResultEntry]
    stats: RunStats
