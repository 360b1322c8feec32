"""Drives searches over every configured region and search term."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Mapping, Sequence

from .config import DEFAULT_REGIONS, hub_url
from .crawler import AsyncCrawler
from .models import Region, RunStats, SearchRequest
from .report import (
    ReportWriter,
    body_fragments,
    header_fragment,
    report_filename,
    stats_fragment,
    tail_fragment,
)
from .search import HubLoadError, crawl_country

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReportOutcome:
    """Summary of one written report."""

    region: Region
    term: str
    path: Path
    stats: RunStats
    hub_error: str | None = None


class JobSearchRunner:
    """Writes one report per (region, term) pair.

    The runner owns the crawler for the duration of :meth:`run` and closes
    it when the run ends.
    """

    def __init__(
        self,
        writer: ReportWriter,
        crawler_factory: Callable[[], AsyncCrawler],
        *,
        regions: Mapping[str, str] | None = None,
    ) -> None:
        self._writer = writer
        self._crawler_factory = crawler_factory
        region_map = DEFAULT_REGIONS if regions is None else regions
        self.regions = [Region(name=name, code=code) for name, code in region_map.items()]
        self.stats = RunStats()

    async def find_all_jobs(self, terms: Sequence[str], telecommute: bool) -> list[ReportOutcome]:
        return await self.run(terms, "all-jobs", telecommute)

    async def find_software_jobs(self, terms: Sequence[str], telecommute: bool) -> list[ReportOutcome]:
        return await self.run(terms, "software-jobs", telecommute)

    async def find_web_jobs(self, terms: Sequence[str], telecommute: bool) -> list[ReportOutcome]:
        return await self.run(terms, "web-jobs", telecommute)

    async def run(
        self,
        terms: Sequence[str],
        category: str = "all-jobs",
        telecommute: bool = False,
    ) -> list[ReportOutcome]:
        """Search every region for every term and write the reports.

        Raises :class:`~craigslist_jobs.report.ReportWriteError` at the end
        when the writer is strict and some appends failed.
        """

        requests = [SearchRequest(term=term, category=category, telecommute=telecommute) for term in terms]
        outcomes: list[ReportOutcome] = []

        async with self._crawler_factory() as crawler:
            for region in self.regions:
                logger.info("Country: %s", region.name)
                for request in requests:
                    outcomes.append(await self._write_report(crawler, region, request))

        self._writer.raise_for_failures()
        return outcomes

    async def _write_report(
        self,
        crawler: AsyncCrawler,
        region: Region,
        request: SearchRequest,
    ) -> ReportOutcome:
        self.stats.reset()
        filename = report_filename(region.name, request.term)
        self._writer.append(filename, header_fragment(request.term))

        hub_error: str | None = None
        try:
            result = await crawl_country(crawler, hub_url(region.code), request)
        except HubLoadError as exc:
            logger.warning("Skipping %s for %r: %s", region.name, request.term, exc)
            hub_error = str(exc)
            fragments: list[str] = []
        else:
            self.stats.add(result.stats)
            fragments = body_fragments(result.entries)

        for fragment in fragments:
            self._writer.append(filename, fragment)
        self._writer.append(filename, stats_fragment(self.stats))
        self._writer.append(filename, tail_fragment())

        logger.info(
            "Wrote %s (%d sites, %d with results, %d results)",
            filename,
            self.stats.sites_searched,
            self.stats.sites_with_results,
            self.stats.results_found,
        )
        return ReportOutcome(
            region=region,
            term=request.term,
            path=self._writer.path_for(filename),
            stats=replace(self.stats),
            hub_error=hub_error,
        )
