"""City and country level searches against Craigslist."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urljoin

from .config import QUERY_FIELD, SUBMIT_VALUE, TELECOMMUTE_FIELD
from .crawler import AsyncCrawler, FetchError
from .extraction import all_anchors, navigation_filtered, paragraph_anchors, uri_of
from .models import CitySearchResult, CountryResult, ResultEntry, RunStats, SearchRequest

logger = logging.getLogger(__name__)


class HubLoadError(RuntimeError):
    """Raised when a country hub page cannot be loaded or parsed."""

    def __init__(self, hub_url: str, cause: object) -> None:
        super().__init__(f"Could not load hub page {hub_url}: {cause}")
        self.hub_url = hub_url
        self.cause = cause


async def search_city(
    crawler: AsyncCrawler,
    city_url: str,
    request: SearchRequest,
) -> CitySearchResult:
    """Run *request* against one city site and collect the listing links.

    A fetch failure or a missing form control is logged and reported as a
    searched site without results.
    """

    stats = RunStats(sites_searched=1)
    target_url = city_url + request.category_path
    logger.info("Visiting page: %s", target_url)

    field_values: dict[str, str | bool] = {QUERY_FIELD: request.term}
    if request.telecommute:
        field_values[TELECOMMUTE_FIELD] = True

    try:
        search_page = await crawler.load(target_url)
        results_page = await crawler.submit(search_page, field_values, SUBMIT_VALUE)
    except FetchError as exc:
        logger.warning("Search failed for %s: %s", target_url, exc)
        return CitySearchResult(entries=[], stats=stats)

    title = results_page.title
    entries: list[ResultEntry] = []
    for anchor in paragraph_anchors(results_page):
        if not uri_of(anchor.tag):
            continue
        entries.append(
            ResultEntry(
                tag=anchor.tag,
                text=anchor.text,
                city_title=title,
                city_url=city_url,
                site_header=not entries,
            )
        )

    if entries:
        stats.sites_with_results = 1
        stats.results_found = len(entries)
    logger.debug("%s: %d results", title or city_url, len(entries))
    return CitySearchResult(entries=entries, stats=stats)


async def discover_cities(crawler: AsyncCrawler, hub_url: str) -> list[str]:
    """Return the city endpoints linked from a country hub, in page order."""

    try:
        hub = await crawler.load(hub_url)
        anchors = navigation_filtered(all_anchors(hub))
    except FetchError as exc:
        raise HubLoadError(hub_url, exc) from exc

    cities: list[str] = []
    for anchor in anchors:
        uri = uri_of(anchor.tag)
        if not uri:
            logger.debug("Skipping hub anchor without href: %r", anchor.text)
            continue
        try:
            cities.append(urljoin(hub.url, uri))
        except ValueError as exc:
            logger.warning("Skipping hub anchor %r with malformed href %r: %s", anchor.text, uri, exc)
    return cities


async def crawl_country(
    crawler: AsyncCrawler,
    hub_url: str,
    request: SearchRequest,
) -> CountryResult:
    """Search every city listed on *hub_url* and merge the results in hub order."""

    cities = await discover_cities(crawler, hub_url)
    logger.info("Found %d city sites on %s", len(cities), hub_url)

    # gather() keeps input order, so report order matches the hub page
    city_results = await asyncio.gather(
        *(search_city(crawler, city_url, request) for city_url in cities)
    )

    entries: list[ResultEntry] = []
    stats = RunStats()
    for result in city_results:
        entries.extend(result.entries)
        stats.add(result.stats)
    return CountryResult(entries=entries, stats=stats)
