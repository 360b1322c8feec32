"""Static configuration for the Craigslist job search reporter."""

from __future__ import annotations

import os

HUB_BASE_URL = os.getenv("CRAIGSLIST_HUB_URL", "http://geo.craigslist.org/iso/")

DEFAULT_USER_AGENT = os.getenv(
    "CRAIGSLIST_USER_AGENT",
    "CraigslistJobSearch/0.1 (+https://example.com/contact)",
)
DEFAULT_CONCURRENCY = 1
DEFAULT_TIMEOUT = 20.0

# Display name -> country code; names end up verbatim in report filenames
DEFAULT_REGIONS: dict[str, str] = {
    "Australia": "au",
    "Canada": "ca",
    "Japan": "jp",
    "New_Zealand": "nz",
    "South_Africa": "za",
    "UK": "gb",
    "USA": "us",
}

CATEGORY_PATHS: dict[str, str] = {
    "all-jobs": "jjj/",
    "software-jobs": "sof/",
    "web-jobs": "web/",
}
DEFAULT_CATEGORY = "all-jobs"

# Hub page anchors that are not city sites
NAVIGATION_TEXTS: tuple[str, ...] = (
    "craigslist",
    "w",
    "or suggest a new one",
)

# Search form identifiers on a city category page
QUERY_FIELD = "query"
TELECOMMUTE_FIELD = "addOne"
SUBMIT_VALUE = "Search"


def hub_url(code: str) -> str:
    """Return the country hub URL for *code*."""

    base = HUB_BASE_URL if HUB_BASE_URL.endswith("/") else HUB_BASE_URL + "/"
    return f"{base}{code}/"


def parse_regions(value: str) -> dict[str, str]:
    """Parse ``"Name=code,Other=xx"`` into an ordered region mapping."""

    regions: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, code = item.partition("=")
        name, code = name.strip(), code.strip()
        if not sep or not name or not code:
            raise ValueError(f"Invalid region definition: {item!r} (expected Name=code)")
        regions[name] = code
    if not regions:
        raise ValueError("At least one region must be specified")
    return regions
