from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Union

import httpx
import pytest

# Ensure repo root is importable when running pytest without installing.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from craigslist_jobs.crawler import AsyncCrawler  # noqa: E402

HUB_URL = "http://geo.craigslist.org/iso/us/"

Page = Union[str, int, Exception, tuple]


def hub_page(links: Iterable[tuple[str, str]]) -> str:
    anchors = "\n".join(f'<li><a href="{href}">{text}</a></li>' for href, text in links)
    return f"""<html><head><title>craigslist: choose a site</title></head><body>
<a href="https://www.craigslist.org/about/sites">craigslist</a>
<ul>
{anchors}
</ul>
<a href="https://www.craigslist.org/about/w">w</a>
<a href="https://forums.craigslist.org/?forumID=1">or suggest a new one</a>
</body></html>"""


def search_form_page(title: str = "craigslist: jobs", *, telecommute_box: bool = True) -> str:
    checkbox = (
        '<label><input type="checkbox" name="addOne" value="telecommuting"> telecommute</label>'
        if telecommute_box
        else ""
    )
    return f"""<html><head><title>{title}</title></head><body>
<form id="searchform" action="/search/jjj" method="get">
<input type="hidden" name="sort" value="rel">
<input type="text" id="query" name="query" value="">
{checkbox}
<input type="submit" value="Search">
</form>
</body></html>"""


def results_page(title: str, listings: Iterable[tuple[str, str]]) -> str:
    rows = "\n".join(
        f'<p class="row"><a href="{href}">{text}</a></p>' for href, text in listings
    )
    return f"""<html><head><title>{title}</title></head><body>
<h2>search results</h2>
{rows}
</body></html>"""


class FakeCraigslist:
    """Serves canned pages keyed by ``scheme://host/path`` and records requests.

    A page may be HTML text, an HTTP status code, an exception to raise, or a
    ``("redirect", url)`` tuple.
    """

    def __init__(self, pages: dict[str, Page] | None = None) -> None:
        self.pages: dict[str, Page] = dict(pages or {})
        self.requests: list[httpx.Request] = []

    def add_city(
        self,
        city_url: str,
        title: str,
        listings: Iterable[tuple[str, str]],
        *,
        category: str = "jjj/",
    ) -> None:
        self.pages[city_url + category] = search_form_page(f"{title} jobs")
        self.pages[city_url + "search/jjj"] = results_page(title, listings)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        page = self.pages.get(key)
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, int):
            return httpx.Response(page, text="")
        if isinstance(page, tuple):
            _, location = page
            return httpx.Response(301, headers={"Location": location})
        return httpx.Response(
            200,
            text=page,
            headers={"content-type": "text/html; charset=utf-8"},
        )

    def crawler(self, **kwargs) -> AsyncCrawler:
        options = dict(
            user_agent="craigslist-jobs-tests",
            request_jitter=(0.0, 0.0),
            host_min_interval=0.0,
            max_attempts=1,
            retry_wait=0.0,
            transport=httpx.MockTransport(self.handler),
        )
        options.update(kwargs)
        return AsyncCrawler(**options)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]


@pytest.fixture
def fake_site() -> FakeCraigslist:
    return FakeCraigslist()


@pytest.fixture
def usa_site() -> FakeCraigslist:
    """Hub listing two cities, each with a single QA listing."""

    site = FakeCraigslist()
    site.pages[HUB_URL] = hub_page(
        [
            ("http://sfbay.craigslist.org/", "SF bay area"),
            ("http://newyork.craigslist.org/", "new york city"),
        ]
    )
    site.add_city("http://sfbay.craigslist.org/", "SF bay area jobs", [("http://example/post/1", "QA Engineer")])
    site.add_city("http://newyork.craigslist.org/", "new york jobs", [("http://example/post/1", "QA Engineer")])
    return site
