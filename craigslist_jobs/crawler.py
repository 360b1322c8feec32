"""HTTP fetching and form submission for the Craigslist job search reporter."""

from __future__ import annotations

import asyncio
import logging
import random
import re
import time
from collections import defaultdict
from typing import Mapping
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup, Tag
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from .config import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
)

# Input types that never contribute a value unless they are the clicked control
_NON_VALUE_INPUT_TYPES = frozenset({"submit", "button", "image", "reset", "file"})


class FetchError(RuntimeError):
    """Raised when a page cannot be retrieved (transport, DNS, HTTP status, timeout)."""

    def __init__(self, url: str, cause: object) -> None:
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


class SelectorMissing(FetchError):
    """Raised when an expected form field or submit control is absent."""


class _TransientStatus(Exception):
    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


class Document:
    """A retrieved HTML page together with its parsed tree."""

    def __init__(self, url: str, html: str, status_code: int | None = None) -> None:
        self.url = url
        self.html = html
        self.status_code = status_code
        self.soup = BeautifulSoup(html, "lxml")

    @property
    def title(self) -> str:
        if self.soup.title is None:
            return ""
        return self.soup.title.get_text(strip=True)

    def __repr__(self) -> str:
        return f"Document(url={self.url!r}, status_code={self.status_code!r})"


class AsyncCrawler:
    """Polite async fetcher with concurrency limits, retries and form submission."""

    def __init__(
        self,
        *,
        user_agent: str,
        concurrency: int = 1,
        request_jitter: tuple[float, float] = (0.2, 0.8),
        host_min_interval: float = 1.0,
        max_attempts: int = 3,
        retry_wait: float = 1.0,
        connect_timeout: float = 10.0,
        read_timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        jitter_min, jitter_max = sorted(request_jitter)
        self._request_jitter = (jitter_min, jitter_max)

        self._user_agent = user_agent
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait

        timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=read_timeout,
            pool=connect_timeout,
        )
        self._client = httpx.AsyncClient(
            headers={
                "User-Agent": user_agent,
                "Accept": DEFAULT_ACCEPT_HEADER,
                "Accept-Language": "en-US,en;q=0.9",
            },
            timeout=timeout,
            http2=True,
            follow_redirects=True,
            transport=transport,
        )

        self._semaphore = asyncio.Semaphore(concurrency)

        # Per-host throttling to reduce 429s
        self._host_semaphores: dict[str, asyncio.Semaphore] = defaultdict(lambda: asyncio.Semaphore(2))
        self._host_last_request_ts: dict[str, float] = defaultdict(float)
        self._host_min_interval_s: float = host_min_interval

    async def __aenter__(self) -> "AsyncCrawler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def load(self, url: str) -> Document:
        """Fetch *url* and return the parsed page."""

        return await self._fetch("GET", url)

    async def submit(
        self,
        document: Document,
        field_values: Mapping[str, str | bool],
        click_target: str,
    ) -> Document:
        """Fill in and submit the form holding *field_values* on *document*.

        Keys of *field_values* are matched against element ids, then names.
        String values fill text fields; ``True`` checks a checkbox and
        ``False`` clears it. *click_target* names the submit control to
        activate, matched against its ``value`` attribute, then its ``name``.
        """

        if not field_values:
            raise ValueError("field_values must name at least one field")

        fields: list[tuple[Tag, str | bool]] = []
        for identifier, value in field_values.items():
            element = _find_control(document.soup, identifier)
            if element is None:
                raise SelectorMissing(document.url, f"no form field {identifier!r}")
            fields.append((element, value))

        form = fields[0][0].find_parent("form")
        if form is None:
            raise SelectorMissing(document.url, "form field is not inside a <form>")

        button = _find_submit(form, click_target)
        if button is None:
            raise SelectorMissing(document.url, f"no submit control {click_target!r}")

        data = _form_defaults(form)
        for element, value in fields:
            name = element.get("name") or element.get("id")
            if (element.get("type") or "").lower() in {"checkbox", "radio"}:
                if value is True:
                    data[name] = element.get("value", "on")
                else:
                    data.pop(name, None)
            else:
                data[name] = "" if value is False else str(value)

        button_name = button.get("name")
        if button_name:
            data[button_name] = button.get("value", "")

        try:
            action = urljoin(document.url, form.get("action") or document.url)
        except ValueError as exc:
            raise FetchError(document.url, f"invalid form action: {exc}") from exc
        method = (form.get("method") or "get").upper()
        logger.debug("Submitting %s %s with %s", method, action, data)
        if method == "POST":
            return await self._fetch("POST", action, data=data)
        return await self._fetch("GET", action, params=data)

    async def _fetch(self, method: str, url: str, **kwargs) -> Document:
        # Sanitize URL to avoid invalid characters (e.g., embedded newlines)
        original_url = url
        url = _sanitize_url(url)
        if url != original_url:
            logger.debug("Sanitized URL from %r to %r", original_url, url)

        try:
            host = urlparse(url).hostname or ""
        except ValueError as exc:
            raise FetchError(url, exc) from exc

        async with self._semaphore:
            host_sem = self._host_semaphores[host]
            async with host_sem:
                # Enforce minimal spacing per host and add jitter
                now = time.monotonic()
                since_last = now - self._host_last_request_ts[host]
                wait_for = max(0.0, self._host_min_interval_s - since_last)
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
                jitter = random.uniform(*self._request_jitter)
                if jitter > 0:
                    await asyncio.sleep(jitter)

                try:
                    response = await self._request_with_retries(method, url, **kwargs)
                    response.raise_for_status()
                except _TransientStatus as exc:
                    raise FetchError(url, exc) from exc
                except (httpx.HTTPError, httpx.InvalidURL) as exc:
                    logger.debug("Request error for %s: %s", url, exc)
                    raise FetchError(url, exc) from exc
                finally:
                    self._host_last_request_ts[host] = time.monotonic()

        try:
            text = response.text
        except UnicodeDecodeError as exc:  # pragma: no cover - extremely rare
            raise FetchError(url, exc) from exc
        return Document(str(response.url), text, response.status_code)

    async def _request_with_retries(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Retry on transient errors and back off on HTTP 429 and 5xx."""

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=6.0) + wait_random(0, self._retry_wait),
            retry=retry_if_exception_type((httpx.TransportError, _TransientStatus)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._client.request(method, url, **kwargs)
                if response.status_code == 429 or response.status_code >= 500:
                    raise _TransientStatus(response)
        return response


def _find_control(soup: BeautifulSoup, identifier: str) -> Tag | None:
    element = soup.find(id=identifier)
    if element is None:
        element = soup.find(attrs={"name": identifier})
    return element


def _find_submit(form: Tag, click_target: str) -> Tag | None:
    candidates = form.find_all(["input", "button"])
    for element in candidates:
        kind = (element.get("type") or ("submit" if element.name == "button" else "text")).lower()
        if kind not in {"submit", "image"}:
            continue
        if element.get("value") == click_target:
            return element
    for element in candidates:
        if element.get("name") == click_target:
            return element
    return None


def _form_defaults(form: Tag) -> dict[str, str]:
    """Collect the values a browser would send for *form* without user input."""

    data: dict[str, str] = {}
    for element in form.find_all(["input", "select", "textarea"]):
        name = element.get("name")
        if not name or element.has_attr("disabled"):
            continue
        if element.name == "select":
            option = element.find("option", selected=True) or element.find("option")
            if option is not None:
                data[name] = option.get("value", option.get_text(strip=True))
            continue
        if element.name == "textarea":
            data[name] = element.get_text()
            continue
        kind = (element.get("type") or "text").lower()
        if kind in _NON_VALUE_INPUT_TYPES:
            continue
        if kind in {"checkbox", "radio"}:
            if element.has_attr("checked"):
                data[name] = element.get("value", "on")
            continue
        data[name] = element.get("value", "")
    return data


def _sanitize_url(url: str) -> str:
    """Remove control characters and normalize basic whitespace in URLs.

    - Strips leading/trailing whitespace
    - Removes ASCII control chars (including CR/LF, tabs)
    - Replaces literal spaces with %20
    """
    if not url:
        return url
    # Remove control characters (0x00-0x1F, 0x7F)
    cleaned = re.sub(r"[\x00-\x1f\x7f]", "", url).strip()
    # Replace remaining spaces with %20
    if " " in cleaned:
        cleaned = cleaned.replace(" ", "%20")
    return cleaned
