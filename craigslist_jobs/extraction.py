"""Link extraction helpers for hub and search result pages."""

from __future__ import annotations

from typing import Iterable

from bs4 import Tag

from .config import NAVIGATION_TEXTS
from .crawler import Document
from .models import Anchor

_TAG_PREFIX = '<a href="'
_TAG_SUFFIX = '">'


def anchor_tag(anchor: Tag) -> str:
    """Return the canonical opening tag for *anchor*, e.g. ``<a href="http://x/">``.

    Only the ``href`` attribute survives, so the result does not depend on
    quoting style or attribute order in the source page.
    """

    href = (anchor.get("href") or "").strip()
    return f"{_TAG_PREFIX}{href}{_TAG_SUFFIX}"


def uri_of(tag: str) -> str:
    """Pull the URI out of a canonical ``<a href="...">`` tag."""

    return tag.replace(_TAG_PREFIX, "").replace(_TAG_SUFFIX, "")


def all_anchors(document: Document) -> list[Anchor]:
    """Return every ``<a>`` on the page in document order."""

    return [
        Anchor(tag=anchor_tag(anchor), text=anchor.get_text(" ", strip=True))
        for anchor in document.soup.find_all("a")
    ]


def paragraph_anchors(document: Document) -> list[Anchor]:
    """Return the first link of every paragraph holding one, with the paragraph text."""

    found: list[Anchor] = []
    for paragraph in document.soup.find_all("p"):
        anchor = paragraph.find("a")
        if anchor is None:
            continue
        found.append(
            Anchor(tag=anchor_tag(anchor), text=paragraph.get_text(" ", strip=True))
        )
    return found


def navigation_filtered(
    anchors: Iterable[Anchor],
    *,
    reserved: Iterable[str] = NAVIGATION_TEXTS,
) -> list[Anchor]:
    """Drop hub navigation links; the text must match a reserved string exactly."""

    reserved_set = frozenset(reserved)
    return [anchor for anchor in anchors if anchor.text not in reserved_set]
