"""HTML report files, one per (region, search term)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .models import ResultEntry, RunStats

logger = logging.getLogger(__name__)

REPORT_SUFFIX = "_job_results.html"


class ReportWriteError(RuntimeError):
    """Raised at the end of a strict run when some report appends failed."""

    def __init__(self, failures: list[tuple[Path, OSError]]) -> None:
        paths = ", ".join(sorted({str(path) for path, _ in failures}))
        super().__init__(f"{len(failures)} report write(s) failed: {paths}")
        self.failures = failures


def report_filename(region: str, term: str) -> str:
    """Return ``<region>_<term>_job_results.html`` with spaces in *term* as underscores."""

    return f"{region}_{term.replace(' ', '_')}{REPORT_SUFFIX}"


def header_fragment(term: str) -> str:
    return f"<html>\n<head><title>Job Search || {term}</title></head>\n<body>\n"


def stats_fragment(stats: RunStats) -> str:
    # "seached" matches reports produced by earlier versions
    return (
        f"<h3>Sites seached: {stats.sites_searched}"
        f" | Sites with results: {stats.sites_with_results}"
        f" | Results found: {stats.results_found}</h3>\n"
    )


def tail_fragment() -> str:
    return "\n</body>\n</html>"


def site_header_fragment(entry: ResultEntry) -> str:
    return (
        f"<br /><br />Site: {entry.city_title} --> "
        f"<a href='{entry.city_url}'>results page</a><br />"
    )


def entry_fragment(entry: ResultEntry) -> str:
    return f"{entry.tag}{entry.text}</a><br />"


def body_fragments(entries: Iterable[ResultEntry]) -> list[str]:
    """Render result entries, opening each city's block with its site header."""

    fragments: list[str] = []
    for entry in entries:
        if entry.site_header:
            fragments.append(site_header_fragment(entry))
        fragments.append(entry_fragment(entry))
    return fragments


class ReportWriter:
    """Appends text fragments to report files under one output directory.

    Files are opened in append mode on every write and never truncated. Write
    failures are logged and swallowed so a long run is not aborted; with
    ``strict=True`` they are also recorded in :attr:`failures`.
    """

    def __init__(self, output_dir: str | Path, *, strict: bool = False) -> None:
        self.output_dir = Path(output_dir)
        self.strict = strict
        self.failures: list[tuple[Path, OSError]] = []

    def path_for(self, filename: str) -> Path:
        return self.output_dir / filename

    def append(self, filename: str, text: str) -> None:
        path = self.path_for(filename)
        try:
            with path.open("a", encoding="utf-8") as handle:
                handle.write(text)
                handle.write("\n")
        except OSError as exc:
            logger.debug("Failed to append to %s: %s", path, exc)
            if self.strict:
                self.failures.append((path, exc))

    def raise_for_failures(self) -> None:
        if self.strict and self.failures:
            raise ReportWriteError(list(self.failures))
