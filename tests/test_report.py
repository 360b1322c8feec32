import pytest

from craigslist_jobs.models import ResultEntry, RunStats
from craigslist_jobs.report import (
    ReportWriteError,
    ReportWriter,
    body_fragments,
    header_fragment,
    report_filename,
    stats_fragment,
    tail_fragment,
)


def test_report_filename_replaces_spaces_in_term_only():
    assert report_filename("USA", "qa") == "USA_qa_job_results.html"
    assert report_filename("New_Zealand", "software tester") == "New_Zealand_software_tester_job_results.html"
    assert report_filename("USA", "software tester") == report_filename("USA", "software tester")


def test_fragments_match_report_format():
    assert header_fragment("qa") == "<html>\n<head><title>Job Search || qa</title></head>\n<body>\n"
    assert stats_fragment(RunStats(3, 2, 5)) == (
        "<h3>Sites seached: 3 | Sites with results: 2 | Results found: 5</h3>\n"
    )
    assert tail_fragment() == "\n</body>\n</html>"


def test_body_fragments_open_each_city_with_site_header():
    entries = [
        ResultEntry('<a href="http://example/post/1">', "QA Engineer", "SF jobs", "http://sfbay.craigslist.org/", True),
        ResultEntry('<a href="http://example/post/2">', "QA Lead", "SF jobs", "http://sfbay.craigslist.org/"),
    ]

    assert body_fragments(entries) == [
        "<br /><br />Site: SF jobs --> <a href='http://sfbay.craigslist.org/'>results page</a><br />",
        '<a href="http://example/post/1">QA Engineer</a><br />',
        '<a href="http://example/post/2">QA Lead</a><br />',
    ]


def test_append_adds_newline_and_never_truncates(tmp_path):
    writer = ReportWriter(tmp_path)

    writer.append("USA_qa_job_results.html", "one")
    writer.append("USA_qa_job_results.html", "two")

    assert (tmp_path / "USA_qa_job_results.html").read_text(encoding="utf-8") == "one\ntwo\n"


def test_append_failure_is_swallowed(tmp_path):
    writer = ReportWriter(tmp_path / "missing")

    writer.append("USA_qa_job_results.html", "lost")

    assert writer.failures == []
    writer.raise_for_failures()


def test_strict_writer_reports_failures(tmp_path):
    writer = ReportWriter(tmp_path / "missing", strict=True)

    writer.append("USA_qa_job_results.html", "lost")
    writer.append("USA_qa_job_results.html", "lost again")

    assert len(writer.failures) == 2
    with pytest.raises(ReportWriteError) as excinfo:
        writer.raise_for_failures()
    assert "2 report write(s) failed" in str(excinfo.value)
