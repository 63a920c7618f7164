import json
from datetime import datetime, timezone

from rich.console import Console

from shopaudit.core.report import generate_report, print_report, render_html, report_basename
from shopaudit.models.types import (
    ErrorResult,
    ImageDetail,
    ImageResult,
    ImageStatus,
    NetworkError,
    ProductPageResult,
    RunReport,
    RunSummary,
)


def _report() -> RunReport:
    return RunReport(
        base_url="https://shop.test",
        total_tests=3,
        passed_tests=1,
        failed_tests=2,
        total_duration=4321,
        product_page_results=[ProductPageResult(url="https://shop.test/p/<script>", load_time=812)],
        image_results=[ImageResult(url="https://shop.test/p", image_details=[
            ImageDetail(src="https://cdn.test/x.jpg", alt="", status=ImageStatus.BROKEN, error="Image not found (404)"),
        ])],
        error_results=[ErrorResult(url="https://shop.test/p", network_errors=[
            NetworkError(url="https://shop.test/api", status=503, status_text="Service Unavailable"),
        ])],
        summary=RunSummary(critical_issues=2, warnings=1, recommendations=["Fix 1 broken images"]),
        timestamp=datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc),
    )


def test_basename_replaces_colons_and_periods():
    assert report_basename(_report()) == "test-report-2024-05-01T12-30-45-123Z"


def test_generate_writes_json_and_html(tmp_path):
    paths = generate_report(_report(), tmp_path / "out")
    assert paths.json_path.name == "test-report-2024-05-01T12-30-45-123Z.json"
    assert paths.html_path.suffix == ".html"

    data = json.loads(paths.json_path.read_text())
    assert data["totalTests"] == 3
    assert data["imageResults"][0]["images"]["broken"] == 1
    assert data["errorResults"][0]["networkErrors"][0]["statusText"] == "Service Unavailable"
    assert data["productPageResults"][0]["missingElements"][0] == "title"


def test_html_escapes_and_colors():
    html = render_html(_report())
    assert "&lt;script&gt;" in html
    assert "<script>" not in html
    assert "status-fail" in html
    assert "Fix 1 broken images" in html
    assert "33.3%" in html


def test_console_report():
    console = Console(record=True, width=160)
    print_report(_report(), console)
    text = console.export_text()
    assert "Success Rate: 33.3%" in text
    assert "[broken]" in text
    assert "[503]" in text
    assert "1. Fix 1 broken images" in text
