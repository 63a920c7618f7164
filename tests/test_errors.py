import asyncio

import pytest
from fakes import (
    FakeConsoleMessage,
    FakeContext,
    FakePage,
    FakePageError,
    FakeRequest,
    FakeResponse,
    FakeSite,
)

from shopaudit.checkers.errors import (
    RUNNER_SOURCE,
    SETTLE_MS,
    ErrorChecker,
    ErrorCollector,
    resource_kind,
)
from shopaudit.models.types import AuditConfig, ConsoleLevel, ResourceKind


URL = "https://shop.test/products/blanket"
CONFIG = AuditConfig(base_url="https://shop.test", product_urls=(URL,))


def _check(site: FakeSite):
    context = FakeContext(default=site)
    result = asyncio.run(ErrorChecker(context, CONFIG).check(URL))
    return result, context


def test_clean_page():
    result, context = _check(FakeSite())
    assert result.success
    assert result.total_errors == 0
    page = context.pages[0]
    assert page.waits == [SETTLE_MS]
    assert page.closed
    assert all(not handlers for handlers in page.handlers.values())


def test_console_levels_filtered():
    site = FakeSite(console=[
        FakeConsoleMessage("log", "hello"),
        FakeConsoleMessage("info", "fyi"),
        FakeConsoleMessage("warning", "deprecated API", {"url": "https://shop.test/app.js", "lineNumber": 10, "columnNumber": 4}),
    ])
    result, _ = _check(site)
    assert len(result.console_errors) == 1
    warning = result.console_errors[0]
    assert warning.level == ConsoleLevel.WARNING
    assert (warning.source, warning.line_number, warning.column_number) == ("https://shop.test/app.js", 10, 4)
    assert result.success


def test_console_error_fails():
    result, _ = _check(FakeSite(console=[FakeConsoleMessage("error", "Uncaught TypeError")]))
    assert not result.success
    assert result.console_errors[0].source == "unknown"


def test_page_error_uses_stack_frame_as_source():
    error = FakePageError("x is undefined", "TypeError: x is undefined\n    at render (https://shop.test/app.js:3:9)")
    result, _ = _check(FakeSite(page_errors=[error]))
    entry = result.console_errors[0]
    assert entry.level == ConsoleLevel.ERROR
    assert entry.source == "at render (https://shop.test/app.js:3:9)"
    assert entry.stack.startswith("TypeError")


def test_network_errors_only_5xx_fail():
    ok = FakeResponse(url="https://shop.test/api/cart", status=200)
    missing = FakeResponse(url="https://shop.test/favicon.ico", status=404, status_text="Not Found")
    result, _ = _check(FakeSite(responses=[ok, missing]))
    assert result.success
    assert [e.status for e in result.network_errors] == [404]

    down = FakeResponse(url="https://shop.test/api/stock", status=503, status_text="Service Unavailable",
                        request=FakeRequest(url="https://shop.test/api/stock", resource_type="fetch", method="POST"))
    result, _ = _check(FakeSite(responses=[down]))
    assert not result.success
    entry = result.network_errors[0]
    assert (entry.method, entry.resource_type, entry.status_text) == ("POST", "fetch", "Service Unavailable")


def test_failed_requests_become_resource_errors():
    site = FakeSite(failed_requests=[
        FakeRequest(url="https://cdn.test/site.css", resource_type="stylesheet", failure="net::ERR_FAILED"),
        FakeRequest(url="https://cdn.test/font.woff2", resource_type="font"),
    ])
    result, _ = _check(site)
    assert [(e.type, e.error) for e in result.resource_errors] == [
        (ResourceKind.CSS, "net::ERR_FAILED"),
        (ResourceKind.FONT, "Request failed"),
    ]
    assert result.success
    assert result.total_errors == 2


def test_in_page_hook_errors_pulled_after_settle():
    site = FakeSite(hook_errors=[{"message": "Payment SDK rejected", "source": "unhandledrejection"}])
    result, context = _check(site)
    assert not result.success
    assert result.console_errors[0].message == "Payment SDK rejected"
    assert result.console_errors[0].source == "unhandledrejection"
    assert len(context.pages[0].evaluated) == 2


def test_navigation_failure_adds_runner_entry():
    site = FakeSite(
        responses=[FakeResponse(url=URL, status=502)],
        goto_error=TimeoutError("Timeout 30000ms exceeded"),
    )
    result, context = _check(site)
    assert not result.success
    assert result.console_errors[-1].source == RUNNER_SOURCE
    assert result.console_errors[-1].message == "Page load failed: Timeout 30000ms exceeded"
    assert result.total_errors == 2
    assert context.pages[0].closed


def test_collector_detaches_on_stop():
    page = FakePage(FakeContext())
    collector = ErrorCollector()
    collector.start(page)
    assert set(page.handlers) == {"console", "pageerror", "response", "requestfailed"}
    with pytest.raises(RuntimeError):
        collector.start(page)
    collected = collector.stop()
    assert collected.console == []
    assert all(not handlers for handlers in page.handlers.values())


@pytest.mark.parametrize("playwright_type, kind", [
    ("stylesheet", ResourceKind.CSS),
    ("script", ResourceKind.JS),
    ("image", ResourceKind.IMAGE),
    ("font", ResourceKind.FONT),
    ("xhr", ResourceKind.OTHER),
])
def test_resource_kind(playwright_type, kind):
    assert resource_kind(playwright_type) == kind
