"""Error observer: console, uncaught, HTTP and request-failure events for one visit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from playwright.async_api import BrowserContext, Page

from shopaudit.models.types import (
    AuditConfig,
    ConsoleError,
    ConsoleLevel,
    ErrorResult,
    NetworkError,
    ResourceError,
    ResourceKind,
)


SETTLE_MS = 3000
RUNNER_SOURCE = "test-runner"

logger = logging.getLogger(__name__)


_RESOURCE_KINDS = {
    "stylesheet": ResourceKind.CSS,
    "script": ResourceKind.JS,
    "image": ResourceKind.IMAGE,
    "font": ResourceKind.FONT,
}

_INSTALL_ERROR_HOOKS_JS = """() => {
    if (window.__shopaudit_errors) return;
    window.__shopaudit_errors = [];
    window.addEventListener('unhandledrejection', (event) => {
        const reason = event.reason;
        window.__shopaudit_errors.push({
            message: (reason && reason.message) || 'Unhandled promise rejection',
            source: 'unhandledrejection',
        });
    });
    const originalOnError = window.onerror;
    window.onerror = (message, source, lineno, colno, error) => {
        window.__shopaudit_errors.push({
            message: typeof message === 'string' ? message : 'Unknown error',
            source: source || 'unknown',
            lineNumber: lineno || null,
            columnNumber: colno || null,
        });
        if (originalOnError) {
            return originalOnError(message, source, lineno, colno, error);
        }
        return false;
    };
}"""

_COLLECT_ERROR_HOOKS_JS = """() => window.__shopaudit_errors || []"""


def resource_kind(playwright_type: str) -> ResourceKind:
    return _RESOURCE_KINDS.get(playwright_type, ResourceKind.OTHER)


@dataclass
class CollectedErrors:
    console: list[ConsoleError] = field(default_factory=list)
    network: list[NetworkError] = field(default_factory=list)
    resource: list[ResourceError] = field(default_factory=list)


class ErrorCollector:
    """Page event subscriptions scoped to exactly one page visit."""

    def __init__(self):
        self._page: Page | None = None
        self._collected = CollectedErrors()
        self._handlers = {
            "console": self._on_console,
            "pageerror": self._on_page_error,
            "response": self._on_response,
            "requestfailed": self._on_request_failed,
        }

    def start(self, page: Page):
        if self._page is not None:
            raise RuntimeError("ErrorCollector is already attached to a page")
        self._page = page
        self._collected = CollectedErrors()
        for event, handler in self._handlers.items():
            page.on(event, handler)

    def stop(self) -> CollectedErrors:
        if self._page is not None:
            for event, handler in self._handlers.items():
                self._page.remove_listener(event, handler)
            self._page = None
        return self._collected

    def _on_console(self, msg):
        if msg.type not in ("error", "warning"):
            return
        location = msg.location or {}
        self._collected.console.append(ConsoleError(
            level=ConsoleLevel(msg.type),
            message=msg.text,
            source=location.get("url") or "unknown",
            line_number=location.get("lineNumber"),
            column_number=location.get("columnNumber"),
        ))

    def _on_page_error(self, error):
        stack = getattr(error, "stack", None) or ""
        stack_lines = stack.split("\n")
        source = stack_lines[1].strip() if len(stack_lines) > 1 and stack_lines[1].strip() else "unknown"
        self._collected.console.append(ConsoleError(
            level=ConsoleLevel.ERROR,
            message=getattr(error, "message", None) or str(error),
            source=source,
            stack=stack or None,
        ))

    def _on_response(self, response):
        if response.status < 400:
            return
        request = response.request
        self._collected.network.append(NetworkError(
            url=response.url,
            status=response.status,
            status_text=response.status_text,
            method=request.method,
            resource_type=request.resource_type,
        ))

    def _on_request_failed(self, request):
        self._collected.resource.append(ResourceError(
            url=request.url,
            type=resource_kind(request.resource_type),
            error=request.failure or "Request failed",
        ))


class ErrorChecker:
    """Collects console, network and resource errors during one page visit."""

    def __init__(self, context: BrowserContext, config: AuditConfig):
        self.context = context
        self.config = config

    async def check(self, url: str) -> ErrorResult:
        page = await self.context.new_page()
        collector = ErrorCollector()
        collector.start(page)
        hook_errors: list[ConsoleError] = []
        navigation_error: str | None = None

        try:
            await page.goto(url, wait_until="networkidle", timeout=self.config.timeout)
            await page.evaluate(_INSTALL_ERROR_HOOKS_JS)
            # delayed / async errors
            await page.wait_for_timeout(SETTLE_MS)
            for entry in await page.evaluate(_COLLECT_ERROR_HOOKS_JS) or []:
                hook_errors.append(ConsoleError(
                    level=ConsoleLevel.ERROR,
                    message=entry.get("message") or "Unknown error",
                    source=entry.get("source") or "unknown",
                    line_number=entry.get("lineNumber"),
                    column_number=entry.get("columnNumber"),
                ))
        except Exception as e:
            logger.info("Error detection failed for %s: %s", url, e)
            navigation_error = f"Page load failed: {e}"
        finally:
            collected = collector.stop()
            await page.close()

        result = ErrorResult(
            url=url,
            console_errors=collected.console + hook_errors,
            network_errors=collected.network,
            resource_errors=collected.resource,
        )
        if navigation_error:
            result.console_errors.append(ConsoleError(
                level=ConsoleLevel.ERROR,
                message=navigation_error,
                source=RUNNER_SOURCE,
            ))
        return result
