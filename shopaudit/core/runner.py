"""Run orchestrator: one browser, one context, every URL checked in turn.

Lifecycle is initialize() -> run_tests() -> cleanup(), or the same through
`async with AuditRunner(...)`. Checks run strictly one after another: product
page, images, errors for the first URL, then the next URL. Each check gets
its own retry budget.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from shopaudit.checkers.errors import ErrorChecker
from shopaudit.checkers.images import ImageChecker
from shopaudit.checkers.product_page import ProductPageChecker
from shopaudit.core.report import ReportPaths, generate_report
from shopaudit.core.summary import build_summary
from shopaudit.models.errors import ConfigError, RunError, SetupError, ShopAuditError
from shopaudit.models.types import AuditConfig, RunReport
from shopaudit.utils.retry import BASE_DELAY_MS, with_retry


T = TypeVar("T")

ProgressCallback = Callable[[str, dict], None]

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

CHECKS_PER_URL = 3

logger = logging.getLogger(__name__)


class AuditRunner:
    """Runs every check against every product URL in one browser context."""

    def __init__(
        self,
        config: AuditConfig,
        output_dir: str | Path = "./reports",
        generate_report: bool = True,
        on_progress: ProgressCallback | None = None,
        retry_delay_ms: int = BASE_DELAY_MS,
    ):
        if not config.base_url or not config.product_urls:
            raise ConfigError("Base URL and at least one product URL are required")
        self.config = config
        self.output_dir = Path(output_dir)
        self.generate_report = generate_report
        self.retry_delay_ms = retry_delay_ms
        self.report_paths: ReportPaths | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self._pw: Playwright | None = None
        self._on_progress = on_progress

    async def __aenter__(self) -> AuditRunner:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.cleanup()

    async def initialize(self):
        try:
            self._pw = await async_playwright().start()
            self.browser = await self._pw.chromium.launch(
                headless=self.config.headless,
                args=LAUNCH_ARGS,
            )
            self.context = await self.browser.new_context(
                viewport=self.config.viewport.to_dict(),
                user_agent=USER_AGENT,
                extra_http_headers=self.config.custom_headers,
                ignore_https_errors=True,
                accept_downloads=False,
            )
            if self.config.cookies:
                await self.context.add_cookies(
                    [c.to_playwright(self.config.base_url) for c in self.config.cookies]
                )
        except Exception as e:
            logger.error("Failed to initialize browser: %s", e)
            await self.cleanup()
            raise SetupError(f"Failed to initialize browser: {e}") from e

        logger.info("Browser initialized (headless=%s)", self.config.headless)
        self._emit("browser_ready", {"headless": self.config.headless})

    async def run_tests(self) -> RunReport:
        if self.context is None:
            raise SetupError("Browser not initialized. Call initialize() first.")

        start = time.monotonic()
        urls = self.config.product_urls
        report = RunReport(
            base_url=self.config.base_url,
            total_tests=len(urls) * CHECKS_PER_URL,
        )

        product_checker = ProductPageChecker(self.context, self.config)
        image_checker = ImageChecker(self.context, self.config)
        error_checker = ErrorChecker(self.context, self.config)

        for index, url in enumerate(urls, start=1):
            self._emit("test_started", {"index": index, "total": len(urls), "url": url})

            product = await self._run_check("product page", url, product_checker.check)
            report.product_page_results.append(product)
            self._record(report, "product_page", url, product.success)

            images = await self._run_check("image loading", url, image_checker.check)
            report.image_results.append(images)
            self._record(report, "image_loading", url, images.success)

            errors = await self._run_check("error detection", url, error_checker.check)
            report.error_results.append(errors)
            self._record(report, "error_detection", url, errors.success)

            self._emit("url_complete", {
                "url": url,
                "product": product,
                "images": images,
                "errors": errors,
            })

        report.total_duration = int((time.monotonic() - start) * 1000)
        report.summary = build_summary(
            report.product_page_results, report.image_results, report.error_results,
        )
        logger.info(
            "Run finished: %d/%d checks passed in %dms",
            report.passed_tests, report.total_tests, report.total_duration,
        )

        if self.generate_report:
            self.report_paths = generate_report(report, self.output_dir)

        self._emit("run_complete", {
            "passed": report.passed_tests,
            "failed": report.failed_tests,
            "total": report.total_tests,
            "duration_ms": report.total_duration,
        })
        return report

    async def cleanup(self):
        """Close context, then browser. Failures are logged, never raised."""
        for name, closer in (
            ("context", self.context.close if self.context else None),
            ("browser", self.browser.close if self.browser else None),
            ("playwright", self._pw.stop if self._pw else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.warning("Cleanup of %s failed: %s", name, e)
                self._emit("teardown_failed", {"resource": name, "error": str(e)[:300]})
        self.context = None
        self.browser = None
        self._pw = None

    async def _run_check(self, label: str, url: str, check: Callable[[str], Awaitable[T]]) -> T:
        return await with_retry(
            lambda: check(url),
            self.config.retry_attempts,
            delay_ms=self.retry_delay_ms,
            label=f"{label} check for {url}",
        )

    def _record(self, report: RunReport, check: str, url: str, success: bool):
        if success:
            report.passed_tests += 1
        else:
            report.failed_tests += 1
        self._emit("check_complete", {"check": check, "url": url, "success": success})

    def _emit(self, event_type: str, data: dict):
        if self._on_progress:
            self._on_progress(event_type, data)


@dataclass
class AuditOutcome:
    report: RunReport
    report_paths: ReportPaths | None = None


async def run_audit(
    config: AuditConfig,
    output_dir: str | Path = "./reports",
    generate_report: bool = True,
    on_progress: ProgressCallback | None = None,
) -> AuditOutcome:
    """Run one whole audit inside a single browser scope.

    ShopAuditError subclasses propagate as they are; anything else that
    escapes is wrapped in RunError so callers only handle one family.
    """
    runner = AuditRunner(
        config,
        output_dir=output_dir,
        generate_report=generate_report,
        on_progress=on_progress,
    )
    try:
        async with runner:
            report = await runner.run_tests()
    except ShopAuditError:
        raise
    except Exception as e:
        logger.exception("Test execution failed")
        raise RunError(f"Test execution failed: {e}") from e
    return AuditOutcome(report=report, report_paths=runner.report_paths)
