"""Element-presence check: are the parts of a product page there?"""

from __future__ import annotations

import logging
import time

from playwright.async_api import BrowserContext, Page

from shopaudit.models.types import AuditConfig, ProductPageResult
from shopaudit.utils.selectors import (
    META_DESCRIPTION_SELECTOR,
    OUT_OF_STOCK_SELECTORS,
    PRODUCT_PROBES,
    VARIANT_SELECTORS,
    any_present,
    any_visible,
    first_match,
)


logger = logging.getLogger(__name__)


class ProductPageChecker:
    """Checks that the expected product page elements are present."""

    def __init__(self, context: BrowserContext, config: AuditConfig):
        self.context = context
        self.config = config

    async def check(self, url: str) -> ProductPageResult:
        page = await self.context.new_page()
        result = ProductPageResult(url=url)
        start = time.monotonic()

        try:
            await page.goto(url, wait_until="networkidle", timeout=self.config.timeout)
            result.load_time = int((time.monotonic() - start) * 1000)

            for probe in PRODUCT_PROBES:
                try:
                    matched = await first_match(page, probe.selectors, probe.predicate)
                    result.elements.set(probe.feature, matched is not None)
                except Exception as e:
                    result.errors.append(f"{probe.label} test failed: {e}")

            await self._check_variants(page, result)
            await self._check_availability(page, result)
            await self._check_meta(page, result)
        except Exception as e:
            logger.info("Product page load failed for %s: %s", url, e)
            result.errors.append(f"Page load failed: {e}")
        finally:
            await page.close()

        return result

    async def _check_variants(self, page: Page, result: ProductPageResult):
        # Single-variant products have no selector at all; that still passes.
        try:
            found = await any_present(page, VARIANT_SELECTORS)
            logger.debug("Variant selector %s on %s", "found" if found else "absent", result.url)
            result.elements.variants = True
        except Exception as e:
            result.errors.append(f"Variants test failed: {e}")

    async def _check_availability(self, page: Page, result: ProductPageResult):
        try:
            result.elements.availability = not await any_visible(page, OUT_OF_STOCK_SELECTORS)
        except Exception as e:
            result.errors.append(f"Availability test failed: {e}")

    async def _check_meta(self, page: Page, result: ProductPageResult):
        try:
            title = await page.title()
            meta = await page.query_selector(META_DESCRIPTION_SELECTOR)
            description = await meta.get_attribute("content") if meta else None
            result.elements.meta_info = bool(
                title and title.strip() and description and description.strip()
            )
        except Exception as e:
            result.errors.append(f"Meta information test failed: {e}")
