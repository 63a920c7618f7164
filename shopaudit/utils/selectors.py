"""Heuristic selector chains for product page features.

Each feature is an ordered list of CSS selectors plus a predicate on the
first element a selector matches. The first selector whose element passes
the predicate wins. Only query_selector / text_content / is_visible /
is_enabled are used, so any object exposing those works as a page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Awaitable, Callable

from playwright.async_api import ElementHandle, Page


PRICE_PATTERN = re.compile(r"[$€£¥₹]?\s*\d+([.,]\d{2})?")

TITLE_SELECTORS = [
    'h1[class*="product"]',
    'h1[class*="title"]',
    ".product-title",
    ".product-name",
    '[data-testid="product-title"]',
    "h1",
    ".title",
]

PRICE_SELECTORS = [
    '[class*="price"]',
    '[class*="Price"]',
    ".product-price",
    ".price",
    '[data-testid="price"]',
    "[data-price]",
    ".current-price",
    ".regular-price",
]

DESCRIPTION_SELECTORS = [
    '[class*="description"]',
    '[class*="Description"]',
    ".product-description",
    ".description",
    '[data-testid="description"]',
    ".product-details",
    ".product-info",
]

ADD_TO_CART_SELECTORS = [
    '[class*="add-to-cart"]',
    '[class*="AddToCart"]',
    ".add-to-cart",
    ".addtocart",
    '[data-testid="add-to-cart"]',
    'button[type="submit"]',
    'input[type="submit"]',
    '[class*="buy"]',
    '[class*="purchase"]',
]

VARIANT_SELECTORS = [
    '[class*="variant"]',
    '[class*="option"]',
    ".product-variants",
    ".product-options",
    'select[class*="variant"]',
    'select[class*="option"]',
    '[data-testid="variant"]',
    '[data-testid="option"]',
]

OUT_OF_STOCK_SELECTORS = [
    '[class*="out-of-stock"]',
    '[class*="unavailable"]',
    ".out-of-stock",
    ".unavailable",
    '[data-testid="out-of-stock"]',
]

META_DESCRIPTION_SELECTOR = 'meta[name="description"]'


ElementPredicate = Callable[[ElementHandle], Awaitable[bool]]


@dataclass(frozen=True)
class FeatureProbe:
    """A named 'first match wins' selector chain."""

    feature: str
    label: str
    selectors: list[str]
    predicate: ElementPredicate


def is_valid_price(text: str) -> bool:
    return bool(PRICE_PATTERN.search(text.strip()))


async def has_text(el: ElementHandle) -> bool:
    text = await el.text_content()
    return bool(text and text.strip())


async def has_price(el: ElementHandle) -> bool:
    text = await el.text_content()
    return bool(text and is_valid_price(text))


async def has_long_text(el: ElementHandle) -> bool:
    text = await el.text_content()
    return bool(text and len(text.strip()) > 10)


async def is_clickable(el: ElementHandle) -> bool:
    return await el.is_visible() and await el.is_enabled()


async def first_match(page: Page, selectors: list[str], predicate: ElementPredicate) -> str | None:
    """Return the first selector whose matched element satisfies predicate."""
    for selector in selectors:
        el = await page.query_selector(selector)
        if el and await predicate(el):
            return selector
    return None


async def any_present(page: Page, selectors: list[str]) -> bool:
    for selector in selectors:
        if await page.query_selector_all(selector):
            return True
    return False


async def any_visible(page: Page, selectors: list[str]) -> bool:
    for selector in selectors:
        el = await page.query_selector(selector)
        if el and await el.is_visible():
            return True
    return False


PRODUCT_PROBES = [
    FeatureProbe("title", "Title", TITLE_SELECTORS, has_text),
    FeatureProbe("price", "Price", PRICE_SELECTORS, has_price),
    FeatureProbe("description", "Description", DESCRIPTION_SELECTORS, has_long_text),
    FeatureProbe("addToCartButton", "Add to cart button", ADD_TO_CART_SELECTORS, is_clickable),
]
