"""Derive the run-level summary from per-URL results."""

from __future__ import annotations

from shopaudit.models.types import ErrorResult, ImageResult, ProductPageResult, RunSummary


ADD_TO_CART_MISSING = "Add-to-cart button is missing or non-functional"
PRICE_MISSING = "Product price is not displayed correctly"
CONSOLE_ERRORS = "Fix JavaScript console errors"
NETWORK_FAILURES = "Resolve network request failures"


def broken_images_message(count: int) -> str:
    return f"Fix {count} broken images"


def build_summary(
    product_results: list[ProductPageResult],
    image_results: list[ImageResult],
    error_results: list[ErrorResult],
) -> RunSummary:
    critical = 0
    warnings = 0
    recommendations: list[str] = []

    for result in product_results:
        if result.success:
            continue
        critical += 1
        missing = result.missing_elements
        if "addToCartButton" in missing:
            recommendations.append(ADD_TO_CART_MISSING)
        if "price" in missing:
            recommendations.append(PRICE_MISSING)

    for result in image_results:
        counts = result.images
        bad = counts.failed + counts.broken
        if bad > 0:
            warnings += 1
            recommendations.append(broken_images_message(bad))

    for result in error_results:
        if result.console_errors:
            warnings += 1
            recommendations.append(CONSOLE_ERRORS)
        if result.network_errors:
            critical += 1
            recommendations.append(NETWORK_FAILURES)

    return RunSummary(
        critical_issues=critical,
        warnings=warnings,
        recommendations=list(dict.fromkeys(recommendations)),
    )
