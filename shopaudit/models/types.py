from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


FEATURE_NAMES = (
    "title",
    "price",
    "description",
    "addToCartButton",
    "variants",
    "availability",
    "metaInfo",
)

IMAGE_SUCCESS_RATE = 0.9
RUN_PASS_THRESHOLD = 0.8


class ImageStatus(str, Enum):
    LOADED = "loaded"
    FAILED = "failed"
    BROKEN = "broken"


class ConsoleLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ResourceKind(str, Enum):
    CSS = "css"
    JS = "js"
    IMAGE = "image"
    FONT = "font"
    OTHER = "other"


@dataclass(frozen=True)
class Viewport:
    width: int = 1920
    height: int = 1080

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    domain: str | None = None
    path: str | None = None

    def to_dict(self) -> dict:
        d = {"name": self.name, "value": self.value}
        if self.domain:
            d["domain"] = self.domain
        if self.path:
            d["path"] = self.path
        return d

    def to_playwright(self, fallback_url: str) -> dict:
        """Playwright wants either a url or a domain+path pair per cookie."""
        d = {"name": self.name, "value": self.value}
        if self.domain:
            d["domain"] = self.domain
            d["path"] = self.path or "/"
        else:
            d["url"] = fallback_url
        return d


@dataclass(frozen=True)
class AuditConfig:
    """One run's configuration. Built once, never mutated."""

    base_url: str
    product_urls: tuple[str, ...]
    timeout: int = 30000
    retry_attempts: int = 3
    viewport: Viewport = field(default_factory=Viewport)
    headless: bool = True
    custom_headers: dict[str, str] | None = None
    cookies: tuple[Cookie, ...] = ()

    def to_dict(self) -> dict:
        d = {
            "baseUrl": self.base_url,
            "productUrls": list(self.product_urls),
            "timeout": self.timeout,
            "retryAttempts": self.retry_attempts,
            "viewport": self.viewport.to_dict(),
            "headless": self.headless,
        }
        if self.custom_headers:
            d["customHeaders"] = dict(self.custom_headers)
        if self.cookies:
            d["cookies"] = [c.to_dict() for c in self.cookies]
        return d


@dataclass
class ProductElements:
    title: bool = False
    price: bool = False
    description: bool = False
    add_to_cart_button: bool = False
    variants: bool = False
    availability: bool = False
    meta_info: bool = False

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "price": self.price,
            "description": self.description,
            "addToCartButton": self.add_to_cart_button,
            "variants": self.variants,
            "availability": self.availability,
            "metaInfo": self.meta_info,
        }

    def set(self, feature: str, present: bool):
        setattr(self, _FEATURE_ATTRS[feature], present)


_FEATURE_ATTRS = {
    "title": "title",
    "price": "price",
    "description": "description",
    "addToCartButton": "add_to_cart_button",
    "variants": "variants",
    "availability": "availability",
    "metaInfo": "meta_info",
}


@dataclass
class ProductPageResult:
    url: str
    load_time: int = 0
    elements: ProductElements = field(default_factory=ProductElements)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(self.elements.to_dict().values()) and not self.errors

    @property
    def missing_elements(self) -> list[str]:
        if self.success:
            return []
        return [name for name, present in self.elements.to_dict().items() if not present]

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "success": self.success,
            "loadTime": self.load_time,
            "elements": self.elements.to_dict(),
            "missingElements": self.missing_elements,
            "errors": list(self.errors),
        }


@dataclass
class ImageDetail:
    src: str
    alt: str = ""
    width: int = 0
    height: int = 0
    status: ImageStatus = ImageStatus.FAILED
    error: str | None = None

    def to_dict(self) -> dict:
        d = {
            "src": self.src,
            "alt": self.alt,
            "width": self.width,
            "height": self.height,
            "status": self.status.value,
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class ImageCounts:
    total: int = 0
    loaded: int = 0
    failed: int = 0
    broken: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "loaded": self.loaded,
            "failed": self.failed,
            "broken": self.broken,
        }


@dataclass
class ImageResult:
    url: str
    image_details: list[ImageDetail] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    page_loaded: bool = True

    @property
    def images(self) -> ImageCounts:
        counts = ImageCounts(total=len(self.image_details))
        for detail in self.image_details:
            if detail.status == ImageStatus.LOADED:
                counts.loaded += 1
            elif detail.status == ImageStatus.BROKEN:
                counts.broken += 1
            else:
                counts.failed += 1
        return counts

    @property
    def success(self) -> bool:
        if not self.page_loaded:
            return False
        counts = self.images
        if counts.total == 0:
            return True
        return counts.loaded / counts.total >= IMAGE_SUCCESS_RATE and counts.broken == 0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "success": self.success,
            "images": self.images.to_dict(),
            "imageDetails": [d.to_dict() for d in self.image_details],
            "errors": list(self.errors),
        }


@dataclass
class ConsoleError:
    level: ConsoleLevel
    message: str
    source: str = "unknown"
    line_number: int | None = None
    column_number: int | None = None
    stack: str | None = None

    def to_dict(self) -> dict:
        d = {"level": self.level.value, "message": self.message, "source": self.source}
        if self.line_number is not None:
            d["lineNumber"] = self.line_number
        if self.column_number is not None:
            d["columnNumber"] = self.column_number
        if self.stack:
            d["stack"] = self.stack
        return d


@dataclass
class NetworkError:
    url: str
    status: int
    status_text: str = ""
    method: str = "GET"
    resource_type: str = "other"

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status,
            "statusText": self.status_text,
            "method": self.method,
            "resourceType": self.resource_type,
        }


@dataclass
class ResourceError:
    url: str
    type: ResourceKind = ResourceKind.OTHER
    error: str = "Request failed"

    def to_dict(self) -> dict:
        return {"url": self.url, "type": self.type.value, "error": self.error}


@dataclass
class ErrorResult:
    url: str
    console_errors: list[ConsoleError] = field(default_factory=list)
    network_errors: list[NetworkError] = field(default_factory=list)
    resource_errors: list[ResourceError] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return len(self.console_errors) + len(self.network_errors) + len(self.resource_errors)

    @property
    def success(self) -> bool:
        critical = [e for e in self.console_errors if e.level == ConsoleLevel.ERROR]
        server_failures = [e for e in self.network_errors if e.status >= 500]
        return not critical and not server_failures

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "success": self.success,
            "consoleErrors": [e.to_dict() for e in self.console_errors],
            "networkErrors": [e.to_dict() for e in self.network_errors],
            "resourceErrors": [e.to_dict() for e in self.resource_errors],
            "totalErrors": self.total_errors,
        }


@dataclass
class RunSummary:
    critical_issues: int = 0
    warnings: int = 0
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "criticalIssues": self.critical_issues,
            "warnings": self.warnings,
            "recommendations": list(self.recommendations),
        }


@dataclass
class RunReport:
    base_url: str
    total_tests: int
    passed_tests: int = 0
    failed_tests: int = 0
    total_duration: int = 0
    product_page_results: list[ProductPageResult] = field(default_factory=list)
    image_results: list[ImageResult] = field(default_factory=list)
    error_results: list[ErrorResult] = field(default_factory=list)
    summary: RunSummary = field(default_factory=RunSummary)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success_rate(self) -> float:
        if not self.total_tests:
            return 0.0
        return self.passed_tests / self.total_tests

    @property
    def passed_threshold(self) -> bool:
        return self.success_rate >= RUN_PASS_THRESHOLD

    def to_dict(self) -> dict:
        return {
            "timestamp": iso_timestamp(self.timestamp),
            "baseUrl": self.base_url,
            "totalTests": self.total_tests,
            "passedTests": self.passed_tests,
            "failedTests": self.failed_tests,
            "totalDuration": self.total_duration,
            "productPageResults": [r.to_dict() for r in self.product_page_results],
            "imageResults": [r.to_dict() for r in self.image_results],
            "errorResults": [r.to_dict() for r in self.error_results],
            "summary": self.summary.to_dict(),
        }


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
