"""In-memory stand-ins for the Playwright page/context used by the checkers.

A FakeSite describes what a URL serves: DOM matches per selector, <img>
records, network responses and console/page errors fired during goto().
"""

from __future__ import annotations

from dataclasses import dataclass, field

from shopaudit.checkers import errors as error_checker
from shopaudit.checkers import images as image_checker


@dataclass
class FakeElement:
    text: str | None = ""
    visible: bool = True
    enabled: bool = True
    attrs: dict = field(default_factory=dict)

    async def text_content(self):
        return self.text

    async def is_visible(self):
        return self.visible

    async def is_enabled(self):
        return self.enabled

    async def get_attribute(self, name):
        return self.attrs.get(name)


@dataclass
class FakeRequest:
    url: str
    resource_type: str = "document"
    method: str = "GET"
    failure: str | None = None


@dataclass
class FakeResponse:
    url: str
    status: int
    status_text: str = ""
    request: FakeRequest | None = None

    def __post_init__(self):
        if self.request is None:
            self.request = FakeRequest(url=self.url)


@dataclass
class FakeConsoleMessage:
    type: str
    text: str
    location: dict = field(default_factory=dict)


@dataclass
class FakePageError:
    message: str
    stack: str = ""


@dataclass
class FakeSite:
    title: str = ""
    elements: dict[str, list[FakeElement]] = field(default_factory=dict)
    images: list[dict] = field(default_factory=list)
    responses: list[FakeResponse] = field(default_factory=list)
    console: list[FakeConsoleMessage] = field(default_factory=list)
    page_errors: list[FakePageError] = field(default_factory=list)
    failed_requests: list[FakeRequest] = field(default_factory=list)
    hook_errors: list[dict] = field(default_factory=list)
    head_status: dict[str, int] = field(default_factory=dict)
    head_raises: set[str] = field(default_factory=set)
    raising_selectors: set[str] = field(default_factory=set)
    goto_error: Exception | None = None


class FakePage:

    def __init__(self, context: FakeContext):
        self.context = context
        self.site = FakeSite()
        self.handlers: dict[str, list] = {}
        self.visited: list[str] = []
        self.goto_kwargs: dict = {}
        self.waits: list[int] = []
        self.evaluated: list[str] = []
        self.closed = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.handlers.get(event, []).remove(handler)

    def _emit(self, event, payload):
        for handler in list(self.handlers.get(event, [])):
            handler(payload)

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        self.goto_kwargs = {"wait_until": wait_until, "timeout": timeout}
        self.site = self.context.site_for(url)
        for response in self.site.responses:
            self._emit("response", response)
        for msg in self.site.console:
            self._emit("console", msg)
        for error in self.site.page_errors:
            self._emit("pageerror", error)
        for request in self.site.failed_requests:
            self._emit("requestfailed", request)
        if self.site.goto_error:
            raise self.site.goto_error

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def query_selector(self, selector):
        if selector in self.site.raising_selectors:
            raise RuntimeError(f"selector blew up: {selector}")
        matches = self.site.elements.get(selector) or []
        return matches[0] if matches else None

    async def query_selector_all(self, selector):
        if selector in self.site.raising_selectors:
            raise RuntimeError(f"selector blew up: {selector}")
        return list(self.site.elements.get(selector) or [])

    async def title(self):
        return self.site.title

    async def eval_on_selector_all(self, selector, script):
        return [dict(img) for img in self.site.images]

    async def evaluate(self, script, arg=None):
        self.evaluated.append(script)
        if script == image_checker._HEAD_PROBE_JS:
            if arg in self.site.head_raises:
                raise RuntimeError("Execution context was destroyed")
            status = self.site.head_status.get(arg, 0)
            return {"status": status, "ok": 200 <= status < 300}
        if script == error_checker._INSTALL_ERROR_HOOKS_JS:
            return None
        if script == error_checker._COLLECT_ERROR_HOOKS_JS:
            return list(self.site.hook_errors)
        raise AssertionError(f"unexpected script: {script[:60]}")

    async def close(self):
        self.closed = True


class FakeContext:
    """Serves one FakeSite per URL; `default` covers any other URL."""

    def __init__(self, sites: dict[str, FakeSite] | None = None, default: FakeSite | None = None,
                 new_page_error: Exception | None = None):
        self.sites = sites or {}
        self.default = default or FakeSite()
        self.new_page_error = new_page_error
        self.pages: list[FakePage] = []
        self.new_page_calls = 0
        self.closed = False

    def site_for(self, url: str) -> FakeSite:
        return self.sites.get(url, self.default)

    async def new_page(self):
        self.new_page_calls += 1
        if self.new_page_error:
            raise self.new_page_error
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


def image(src: str, alt: str = "Product photo", loaded: bool = True) -> dict:
    return {
        "src": src,
        "alt": alt,
        "width": 400,
        "height": 300,
        "complete": loaded,
        "naturalWidth": 800 if loaded else 0,
        "naturalHeight": 600 if loaded else 0,
    }


def image_response(src: str, status: int) -> FakeResponse:
    return FakeResponse(url=src, status=status, request=FakeRequest(url=src, resource_type="image"))


def product_site(
    price_text: str = "$248.00",
    add_to_cart: bool = True,
    image_count: int = 5,
) -> FakeSite:
    """A product page with every feature present and healthy images."""
    elements = {
        "h1": [FakeElement("Signature Hemmed Sheet Set")],
        '[class*="price"]': [FakeElement(price_text)],
        '[class*="description"]': [FakeElement("Long-staple organic cotton percale, woven in Portugal.")],
        'meta[name="description"]': [FakeElement(attrs={"content": "Organic cotton sheets."})],
    }
    if add_to_cart:
        elements['[class*="add-to-cart"]'] = [FakeElement("Add to Cart")]

    srcs = [f"https://cdn.shop.test/img/{i}.jpg" for i in range(image_count)]
    return FakeSite(
        title="Signature Hemmed Sheet Set | Shop",
        elements=elements,
        images=[image(src) for src in srcs],
        responses=[image_response(src, 200) for src in srcs],
    )
