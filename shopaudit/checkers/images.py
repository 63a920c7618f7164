"""Image-integrity check: does every <img> on the page actually load?

Classification order per image:
  1. no source                          -> broken
  2. DOM reports complete + natural size -> loaded
  3. captured network response           -> 2xx loaded, 404 broken, else failed
  4. in-page HEAD probe                  -> ok loaded, else broken; raised -> failed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from playwright.async_api import BrowserContext, Page

from shopaudit.models.types import AuditConfig, ImageDetail, ImageResult, ImageStatus


SETTLE_MS = 2000

logger = logging.getLogger(__name__)


_COLLECT_IMAGES_JS = """(imgs) => imgs.map(img => ({
    src: img.getAttribute('src') || img.getAttribute('data-src') || '',
    alt: img.getAttribute('alt') || '',
    width: img.naturalWidth || img.width || 0,
    height: img.naturalHeight || img.height || 0,
    complete: img.complete,
    naturalWidth: img.naturalWidth || 0,
    naturalHeight: img.naturalHeight || 0,
}))"""

_HEAD_PROBE_JS = """async (src) => {
    try {
        const res = await fetch(src, { method: 'HEAD' });
        return { status: res.status, ok: res.ok };
    } catch (e) {
        return { status: 0, ok: false, error: e && e.message ? e.message : 'Unknown error' };
    }
}"""


@dataclass
class ImageResponse:
    url: str
    status: int

    @property
    def error(self) -> str | None:
        return f"HTTP {self.status}" if self.status >= 400 else None


class ImageChecker:
    """Classifies every image on a page as loaded, failed or broken."""

    def __init__(self, context: BrowserContext, config: AuditConfig):
        self.context = context
        self.config = config

    async def check(self, url: str) -> ImageResult:
        page = await self.context.new_page()
        result = ImageResult(url=url)
        responses: list[ImageResponse] = []

        def on_response(response):
            if response.request.resource_type == "image":
                responses.append(ImageResponse(url=response.url, status=response.status))

        page.on("response", on_response)

        try:
            await page.goto(url, wait_until="networkidle", timeout=self.config.timeout)
            # lazy-loaded images
            await page.wait_for_timeout(SETTLE_MS)

            images = await page.eval_on_selector_all("img", _COLLECT_IMAGES_JS)
            for img in images:
                result.image_details.append(await self._classify(page, img, responses))

            missing_alt = [d for d in result.image_details if not d.alt or not d.alt.strip()]
            if missing_alt:
                result.errors.append(f"{len(missing_alt)} images missing alt text")
        except Exception as e:
            logger.info("Image check failed for %s: %s", url, e)
            result.page_loaded = False
            result.errors.append(f"Image test failed: {e}")
        finally:
            page.remove_listener("response", on_response)
            await page.close()

        return result

    async def _classify(self, page: Page, img: dict, responses: list[ImageResponse]) -> ImageDetail:
        src = img.get("src") or ""
        detail = ImageDetail(
            src=src,
            alt=img.get("alt") or "",
            width=img.get("width") or 0,
            height=img.get("height") or 0,
        )

        if not src.strip():
            detail.status = ImageStatus.BROKEN
            detail.error = "No source URL"
            return detail

        natural_w = img.get("naturalWidth") or 0
        natural_h = img.get("naturalHeight") or 0
        if img.get("complete") and natural_w > 0 and natural_h > 0:
            detail.status = ImageStatus.LOADED
            detail.width = natural_w
            detail.height = natural_h
            return detail

        captured = next((r for r in responses if r.url == src), None)
        if captured:
            if 200 <= captured.status < 300:
                detail.status = ImageStatus.LOADED
            elif captured.status == 404:
                detail.status = ImageStatus.BROKEN
                detail.error = "Image not found (404)"
            else:
                detail.status = ImageStatus.FAILED
                detail.error = captured.error or f"HTTP {captured.status}"
            return detail

        # The response fired before the listener was attached; ask the page.
        try:
            probe = await page.evaluate(_HEAD_PROBE_JS, src)
        except Exception as e:
            detail.status = ImageStatus.FAILED
            detail.error = str(e) or "Unknown error"
            return detail

        if probe.get("ok"):
            detail.status = ImageStatus.LOADED
        else:
            detail.status = ImageStatus.BROKEN
            detail.error = f"HTTP {probe.get('status', 0)}"
        return detail
