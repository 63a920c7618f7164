"""Build an AuditConfig from CLI flags, a dict, or a JSON/YAML file.

Keys are accepted in the camelCase form used by existing config files
(baseUrl, productUrls, retryAttempts, ...) as well as snake_case.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from shopaudit.models.errors import ConfigError
from shopaudit.models.types import AuditConfig, Cookie, Viewport


DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRIES = 3

SAMPLE_CONFIG = {
    "baseUrl": "https://www.bollandbranch.com",
    "productUrls": [
        "https://www.bollandbranch.com/products/signature-hemmed-sheet-set",
        "https://www.bollandbranch.com/products/signature-hemmed-duvet-set",
        "https://www.bollandbranch.com/products/waffle-bed-blanket",
    ],
    "timeout": DEFAULT_TIMEOUT_MS,
    "retryAttempts": DEFAULT_RETRIES,
    "viewport": {"width": 1920, "height": 1080},
    "headless": True,
    "customHeaders": {"User-Agent": "ShopAudit/1.0.0"},
}


def load_config_file(path: str | Path) -> AuditConfig:
    path = Path(path)
    ext = path.suffix.lower()
    try:
        content = path.read_text(encoding="utf-8")
        if ext == ".json":
            data = json.loads(content)
        elif ext in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            raise ConfigError("Unsupported config file format. Use .json, .yaml, or .yml")
    except ConfigError as e:
        raise ConfigError(f"Failed to load config file: {e}") from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Failed to load config file: {path} does not contain a mapping")
    return config_from_dict(data)


def config_from_options(
    url: str | None,
    products: str | None,
    timeout: int | str = DEFAULT_TIMEOUT_MS,
    retries: int | str = DEFAULT_RETRIES,
    headless: bool = True,
) -> AuditConfig:
    """Assemble a config from discrete CLI flags. `products` is comma-separated."""
    product_urls = [u.strip() for u in (products or "").split(",") if u.strip()]
    return config_from_dict({
        "baseUrl": url or "",
        "productUrls": product_urls,
        "timeout": timeout,
        "retryAttempts": retries,
        "headless": headless,
    })


def config_from_dict(data: dict[str, Any]) -> AuditConfig:
    base_url = str(_pick(data, "baseUrl", "base_url") or "").strip()
    product_urls = _pick(data, "productUrls", "product_urls") or []
    if isinstance(product_urls, str):
        product_urls = [u.strip() for u in product_urls.split(",")]
    if not isinstance(product_urls, (list, tuple)):
        raise ConfigError("productUrls must be a list of URLs")
    for u in product_urls:
        if not isinstance(u, str):
            raise ConfigError(f"productUrls entries must be URL strings, got {u!r}")
    product_urls = tuple(u.strip() for u in product_urls if u.strip())

    if not base_url or not product_urls:
        raise ConfigError("Base URL and at least one product URL are required")

    timeout = _positive_int(_pick(data, "timeout"), "timeout", DEFAULT_TIMEOUT_MS)
    retries = _positive_int(
        _pick(data, "retryAttempts", "retry_attempts", "retries"), "retryAttempts", DEFAULT_RETRIES,
    )

    viewport_data = _pick(data, "viewport") or {}
    if not isinstance(viewport_data, dict):
        raise ConfigError("viewport must be a mapping with width and height")
    viewport = Viewport(
        width=_positive_int(viewport_data.get("width"), "viewport.width", 1920),
        height=_positive_int(viewport_data.get("height"), "viewport.height", 1080),
    )

    headless = _pick(data, "headless")
    if headless is None:
        headless = True
    elif isinstance(headless, str):
        headless = headless.strip().lower() not in ("false", "0", "no", "off")

    headers = _pick(data, "customHeaders", "custom_headers")
    if headers is not None:
        if not isinstance(headers, dict):
            raise ConfigError("customHeaders must be a mapping of header name to value")
        headers = {str(k): str(v) for k, v in headers.items()}

    cookies = []
    for raw in _pick(data, "cookies") or []:
        if not isinstance(raw, dict) or not raw.get("name") or "value" not in raw:
            raise ConfigError(f"Invalid cookie entry: {raw!r}")
        cookies.append(Cookie(
            name=str(raw["name"]),
            value=str(raw["value"]),
            domain=raw.get("domain"),
            path=raw.get("path"),
        ))

    return AuditConfig(
        base_url=base_url,
        product_urls=product_urls,
        timeout=timeout,
        retry_attempts=retries,
        viewport=viewport,
        headless=bool(headless),
        custom_headers=headers or None,
        cookies=tuple(cookies),
    )


def write_sample_config(path: str | Path) -> Path:
    path = Path(path)
    path.write_text(yaml.safe_dump(SAMPLE_CONFIG, sort_keys=False, indent=2), encoding="utf-8")
    return path


def _pick(data: dict, *keys: str):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _positive_int(value, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number
