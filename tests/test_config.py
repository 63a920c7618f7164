import json

import pytest
import yaml

from shopaudit.models.config import (
    config_from_dict,
    config_from_options,
    load_config_file,
    write_sample_config,
)
from shopaudit.models.errors import ConfigError
from shopaudit.models.types import Cookie, Viewport


def test_from_options_splits_products():
    config = config_from_options(
        "https://shop.test", " https://shop.test/a , ,https://shop.test/b", "15000", "2", False,
    )
    assert config.product_urls == ("https://shop.test/a", "https://shop.test/b")
    assert config.timeout == 15000
    assert config.retry_attempts == 2
    assert config.headless is False
    assert config.viewport == Viewport(1920, 1080)


@pytest.mark.parametrize("url, products", [
    ("", "https://shop.test/a"),
    ("https://shop.test", ""),
    (None, None),
])
def test_from_options_requires_url_and_products(url, products):
    with pytest.raises(ConfigError):
        config_from_options(url, products)


def test_yaml_file(tmp_path):
    path = tmp_path / "shop.yaml"
    path.write_text(yaml.safe_dump({
        "baseUrl": "https://shop.test",
        "productUrls": ["https://shop.test/a"],
        "retryAttempts": 5,
        "viewport": {"width": 1280, "height": 720},
        "customHeaders": {"X-Audit": "1"},
        "cookies": [{"name": "region", "value": "eu", "domain": ".shop.test"}],
    }))
    config = load_config_file(path)
    assert config.retry_attempts == 5
    assert config.timeout == 30000
    assert config.viewport == Viewport(1280, 720)
    assert config.custom_headers == {"X-Audit": "1"}
    assert config.cookies == (Cookie(name="region", value="eu", domain=".shop.test"),)


def test_json_file_snake_case(tmp_path):
    path = tmp_path / "shop.json"
    path.write_text(json.dumps({"base_url": "https://shop.test", "product_urls": ["https://shop.test/a"]}))
    config = load_config_file(path)
    assert config.base_url == "https://shop.test"


def test_unsupported_extension(tmp_path):
    path = tmp_path / "shop.toml"
    path.write_text("baseUrl = 'x'")
    with pytest.raises(ConfigError, match="Unsupported config file format"):
        load_config_file(path)


def test_unparseable_and_missing_files(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigError, match="Failed to load config file"):
        load_config_file(bad)
    with pytest.raises(ConfigError):
        load_config_file(tmp_path / "nope.yaml")


@pytest.mark.parametrize("override", [
    {"timeout": 0},
    {"retryAttempts": "many"},
    {"viewport": {"width": -1}},
    {"cookies": [{"value": "no-name"}]},
    {"productUrls": "   "},
    {"productUrls": [None]},
    {"productUrls": ["https://shop.test/a", 42]},
])
def test_invalid_values(override):
    data = {"baseUrl": "https://shop.test", "productUrls": ["https://shop.test/a"], **override}
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_config_is_immutable():
    config = config_from_dict({"baseUrl": "https://shop.test", "productUrls": ["https://shop.test/a"]})
    with pytest.raises(AttributeError):
        config.timeout = 1


def test_sample_config_round_trips(tmp_path):
    path = write_sample_config(tmp_path / "shopaudit.config.yaml")
    config = load_config_file(path)
    assert len(config.product_urls) == 3
    assert config.custom_headers == {"User-Agent": "ShopAudit/1.0.0"}


def test_cookie_without_domain_uses_base_url():
    cookie = Cookie(name="a", value="b")
    assert cookie.to_playwright("https://shop.test") == {"name": "a", "value": "b", "url": "https://shop.test"}
    cookie = Cookie(name="a", value="b", domain=".shop.test")
    assert cookie.to_playwright("https://shop.test")["path"] == "/"
