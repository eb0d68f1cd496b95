from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from config import settings
from services.extractor import Extractor
from services.strategies import DEFAULT_FALLBACK, SiteStrategy, StrategyRegistry


def test_bundled_strategies_cover_known_sites(strategies):
    assert [strategy.name for strategy in strategies.strategies] == ["rakuten_travel", "booking"]
    assert strategies.fallback.name == "generic"
    assert strategies.fallback.host is None
    assert strategies.fallback.placeholder_name == "Unknown Hotel"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://travel.rakuten.co.jp/HOTEL/1/1.html", "rakuten_travel"),
        ("https://hotel.travel.rakuten.co.jp/hinfo/1/", "rakuten_travel"),
        ("https://www.booking.com/hotel/jp/x.html", "booking"),
        ("https://www.jalan.net/yad123/", "generic"),
    ],
)
def test_select_by_host_substring(strategies, url, expected):
    assert strategies.select(url).name == expected


def test_new_site_can_be_added_from_config(tmp_path, monkeypatch):
    config_file = tmp_path / "strategies.yaml"
    config_file.write_text(
        """
strategies:
  - name: jalan
    host: jalan.net
    name_selectors: ["h1.shisetsu-name"]
    price_selector: ".price-value"
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("STRATEGIES_PATH", str(config_file))
    settings.reload()

    registry = StrategyRegistry.load(settings.STRATEGIES_PATH)
    extractor = Extractor(registry)
    quote = extractor.parse(
        "<h1 class='shisetsu-name'>Onsen Lodge</h1><b class='price-value'>7,700円</b>",
        "https://www.jalan.net/yad123/",
    )

    assert quote.name == "Onsen Lodge"
    assert quote.price == 7700
    assert registry.fallback == DEFAULT_FALLBACK


def test_strategy_without_price_selector_is_rejected():
    with pytest.raises(ValueError, match="price_selector"):
        StrategyRegistry.from_mapping({"strategies": [{"name": "broken", "host": "example.com"}]})


def test_strategy_without_host_is_rejected():
    with pytest.raises(ValueError, match="host"):
        StrategyRegistry.from_mapping({"strategies": [{"name": "broken", "price_selector": ".p"}]})


def test_empty_document_gives_fallback_only():
    registry = StrategyRegistry.from_mapping(None)

    assert len(registry) == 0
    assert registry.select("https://travel.rakuten.co.jp/x") is registry.fallback


def test_known_site_without_name_reports_placeholder():
    strategy = SiteStrategy(
        name="rakuten_travel",
        host="travel.rakuten.co.jp",
        name_selectors=("#htlName", "h1.head-hotel-name"),
        price_selector=".price--num",
    )
    soup = BeautifulSoup("<span class='price--num'>¥5,000</span>", "html.parser")

    assert strategy.extract_name(soup) == "Unknown Hotel"
    assert strategy.extract_price_text(soup) == "¥5,000"
