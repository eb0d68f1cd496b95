"""Site-specific selector sets and the host lookup that picks one."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import yaml
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

UNKNOWN_HOTEL_NAME = "Unknown Hotel"
GENERIC_PRICE_SELECTOR = ".roomType-charge-price"


@dataclass(frozen=True, slots=True)
class SiteStrategy:
    """Selectors used to read a hotel name and price from one site's markup.

    A strategy with ``host`` set applies when that string occurs in the page
    URL. A strategy without a host is only used as the fallback.
    """

    name: str
    price_selector: str
    host: str | None = None
    name_selectors: tuple[str, ...] = ()
    placeholder_name: str = UNKNOWN_HOTEL_NAME

    def matches(self, url: str) -> bool:
        return bool(self.host) and self.host in url

    def extract_name(self, soup: BeautifulSoup) -> str:
        """Return the first non-empty name, or the placeholder."""
        for selector in self.name_selectors:
            text = "".join(tag.get_text() for tag in soup.select(selector)).strip()
            if text:
                return text
        return self.placeholder_name

    def extract_price_text(self, soup: BeautifulSoup) -> str:
        tag = soup.select_one(self.price_selector)
        if tag is None:
            return ""
        return tag.get_text().strip()


DEFAULT_FALLBACK = SiteStrategy(name="generic", price_selector=GENERIC_PRICE_SELECTOR)


class StrategyRegistry:
    """Ordered host strategies plus the fallback for unrecognized hosts."""

    def __init__(
        self,
        strategies: Iterable[SiteStrategy] = (),
        fallback: SiteStrategy | None = None,
    ) -> None:
        self.strategies: tuple[SiteStrategy, ...] = tuple(strategies)
        self.fallback = fallback or DEFAULT_FALLBACK
        for strategy in self.strategies:
            if not strategy.host:
                raise ValueError(f"Strategy '{strategy.name}' must define a host")

    def select(self, url: str) -> SiteStrategy:
        for strategy in self.strategies:
            if strategy.matches(url):
                return strategy
        return self.fallback

    def __len__(self) -> int:
        return len(self.strategies)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "StrategyRegistry":
        """Build a registry from a parsed YAML document."""
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValueError("Strategy configuration must be a mapping")
        raw_strategies = data.get("strategies") or []
        if not isinstance(raw_strategies, list):
            raise ValueError("'strategies' must be a list")

        strategies = [
            _parse_strategy(entry, position=index)
            for index, entry in enumerate(raw_strategies, start=1)
        ]

        raw_fallback = data.get("fallback")
        fallback = None
        if raw_fallback:
            # the fallback applies to every unmatched URL, so any host is ignored
            fallback = replace(_parse_strategy(raw_fallback, position=None), host=None)
        return cls(strategies, fallback)

    @classmethod
    def load(cls, path: Path) -> "StrategyRegistry":
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        registry = cls.from_mapping(data)
        logger.info(
            "Loaded %s site strategies from %s (fallback: %s)",
            len(registry),
            path,
            registry.fallback.name,
        )
        return registry


def _parse_strategy(entry: Any, position: int | None) -> SiteStrategy:
    where = f"strategy #{position}" if position is not None else "fallback strategy"
    if not isinstance(entry, Mapping):
        raise ValueError(f"{where} must be a mapping")

    price_selector = str(entry.get("price_selector") or "").strip()
    if not price_selector:
        raise ValueError(f"{where} is missing 'price_selector'")

    host = str(entry.get("host") or "").strip() or None
    if position is not None and host is None:
        raise ValueError(f"{where} is missing 'host'")

    raw_selectors = entry.get("name_selectors") or ()
    if isinstance(raw_selectors, str):
        raw_selectors = (raw_selectors,)
    name_selectors = _clean_selectors(raw_selectors)

    return SiteStrategy(
        name=str(entry.get("name") or host or "generic"),
        price_selector=price_selector,
        host=host,
        name_selectors=name_selectors,
        placeholder_name=str(entry.get("placeholder_name") or UNKNOWN_HOTEL_NAME),
    )


def _clean_selectors(values: Sequence[Any]) -> tuple[str, ...]:
    return tuple(str(value).strip() for value in values if str(value).strip())


__all__ = [
    "DEFAULT_FALLBACK",
    "SiteStrategy",
    "StrategyRegistry",
    "UNKNOWN_HOTEL_NAME",
]
