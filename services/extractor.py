"""Extractor service for reading hotel names and prices from booking pages."""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup

from config import settings
from models import ExtractedQuote
from services.errors import FetchError, MarkupError, PriceFormatError
from services.strategies import StrategyRegistry

logger = logging.getLogger(__name__)
DIGITS_PATTERN = re.compile(r"[0-9]+")


def normalize_price(raw_text: str, selector: str | None = None) -> int:
    """Turn display text such as ``"¥12,345"`` into ``12345``.

    Every run of digits is kept in order of appearance, so currency symbols,
    thousands separators and stray markup text are dropped.
    """
    digits = DIGITS_PATTERN.findall(raw_text or "")
    if not digits:
        raise PriceFormatError(
            f"No digits found in price text {raw_text!r}",
            raw_text=raw_text,
            selector=selector,
        )
    joined = "".join(digits)
    try:
        return int(joined)
    except ValueError as exc:
        raise PriceFormatError(
            f"Could not parse price {joined!r} (raw text {raw_text!r})",
            raw_text=raw_text,
            selector=selector,
        ) from exc


class Extractor:
    """Fetches a hotel page and extracts its name and current price."""

    def __init__(
        self,
        strategies: StrategyRegistry | None = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.strategies = strategies or StrategyRegistry()
        self.headers = headers or settings.HEADERS
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    async def fetch_page(self, url: str) -> str:
        """Fetch HTML content, raising FetchError on any transport failure."""
        session = await self._get_session()
        try:
            async with session.get(
                url,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    raise FetchError(
                        f"Unexpected status {response.status} {response.reason or ''}".strip(),
                        url=url,
                        status=response.status,
                    )
                return await response.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise FetchError(f"Timed out after {self.timeout:g}s", url=url) from exc
        except aiohttp.ClientError as exc:
            raise FetchError(f"Request failed: {exc}", url=url) from exc

    def parse(self, html: str, url: str) -> ExtractedQuote:
        """Extract a quote from already fetched HTML."""
        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as exc:
            raise MarkupError(f"Could not parse HTML: {exc}", url=url) from exc

        strategy = self.strategies.select(url)
        logger.debug("Using %s strategy for %s", strategy.name, url)

        price_text = strategy.extract_price_text(soup)
        if not price_text:
            raise MarkupError(
                f"Price not found; check selector '{strategy.price_selector}'",
                url=url,
                selector=strategy.price_selector,
            )

        try:
            price = normalize_price(price_text, selector=strategy.price_selector)
        except PriceFormatError as exc:
            exc.url = url
            raise

        return ExtractedQuote(name=strategy.extract_name(soup), price=price)

    async def extract(self, url: str) -> ExtractedQuote:
        """Fetch ``url`` and return the hotel name and price found on it."""
        html = await self.fetch_page(url)
        return self.parse(html, url)


__all__ = ["Extractor", "normalize_price"]
