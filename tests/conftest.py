"""Pytest configuration and fixtures."""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from config import settings


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch) -> None:
    """Set up test environment variables"""
    monkeypatch.setenv('CHECK_INTERVAL_SECONDS', '60')
    monkeypatch.setenv('REQUEST_TIMEOUT', '30')
    monkeypatch.setenv('SMTP_HOST', 'smtp.test.local')
    monkeypatch.setenv('SMTP_PORT', '2525')
    monkeypatch.setenv('SMTP_USERNAME', 'alerts@test.local')
    monkeypatch.setenv('SMTP_PASSWORD', 'secret')
    monkeypatch.setenv('SMTP_SENDER', 'alerts@test.local')
    monkeypatch.delenv('STRATEGIES_PATH', raising=False)
    monkeypatch.delenv('CORS_ALLOW_ORIGIN', raising=False)
    settings.reload()


@pytest.fixture
def temp_db(tmp_path, monkeypatch, mock_env_vars) -> Path:
    """Point the watch store at a throwaway sqlite file"""
    monkeypatch.setenv('DB_PATH', str(tmp_path / 'data' / 'alerts.db'))
    settings.reload()
    return settings.DB_PATH


class FakeResponse:
    def __init__(self, body: str = "", status: int = 200, reason: str = "OK") -> None:
        self.body = body
        self.status = status
        self.reason = reason

    async def text(self, errors: str = "strict") -> str:
        return self.body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession; maps URLs to responses or errors."""

    def __init__(self, responses: dict) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.responses[url]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, str):
            return FakeResponse(outcome)
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_session() -> Callable[[dict], FakeSession]:
    return FakeSession


@pytest.fixture
def make_response() -> Callable[..., FakeResponse]:
    return FakeResponse


@pytest.fixture
def rakuten_html() -> str:
    """Rakuten Travel hotel page with the plan-page price markup"""
    return """
    <html>
        <body>
            <div id="htlName">
                Hotel Sakura Kyoto
            </div>
            <ul class="plans">
                <li><span class="rm-prc-prc">¥20,000</span><span>(tax incl.)</span></li>
                <li><span class="rm-prc-prc">¥24,500</span></li>
            </ul>
        </body>
    </html>
    """


@pytest.fixture
def booking_html() -> str:
    """Booking.com property page"""
    return """
    <html>
        <body>
            <h2 class="d2fee87262 pp-header__title">Canal View Inn</h2>
            <div data-testid="price-and-discounted-price">€ 1,234</div>
        </body>
    </html>
    """


@pytest.fixture
def generic_html() -> str:
    """Page from a site without a dedicated strategy"""
    return """
    <html>
        <body>
            <h1>Some Ryokan</h1>
            <p class="roomType-charge-price">JPY 18,000 / night</p>
        </body>
    </html>
    """


@pytest.fixture
def sold_out_html() -> str:
    return """
    <html>
        <body>
            <div id="htlName">Hotel Sakura Kyoto</div>
            <span class="price--num">Sold Out</span>
        </body>
    </html>
    """


@pytest.fixture
def strategies():
    """Registry loaded from the bundled strategies.yaml"""
    from services.strategies import StrategyRegistry

    return StrategyRegistry.load(settings.STRATEGIES_PATH)
