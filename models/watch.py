"""Data models for persisted watches and their subscribers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Subscriber:
    """A contact address that owns zero or more watches."""

    id: int
    email: str
    created_at: datetime | None = None


@dataclass(slots=True)
class Watch:
    """A price-monitoring request for one hotel page."""

    id: int
    subscriber_id: int
    url: str
    target_price: int
    active: bool = True
    created_at: datetime | None = None

    def is_satisfied_by(self, price: int) -> bool:
        """Return True when ``price`` is at or below the target."""
        return price <= self.target_price
