"""Exceptions raised while checking watched hotel pages."""
from __future__ import annotations


class HotelWatchError(Exception):
    """Base class for all service errors."""


class ExtractionError(HotelWatchError):
    """A page could not be turned into a quote."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class FetchError(ExtractionError):
    """Transport failure: connection error, timeout or non-2xx status."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message, url)
        self.status = status


class MarkupError(ExtractionError):
    """The page was fetched but its markup did not match the strategy."""

    def __init__(self, message: str, url: str | None = None, selector: str | None = None) -> None:
        super().__init__(message, url)
        self.selector = selector


class PriceFormatError(MarkupError):
    """The price element was found but held no usable digits."""

    def __init__(
        self,
        message: str,
        raw_text: str,
        url: str | None = None,
        selector: str | None = None,
    ) -> None:
        super().__init__(message, url, selector)
        self.raw_text = raw_text


class StoreError(HotelWatchError):
    """A watch store read or write failed."""


class SubscriberNotFoundError(StoreError):
    """No subscriber exists for the requested id."""

    def __init__(self, subscriber_id: int) -> None:
        super().__init__(f"Subscriber {subscriber_id} not found")
        self.subscriber_id = subscriber_id


class NotificationError(HotelWatchError):
    """An alert message could not be delivered."""


__all__ = [
    "ExtractionError",
    "FetchError",
    "HotelWatchError",
    "MarkupError",
    "NotificationError",
    "PriceFormatError",
    "StoreError",
    "SubscriberNotFoundError",
]
