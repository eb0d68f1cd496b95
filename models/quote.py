"""
Result of a single page extraction
"""
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExtractedQuote:
    """Hotel display name and price read from one fetched page"""
    name: str
    price: int

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("price cannot be negative")
