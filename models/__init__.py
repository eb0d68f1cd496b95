"""Models package initialization"""
from .quote import ExtractedQuote
from .watch import Subscriber, Watch

__all__ = ['ExtractedQuote', 'Subscriber', 'Watch']
