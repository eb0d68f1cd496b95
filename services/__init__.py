"""Services package initialization"""
from .extractor import Extractor
from .monitor import PriceMonitor
from .notifier import EmailNotifier
from .storage import WatchRepository
from .strategies import StrategyRegistry

__all__ = ["EmailNotifier", "Extractor", "PriceMonitor", "StrategyRegistry", "WatchRepository"]
