"""Config package initialization"""
from .settings import settings

__all__ = ["settings"]
