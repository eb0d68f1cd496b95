"""API package initialization"""
from .handlers import create_app

__all__ = ['create_app']
