"""generation/__init__.py"""
from .generator import MockDataGenerator

__all__ = ["MockDataGenerator"]
