"""Utility modules for holder_sleuth package."""

from .logging import setup_logging

__all__ = [
    "setup_logging",
]
