"""Configuration management for holder_sleuth package."""

from .settings import (
    Settings,
    settings,
    NodeSettings,
    ExplorerSettings,
    DatabaseSettings,
    IngestionSettings,
)

__all__ = [
    "Settings",
    "settings",
    "NodeSettings",
    "ExplorerSettings",
    "DatabaseSettings",
    "IngestionSettings",
]
