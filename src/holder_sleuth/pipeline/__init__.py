"""Incremental ingestion pipeline."""

from .orchestrator import (
    IngestionOrchestrator,
    IngestionResult,
    Stage,
    Window,
    WINDOW_SECONDS,
)

__all__ = [
    "IngestionOrchestrator",
    "IngestionResult",
    "Stage",
    "Window",
    "WINDOW_SECONDS",
]
