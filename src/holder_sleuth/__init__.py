"""Holder Sleuth - incremental token holder balance indexer."""

from .config import settings, Settings
from .blockexplorer import BlockResolver
from .rpc import LogFetcher
from .decoder import EventDecoder, Transfer, Mint
from .balances import BalanceAccumulator
from .storage import Database, CheckpointStore, BalanceStore, Checkpoint, Holder
from .pipeline import IngestionOrchestrator, IngestionResult

__version__ = "0.0.1"

__all__ = [
    # Configuration
    "settings",
    "Settings",
    # Remote clients
    "BlockResolver",
    "LogFetcher",
    # Decoding and accumulation
    "EventDecoder",
    "Transfer",
    "Mint",
    "BalanceAccumulator",
    # Storage
    "Database",
    "CheckpointStore",
    "BalanceStore",
    "Checkpoint",
    "Holder",
    # Pipeline
    "IngestionOrchestrator",
    "IngestionResult",
]
