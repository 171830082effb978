"""Persistence for checkpoints and holder balances."""

from .database import Database, metadata, checkpoints_table, holders_table
from .checkpoints import Checkpoint, CheckpointStore
from .holders import BalanceStore, Holder

__all__ = [
    "Database",
    "metadata",
    "checkpoints_table",
    "holders_table",
    "Checkpoint",
    "CheckpointStore",
    "BalanceStore",
    "Holder",
]
