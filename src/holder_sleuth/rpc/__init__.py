"""Node RPC clients."""

from .node import LogFetcher, LATEST, to_block_param

__all__ = ["LogFetcher", "LATEST", "to_block_param"]
