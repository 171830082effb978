"""Balance accumulation."""

from .accumulator import BalanceAccumulator, DeltaMap, normalize_amount

__all__ = ["BalanceAccumulator", "DeltaMap", "normalize_amount"]
