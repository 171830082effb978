"""Folding decoded events into per-window balance deltas."""

from typing import Any, Dict, Iterable, Optional

from holder_sleuth.decoder.types import DecodedEvent, Mint, Transfer
from holder_sleuth.decoder.utils import ZERO_ADDRESS

DeltaMap = Dict[str, int]


def normalize_amount(amount: Any) -> int:
    """Convert an event amount to an int.

    ``"0x.."`` strings are read as hex, other strings as decimal, and
    falsy values or an empty body (``"0x"``) count as zero.
    """
    if not amount:
        return 0
    if isinstance(amount, int):
        return amount
    if isinstance(amount, str):
        amount = amount.strip()
        if amount.startswith(("0x", "0X")):
            amount = amount[2:]
            return int(amount, 16) if amount else 0
        return int(amount) if amount else 0
    return int(amount)


class BalanceAccumulator:
    """Applies Transfer and Mint events to a delta map."""

    def __init__(self, zero_address: str = ZERO_ADDRESS):
        self.zero_address = zero_address

    def _add(self, deltas: DeltaMap, address: Optional[str], amount: int) -> None:
        if not address:
            return
        deltas[address] = deltas.get(address, 0) + amount

    def apply(self, deltas: DeltaMap, event: DecodedEvent) -> None:
        amount = normalize_amount(event.value)

        if isinstance(event, Transfer):
            # Transfers out of the zero address are mints and debit nobody.
            if event.from_address and event.from_address != self.zero_address:
                self._add(deltas, event.from_address, -amount)
            self._add(deltas, event.to_address, amount)
        elif isinstance(event, Mint):
            self._add(deltas, event.to_address, amount)

    def accumulate(self, events: Iterable[DecodedEvent]) -> DeltaMap:
        """Fold ``events`` into a fresh delta map."""
        deltas: DeltaMap = {}
        for event in events:
            self.apply(deltas, event)
        return deltas
