"""Decoded event types."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

RawLog = Dict[str, Any]


@dataclass(frozen=True)
class Transfer:
    """ERC20 ``Transfer(address indexed from, address indexed to, uint256 value)``."""
    from_address: Optional[str]
    to_address: Optional[str]
    value: int
    name: str = "Transfer"


@dataclass(frozen=True)
class Mint:
    """``Mint(address indexed to, uint256 value)``."""
    to_address: Optional[str]
    value: int
    name: str = "Mint"


DecodedEvent = Union[Transfer, Mint]


@dataclass(frozen=True)
class EventDefinition:
    """A usable entry from the event schema file."""
    name: str
    signature: Optional[str] = None
    topic0: Optional[str] = None
