"""Event decoding functionality."""

from .decoder import EventDecoder, DecodeBatch, EVENT_LAYOUTS, load_event_schema
from .types import DecodedEvent, EventDefinition, Mint, Transfer
from .utils import HexUtils, ZERO_ADDRESS, normalize_address

__all__ = [
    "EventDecoder",
    "DecodeBatch",
    "EVENT_LAYOUTS",
    "load_event_schema",
    "DecodedEvent",
    "EventDefinition",
    "Mint",
    "Transfer",
    "HexUtils",
    "ZERO_ADDRESS",
    "normalize_address",
]
