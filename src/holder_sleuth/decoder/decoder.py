"""Structural decoding of Transfer and Mint logs."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from holder_sleuth.core.exceptions import DecodeError, SchemaError
from .types import DecodedEvent, EventDefinition, Mint, RawLog, Transfer
from .utils import HexUtils, event_topic0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventLayout:
    """Where an event keeps its fields inside a raw log."""
    signature: str
    indexed_topics: int
    build: Callable[[List[str], str], DecodedEvent]


def _decode_transfer(topics: List[str], data: str) -> Transfer:
    return Transfer(
        from_address=HexUtils.extract_address(topics[1]),
        to_address=HexUtils.extract_address(topics[2]),
        value=HexUtils.to_int(data),
    )


def _decode_mint(topics: List[str], data: str) -> Mint:
    return Mint(
        to_address=HexUtils.extract_address(topics[1]),
        value=HexUtils.to_int(data),
    )


# Adding an event shape only needs a new entry here.
EVENT_LAYOUTS: Dict[str, EventLayout] = {
    "Transfer": EventLayout("Transfer(address,address,uint256)", 2, _decode_transfer),
    "Mint": EventLayout("Mint(address,uint256)", 1, _decode_mint),
}


def load_event_schema(path: str) -> List[Dict[str, Any]]:
    """Load the event schema JSON array from ``path``."""
    if not os.path.exists(path):
        raise SchemaError(f"Event schema file is missing: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid event schema file format: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaError(f"Cannot read event schema file {path}: {e}") from e

    if not isinstance(schema, list) or not schema:
        raise SchemaError(f"Event schema must be a non-empty JSON array: {path}")
    return schema


def event_signature(event_abi: Dict[str, Any]) -> str:
    """Canonical signature, e.g. ``Transfer(address,address,uint256)``."""

    def get_canonical_type(component: Dict[str, Any]) -> str:
        base_type_str = component["type"]
        # Replace contract types with 'address'
        if base_type_str.startswith("contract "):
            return "address"
        if "components" in component and base_type_str.startswith("tuple"):
            inner = ",".join(get_canonical_type(c) for c in component["components"])
            return f"({inner}){base_type_str[len('tuple'):]}"
        return base_type_str

    param_types = [get_canonical_type(item) for item in event_abi.get("inputs", [])]
    return f"{event_abi['name']}({','.join(param_types)})"


@dataclass
class DecodeBatch:
    """Result of decoding one window's logs."""
    events: List[DecodedEvent] = field(default_factory=list)
    skipped: int = 0


class EventDecoder:
    """Decodes raw logs by matching them against an ordered event schema.

    The first known entry in schema order wins. Entries that declare
    ``inputs`` only match logs whose topic 0 equals their signature hash;
    entries without ``inputs`` match on name alone.
    """

    def __init__(self, schema: Iterable[Dict[str, Any]]):
        self.definitions = self._build_event_definitions(schema)

    @classmethod
    def from_file(cls, path: str) -> "EventDecoder":
        return cls(load_event_schema(path))

    def _build_event_definitions(
        self, schema: Iterable[Dict[str, Any]]
    ) -> List[EventDefinition]:
        definitions = []
        for item in schema:
            if not isinstance(item, dict) or item.get("type") != "event":
                continue
            name = item.get("name")
            layout = EVENT_LAYOUTS.get(name)
            if layout is None:
                continue

            if "inputs" not in item:
                definitions.append(EventDefinition(name=name))
                continue

            signature = event_signature(item)
            if signature != layout.signature:
                logger.debug(
                    f"Ignoring schema entry {signature}: expected {layout.signature}"
                )
                continue
            definitions.append(
                EventDefinition(
                    name=name, signature=signature, topic0=event_topic0(signature)
                )
            )
        return definitions

    def _match(self, topic0: Optional[str]) -> Optional[EventDefinition]:
        for definition in self.definitions:
            if definition.topic0 is None or definition.topic0 == topic0:
                return definition
        return None

    def decode(self, raw_log: RawLog) -> DecodedEvent:
        """Decode ``raw_log`` into a Transfer or Mint event."""
        topics = list(raw_log.get("topics") or [])
        data = raw_log.get("data") or ""
        topic0 = topics[0].lower() if topics and isinstance(topics[0], str) else None

        definition = self._match(topic0)
        if definition is None:
            raise DecodeError("Unable to decode log. Event not found in schema.")

        layout = EVENT_LAYOUTS[definition.name]
        if len(topics) < layout.indexed_topics + 1:
            raise DecodeError(
                f"{definition.name} log needs {layout.indexed_topics + 1} topics, got {len(topics)}"
            )
        if HexUtils.is_empty_hex(data):
            raise DecodeError(f"{definition.name} log has no data")

        try:
            return layout.build(topics, data)
        except (AttributeError, TypeError, ValueError) as e:
            raise DecodeError(f"Malformed {definition.name} log: {e}") from e

    def decode_logs(self, logs: Iterable[RawLog]) -> DecodeBatch:
        """Decode a batch, skipping logs that cannot be decoded."""
        batch = DecodeBatch()
        for raw_log in logs:
            try:
                batch.events.append(self.decode(raw_log))
            except DecodeError as e:
                batch.skipped += 1
                logger.warning(
                    f"Skipping log in tx {raw_log.get('transactionHash')}: {e}"
                )
        return batch
