"""Shared fixtures: fake HTTP sessions, a controllable clock and a SQLite database."""

import json

import pytest
import requests

from holder_sleuth.decoder.utils import event_topic0
from holder_sleuth.storage.database import Database

TRANSFER_TOPIC0 = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
MINT_TOPIC0 = event_topic0("Mint(address,uint256)")
ZERO_TOPIC = "0x" + "0" * 64


def topic_for(address: str) -> str:
    """Left-pad an address into a 32-byte topic word."""
    return "0x" + address[2:].lower().rjust(64, "0")


def transfer_log(from_address: str, to_address: str, value: int, block: int = 1) -> dict:
    return {
        "address": "0xdcc0f2d8f90fde85b10ac1c8ab57dc0ae946a543",
        "topics": [TRANSFER_TOPIC0, topic_for(from_address), topic_for(to_address)],
        "data": "0x" + format(value, "064x"),
        "blockNumber": hex(block),
        "transactionHash": "0x" + "ab" * 32,
    }


def mint_log(to_address: str, value: int, block: int = 1) -> dict:
    return {
        "address": "0xdcc0f2d8f90fde85b10ac1c8ab57dc0ae946a543",
        "topics": [MINT_TOPIC0, topic_for(to_address)],
        "data": "0x" + format(value, "064x"),
        "blockNumber": hex(block),
        "transactionHash": "0x" + "cd" * 32,
    }


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, str):
            return json.loads(self.payload)
        return self.payload


class FakeSession:
    """Replays queued payloads or exceptions and records every request."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse(outcome)


class FakeClock:
    """Monotonic clock whose sleep advances time instead of blocking."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'holders.db'}")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def bare_schema_path(tmp_path):
    path = tmp_path / "contractABI.json"
    path.write_text(json.dumps([{"type": "event", "name": "Transfer"}, {"type": "event", "name": "Mint"}]))
    return str(path)


@pytest.fixture
def abi_schema_path(tmp_path):
    schema = [
        {"type": "function", "name": "balanceOf", "inputs": [{"name": "account", "type": "address"}]},
        {
            "type": "event",
            "name": "Mint",
            "inputs": [
                {"indexed": True, "name": "to", "type": "address"},
                {"indexed": False, "name": "amount", "type": "uint256"},
            ],
        },
        {
            "type": "event",
            "name": "Transfer",
            "inputs": [
                {"indexed": True, "name": "from", "type": "address"},
                {"indexed": True, "name": "to", "type": "address"},
                {"indexed": False, "name": "value", "type": "uint256"},
            ],
        },
    ]
    path = tmp_path / "fullABI.json"
    path.write_text(json.dumps(schema))
    return str(path)
