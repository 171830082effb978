"""Utility functions for event decoding."""

from Crypto.Hash import keccak

ZERO_ADDRESS = "0x" + "0" * 40


class HexUtils:
    """Utility class for hex string operations."""

    @staticmethod
    def normalize_hex(value: str) -> str:
        """Normalize hex string by removing 0x prefix if present."""
        return value[2:] if value.startswith(("0x", "0X")) else value

    @staticmethod
    def is_empty_hex(value: str) -> bool:
        """Check if hex value is empty or just 0x."""
        return not value or value in ("0x", "0X")

    @staticmethod
    def extract_address(hex_value: str) -> str:
        """Extract address from hex value (last 40 characters)."""
        normalized = HexUtils.normalize_hex(hex_value)
        if len(normalized) < 40:
            raise ValueError(f"Too short for an address: {hex_value}")
        return "0x" + normalized[-40:].lower()

    @staticmethod
    def to_int(hex_value: str) -> int:
        """Interpret a hex string as a big-endian unsigned integer."""
        return int(HexUtils.normalize_hex(hex_value), 16)


def normalize_address(address: str) -> str:
    """Lowercase an address and make sure it carries the 0x prefix."""
    return "0x" + HexUtils.normalize_hex(address.strip()).lower()


def event_topic0(signature: str) -> str:
    """Keccak-256 hash of an event signature, as a 0x-prefixed hex string."""
    hash_obj = keccak.new(digest_bits=256)
    hash_obj.update(signature.encode("utf-8"))
    return "0x" + hash_obj.hexdigest()
