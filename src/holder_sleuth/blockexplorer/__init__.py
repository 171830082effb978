"""Block explorer clients."""

from .etherscan import BlockResolver

__all__ = ["BlockResolver"]
