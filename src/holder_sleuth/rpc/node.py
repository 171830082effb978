"""JSON-RPC client for reading logs from an EVM node."""

import time
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from holder_sleuth.core.base import BaseAPIClient, APIConfig
from holder_sleuth.core.exceptions import APIError, ConfigurationError, FetchError
from holder_sleuth.config.settings import settings

LATEST = "latest"

BlockTag = Union[int, str]


def to_block_param(block: BlockTag) -> str:
    """Encode a block number as a JSON-RPC quantity, passing tags through."""
    if isinstance(block, str):
        if block.startswith("0x") or block in (LATEST, "earliest", "pending"):
            return block
        block = int(block)
    return hex(block)


class LogFetcher(BaseAPIClient):
    """Fetches raw event logs with a fixed-delay bounded retry.

    Each call is attempted up to ``retry_attempts`` times, waiting
    ``retry_delay`` seconds between failed attempts.
    """

    error_class = FetchError

    def __init__(
        self,
        provider_url: Optional[str] = None,
        timeout: Optional[int] = None,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        provider_url = provider_url or settings.node.provider_url
        if not provider_url:
            raise ConfigurationError("ETHEREUM_PROVIDER is not defined in environment variables.")

        config = APIConfig(
            base_url=provider_url,
            rate_limit=None,
            timeout=timeout or settings.node.timeout,
            retry_attempts=retry_attempts,
            retry_delay_base=retry_delay,
            retry_backoff=1.0,
        )
        super().__init__(config, session=session, sleep=sleep)
        self._ids = count(1)

    def _build_request(self, method: str, params: List[Any]) -> Dict[str, Any]:
        """Wrap an RPC method call in a JSON-RPC 2.0 envelope."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        return {"method": "POST", "json": payload}

    def _handle_response(self, response) -> Any:
        """Handle JSON-RPC response."""
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, dict):
            raise APIError(f"Malformed RPC response: {data!r}")
        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                raise APIError(f"RPC error {error.get('code')}: {error.get('message')}")
            raise APIError(f"RPC error: {error}")
        if "result" not in data:
            raise APIError("Malformed RPC response: missing result")

        return data["result"]

    def fetch(self, address: str, from_block: BlockTag, to_block: BlockTag) -> List[Dict[str, Any]]:
        """Return the raw logs emitted by ``address`` in ``[from_block, to_block]``."""
        log_filter = {
            "address": address,
            "fromBlock": to_block_param(from_block),
            "toBlock": to_block_param(to_block),
        }

        logs = self.make_request(
            description=f"eth_getLogs {from_block}-{to_block}",
            parse=_as_log_list,
            method="eth_getLogs",
            params=[log_filter],
        )
        self.logger.info(
            f"Fetched {len(logs)} logs for {address} in blocks {from_block}-{to_block}"
        )
        return logs

    def head_block(self) -> int:
        """Return the current head block number."""
        return self.make_request(
            description="eth_blockNumber",
            parse=_as_quantity,
            method="eth_blockNumber",
            params=[],
        )


def _as_log_list(result: Any) -> List[Dict[str, Any]]:
    if not isinstance(result, list):
        raise APIError(f"Malformed eth_getLogs result: {type(result).__name__}")
    return result


def _as_quantity(result: Any) -> int:
    try:
        return int(result, 16) if isinstance(result, str) else int(result)
    except (TypeError, ValueError) as e:
        raise APIError(f"Malformed quantity: {result!r}") from e
