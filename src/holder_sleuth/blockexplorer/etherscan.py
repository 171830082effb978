"""Etherscan-compatible block explorer client."""

import time
from typing import Any, Callable, Dict, Optional

import requests

from holder_sleuth.core.base import BaseAPIClient, APIConfig
from holder_sleuth.core.exceptions import ConfigurationError, UpstreamError
from holder_sleuth.config.settings import settings


class BlockResolver(BaseAPIClient):
    """Maps Unix timestamps to block numbers through the explorer API.

    Calls are spaced at least ``1 / calls_per_second`` apart (200ms at the
    default 5 req/s). Failures are raised immediately as ``UpstreamError``;
    retrying is left to the caller.
    """

    error_class = UpstreamError

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        calls_per_second: float = 5.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        base_url = base_url or settings.explorer.base_url
        api_key = api_key or settings.explorer.api_key
        if not base_url or not api_key:
            raise ConfigurationError(
                "FRAX_BASE_URL or FRAX_API_KEY is not defined in environment variables."
            )

        config = APIConfig(
            base_url=base_url,
            api_key=api_key,
            rate_limit=calls_per_second,
            retry_attempts=1,
        )
        super().__init__(config, session=session, clock=clock, sleep=sleep)

    def _build_request(self, **kwargs) -> Dict[str, Any]:
        """Build query parameters with the API key."""
        return {"method": "GET", "params": {**kwargs, "apikey": self.config.api_key}}

    def _handle_response(self, response) -> Any:
        """Handle explorer API response."""
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected explorer response: {data!r}")

        if data.get("status") != "1":
            message = data.get("message") or "Error fetching block by timestamp."
            if "rate limit" in str(data.get("result", "")).lower():
                raise UpstreamError(f"Rate limit exceeded: {data['result']}")
            raise UpstreamError(f"API error: {message}")

        if data.get("result") is None:
            raise UpstreamError("Explorer response has no result")
        return data["result"]

    def resolve(self, timestamp: int, closest: str = "before") -> int:
        """Return the block closest to ``timestamp`` (at or before it by default)."""
        params = {
            "module": "block",
            "action": "getblocknobytime",
            "timestamp": int(timestamp),
            "closest": closest,
        }
        result = self.make_request(
            "", description=f"Block lookup for timestamp {timestamp}", **params
        )

        try:
            block_number = int(result)
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Unexpected block number {result!r}") from e

        self.logger.info(f"Timestamp {timestamp} resolved to block {block_number}")
        return block_number
