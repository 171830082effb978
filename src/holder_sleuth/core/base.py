"""Abstract base classes for holder_sleuth package."""

import time
import logging
import requests
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type

from .rate_limiter import RateLimiter
from .exceptions import APIError


@dataclass
class APIConfig:
    """Configuration for API clients."""
    base_url: str
    api_key: Optional[str] = None
    rate_limit: Optional[float] = 5.0  # requests per second, None disables throttling
    timeout: int = 30
    retry_attempts: int = 3
    retry_delay_base: float = 1.0
    retry_backoff: float = 1.0  # 1.0 keeps the delay fixed


class RetryPolicy:
    """Bounded retry with a fixed or exponential delay between attempts."""

    retryable: Tuple[Type[BaseException], ...] = (
        requests.RequestException,
        ValueError,
        APIError,
    )

    def __init__(
        self,
        max_attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.backoff = backoff
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.delay * (self.backoff ** attempt)

    def call(
        self,
        func: Callable[[], Any],
        error_class: Type[APIError] = APIError,
        logger: Optional[logging.Logger] = None,
        description: str = "Request",
    ) -> Any:
        """Run ``func`` until it succeeds or attempts are exhausted.

        Raises ``error_class`` chained to the last failure once every attempt
        has failed.
        """
        logger = logger or logging.getLogger(__name__)
        last_exception = None
        for attempt in range(self.max_attempts):
            try:
                return func()
            except self.retryable as e:
                last_exception = e
                if attempt < self.max_attempts - 1:
                    delay = self.delay_for(attempt)
                    logger.warning(
                        f"{description} failed (attempt {attempt + 1}): {e}. Retrying in {delay}s..."
                    )
                    self._sleep(delay)
                else:
                    logger.error(
                        f"{description} failed after {self.max_attempts} attempts: {e}"
                    )

        raise error_class(
            f"{description} failed after {self.max_attempts} attempts: {last_exception}"
        ) from last_exception


class BaseAPIClient(ABC):
    """Abstract base class for all API clients."""

    error_class: Type[APIError] = APIError

    def __init__(
        self,
        config: APIConfig,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.retry_policy = RetryPolicy(
            max_attempts=config.retry_attempts,
            delay=config.retry_delay_base,
            backoff=config.retry_backoff,
            sleep=sleep,
        )
        self.rate_limiter = (
            RateLimiter(config.rate_limit, clock=clock, sleep=sleep)
            if config.rate_limit
            else None
        )
        self._session = session or requests.Session()

    @abstractmethod
    def _build_request(self, **kwargs) -> Dict[str, Any]:
        """Build the keyword arguments for ``Session.request``."""
        pass

    @abstractmethod
    def _handle_response(self, response: requests.Response) -> Any:
        """Handle API response and extract data."""
        pass

    def make_request(
        self,
        endpoint: str = "",
        description: str = "Request",
        parse: Optional[Callable[[Any], Any]] = None,
        **kwargs,
    ) -> Any:
        """Generic request method with throttling, error handling and retry logic.

        ``parse`` runs on the extracted result inside each attempt, so a
        malformed payload counts as a failed attempt.
        """
        url = (
            f"{self.config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
            if endpoint
            else self.config.base_url
        )
        request_kwargs = self._build_request(**kwargs)
        method = request_kwargs.pop("method", "GET")

        def _attempt():
            if self.rate_limiter is not None:
                self.rate_limiter.wait()
            response = self._session.request(
                method, url, timeout=self.config.timeout, **request_kwargs
            )
            result = self._handle_response(response)
            if parse is not None:
                result = parse(result)
            if self.rate_limiter is not None:
                self.rate_limiter.mark()
            return result

        return self.retry_policy.call(
            _attempt,
            error_class=self.error_class,
            logger=self.logger,
            description=description,
        )
