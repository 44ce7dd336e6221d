"""
API-Football client with rate limiting, retry logic, and error handling.

Used by the livescore sync to read fixture status and goals.
"""

import asyncio
import logging
import random
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx
from asyncio_throttle import Throttler

from config import Config

logger = logging.getLogger(__name__)

# API-Football accepts at most 20 ids per /fixtures?ids= call
MAX_IDS_PER_REQUEST = 20


class APIFootballError(Exception):
    """Base exception for API-Football errors."""
    pass


class APIFootballRateLimitError(APIFootballError):
    """Raised when rate limit is exceeded."""
    pass


class APIFootballNonRetryableError(APIFootballError):
    """Raised for non-retryable errors (4xx except 429)."""
    pass


class APIFootballClient:
    """Client for the API-Football v3 REST API."""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.api_football_key:
            raise ValueError("API_FOOTBALL_KEY is required")

        self.config = config
        self.base_url = config.api_football_base_url
        self.max_retries = config.max_retries
        self.retry_backoff_base = config.retry_backoff_base
        self.max_retry_delay = config.max_retry_delay

        self.throttler = Throttler(
            rate_limit=config.max_requests_per_minute,
            period=60.0
        )
        self.min_interval = config.min_request_interval
        self.last_request_time = 0.0

        self.client = httpx.AsyncClient(
            timeout=15.0,
            follow_redirects=True,
            transport=transport,
            headers={
                "x-apisports-key": config.api_football_key,
                "Accept": "application/json",
            }
        )

    async def _wait_for_rate_limit(self):
        """Wait to respect rate limiting."""
        await self.throttler.acquire()

        # Also enforce minimum interval between requests
        current_time = time.time()
        time_since_last = current_time - self.last_request_time
        if time_since_last < self.min_interval:
            wait_time = self.min_interval - time_since_last
            jitter = wait_time * 0.25 * (random.random() * 2 - 1)
            await asyncio.sleep(wait_time + jitter)

        self.last_request_time = time.time()

    def _is_retryable_error(self, status_code: int) -> bool:
        """Check if error is retryable."""
        # Retryable: 429 (rate limit), 500, 502, 503, 504
        # Non-retryable: 400, 401, 403, 404
        return status_code in {429, 500, 502, 503, 504}

    def _backoff(self, attempt: int) -> float:
        backoff = min(
            self.retry_backoff_base * (2 ** attempt),
            self.max_retry_delay
        )
        # Add jitter (±25%)
        return backoff + backoff * 0.25 * (random.random() * 2 - 1)

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for httpx request

        Returns:
            httpx.Response object

        Raises:
            APIFootballRateLimitError: If rate limited
            APIFootballNonRetryableError: If non-retryable error
            APIFootballError: For other errors after retries exhausted
        """
        if endpoint.startswith("http"):
            url = endpoint
        else:
            url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        last_exception = None

        for attempt in range(self.max_retries + 1):
            try:
                await self._wait_for_rate_limit()

                response = await self.client.request(method, url, **kwargs)

                if response.is_success:
                    return response

                status_code = response.status_code

                if status_code == 429:
                    retry_after = int(response.headers.get("Retry-After", 60))
                    logger.warning(
                        "Rate limited by API-Football",
                        extra={
                            "endpoint": endpoint,
                            "retry_after": retry_after,
                            "attempt": attempt + 1
                        }
                    )
                    if attempt < self.max_retries:
                        await asyncio.sleep(retry_after)
                        continue
                    raise APIFootballRateLimitError(
                        f"Rate limited after {self.max_retries} retries"
                    )

                if not self._is_retryable_error(status_code):
                    error_text = response.text[:500]
                    logger.error(
                        "Non-retryable error from API-Football",
                        extra={
                            "endpoint": endpoint,
                            "status_code": status_code,
                            "error": error_text
                        }
                    )
                    raise APIFootballNonRetryableError(
                        f"Non-retryable error {status_code}: {error_text}"
                    )

                if attempt < self.max_retries:
                    wait_time = self._backoff(attempt)
                    logger.warning(
                        "Retryable error from API-Football, retrying",
                        extra={
                            "endpoint": endpoint,
                            "status_code": status_code,
                            "attempt": attempt + 1,
                            "wait_time": wait_time
                        }
                    )
                    await asyncio.sleep(wait_time)
                    continue

                error_text = response.text[:500]
                raise APIFootballError(
                    f"Request failed after {self.max_retries} retries: "
                    f"{status_code} - {error_text}"
                )

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_exception = e
                if attempt < self.max_retries:
                    wait_time = self._backoff(attempt)
                    logger.warning(
                        "Transport error from API-Football, retrying",
                        extra={
                            "endpoint": endpoint,
                            "attempt": attempt + 1,
                            "wait_time": wait_time,
                            "error": str(e)
                        }
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise APIFootballError(
                    f"{type(e).__name__} after {self.max_retries} retries"
                ) from e

        raise APIFootballError("Request failed") from last_exception

    async def get_fixtures_by_ids(self, fixture_ids: Iterable[int]) -> List[Dict[str, Any]]:
        """
        Get fixtures by API-Football id.

        Args:
            fixture_ids: API fixture ids (batched 20 per request)

        Returns:
            The `response` items: {"fixture": {"id", "status": {"short"}}, "goals": {"home", "away"}, ...}
        """
        ids = [int(i) for i in fixture_ids]
        fixtures: List[Dict[str, Any]] = []
        for start in range(0, len(ids), MAX_IDS_PER_REQUEST):
            batch = ids[start:start + MAX_IDS_PER_REQUEST]
            response = await self._request_with_retry(
                "GET",
                "/fixtures",
                params={"ids": "-".join(str(i) for i in batch)},
            )
            data = response.json()
            errors = data.get("errors")
            if errors:
                # API-Football reports quota/auth problems in a 200 body
                raise APIFootballNonRetryableError(f"API-Football errors: {errors}")
            fixtures.extend(data.get("response") or [])
        return fixtures

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
