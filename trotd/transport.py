"""
Async HTTP Transport for trotd.

Handles async HTTP communication with the code-hosting providers: optional
bearer authentication, bounded retry on transient server errors, and mapping
of failures into typed provider exceptions using the httpx async client.
"""

import asyncio
import random
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from trotd import __version__
from trotd.exceptions import (
    HTTPStatusError,
    NetworkError,
    ParseError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
)
from trotd.logging import log_http_request, log_http_response

DEFAULT_TIMEOUT = 6.0
USER_AGENT = f"trotd/{__version__}"


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 1
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [500, 502, 503, 504])
    respect_retry_after: bool = True
    max_backoff: float = 2.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class AsyncHTTPTransport:
    """
    Async HTTP transport shared by all providers.

    Handles:
    - Optional bearer token per request
    - Exponential backoff with jitter for retries on 5xx
    - Retry-After header respect
    - Error response mapping into typed ProviderError subclasses
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            timeout: Default per-request timeout in seconds
            retry_config: Configuration for retry behavior
            http_transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=http_transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        """
        GET a JSON document.

        Args:
            url: Absolute URL
            params: Query parameters
            token: Optional access token sent as a bearer token
            timeout: Per-request timeout override in seconds

        Returns:
            Parsed JSON body

        Raises:
            ProviderError: On network, HTTP or decoding errors
        """
        response = await self._get(url, params, token, timeout, "application/json")
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"invalid JSON from {url}: {e}") from e

    async def get_text(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """
        GET a text document (e.g. an HTML page).

        Raises:
            ProviderError: On network or HTTP errors
        """
        response = await self._get(url, params, token, timeout, "text/html")
        return response.text

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None,
        token: str | None,
        timeout: float | None,
        accept: str,
    ) -> httpx.Response:
        headers = {"Accept": accept}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        request_timeout = timeout if timeout is not None else self.timeout

        async def make_request() -> httpx.Response:
            log_http_request("GET", url, headers=headers, params=params)
            started = time.monotonic()
            response = await self._client.get(
                url, params=params, headers=headers, timeout=request_timeout
            )
            log_http_response(
                response.status_code,
                str(response.url),
                elapsed_ms=(time.monotonic() - started) * 1000,
                size=len(response.content),
            )
            return response

        return await self._execute_with_retry(make_request, request_timeout)

    async def _execute_with_retry(
        self,
        request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]],
        timeout: float,
    ) -> httpx.Response:
        """
        Execute a request with automatic retry on retryable status codes.

        Network errors are not retried: the provider's own deadline is short
        and a dead host rarely recovers within it.

        Args:
            request_fn: Async function that makes the HTTP request
            timeout: Timeout used for the request, reported on timeouts

        Returns:
            The successful response

        Raises:
            ProviderError: On non-retryable errors or after max retries
        """
        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = await request_fn()
            except httpx.TimeoutException as e:
                raise ProviderTimeoutError(timeout) from e
            except httpx.RequestError as e:
                raise NetworkError(f"{type(e).__name__}: {e}") from e

            if response.status_code < 400:
                return response

            error = self._parse_error_response(response)

            if not self._should_retry(response.status_code, attempt):
                raise error

            retry_after = response.headers.get("Retry-After")
            await asyncio.sleep(self._get_backoff_time(attempt, retry_after))

        # Unreachable: the last attempt either returns or raises
        raise HTTPStatusError(0, "request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(self, attempt: int, retry_after: str | None) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present. Both are capped at max_backoff.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return min(float(retry_after), self.retry_config.max_backoff)
            except ValueError:
                pass  # Fall through to exponential backoff

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        wait_time = base_wait + random.uniform(-jitter_range, jitter_range)

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_error_response(self, response: httpx.Response) -> ProviderError:
        """
        Map an error response to a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            RateLimitedError for 429 (and GitHub's exhausted-quota 403),
            HTTPStatusError otherwise
        """
        status_code = response.status_code
        message = _error_message(response)

        exhausted = response.headers.get("X-RateLimit-Remaining") == "0"
        if status_code == 429 or (status_code == 403 and exhausted):
            retry_after: int | None
            try:
                retry_after = int(response.headers.get("Retry-After", ""))
            except ValueError:
                retry_after = None
            return RateLimitedError(message, retry_after)

        return HTTPStatusError(status_code, message)


def _error_message(response: httpx.Response) -> str:
    """Best-effort human readable message of an error response."""
    fallback = f"HTTP {response.status_code} from {response.url.host}"
    try:
        data = response.json()
    except ValueError:
        return fallback

    if isinstance(data, dict):
        detail = data.get("message") or data.get("error")
        if isinstance(detail, str) and detail:
            return f"{fallback}: {detail}"
    return fallback
