"""trotd exception classes."""

from trotd.types.entry import ProviderKind


class TrotdError(Exception):
    """Base exception for all trotd errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(TrotdError):
    """Raised when configuration is invalid or cannot be read."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class ProviderError(TrotdError):
    """Base exception for a failed provider fetch."""

    def __init__(
        self, provider: ProviderKind | None, code: str, message: str
    ) -> None:
        self.provider = provider
        super().__init__(code, message)

    def with_provider(self, provider: ProviderKind) -> "ProviderError":
        """Tag the error with the provider it came from, if not tagged yet."""
        if self.provider is None:
            self.provider = provider
        return self


class NetworkError(ProviderError):
    """Raised on connection, DNS or TLS failures."""

    def __init__(self, message: str, provider: ProviderKind | None = None) -> None:
        super().__init__(provider, "NETWORK_ERROR", message)


class ProviderTimeoutError(ProviderError):
    """Raised when a provider does not settle within its timeout."""

    def __init__(
        self, timeout: float, provider: ProviderKind | None = None
    ) -> None:
        self.timeout = timeout
        super().__init__(provider, "TIMEOUT", f"no response within {timeout:g}s")


class RateLimitedError(ProviderError):
    """Raised when rate limited."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        provider: ProviderKind | None = None,
    ) -> None:
        super().__init__(provider, "RATE_LIMITED", message)
        self.retry_after = retry_after


class ParseError(ProviderError):
    """Raised when a response has an unexpected shape."""

    def __init__(self, message: str, provider: ProviderKind | None = None) -> None:
        super().__init__(provider, "PARSE_ERROR", message)


class HTTPStatusError(ProviderError):
    """Raised on non-2xx responses that are not rate limits."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        provider: ProviderKind | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(provider, "HTTP_ERROR", message or f"HTTP {status_code}")


class CacheError(TrotdError):
    """Base exception for cache store failures."""

    pass


class CacheReadError(CacheError):
    """Raised when a stored record cannot be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__("CACHE_READ_CORRUPT", message)


class CacheWriteError(CacheError):
    """Raised when a record cannot be persisted."""

    def __init__(self, message: str) -> None:
        super().__init__("CACHE_WRITE_FAILED", message)
