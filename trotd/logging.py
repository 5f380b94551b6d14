"""
trotd logging utilities.

Provides configurable logging for HTTP requests/responses, provider outcomes
and cache activity. Access tokens are never logged in clear text.
"""

import logging
import re
from typing import Any

_root_logger = logging.getLogger("trotd")
_http_logger = logging.getLogger("trotd.http")
_provider_logger = logging.getLogger("trotd.providers")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-.=:]+", re.IGNORECASE), r"\1 [REDACTED]"),
    # GitHub / GitLab personal access tokens
    (re.compile(r"\b(ghp|gho|ghu|ghs|ghr|github_pat)_[A-Za-z0-9_]{10,}"), "[TOKEN_REDACTED]"),
    (re.compile(r"\bglpat-[A-Za-z0-9_\-]{10,}"), "[TOKEN_REDACTED]"),
    # key=value style secrets, including query strings
    (
        re.compile(r"(access_token|private_token|token|secret|password)(['\"]?\s*[:=]\s*['\"]?)[^'\"&\s]+", re.IGNORECASE),
        r"\1\2[REDACTED]",
    ),
]

_DEFAULT_SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "private-token", "access_token", "secret", "password"}
)


def configure_logging(
    level: int = logging.WARNING,
    http_level: int | None = None,
    provider_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure trotd logging.

    Args:
        level: Default log level for all trotd loggers (default: WARNING, so a
            MOTD only shows problems)
        http_level: Log level for HTTP request/response logging (default: same as level)
        provider_level: Log level for per-provider fetch outcomes (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: level, logger name, message)

    Example:
        ```python
        import logging
        from trotd.logging import configure_logging

        # Trace every request made to the providers
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(levelname)s %(name)s: %(message)s"

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(format_string))

    # Replace handlers installed by an earlier call
    for existing in list(_root_logger.handlers):
        _root_logger.removeHandler(existing)

    _root_logger.setLevel(level)
    _root_logger.addHandler(handler)
    _root_logger.propagate = False

    _http_logger.setLevel(http_level if http_level is not None else level)
    _provider_logger.setLevel(provider_level if provider_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a trotd logger.

    Args:
        name: Logger name suffix (e.g., "http", "cache"). If None, returns the root trotd logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _root_logger
    return logging.getLogger(f"trotd.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask access tokens and other secrets in a string.

    Args:
        text: Text that may contain sensitive data

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def safe_log_dict(
    data: dict[str, Any], sensitive_keys: frozenset[str] | set[str] | None = None
) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values (headers, params)
        sensitive_keys: Keys to mask (default: authorization, token, secret, ...)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        else:
            result[key] = value
    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> None:
    """Log an HTTP request at DEBUG level with sensitive data masked."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {mask_sensitive_data(url)}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if params:
        log_parts.append(f"params={safe_log_dict(params)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
    size: int | None = None,
) -> None:
    """Log an HTTP response at DEBUG level."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {mask_sensitive_data(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if size is not None:
        log_parts.append(f"bytes={size}")

    _http_logger.debug(" | ".join(log_parts))


def log_provider_result(
    provider: str,
    count: int | None,
    elapsed: float,
    error: Exception | None = None,
) -> None:
    """
    Log the outcome of one provider fetch.

    Failures go out at WARNING, successes at DEBUG.
    """
    if error is not None:
        _provider_logger.warning(
            "%s failed after %.2fs: %s", provider, elapsed, mask_sensitive_data(str(error))
        )
        return

    _provider_logger.debug("%s returned %s entries in %.2fs", provider, count, elapsed)


# Export public API
__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_provider_result",
]
