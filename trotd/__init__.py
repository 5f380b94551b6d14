"""trotd - trending repositories of the day from GitHub, GitLab and Gitea."""

__version__ = "0.1.0"

from trotd.aggregator import aggregate, filter_entries  # noqa: E402
from trotd.cache import CacheStore, default_cache_dir  # noqa: E402
from trotd.config import TrotdConfig, load_config  # noqa: E402
from trotd.exceptions import (  # noqa: E402
    CacheError,
    CacheReadError,
    CacheWriteError,
    ConfigurationError,
    HTTPStatusError,
    NetworkError,
    ParseError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    TrotdError,
)
from trotd.logging import configure_logging, get_logger  # noqa: E402
from trotd.orchestrator import FetchOrchestrator  # noqa: E402
from trotd.pipeline import PipelineOptions, TrendingPipeline, run_pipeline  # noqa: E402
from trotd.render import render_json, render_motd  # noqa: E402
from trotd.transport import AsyncHTTPTransport, RetryConfig  # noqa: E402
from trotd.types import (  # noqa: E402
    CacheRecord,
    Entry,
    FetchQuery,
    FetchReport,
    PipelineResult,
    ProviderKind,
    ProviderResult,
    StarBasis,
)

__all__ = [
    "__version__",
    # Pipeline
    "TrendingPipeline",
    "PipelineOptions",
    "run_pipeline",
    "FetchOrchestrator",
    "aggregate",
    "filter_entries",
    # Cache
    "CacheStore",
    "default_cache_dir",
    # Configuration
    "TrotdConfig",
    "load_config",
    # Types
    "Entry",
    "ProviderKind",
    "FetchQuery",
    "StarBasis",
    "CacheRecord",
    "ProviderResult",
    "FetchReport",
    "PipelineResult",
    # Exceptions
    "TrotdError",
    "ConfigurationError",
    "ProviderError",
    "NetworkError",
    "ProviderTimeoutError",
    "RateLimitedError",
    "ParseError",
    "HTTPStatusError",
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    # Transport
    "AsyncHTTPTransport",
    "RetryConfig",
    # Rendering
    "render_motd",
    "render_json",
    # Logging
    "configure_logging",
    "get_logger",
]
