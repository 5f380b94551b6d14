"""
Fetch-cache-aggregate pipeline.

cache lookup -> concurrent provider fetch -> filter/merge -> cache write-through
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field

from trotd.aggregator import aggregate
from trotd.cache import DEFAULT_TTL, CacheStore
from trotd.exceptions import CacheWriteError
from trotd.logging import get_logger
from trotd.orchestrator import FetchOrchestrator
from trotd.providers import ProviderParams, TrendingProvider, create_provider
from trotd.transport import DEFAULT_TIMEOUT, AsyncHTTPTransport
from trotd.types.entry import ProviderKind
from trotd.types.query import FetchQuery
from trotd.types.results import PipelineResult

logger = get_logger("pipeline")


@dataclass(frozen=True)
class PipelineOptions:
    """Operational settings that do not change the result set."""

    no_cache: bool = False
    timeout: float = DEFAULT_TIMEOUT
    ttl: float = DEFAULT_TTL
    provider_timeouts: Mapping[ProviderKind, float] = field(default_factory=dict)
    tokens: Mapping[ProviderKind, str] = field(default_factory=dict)


class TrendingPipeline:
    """
    Produce the trending entry list for a query.

    Example:
        ```python
        pipeline = TrendingPipeline(query, PipelineOptions(), cache=CacheStore(path))
        result = await pipeline.run()
        for kind, error in result.errors.items():
            print(f"{kind.value}: {error}")
        ```
    """

    def __init__(
        self,
        query: FetchQuery,
        options: PipelineOptions | None = None,
        cache: CacheStore | None = None,
        providers: Mapping[ProviderKind, TrendingProvider] | None = None,
        transport: AsyncHTTPTransport | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            query: Resolved fetch query (also the cache key)
            options: no_cache flag, timeouts, TTL and tokens
            cache: Cache store; None disables caching entirely
            providers: Provider instances to use instead of the built-in ones
            transport: HTTP transport for the built-in providers (created and
                closed by the pipeline when omitted)
        """
        self.query = query
        self.options = options or PipelineOptions()
        self.cache = cache
        self._providers = providers
        self._transport = transport

    def provider_params(self, kind: ProviderKind) -> ProviderParams:
        """Parameters handed to one provider."""
        return ProviderParams(
            token=self.options.tokens.get(kind),
            timeout=self.options.provider_timeouts.get(kind, self.options.timeout),
            languages=self.query.languages,
            exclude_topics=(
                self.query.exclude_topics if kind is ProviderKind.GITHUB else frozenset()
            ),
            base_url=self.query.gitea_base_url if kind is ProviderKind.GITEA else None,
        )

    async def run(self) -> PipelineResult:
        """
        Run the pipeline once.

        Never raises for provider or cache failures: provider errors are
        returned in ``PipelineResult.errors``, cache errors are logged.
        """
        if self.cache is not None and not self.options.no_cache:
            record = self.cache.read(self.query)
            if record is not None:
                return PipelineResult(
                    entries=list(record.entries),
                    from_cache=True,
                    fetched_at=record.fetched_at,
                )

        if self._providers is not None:
            return await self._fetch(self._providers)

        if self._transport is not None:
            return await self._fetch(self._build_providers(self._transport))

        async with AsyncHTTPTransport(timeout=self.options.timeout) as transport:
            return await self._fetch(self._build_providers(transport))

    def _build_providers(
        self, transport: AsyncHTTPTransport
    ) -> dict[ProviderKind, TrendingProvider]:
        return {kind: create_provider(kind, transport) for kind in self.query.providers}

    async def _fetch(
        self, providers: Mapping[ProviderKind, TrendingProvider]
    ) -> PipelineResult:
        enabled = {kind: providers[kind] for kind in self.query.providers if kind in providers}
        orchestrator = FetchOrchestrator(
            enabled,
            timeout=self.options.timeout,
            provider_timeouts=self.options.provider_timeouts,
        )
        report = await orchestrator.fetch_all(
            {kind: self.provider_params(kind) for kind in enabled}
        )
        entries = aggregate(report, self.query)

        result = PipelineResult(entries=entries, errors=report.failures)

        if report.all_failed:
            logger.warning("no provider returned data")
            return result

        if self.cache is not None:
            try:
                record = self.cache.write(self.query, entries)
            except CacheWriteError as e:
                logger.warning("cache not updated: %s", e.message)
            else:
                result.fetched_at = record.fetched_at

        return result


def run_pipeline(
    query: FetchQuery,
    options: PipelineOptions | None = None,
    cache: CacheStore | None = None,
) -> PipelineResult:
    """Synchronous entry point: run the pipeline in a fresh event loop."""
    return asyncio.run(TrendingPipeline(query, options, cache=cache).run())
