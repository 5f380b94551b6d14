"""Tests for the fetch-cache-aggregate pipeline."""

import asyncio
from unittest.mock import patch

import httpx

from trotd.cache import CacheStore
from trotd.exceptions import CacheWriteError, NetworkError, ParseError, RateLimitedError
from trotd.pipeline import PipelineOptions, TrendingPipeline, run_pipeline
from trotd.testing import FakeClock, MockProvider, create_mock_entry
from trotd.transport import AsyncHTTPTransport, RetryConfig
from trotd.types import FetchQuery, ProviderKind

GH, GL, GE = ProviderKind.GITHUB, ProviderKind.GITLAB, ProviderKind.GITEA


def run(pipeline: TrendingPipeline):
    return asyncio.run(pipeline.run())


class TestCaching:
    def test_cache_hit_skips_fetch(
        self, cache_store: CacheStore, default_query: FetchQuery, mock_providers
    ) -> None:
        cached = [create_mock_entry(GH, "cached/one")]
        cache_store.write(default_query, cached)

        result = run(TrendingPipeline(default_query, cache=cache_store, providers=mock_providers))

        assert result.from_cache
        assert result.entries == cached
        assert not any(p.was_called() for p in mock_providers.values())

    def test_miss_fetches_and_writes_through(
        self, cache_store: CacheStore, default_query: FetchQuery, mock_providers
    ) -> None:
        mock_providers[GL].configure(entries=[create_mock_entry(GL, "l/1")])

        result = run(TrendingPipeline(default_query, cache=cache_store, providers=mock_providers))

        assert not result.from_cache
        assert [e.full_name for e in result.entries] == ["l/1"]
        record = cache_store.read(default_query)
        assert record is not None
        assert list(record.entries) == result.entries
        assert result.fetched_at == record.fetched_at

    def test_no_cache_fetches_and_overwrites(
        self,
        cache_store: CacheStore,
        fake_clock: FakeClock,
        default_query: FetchQuery,
        mock_providers,
    ) -> None:
        cache_store.write(default_query, [create_mock_entry(GH, "stale/one")])
        fake_clock.advance(5)
        mock_providers[GH].configure(entries=[create_mock_entry(GH, "fresh/one")])

        result = run(
            TrendingPipeline(
                default_query,
                PipelineOptions(no_cache=True),
                cache=cache_store,
                providers=mock_providers,
            )
        )

        assert [e.full_name for e in result.entries] == ["fresh/one"]
        assert mock_providers[GH].call_count == 1
        record = cache_store.read(default_query)
        assert [e.full_name for e in record.entries] == ["fresh/one"]
        assert record.fetched_at == fake_clock.now

    def test_expired_record_is_refetched(
        self,
        cache_store: CacheStore,
        fake_clock: FakeClock,
        default_query: FetchQuery,
        mock_providers,
    ) -> None:
        cache_store.write(default_query, [create_mock_entry(GH, "old/one")])
        fake_clock.advance(cache_store.ttl)

        result = run(TrendingPipeline(default_query, cache=cache_store, providers=mock_providers))

        assert not result.from_cache
        assert mock_providers[GH].was_called()

    def test_all_fail_returns_errors_and_keeps_cache(
        self,
        cache_store: CacheStore,
        fake_clock: FakeClock,
        default_query: FetchQuery,
    ) -> None:
        previous = cache_store.write(default_query, [create_mock_entry(GH, "prev/one")])
        providers = {
            GH: MockProvider(GH, error=RateLimitedError("limited")),
            GL: MockProvider(GL, error=NetworkError("unreachable")),
            GE: MockProvider(GE, error=ParseError("garbled")),
        }

        result = run(
            TrendingPipeline(
                default_query,
                PipelineOptions(no_cache=True),
                cache=cache_store,
                providers=providers,
            )
        )

        assert result.empty
        assert set(result.errors) == {GH, GL, GE}
        assert cache_store.read(default_query) == previous

    def test_partial_failure_is_cached(
        self, cache_store: CacheStore, default_query: FetchQuery, mock_providers
    ) -> None:
        mock_providers[GH].configure(entries=[create_mock_entry(GH)])
        mock_providers[GE].configure(error=NetworkError("down"))

        result = run(TrendingPipeline(default_query, cache=cache_store, providers=mock_providers))

        assert set(result.errors) == {GE}
        assert cache_store.read(default_query) is not None

    def test_cache_write_failure_is_not_fatal(
        self, cache_store: CacheStore, default_query: FetchQuery, mock_providers
    ) -> None:
        mock_providers[GH].configure(entries=[create_mock_entry(GH)])

        with patch.object(cache_store, "write", side_effect=CacheWriteError("read-only")):
            result = run(
                TrendingPipeline(default_query, cache=cache_store, providers=mock_providers)
            )

        assert len(result.entries) == 1
        assert result.fetched_at is None

    def test_without_cache_store(self, default_query: FetchQuery, mock_providers) -> None:
        mock_providers[GL].configure(entries=[create_mock_entry(GL)])
        result = run(TrendingPipeline(default_query, providers=mock_providers))
        assert len(result.entries) == 1


class TestProviderSelection:
    def test_only_enabled_providers_run(self, mock_providers) -> None:
        query = FetchQuery.create(providers=["gitlab"])

        run(TrendingPipeline(query, providers=mock_providers))

        assert mock_providers[GL].was_called()
        assert not mock_providers[GH].was_called()
        assert not mock_providers[GE].was_called()

    def test_provider_params(self) -> None:
        query = FetchQuery.create(
            languages=["Rust"],
            exclude_topics=["awesome"],
            gitea_base_url="https://codeberg.org",
        )
        options = PipelineOptions(
            timeout=4.0, provider_timeouts={GE: 9.0}, tokens={GH: "ghp_x"}
        )
        pipeline = TrendingPipeline(query, options)

        github = pipeline.provider_params(GH)
        gitea = pipeline.provider_params(GE)

        assert github.token == "ghp_x"
        assert github.timeout == 4.0
        assert github.exclude_topics == frozenset({"awesome"})
        assert github.languages == frozenset({"rust"})
        assert github.base_url is None
        assert gitea.token is None
        assert gitea.timeout == 9.0
        assert gitea.exclude_topics == frozenset()
        assert gitea.base_url == "https://codeberg.org"

    def test_limits_applied_after_filtering(self, mock_providers) -> None:
        mock_providers[GH].configure(
            entries=[
                create_mock_entry(GH, "a/go", language="Go"),
                create_mock_entry(GH, "a/r1", language="Rust"),
                create_mock_entry(GH, "a/r2", language="Rust"),
                create_mock_entry(GH, "a/r3", language="Rust"),
            ]
        )
        query = FetchQuery.create(providers=["github"], languages=["rust"])

        result = run(TrendingPipeline(query, providers=mock_providers))

        assert [e.full_name for e in result.entries] == ["a/r1", "a/r2"]


def test_built_in_providers_over_shared_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "gitlab.com":
            return httpx.Response(
                200,
                json=[
                    {
                        "path_with_namespace": "g/p",
                        "web_url": "https://gitlab.com/g/p",
                        "star_count": 40,
                    }
                ],
            )
        return httpx.Response(503)

    async def main():
        transport = AsyncHTTPTransport(
            retry_config=RetryConfig(max_retries=0),
            http_transport=httpx.MockTransport(handler),
        )
        async with transport:
            return await TrendingPipeline(FetchQuery.create(), transport=transport).run()

    result = asyncio.run(main())

    assert [e.full_name for e in result.entries] == ["g/p"]
    assert set(result.errors) == {GH, GE}


def test_run_pipeline_sync_entry_point() -> None:
    result = run_pipeline(FetchQuery.create(providers=[]))

    assert result.empty
    assert result.errors == {}
    assert not result.from_cache
