"""
Pytest fixtures for trotd testing.

Provides entry factories, mock providers and an isolated cache store.
"""

from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path

import pytest

from trotd.cache import CacheStore
from trotd.testing.mock import MockProvider
from trotd.types.entry import Entry, ProviderKind
from trotd.types.query import FetchQuery


class FakeClock:
    """Settable time source for CacheStore."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# Helper Functions
# ============================================================================


def create_mock_entry(
    provider: ProviderKind = ProviderKind.GITHUB,
    full_name: str = "octo/hello",
    stars_total: int = 100,
    stars_today: int | None = None,
    language: str | None = "Rust",
    description: str | None = "A test repository",
    topics: tuple[str, ...] = (),
    url: str | None = None,
    last_activity: datetime | None = None,
) -> Entry:
    """
    Create an Entry with sensible defaults.

    Example:
        ```python
        entry = create_mock_entry(full_name="a/b", stars_total=5, language=None)
        ```
    """
    hosts = {
        ProviderKind.GITHUB: "https://github.com",
        ProviderKind.GITLAB: "https://gitlab.com",
        ProviderKind.GITEA: "https://gitea.com",
    }
    return Entry(
        provider=provider,
        full_name=full_name,
        url=url or f"{hosts[provider]}/{full_name}",
        stars_total=stars_total,
        description=description,
        language=language,
        stars_today=stars_today,
        topics=topics,
        last_activity=last_activity or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def create_mock_providers(
    entries: dict[ProviderKind, list[Entry]] | None = None,
) -> dict[ProviderKind, MockProvider]:
    """One MockProvider per kind, returning the given entries (empty by default)."""
    entries = entries or {}
    return {
        kind: MockProvider(kind, entries=entries.get(kind, []))
        for kind in (ProviderKind.GITHUB, ProviderKind.GITLAB, ProviderKind.GITEA)
    }


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a settable clock starting at a fixed epoch time."""
    return FakeClock()


@pytest.fixture
def cache_store(tmp_path: Path, fake_clock: FakeClock) -> CacheStore:
    """
    Provide a CacheStore in a temporary directory, driven by fake_clock.

    Example:
        ```python
        def test_expiry(cache_store, fake_clock, default_query):
            cache_store.write(default_query, [])
            fake_clock.advance(cache_store.ttl)
            assert cache_store.read(default_query) is None
        ```
    """
    return CacheStore(tmp_path / "cache", ttl=3600, clock=fake_clock)


@pytest.fixture
def default_query() -> FetchQuery:
    """Provide a query with default settings."""
    return FetchQuery.create()


@pytest.fixture
def sample_entry() -> Entry:
    """Provide a single GitHub entry."""
    return create_mock_entry()


@pytest.fixture
def sample_entries() -> list[Entry]:
    """Provide a few entries from every provider."""
    return [
        create_mock_entry(ProviderKind.GITHUB, "rust-lang/rust", 90000, 120, "Rust"),
        create_mock_entry(ProviderKind.GITHUB, "golang/go", 120000, 80, "Go"),
        create_mock_entry(ProviderKind.GITLAB, "gitlab-org/cli", 500, None, "Go"),
        create_mock_entry(ProviderKind.GITEA, "forgejo/forgejo", 40, None, None),
    ]


@pytest.fixture
def mock_providers() -> Generator[dict[ProviderKind, MockProvider], None, None]:
    """
    Provide one MockProvider per kind, all returning no entries.

    Example:
        ```python
        def test_my_feature(mock_providers):
            mock_providers[ProviderKind.GITLAB].configure(error=NetworkError("down"))
        ```
    """
    providers = create_mock_providers()
    yield providers
    for provider in providers.values():
        provider.reset()
