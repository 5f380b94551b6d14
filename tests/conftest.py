"""Shared fixtures for the trotd test suite."""

from trotd.testing.fixtures import (  # noqa: F401
    cache_store,
    default_query,
    fake_clock,
    mock_providers,
    sample_entries,
    sample_entry,
)
