"""
Pytest plugin for trotd testing fixtures.

Re-exports the fixtures from fixtures.py. To use them in your tests, add this
to your conftest.py:

    pytest_plugins = ["trotd.testing.conftest"]

Or import the fixtures directly:

    from trotd.testing.fixtures import cache_store, mock_providers
"""

from trotd.testing.fixtures import (
    cache_store,
    default_query,
    fake_clock,
    mock_providers,
    sample_entries,
    sample_entry,
)

__all__ = [
    "cache_store",
    "default_query",
    "fake_clock",
    "mock_providers",
    "sample_entries",
    "sample_entry",
]
