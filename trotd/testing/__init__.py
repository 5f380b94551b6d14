"""trotd testing utilities.

Provides a mock provider and fixtures for testing code that uses trotd.
"""

from trotd.testing.fixtures import FakeClock, create_mock_entry, create_mock_providers
from trotd.testing.mock import MockCall, MockProvider, MockResponse

__all__ = [
    # Mock provider
    "MockProvider",
    "MockCall",
    "MockResponse",
    # Helpers
    "FakeClock",
    "create_mock_entry",
    "create_mock_providers",
]
