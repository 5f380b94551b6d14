"""Provider implementations.

The set of providers is closed: one class per ProviderKind.
"""

from typing import TYPE_CHECKING

from trotd.providers.base import ProviderParams, TrendingProvider
from trotd.providers.gitea import GiteaProvider
from trotd.providers.github import GitHubProvider
from trotd.providers.gitlab import GitLabProvider
from trotd.types.entry import ProviderKind

if TYPE_CHECKING:
    from trotd.transport import AsyncHTTPTransport

PROVIDER_CLASSES: dict[ProviderKind, type[TrendingProvider]] = {
    ProviderKind.GITHUB: GitHubProvider,
    ProviderKind.GITLAB: GitLabProvider,
    ProviderKind.GITEA: GiteaProvider,
}


def create_provider(kind: ProviderKind, transport: "AsyncHTTPTransport") -> TrendingProvider:
    """Instantiate the provider implementation for ``kind``."""
    return PROVIDER_CLASSES[kind](transport)


__all__ = [
    "ProviderParams",
    "TrendingProvider",
    "GitHubProvider",
    "GitLabProvider",
    "GiteaProvider",
    "PROVIDER_CLASSES",
    "create_provider",
]
