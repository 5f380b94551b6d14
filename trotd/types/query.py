"""Resolved fetch query, the cache key of a pipeline run."""

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from trotd.types.entry import DEFAULT_PROVIDER_ORDER, ProviderKind

DEFAULT_MAX_PER_PROVIDER = 2
DEFAULT_GITEA_BASE_URL = "https://gitea.com"

_FINGERPRINT_LENGTH = 16


class StarBasis(str, Enum):
    """Which star count the min-stars filter compares against."""

    TOTAL = "total"
    TODAY = "today"


@dataclass(frozen=True)
class FetchQuery:
    """
    Everything that influences the result set of a fetch.

    Build instances with :meth:`create`, which normalizes casing, ordering
    and duplicates so that equal settings always give equal fingerprints.
    """

    providers: tuple[ProviderKind, ...] = DEFAULT_PROVIDER_ORDER
    max_per_provider: int = DEFAULT_MAX_PER_PROVIDER
    provider_limits: tuple[tuple[ProviderKind, int], ...] = ()
    languages: frozenset[str] = frozenset()
    min_stars: int | None = None
    exclude_topics: frozenset[str] = frozenset()
    gitea_base_url: str = DEFAULT_GITEA_BASE_URL
    star_basis: StarBasis = StarBasis.TOTAL
    _limits: dict[ProviderKind, int] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if self.max_per_provider < 0:
            raise ValueError("max_per_provider must not be negative")
        for provider, limit in self.provider_limits:
            if limit < 0:
                raise ValueError(f"{provider.value} entry limit must not be negative")
        object.__setattr__(self, "_limits", dict(self.provider_limits))

    @classmethod
    def create(
        cls,
        providers: Iterable[ProviderKind | str] = DEFAULT_PROVIDER_ORDER,
        max_per_provider: int = DEFAULT_MAX_PER_PROVIDER,
        provider_limits: Mapping[ProviderKind | str, int] | None = None,
        languages: Iterable[str] = (),
        min_stars: int | None = None,
        exclude_topics: Iterable[str] = (),
        gitea_base_url: str = DEFAULT_GITEA_BASE_URL,
        star_basis: StarBasis | str = StarBasis.TOTAL,
    ) -> "FetchQuery":
        """
        Build a normalized query.

        Args:
            providers: Enabled providers in merge order (names or aliases accepted)
            max_per_provider: Default number of entries kept per provider
            provider_limits: Per-provider overrides of max_per_provider
            languages: Language filter; empty disables filtering
            min_stars: Minimum star count, None disables the filter
            exclude_topics: GitHub topics that drop an entry on exact match
            gitea_base_url: Base URL of the Gitea-compatible host
            star_basis: Star count compared by the min-stars filter

        Returns:
            A FetchQuery with canonical field values
        """
        ordered: list[ProviderKind] = []
        for provider in providers:
            kind = provider if isinstance(provider, ProviderKind) else ProviderKind.parse(provider)
            if kind not in ordered:
                ordered.append(kind)

        limits = tuple(
            sorted(
                (
                    key if isinstance(key, ProviderKind) else ProviderKind.parse(key),
                    int(value),
                )
                for key, value in (provider_limits or {}).items()
            )
        )

        return cls(
            providers=tuple(ordered),
            max_per_provider=max_per_provider,
            provider_limits=limits,
            languages=_normalize_set(languages),
            min_stars=min_stars,
            exclude_topics=_normalize_set(exclude_topics),
            gitea_base_url=gitea_base_url.strip().rstrip("/"),
            star_basis=StarBasis(star_basis),
        )

    def limit_for(self, provider: ProviderKind) -> int:
        """Maximum number of entries kept for a provider."""
        return self._limits.get(provider, self.max_per_provider)

    def to_dict(self) -> dict[str, Any]:
        """Canonical, JSON-serializable form (sets sorted)."""
        return {
            "providers": [p.value for p in self.providers],
            "max_per_provider": self.max_per_provider,
            "provider_limits": {p.value: n for p, n in sorted(self._limits.items())},
            "languages": sorted(self.languages),
            "min_stars": self.min_stars,
            "exclude_topics": sorted(self.exclude_topics),
            "gitea_base_url": self.gitea_base_url,
            "star_basis": self.star_basis.value,
        }

    def fingerprint(self) -> str:
        """Stable hex identifier of this query, used as the cache key."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:_FINGERPRINT_LENGTH]


def _normalize_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())
