"""Per-run fetch outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from trotd.types.entry import Entry, ProviderKind

if TYPE_CHECKING:
    from trotd.exceptions import ProviderError


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one provider call: entries on success, an error otherwise."""

    provider: ProviderKind
    entries: tuple[Entry, ...] = ()
    error: ProviderError | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FetchReport:
    """Settled results of every provider in one orchestrator run."""

    results: dict[ProviderKind, ProviderResult] = field(default_factory=dict)

    @property
    def successes(self) -> dict[ProviderKind, tuple[Entry, ...]]:
        return {kind: r.entries for kind, r in self.results.items() if r.ok}

    @property
    def failures(self) -> dict[ProviderKind, ProviderError]:
        return {
            kind: r.error for kind, r in self.results.items() if r.error is not None
        }

    @property
    def all_failed(self) -> bool:
        """True when no provider produced a result set."""
        return not self.successes

    def __getitem__(self, provider: ProviderKind) -> ProviderResult:
        return self.results[provider]

    def __len__(self) -> int:
        return len(self.results)


@dataclass
class PipelineResult:
    """Final output of a pipeline run."""

    entries: list[Entry]
    errors: dict[ProviderKind, ProviderError] = field(default_factory=dict)
    from_cache: bool = False
    fetched_at: float | None = None

    @property
    def empty(self) -> bool:
        return not self.entries
