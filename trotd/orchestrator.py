"""
Concurrent multi-provider fetch.

Every enabled provider runs as its own task under its own deadline. The
orchestrator waits until all tasks settled and reports each outcome
separately, so one slow or broken provider never hides the others.
"""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import replace

from trotd.exceptions import ProviderError, ProviderTimeoutError
from trotd.logging import log_provider_result
from trotd.providers.base import ProviderParams, TrendingProvider
from trotd.transport import DEFAULT_TIMEOUT
from trotd.types.entry import ProviderKind
from trotd.types.results import FetchReport, ProviderResult


class FetchOrchestrator:
    """
    Run providers concurrently and collect a result per provider.

    Example:
        ```python
        orchestrator = FetchOrchestrator(
            {ProviderKind.GITHUB: GitHubProvider(transport)},
            timeout=6.0,
        )
        report = await orchestrator.fetch_all({ProviderKind.GITHUB: ProviderParams()})
        for kind, error in report.failures.items():
            print(kind.value, error)
        ```
    """

    def __init__(
        self,
        providers: Mapping[ProviderKind, TrendingProvider],
        timeout: float = DEFAULT_TIMEOUT,
        provider_timeouts: Mapping[ProviderKind, float] | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            providers: Enabled providers keyed by kind
            timeout: Shared deadline in seconds for each provider call
            provider_timeouts: Per-provider deadline overrides
        """
        self.providers = dict(providers)
        self.timeout = timeout
        self.provider_timeouts = dict(provider_timeouts or {})

    def timeout_for(self, kind: ProviderKind) -> float:
        return self.provider_timeouts.get(kind, self.timeout)

    async def fetch_all(
        self, params: Mapping[ProviderKind, ProviderParams] | None = None
    ) -> FetchReport:
        """
        Fetch from every provider and wait for all of them to settle.

        Args:
            params: Per-provider parameters; providers without an entry get defaults

        Returns:
            FetchReport with exactly one ProviderResult per provider
        """
        params = params or {}
        kinds = list(self.providers)
        results = await asyncio.gather(
            *(
                self._run_one(kind, self.providers[kind], params.get(kind, ProviderParams()))
                for kind in kinds
            )
        )
        return FetchReport(results=dict(zip(kinds, results)))

    async def _run_one(
        self, kind: ProviderKind, provider: TrendingProvider, params: ProviderParams
    ) -> ProviderResult:
        deadline = self.timeout_for(kind)
        if params.timeout is None:
            params = replace(params, timeout=deadline)

        started = time.monotonic()
        try:
            # wait_for cancels the call on expiry, dropping its in-flight request
            entries = await asyncio.wait_for(provider.fetch(params), timeout=deadline)
        except asyncio.TimeoutError:
            error: ProviderError = ProviderTimeoutError(deadline, kind)
        except ProviderError as e:
            error = e.with_provider(kind)
        else:
            elapsed = time.monotonic() - started
            log_provider_result(kind.value, len(entries), elapsed)
            return ProviderResult(provider=kind, entries=tuple(entries), elapsed=elapsed)

        elapsed = time.monotonic() - started
        log_provider_result(kind.value, None, elapsed, error=error)
        return ProviderResult(provider=kind, error=error, elapsed=elapsed)
