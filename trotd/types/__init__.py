"""trotd type definitions.

This module exports all data model types used by the pipeline.
"""

from trotd.types.cache import CacheRecord
from trotd.types.entry import DEFAULT_PROVIDER_ORDER, Entry, ProviderKind
from trotd.types.query import FetchQuery, StarBasis
from trotd.types.results import FetchReport, PipelineResult, ProviderResult

__all__ = [
    # Entries
    "Entry",
    "ProviderKind",
    "DEFAULT_PROVIDER_ORDER",
    # Queries
    "FetchQuery",
    "StarBasis",
    # Cache
    "CacheRecord",
    # Results
    "ProviderResult",
    "FetchReport",
    "PipelineResult",
]
