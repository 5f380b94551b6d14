"""
Filtering and merging of per-provider results.

Filters run per provider, before merging, in this order: language,
minimum stars, excluded topics (GitHub only). Each provider's list is then
truncated to its limit in native order, and the lists are concatenated in
the query's provider order. Trending semantics differ per provider, so
there is no global re-ranking.
"""

from collections.abc import Iterable

from trotd.types.entry import Entry, ProviderKind
from trotd.types.query import FetchQuery, StarBasis
from trotd.types.results import FetchReport


def matches_language(entry: Entry, languages: frozenset[str]) -> bool:
    """Case-insensitive language match; entries without a language fail an active filter."""
    if not languages:
        return True
    return entry.language_key is not None and entry.language_key in languages


def star_value(entry: Entry, basis: StarBasis) -> int:
    """Star count compared by the min-stars filter."""
    if basis is StarBasis.TODAY and entry.stars_today is not None:
        return entry.stars_today
    return entry.stars_total


def meets_min_stars(entry: Entry, min_stars: int | None, basis: StarBasis) -> bool:
    if min_stars is None:
        return True
    return star_value(entry, basis) >= min_stars


def has_excluded_topic(entry: Entry, exclude_topics: frozenset[str]) -> bool:
    """Exact, case-insensitive topic match; only GitHub entries carry topics."""
    if entry.provider is not ProviderKind.GITHUB or not exclude_topics:
        return False
    return any(topic.lower() in exclude_topics for topic in entry.topics)


def filter_entries(entries: Iterable[Entry], query: FetchQuery) -> list[Entry]:
    """
    Apply the query's filters, preserving order.

    Applying this twice yields the same list as applying it once.
    """
    return [
        entry
        for entry in entries
        if matches_language(entry, query.languages)
        and meets_min_stars(entry, query.min_stars, query.star_basis)
        and not has_excluded_topic(entry, query.exclude_topics)
    ]


def aggregate(report: FetchReport, query: FetchQuery) -> list[Entry]:
    """
    Turn an orchestrator report into the final ordered entry list.

    Args:
        report: Settled per-provider results
        query: Filters, limits and provider order

    Returns:
        Filtered, truncated entries of every successful provider, grouped in
        query.providers order
    """
    successes = report.successes
    merged: list[Entry] = []
    for kind in query.providers:
        entries = successes.get(kind)
        if not entries:
            continue
        kept = filter_entries(entries, query)
        merged.extend(kept[: query.limit_for(kind)])
    return merged
