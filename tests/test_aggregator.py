"""Tests for per-provider filtering, truncation and merge order."""

from hypothesis import given, settings
from hypothesis import strategies as st

from trotd.aggregator import aggregate, filter_entries, has_excluded_topic, star_value
from trotd.exceptions import NetworkError
from trotd.testing import create_mock_entry
from trotd.types import FetchQuery, FetchReport, ProviderKind, ProviderResult, StarBasis

GH, GL, GE = ProviderKind.GITHUB, ProviderKind.GITLAB, ProviderKind.GITEA


def make_report(**entries_by_provider) -> FetchReport:
    kinds = {"github": GH, "gitlab": GL, "gitea": GE}
    return FetchReport(
        results={
            kinds[name]: ProviderResult(provider=kinds[name], entries=tuple(entries))
            for name, entries in entries_by_provider.items()
        }
    )


class TestFilters:
    def test_language_and_min_stars(self) -> None:
        entries = [
            create_mock_entry(GH, "a/rust-big", stars_total=150, language="Rust"),
            create_mock_entry(GH, "a/go-big", stars_total=500, language="Go"),
            create_mock_entry(GH, "a/rust-small", stars_total=50, language="Rust"),
            create_mock_entry(GH, "a/rust-lower", stars_total=120, language="rust"),
        ]
        query = FetchQuery.create(languages=["RUST"], min_stars=100)

        kept = filter_entries(entries, query)

        assert [e.full_name for e in kept] == ["a/rust-big", "a/rust-lower"]

    def test_entry_without_language_fails_active_filter(self) -> None:
        query = FetchQuery.create(languages=["rust"])
        assert filter_entries([create_mock_entry(language=None)], query) == []

    def test_no_filters_keeps_everything(self) -> None:
        entries = [create_mock_entry(full_name=f"a/{i}", language=None) for i in range(5)]
        assert filter_entries(entries, FetchQuery.create()) == entries

    def test_topic_exclusion_is_exact(self) -> None:
        excluded = create_mock_entry(GH, "a/list", topics=("Awesome",))
        similar = create_mock_entry(GH, "a/similar", topics=("awesome-list",))
        query = FetchQuery.create(exclude_topics=["awesome"])

        kept = filter_entries([excluded, similar], query)

        assert kept == [similar]

    def test_topic_exclusion_applies_to_github_only(self) -> None:
        entry = create_mock_entry(GL, "a/b", topics=("awesome",))
        assert not has_excluded_topic(entry, frozenset({"awesome"}))

    def test_star_basis(self) -> None:
        trending = create_mock_entry(stars_total=1000, stars_today=5)
        approximated = create_mock_entry(stars_total=40, stars_today=None)

        assert star_value(trending, StarBasis.TOTAL) == 1000
        assert star_value(trending, StarBasis.TODAY) == 5
        assert star_value(approximated, StarBasis.TODAY) == 40

        query = FetchQuery.create(min_stars=10, star_basis="today")
        assert filter_entries([trending, approximated], query) == [approximated]

    @given(
        stars=st.lists(st.integers(min_value=0, max_value=1000), max_size=20),
        min_stars=st.none() | st.integers(min_value=0, max_value=1000),
        lang_filter=st.sets(st.sampled_from(["rust", "go", "zig"]), max_size=2),
    )
    @settings(max_examples=100)
    def test_filtering_is_idempotent(
        self, stars: list[int], min_stars: int | None, lang_filter: set[str]
    ) -> None:
        """Filtering an already filtered list changes nothing."""
        langs = ["Rust", "Go", None, "Python"]
        entries = [
            create_mock_entry(full_name=f"a/{i}", stars_total=s, language=langs[i % 4])
            for i, s in enumerate(stars)
        ]
        query = FetchQuery.create(languages=lang_filter, min_stars=min_stars)

        once = filter_entries(entries, query)
        assert filter_entries(once, query) == once


class TestAggregate:
    def test_filters_before_truncating(self) -> None:
        report = make_report(
            github=[
                create_mock_entry(GH, "a/go", language="Go"),
                create_mock_entry(GH, "a/rust1", language="Rust"),
                create_mock_entry(GH, "a/rust2", language="Rust"),
                create_mock_entry(GH, "a/rust3", language="Rust"),
            ]
        )
        query = FetchQuery.create(providers=["github"], max_per_provider=2, languages=["rust"])

        assert [e.full_name for e in aggregate(report, query)] == ["a/rust1", "a/rust2"]

    def test_groups_in_provider_order_keeping_native_order(self) -> None:
        report = make_report(
            gitea=[create_mock_entry(GE, "e/1", stars_total=999)],
            github=[
                create_mock_entry(GH, "h/low", stars_total=1),
                create_mock_entry(GH, "h/high", stars_total=500),
            ],
            gitlab=[create_mock_entry(GL, "l/1")],
        )
        query = FetchQuery.create(max_per_provider=5)

        names = [e.full_name for e in aggregate(report, query)]

        assert names == ["h/low", "h/high", "l/1", "e/1"]

    def test_custom_provider_order(self) -> None:
        report = make_report(
            github=[create_mock_entry(GH, "h/1")],
            gitea=[create_mock_entry(GE, "e/1")],
        )
        query = FetchQuery.create(providers=["gitea", "github"])

        assert [e.provider for e in aggregate(report, query)] == [GE, GH]

    def test_per_provider_limits(self) -> None:
        report = make_report(
            github=[create_mock_entry(GH, f"h/{i}") for i in range(5)],
            gitlab=[create_mock_entry(GL, f"l/{i}") for i in range(5)],
        )
        query = FetchQuery.create(
            providers=["github", "gitlab"], max_per_provider=3, provider_limits={"gitlab": 1}
        )

        result = aggregate(report, query)

        assert sum(e.provider is GH for e in result) == 3
        assert sum(e.provider is GL for e in result) == 1

    def test_zero_limit_yields_nothing(self) -> None:
        report = make_report(github=[create_mock_entry(GH)])
        assert aggregate(report, FetchQuery.create(max_per_provider=0)) == []

    def test_failed_providers_are_skipped(self) -> None:
        report = make_report(github=[create_mock_entry(GH)])
        report.results[GL] = ProviderResult(provider=GL, error=NetworkError("down", GL))

        result = aggregate(report, FetchQuery.create())

        assert [e.provider for e in result] == [GH]

    def test_providers_not_in_query_are_ignored(self) -> None:
        report = make_report(github=[create_mock_entry(GH)], gitlab=[create_mock_entry(GL)])
        result = aggregate(report, FetchQuery.create(providers=["gitlab"]))
        assert [e.provider for e in result] == [GL]
