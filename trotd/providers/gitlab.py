"""GitLab provider.

GitLab has no trending feed, so trending is approximated: recently created
projects that already gathered some stars, ranked by star count.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from trotd.providers.base import (
    ProviderParams,
    TrendingProvider,
    optional_str,
    parse_timestamp,
    require_str,
    star_count,
)
from trotd.types.entry import Entry, ProviderKind

PROJECTS_URL = "https://gitlab.com/api/v4/projects"
RECENCY_WINDOW_DAYS = 7
MIN_PROJECT_STARS = 10
PAGE_SIZE = 100

# Topic (lowercase) -> display name; GitLab projects carry no language field
LANGUAGE_TOPICS = {
    "rust": "Rust",
    "go": "Go",
    "golang": "Go",
    "python": "Python",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "java": "Java",
    "c": "C",
    "cpp": "C++",
    "c++": "C++",
    "csharp": "C#",
    "c#": "C#",
    "ruby": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "kotlin": "Kotlin",
    "scala": "Scala",
    "haskell": "Haskell",
    "elixir": "Elixir",
    "erlang": "Erlang",
}


def extract_language(topics: list[str]) -> str | None:
    """First topic that names a well-known language, exact match only."""
    for topic in topics:
        language = LANGUAGE_TOPICS.get(topic.strip().lower())
        if language is not None:
            return language
    return None


class GitLabProvider(TrendingProvider):
    """GitLab.com projects, approximated trending."""

    kind = ProviderKind.GITLAB

    async def _fetch(self, params: ProviderParams) -> list[Entry]:
        since = datetime.now(timezone.utc) - timedelta(days=RECENCY_WINDOW_DAYS)
        data = await self.transport.get_json(
            PROJECTS_URL,
            params={
                "order_by": "created_at",
                "sort": "desc",
                "last_activity_after": since.strftime("%Y-%m-%dT00:00:00Z"),
                "per_page": min(params.limit, PAGE_SIZE),
            },
            token=params.token,
            timeout=params.timeout,
        )

        entries = self._convert_records(self._expect_list(data), self._from_project)
        popular = [e for e in entries if e.stars_total >= MIN_PROJECT_STARS]
        # Stable: equally starred projects keep their recency order
        return sorted(popular, key=lambda e: e.stars_total, reverse=True)

    def _from_project(self, project: dict[str, Any]) -> Entry:
        topics = project.get("topics") or []
        if not isinstance(topics, list):
            raise ValueError("invalid 'topics'")
        return Entry(
            provider=self.kind,
            full_name=require_str(project, "path_with_namespace"),
            url=require_str(project, "web_url"),
            stars_total=star_count(project, "star_count"),
            description=optional_str(project, "description"),
            language=extract_language([str(t) for t in topics]),
            stars_today=None,
            last_activity=parse_timestamp(project.get("last_activity_at")),
        )
