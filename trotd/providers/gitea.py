"""Gitea provider, usable against any Gitea-API-compatible host (Codeberg, Forgejo, ...)."""

from datetime import datetime, timezone
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
from trotd.types.query import DEFAULT_GITEA_BASE_URL

SEARCH_PATH = "/api/v1/repos/search"
PAGE_SIZE = 50


class GiteaProvider(TrendingProvider):
    """Most starred repositories created today on a Gitea instance."""

    kind = ProviderKind.GITEA

    async def _fetch(self, params: ProviderParams) -> list[Entry]:
        base_url = (params.base_url or DEFAULT_GITEA_BASE_URL).rstrip("/")
        data = await self.transport.get_json(
            f"{base_url}{SEARCH_PATH}",
            params={"sort": "stars", "order": "desc", "limit": min(params.limit, PAGE_SIZE)},
            token=params.token,
            timeout=params.timeout,
        )

        today = datetime.now(timezone.utc).date()
        return [
            entry
            for entry, created in self._convert_records(
                self._expect_list(data, "data"), self._from_repository
            )
            if created is not None and created.date() == today
        ]

    def _from_repository(self, repo: dict[str, Any]) -> tuple[Entry, datetime | None]:
        created = parse_timestamp(repo.get("created_at"))
        if created is not None and created.tzinfo is not None:
            created = created.astimezone(timezone.utc)
        entry = Entry(
            provider=self.kind,
            full_name=require_str(repo, "full_name"),
            url=require_str(repo, "html_url"),
            stars_total=star_count(repo, "stars_count"),
            description=optional_str(repo, "description"),
            language=optional_str(repo, "language"),
            stars_today=None,
            last_activity=parse_timestamp(repo.get("updated_at")) or created,
        )
        return entry, created
