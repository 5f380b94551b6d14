"""GitHub provider.

Two modes:

* trending page (default): scrapes ``github.com/trending``, the only source
  that reports stars gained today;
* search API: used when topic exclusion is requested, because only the API
  exposes repository topics. Results are approximated (no "stars today").
"""

from datetime import datetime, timedelta, timezone
from html.parser import HTMLParser
from typing import Any
from urllib.parse import quote

from trotd.exceptions import ParseError, ProviderError
from trotd.providers.base import (
    ProviderParams,
    TrendingProvider,
    logger,
    optional_str,
    parse_timestamp,
    require_str,
    star_count,
)
from trotd.types.entry import Entry, ProviderKind

TRENDING_URL = "https://github.com/trending"
SEARCH_URL = "https://api.github.com/search/repositories"
WEB_ROOT = "https://github.com"
SEARCH_WINDOW_DAYS = 7
SEARCH_PAGE_SIZE = 100


class GitHubProvider(TrendingProvider):
    """GitHub trending repositories."""

    kind = ProviderKind.GITHUB

    async def _fetch(self, params: ProviderParams) -> list[Entry]:
        if params.exclude_topics:
            return await self._fetch_search(params)
        return await self._fetch_trending(params)

    async def _fetch_search(self, params: ProviderParams) -> list[Entry]:
        since = (datetime.now(timezone.utc) - timedelta(days=SEARCH_WINDOW_DAYS)).strftime(
            "%Y-%m-%d"
        )
        data = await self.transport.get_json(
            SEARCH_URL,
            params={
                "q": f"created:>={since}",
                "sort": "stars",
                "order": "desc",
                "per_page": min(params.limit, SEARCH_PAGE_SIZE),
            },
            token=params.token,
            timeout=params.timeout,
        )
        return self._convert_records(self._expect_list(data, "items"), self._from_api)

    def _from_api(self, item: dict[str, Any]) -> Entry:
        topics = item.get("topics") or []
        if not isinstance(topics, list):
            raise ValueError("invalid 'topics'")
        return Entry(
            provider=self.kind,
            full_name=require_str(item, "full_name"),
            url=require_str(item, "html_url"),
            stars_total=star_count(item, "stargazers_count"),
            description=optional_str(item, "description"),
            language=optional_str(item, "language"),
            stars_today=None,
            topics=tuple(str(t) for t in topics),
            last_activity=parse_timestamp(item.get("updated_at")),
        )

    async def _fetch_trending(self, params: ProviderParams) -> list[Entry]:
        if not params.languages:
            return await self._fetch_trending_page(None, params)

        # One page per language; a page that fails only loses that language
        entries: list[Entry] = []
        seen: set[str] = set()
        last_error: ProviderError | None = None
        for language in sorted(params.languages):
            try:
                page = await self._fetch_trending_page(language, params)
            except ProviderError as e:
                logger.info("github: trending page for %s failed: %s", language, e)
                last_error = e
                continue
            for entry in page:
                if entry.full_name not in seen:
                    seen.add(entry.full_name)
                    entries.append(entry)

        if not entries and last_error is not None:
            raise last_error
        return entries

    async def _fetch_trending_page(
        self, language: str | None, params: ProviderParams
    ) -> list[Entry]:
        url = TRENDING_URL if language is None else f"{TRENDING_URL}/{quote(language, safe='')}"
        html = await self.transport.get_text(
            url, params={"since": "daily"}, token=None, timeout=params.timeout
        )

        parser = TrendingPageParser()
        parser.feed(html)
        parser.close()

        if not parser.rows:
            raise ParseError("no repositories found on the trending page", self.kind)

        now = datetime.now(timezone.utc)
        return self._convert_records(parser.rows, lambda row: self._from_row(row, now))

    def _from_row(self, row: dict[str, Any], now: datetime) -> Entry:
        href = require_str(row, "href")
        full_name = href.strip("/")
        if full_name.count("/") != 1:
            raise ValueError(f"unexpected repository link {href!r}")
        return Entry(
            provider=self.kind,
            full_name=full_name,
            url=f"{WEB_ROOT}/{full_name}",
            stars_total=_parse_count(row.get("stars_total")) or 0,
            description=optional_str(row, "description"),
            language=optional_str(row, "language"),
            stars_today=_parse_count(row.get("stars_today")),
            last_activity=now,
        )


def _parse_count(text: str | None) -> int | None:
    """Parse "1,234" or "1,234 stars today" into 1234."""
    parts = text.split() if text else []
    if not parts:
        return None
    token = parts[0].replace(",", "")
    if not token.isdigit():
        return None
    return int(token)


class TrendingPageParser(HTMLParser):
    """
    Collect repository rows from the GitHub trending page.

    Each ``<article class="Box-row">`` becomes a dict with the keys href,
    description, language, stars_total and stars_today (any may be missing).
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.rows: list[dict[str, str]] = []
        self._row: dict[str, str] | None = None
        self._in_heading = False
        # Field being captured, the tag that opened it and its nesting depth
        self._field: str | None = None
        self._field_tag = ""
        self._depth = 0
        self._text: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attributes = {name: value or "" for name, value in attrs}
        classes = attributes.get("class", "").split()

        if tag == "article" and "Box-row" in classes:
            self._row = {}
            return

        if self._row is None:
            return

        if self._field is not None:
            if tag == self._field_tag:
                self._depth += 1
            return

        if tag == "h2":
            self._in_heading = True
        elif tag == "a" and self._in_heading and "href" not in self._row:
            self._row["href"] = attributes.get("href", "")
        elif tag == "p" and "description" not in self._row:
            self._start("description", tag)
        elif tag == "span" and attributes.get("itemprop") == "programmingLanguage":
            self._start("language", tag)
        elif tag == "a" and attributes.get("href", "").endswith("/stargazers"):
            self._start("stars_total", tag)
        elif tag == "span" and "float-sm-right" in classes:
            self._start("stars_today", tag)

    def handle_endtag(self, tag: str) -> None:
        if self._row is None:
            return

        if self._field is not None:
            if tag == self._field_tag:
                self._depth -= 1
                if self._depth == 0:
                    self._row[self._field] = " ".join("".join(self._text).split())
                    self._field = None
            return

        if tag == "h2":
            self._in_heading = False
        elif tag == "article":
            self.rows.append(self._row)
            self._row = None

    def handle_data(self, data: str) -> None:
        if self._field is not None:
            self._text.append(data)

    def _start(self, field: str, tag: str) -> None:
        self._field = field
        self._field_tag = tag
        self._depth = 1
        self._text = []
