"""Plain-text MOTD and JSON output."""

import json
import re
from collections.abc import Sequence
from datetime import datetime, timezone

from trotd.types.entry import Entry

EMPTY_MESSAGE = "No trending repositories found today."

MAX_NAME_WIDTH = 40
MAX_LANGUAGE_WIDTH = 15
MAX_DESCRIPTION_WIDTH = 60

_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BROKEN_LINK_RE = re.compile(r"\[[^\]]*\]\([^)]*$")
_SPACES_RE = re.compile(r"\s+")


def render_json(entries: Sequence[Entry]) -> str:
    """Structural JSON serialization of the entry list."""
    return json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False)


def render_motd(entries: Sequence[Entry], now: datetime | None = None) -> str:
    """
    Render entries as aligned MOTD lines.

    Args:
        entries: Ordered entries
        now: Reference time for recency hints (default: current UTC time)

    Returns:
        The report, or a one-line notice when there is nothing to show
    """
    if not entries:
        return EMPTY_MESSAGE

    now = now or datetime.now(timezone.utc)
    name_width = min(max(len(e.full_name) for e in entries), MAX_NAME_WIDTH)
    language_width = min(
        max((len(e.language) for e in entries if e.language), default=1),
        MAX_LANGUAGE_WIDTH,
    )

    return "\n".join(
        _render_line(entry, name_width, language_width, now) for entry in entries
    )


def _render_line(entry: Entry, name_width: int, language_width: int, now: datetime) -> str:
    name = _truncate(entry.full_name, name_width).ljust(name_width)
    language = _truncate(entry.language or "-", language_width).ljust(language_width)

    if entry.stars_today is not None:
        stars = f"★ {entry.stars_today:,} today"
    else:
        stars = f"~★ {entry.stars_total:,}"

    parts = [entry.provider.tag, name, language, stars.ljust(14), format_recency(entry, now)]
    line = "  ".join(parts)

    if entry.description:
        description = clean_description(entry.description)
        if description:
            line += " | " + _truncate(description, MAX_DESCRIPTION_WIDTH)
    return line


def format_recency(entry: Entry, now: datetime) -> str:
    """Coarse age of the last activity: today, yesterday, 3d ago, 2w ago, 4mo ago."""
    if entry.last_activity is None:
        return "unknown"

    last = entry.last_activity
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    hours = (now - last).total_seconds() / 3600

    if hours < 24:
        return "today"
    if hours < 48:
        return "yesterday"
    days = int(hours // 24)
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    return f"{days // 30}mo ago"


def clean_description(text: str) -> str:
    """Strip markdown images, links and emphasis markers, collapse whitespace."""
    text = _IMAGE_RE.sub("", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _BROKEN_LINK_RE.sub("", text)
    text = text.replace("**", "").replace("__", "")
    return _SPACES_RE.sub(" ", text).strip()


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 2, 0)].rstrip() + ".."
