"""Normalized repository entry shared by every provider."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ProviderKind(str, Enum):
    """Identity tag of a code-hosting provider."""

    GITHUB = "github"
    GITLAB = "gitlab"
    GITEA = "gitea"

    @property
    def tag(self) -> str:
        """Short bracketed marker used in the MOTD."""
        return _TAGS[self]

    @classmethod
    def parse(cls, value: str) -> "ProviderKind":
        """
        Parse a provider name or its short alias.

        Args:
            value: "github", "gitlab", "gitea" or one of "gh", "gl", "ge"

        Raises:
            ValueError: If the name is unknown
        """
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        return cls(key)


_TAGS = {
    ProviderKind.GITHUB: "[GH]",
    ProviderKind.GITLAB: "[GL]",
    ProviderKind.GITEA: "[GE]",
}

_ALIASES = {"gh": "github", "gl": "gitlab", "ge": "gitea"}

DEFAULT_PROVIDER_ORDER = (ProviderKind.GITHUB, ProviderKind.GITLAB, ProviderKind.GITEA)


@dataclass(frozen=True)
class Entry:
    """A trending repository."""

    provider: ProviderKind
    full_name: str
    url: str
    stars_total: int = 0
    description: str | None = None
    language: str | None = None
    stars_today: int | None = None
    topics: tuple[str, ...] = ()
    last_activity: datetime | None = None

    @property
    def approximated(self) -> bool:
        """True when the provider did not report an official "gained today" count."""
        return self.stars_today is None

    @property
    def language_key(self) -> str | None:
        """Lowercase language used for filtering."""
        return self.language.lower() if self.language else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stable JSON shape (every key always present)."""
        return {
            "provider": self.provider.value,
            "full_name": self.full_name,
            "description": self.description,
            "language": self.language,
            "stars_total": self.stars_total,
            "stars_today": self.stars_today,
            "approximated": self.approximated,
            "url": self.url,
            "topics": list(self.topics),
            "last_activity": (
                self.last_activity.isoformat() if self.last_activity else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        """
        Rebuild an entry from its JSON shape.

        Unknown keys are ignored so older readers accept newer records.

        Raises:
            KeyError: If a required key is missing
            ValueError: If a value has the wrong type or range
        """
        last_activity = data.get("last_activity")
        stars_today = data.get("stars_today")
        return cls(
            provider=ProviderKind(data["provider"]),
            full_name=str(data["full_name"]),
            url=str(data["url"]),
            stars_total=_non_negative(data.get("stars_total", 0)),
            description=data.get("description"),
            language=data.get("language"),
            stars_today=None if stars_today is None else _non_negative(stars_today),
            topics=tuple(str(t) for t in data.get("topics") or ()),
            last_activity=(
                datetime.fromisoformat(last_activity) if last_activity else None
            ),
        )


def _non_negative(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"expected a non-negative integer, got {value!r}")
    return value
