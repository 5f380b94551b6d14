"""Provider base class and fetch parameters."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from trotd.exceptions import ParseError, ProviderError
from trotd.logging import get_logger
from trotd.types.entry import Entry, ProviderKind

if TYPE_CHECKING:
    from trotd.transport import AsyncHTTPTransport

logger = get_logger("providers")

T = TypeVar("T")


@dataclass(frozen=True)
class ProviderParams:
    """Inputs of a single provider fetch."""

    token: str | None = None
    timeout: float | None = None
    languages: frozenset[str] = frozenset()
    exclude_topics: frozenset[str] = frozenset()
    base_url: str | None = None
    limit: int = 100


class TrendingProvider(ABC):
    """
    A code-hosting backend that can list its trending repositories.

    Subclasses translate their backend's native response into Entry objects.
    A malformed individual record is skipped; a response that cannot be
    interpreted at all raises ParseError.
    """

    kind: ClassVar[ProviderKind]

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the provider.

        Args:
            transport: Shared async HTTP transport
        """
        self.transport = transport

    async def fetch(self, params: ProviderParams) -> list[Entry]:
        """
        Fetch trending entries in the provider's native ranking order.

        Args:
            params: Token, timeout and provider-specific knobs

        Returns:
            Normalized entries

        Raises:
            ProviderError: Tagged with this provider's kind
        """
        try:
            return await self._fetch(params)
        except ProviderError as e:
            raise e.with_provider(self.kind)

    @abstractmethod
    async def _fetch(self, params: ProviderParams) -> list[Entry]:
        raise NotImplementedError

    def _convert_records(
        self, records: Iterable[Any], convert: Callable[[dict[str, Any]], T]
    ) -> list[T]:
        """Apply ``convert`` to each record, skipping the malformed ones."""
        converted: list[T] = []
        skipped = 0
        for record in records:
            if not isinstance(record, dict):
                skipped += 1
                continue
            try:
                converted.append(convert(record))
            except (KeyError, TypeError, ValueError) as e:
                skipped += 1
                logger.debug("%s: skipping malformed record: %s", self.kind.value, e)
        if skipped:
            logger.info("%s: skipped %d malformed records", self.kind.value, skipped)
        return converted

    def _expect_list(self, data: Any, key: str | None = None) -> list[Any]:
        """
        Extract the record list from a response body.

        Raises:
            ParseError: If the body does not have the expected container shape
        """
        if key is not None:
            if not isinstance(data, dict) or key not in data:
                raise ParseError(f"response has no '{key}' field", self.kind)
            data = data[key]
        if not isinstance(data, list):
            raise ParseError(
                f"expected a list of repositories, got {type(data).__name__}", self.kind
            )
        return data


def require_str(record: dict[str, Any], key: str) -> str:
    """Return a non-empty string field or raise ValueError."""
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"missing or invalid '{key}'")
    return value


def optional_str(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def star_count(record: dict[str, Any], key: str) -> int:
    """Star count of a record; absent means zero, anything else must be a non-negative int."""
    value = record.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"invalid '{key}': {value!r}")
    return value


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp; unparsable values become None."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
