"""
Filesystem-backed TTL cache of pipeline results.

One JSON file per query fingerprint. Writes go to a temporary file in the
same directory and are moved into place with os.replace, so readers only
ever see a complete record.
"""

import json
import os
import sys
import tempfile
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from trotd.exceptions import CacheReadError, CacheWriteError
from trotd.logging import get_logger
from trotd.types.cache import CacheRecord
from trotd.types.entry import Entry
from trotd.types.query import FetchQuery

logger = get_logger("cache")

APP_NAME = "trotd"
DEFAULT_TTL = 60 * 60.0


def default_cache_dir() -> Path:
    """
    Per-user cache directory following the platform convention.

    ``$XDG_CACHE_HOME/trotd`` (``~/.cache/trotd``) on Linux and other Unixes,
    ``~/Library/Caches/trotd`` on macOS, ``%LOCALAPPDATA%\\trotd\\cache`` on Windows.
    """
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Local"
        return root / APP_NAME / "cache"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / APP_NAME

    xdg = os.environ.get("XDG_CACHE_HOME")
    root = Path(xdg) if xdg and Path(xdg).is_absolute() else Path.home() / ".cache"
    return root / APP_NAME


class CacheStore:
    """
    TTL cache of filtered entry lists, keyed by query fingerprint.

    Example:
        ```python
        store = CacheStore(default_cache_dir(), ttl=3600)
        record = store.read(query)
        if record is None:
            entries = fetch(...)
            store.write(query, entries)
        ```
    """

    def __init__(
        self,
        cache_dir: Path | str,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache store.

        Args:
            cache_dir: Directory holding the cache files (created on first write)
            ttl: Time-to-live in seconds
            clock: Source of the current time in epoch seconds
        """
        self.cache_dir = Path(cache_dir)
        self.ttl = ttl
        self._clock = clock

    def path_for(self, query: FetchQuery) -> Path:
        return self.cache_dir / f"{query.fingerprint()}.json"

    def read(self, query: FetchQuery) -> CacheRecord | None:
        """
        Return the cached record for ``query`` while it is fresh.

        Returns None when there is no record, when ``now - fetched_at >= ttl``,
        or when the stored file is corrupt (logged as a warning).
        """
        path = self.path_for(query)
        try:
            record = self.load(path)
        except FileNotFoundError:
            logger.debug("cache miss: %s", path.name)
            return None
        except CacheReadError as e:
            logger.warning("ignoring unreadable cache file %s: %s", path, e.message)
            return None

        if record.fingerprint != query.fingerprint():
            logger.warning("ignoring cache file %s: fingerprint mismatch", path)
            return None

        now = self._clock()
        if not record.is_fresh(now, self.ttl):
            logger.debug("cache expired: %s (age %.0fs)", path.name, record.age(now))
            return None

        logger.debug("cache hit: %s (age %.0fs)", path.name, record.age(now))
        return record

    def load(self, path: Path) -> CacheRecord:
        """
        Parse a cache file without checking freshness.

        Raises:
            FileNotFoundError: If the file does not exist
            CacheReadError: If the file cannot be read or parsed
        """
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise
        except OSError as e:
            raise CacheReadError(f"cannot read {path}: {e}") from e

        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            return CacheRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CacheReadError(f"malformed record in {path}: {e}") from e

    def write(self, query: FetchQuery, entries: Iterable[Entry]) -> CacheRecord:
        """
        Atomically replace the record for ``query``.

        Returns:
            The record that was written

        Raises:
            CacheWriteError: If the record could not be persisted; any prior
                record is left untouched
        """
        record = CacheRecord(
            fingerprint=query.fingerprint(),
            fetched_at=self._clock(),
            entries=tuple(entries),
        )
        path = self.path_for(query)
        payload = json.dumps(record.to_dict(), indent=2)

        tmp_path: str | None = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=self.cache_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise CacheWriteError(f"cannot write {path}: {e}") from e
        finally:
            if tmp_path is not None:
                _remove_quietly(Path(tmp_path))

        logger.debug("cache write: %s (%d entries)", path.name, len(record.entries))
        return record

    def clear(self, query: FetchQuery | None = None) -> int:
        """
        Remove the record for ``query``, or every record when query is None.

        Returns:
            Number of files removed
        """
        if query is not None:
            paths = [self.path_for(query)]
        elif self.cache_dir.is_dir():
            paths = list(self.cache_dir.glob("*.json"))
        else:
            paths = []

        removed = 0
        for path in paths:
            if _remove_quietly(path):
                removed += 1
        return removed


def _remove_quietly(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("could not remove %s: %s", path, e)
        return False
    return True
