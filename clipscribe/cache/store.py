"""Content-addressed persistence of finished transcripts.

Transcripts are keyed by the SHA-256 hex digest of the raw source bytes, so a
renamed copy of the same file still hits the cache. Reads never fail: absence,
I/O errors and malformed records are all reported as a miss. Writes are
best-effort and never abort a run.
"""

from __future__ import annotations

import hashlib
import json
import logging
import pathlib
from collections.abc import Iterator
from typing import Any, Protocol

from clipscribe.errors import CacheReadError, CacheWriteError
from clipscribe.timestamps.models import CacheEntry

logger = logging.getLogger(__name__)

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "ContentCache",
    "hash_bytes",
    "hash_file",
]

_READ_BLOCK = 1 << 20


def hash_bytes(data: bytes) -> str:
    """Return the SHA-256 hex digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def hash_file(path: pathlib.Path | str) -> str:
    """Return the SHA-256 hex digest of a file's bytes, read in blocks."""
    digest = hashlib.sha256()
    with pathlib.Path(path).open("rb") as fh:
        for block in iter(lambda: fh.read(_READ_BLOCK), b""):
            digest.update(block)
    return digest.hexdigest()


class KeyValueStore(Protocol):
    """Minimal key/value persistence used only by :class:`ContentCache`."""

    def get(self, key: str) -> Any | None:
        """Return the stored value or ``None`` when absent."""

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""

    def remove(self, key: str) -> None:
        """Delete *key*; missing keys are ignored."""


class MemoryStore:
    """In-process store; values are deep-copied through JSON on write."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class JsonFileStore:
    """Directory-backed store holding one ``<key>.json`` document per key.

    Attributes:
        directory: Root directory; created lazily on first write.
    """

    def __init__(self, directory: pathlib.Path | str) -> None:
        self.directory = pathlib.Path(directory)

    def _path(self, key: str) -> pathlib.Path:
        if not key or not all(c.isalnum() or c in "-_" for c in key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(value, fh, indent=2)
        tmp.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> Iterator[str]:
        if not self.directory.is_dir():
            return iter(())
        return iter(sorted(p.stem for p in self.directory.glob("*.json")))


class ContentCache:
    """Hash-addressed transcript cache over a :class:`KeyValueStore`.

    A hit is only ever *returned*; deciding whether to reuse it or reprocess
    the file is left to the caller.

    Examples:
        >>> cache = ContentCache(MemoryStore())
        >>> cache.get("deadbeef") is None
        True
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _read(self, file_hash: str) -> CacheEntry | None:
        try:
            record = self.store.get(file_hash)
            if record is None:
                return None
            return CacheEntry.model_validate(record)
        except Exception as exc:
            raise CacheReadError(f"Unreadable cache record {file_hash}: {exc}") from exc

    def _write(self, file_hash: str, entry: CacheEntry) -> None:
        try:
            self.store.set(file_hash, entry.to_record())
        except Exception as exc:
            raise CacheWriteError(f"Could not save {file_hash}: {exc}") from exc

    def get(self, file_hash: str) -> CacheEntry | None:
        """Return the cached entry for *file_hash*, or ``None`` on a miss.

        Read failures are logged and treated as a miss.
        """
        try:
            entry = self._read(file_hash)
        except CacheReadError as exc:
            logger.warning(f"Cache read failed, treating as miss: {exc}")
            return None
        logger.debug(f"Cache lookup {file_hash[:12]}: {'hit' if entry else 'miss'}")
        return entry

    def put(self, file_hash: str, entry: CacheEntry) -> bool:
        """Persist *entry* under *file_hash*.

        Returns:
            bool: ``True`` when the write succeeded. Failures are logged and
                swallowed; the caller's run is never aborted.
        """
        try:
            self._write(file_hash, entry)
        except CacheWriteError as exc:
            logger.error(f"Failed to save to cache: {exc}")
            return False
        logger.info(f"Saved {len(entry.captions)} captions to cache ({file_hash[:12]})")
        return True

    def remove(self, file_hash: str) -> None:
        """Forget the entry for *file_hash*."""
        self.store.remove(file_hash)
