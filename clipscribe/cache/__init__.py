"""Content-addressed transcript cache."""

from .store import (
    ContentCache,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    hash_bytes,
    hash_file,
)

__all__ = [
    "ContentCache",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "hash_bytes",
    "hash_file",
]
