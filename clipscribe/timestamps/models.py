"""Common data models for captions, chunk windows and cached transcripts.

This module defines pydantic models that are shared across chunk planning,
transcription, caching and formatting. Persisted models serialize with
camelCase keys (``startMs``, ``fileName`` ...) so cache records keep the
documented layout.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "Caption",
    "ChunkWindow",
    "CaptionGroup",
    "SpeedEdit",
    "CacheEntry",
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Caption(_CamelModel):
    """One transcribed token with its time range on the global timeline."""

    text: str = Field(..., description="Transcribed text of the token.")
    start_ms: float = Field(..., description="Start time in milliseconds.")
    end_ms: float = Field(..., description="End time in milliseconds.")
    confidence: float | None = Field(None, description="Optional confidence score.")

    @model_validator(mode="after")
    def _check_order(self) -> Caption:
        if self.start_ms > self.end_ms:
            raise ValueError(f"start_ms ({self.start_ms}) must be <= end_ms ({self.end_ms})")
        return self

    @property
    def duration_ms(self) -> float:
        return self.end_ms - self.start_ms

    def shifted(self, offset_ms: float) -> Caption:
        """Return a copy moved *offset_ms* later on the timeline."""
        return self.model_copy(
            update={"start_ms": self.start_ms + offset_ms, "end_ms": self.end_ms + offset_ms}
        )


class ChunkWindow(BaseModel):
    """A time slice of the source submitted independently for transcription."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Zero-based chunk index.")
    source_start_sec: float = Field(..., description="Window start on the source (s).")
    source_end_sec: float = Field(..., description="Window end on the source (s).")

    @property
    def duration_sec(self) -> float:
        return self.source_end_sec - self.source_start_sec


class CaptionGroup(BaseModel):
    """Half-open index range ``[start, stop)`` of captions shown together."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    stop: int = Field(..., ge=0)

    @property
    def indices(self) -> range:
        return range(self.start, self.stop)

    def __len__(self) -> int:
        return self.stop - self.start


class SpeedEdit(BaseModel):
    """A speed change over an inclusive range of timeline word indices."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique edit identifier.")
    start_word_idx: int = Field(..., ge=0)
    end_word_idx: int = Field(..., ge=0)
    rate: float = Field(..., gt=0)

    @model_validator(mode="after")
    def _check_range(self) -> SpeedEdit:
        if self.start_word_idx > self.end_word_idx:
            raise ValueError("start_word_idx must be <= end_word_idx")
        return self

    def overlaps(self, start_word_idx: int, end_word_idx: int) -> bool:
        """Whether this edit shares any index with ``[start, end]``."""
        return self.start_word_idx <= end_word_idx and start_word_idx <= self.end_word_idx


class CacheEntry(_CamelModel):
    """A finished transcript keyed by the content hash of its source file."""

    hash: str = Field(..., description="SHA-256 hex digest of the file bytes.")
    file_name: str
    file_size: int = Field(..., ge=0)
    processed_at: str = Field(..., description="ISO-8601 local processing timestamp.")
    num_chunks: int = Field(..., ge=1)
    chunking_enabled: bool
    model_used: str
    captions: list[Caption] = Field(default_factory=list)

    def to_record(self) -> dict:
        """Return the camelCase JSON-compatible record."""
        return self.model_dump(mode="json", by_alias=True)
