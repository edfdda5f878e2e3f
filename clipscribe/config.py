"""Configuration dataclasses for the transcription and preview pipeline.

This module defines configuration objects that group related settings,
reducing parameter explosion across the orchestrator, session and CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

from clipscribe.utils.constant import (
    DEFAULT_DEBUG_CHUNKS,
    DEFAULT_MODEL_NAME,
    DEFAULT_NUM_CHUNKS,
    DEFAULT_USE_CHUNKING,
    DISPLAY_MAX_CHARS,
    DISPLAY_MIN_CHARS,
)


@dataclass
class TranscriptionConfig:
    """Groups transcription-related settings.

    Attributes:
        use_chunking: Split the source into ``num_chunks`` windows.
        num_chunks: Number of equal windows when chunking is enabled.
        debug_mode: Only process the first ``debug_chunks`` chunks.
        debug_chunks: Chunk limit applied in debug mode.
        model_name: Model identifier passed to the transcriber.

    """

    use_chunking: bool = DEFAULT_USE_CHUNKING
    num_chunks: int = DEFAULT_NUM_CHUNKS
    debug_mode: bool = False
    debug_chunks: int = DEFAULT_DEBUG_CHUNKS
    model_name: str = DEFAULT_MODEL_NAME

    @property
    def planned_chunks(self) -> int:
        """Number of windows the source is split into."""
        return self.num_chunks if self.use_chunking else 1


@dataclass
class DisplayConfig:
    """Groups caption display batching thresholds.

    Attributes:
        min_chars: Length a group needs before a sentence end closes it.
        max_chars: Length that always closes a group.

    """

    min_chars: int = DISPLAY_MIN_CHARS
    max_chars: int = DISPLAY_MAX_CHARS


@dataclass
class UIConfig:
    """Groups UI and logging settings.

    Attributes:
        verbose: Enable detailed diagnostic output.
        quiet: Suppress non-error output.
        no_progress: Disable progress bars.

    """

    verbose: bool = False
    quiet: bool = False
    no_progress: bool = False
