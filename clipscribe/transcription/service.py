"""Per-file processing: decode, cache lookup, transcription and persistence.

A cache hit is never applied automatically; it is offered to the caller's
``choose_cached`` callback, which decides between reusing the transcript and
reprocessing the file. Failed or cancelled runs leave no cache entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.cache.store import ContentCache, hash_file
from clipscribe.errors import DecodeError
from clipscribe.timestamps.models import CacheEntry
from clipscribe.transcription.orchestrator import (
    ProgressCallback,
    StatusFn,
    TranscriptionOrchestrator,
)
from clipscribe.utils.audio_io import load_audio
from clipscribe.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

__all__ = ["ProcessResult", "process_file"]


@dataclass
class ProcessResult:
    """Outcome of :func:`process_file`.

    Attributes:
        file_hash: SHA-256 of the source file.
        source: Decoded source buffer, needed for sub-clip previews.
        entry: Transcript, or ``None`` when the run was cancelled.
        from_cache: Whether *entry* came from the cache.
    """

    file_hash: str
    source: SampleBuffer
    entry: CacheEntry | None
    from_cache: bool = False


def process_file(
    path: Path | str,
    orchestrator: TranscriptionOrchestrator,
    *,
    cache: ContentCache | None = None,
    choose_cached: Callable[[CacheEntry], bool] | None = None,
    cancel_token: CancelToken | None = None,
    on_progress: ProgressCallback | None = None,
    on_status: StatusFn | None = None,
) -> ProcessResult:
    """Transcribe one media file, consulting and filling the cache.

    Args:
        path: Media file to process.
        orchestrator: Configured orchestrator wrapping the transcriber.
        cache: Transcript cache; caching is skipped when ``None``.
        choose_cached: Called with a cache hit; return ``True`` to reuse it.
            Without a callback hits are ignored and the file is reprocessed.
        cancel_token: Cooperative cancellation flag.
        on_progress: Receives progress ticks from the orchestrator.
        on_status: Receives human-readable status lines.

    Returns:
        ProcessResult: Decoded source plus the transcript.

    Raises:
        DecodeError: The file cannot be read or decoded.
        CapabilityError: The transcriber cannot run here.
        ExternalPhaseError: A transcriber phase failed.
    """
    path = Path(path)

    def status(text: str) -> None:
        if on_status is not None:
            on_status(text)

    try:
        status("Checking cache...")
        try:
            file_hash = hash_file(path)
            file_size = path.stat().st_size
        except OSError as exc:
            raise DecodeError(f"Cannot read {path.name}: {exc}") from exc
        logger.debug(f"Hashed {path.name}: {file_hash}")

        cached = cache.get(file_hash) if cache is not None else None
        if cached is not None and choose_cached is not None and choose_cached(cached):
            status("Loading from cache...")
            source = load_audio(path)
            status("Loaded from cache!")
            logger.info(f"Loaded {len(cached.captions)} captions for {path.name} from cache")
            return ProcessResult(file_hash=file_hash, source=source, entry=cached, from_cache=True)

        source = load_audio(path)
    except DecodeError as exc:
        status(f"Error: {exc}")
        raise

    entry = orchestrator.run(
        source,
        file_hash=file_hash,
        file_name=path.name,
        file_size=file_size,
        cancel_token=cancel_token,
        on_progress=on_progress,
        on_status=on_status,
    )
    if entry is not None and cache is not None:
        status("Saving to cache...")
        cache.put(file_hash, entry)
    return ProcessResult(file_hash=file_hash, source=source, entry=entry)
