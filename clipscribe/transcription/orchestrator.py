"""Sequential chunked transcription with progress, ETA and cancellation.

The orchestrator drives a single external :class:`Transcriber` over either the
whole source or its planned chunk windows, strictly one chunk at a time.
Every chunk runs two phases (resample, transcribe); their fractional progress
is folded into one overall percentage and ETA. Captions returned for a chunk
are shifted onto the global timeline by the chunk's start time.

Cancellation is cooperative: the :class:`CancelToken` is checked at the top
of every chunk and before finalization. A phase already running is allowed to
finish, but its progress is no longer reported, no further chunk starts and
the completion callback is never invoked.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from clipscribe.audio.buffer import SampleBuffer
from clipscribe.audio.wav import encode_wav
from clipscribe.chunking import plan_chunks, slice_window
from clipscribe.config import TranscriptionConfig
from clipscribe.errors import (
    CapabilityError,
    ClipscribeError,
    ExternalPhaseError,
    ValidationError,
)
from clipscribe.timestamps.models import CacheEntry, Caption, ChunkWindow
from clipscribe.transcription.progress import ProgressTracker, ProgressUpdate, format_eta
from clipscribe.transcription.protocols import Transcriber
from clipscribe.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

__all__ = ["TranscriptionOrchestrator"]

T = TypeVar("T")

StatusFn = Callable[[str], None]
ProgressCallback = Callable[[ProgressUpdate], None]
CompleteFn = Callable[[CacheEntry, float], None]

_PHASES = ("Resampling audio", "Transcribing")


class TranscriptionOrchestrator:
    """Drive a transcriber over a source buffer and stitch the captions.

    Attributes:
        transcriber: External transcriber (injected for testability).
        config: Chunking, debug and model settings.

    Examples:
        >>> orchestrator = TranscriptionOrchestrator(my_transcriber)
        >>> entry = orchestrator.run(buffer, file_hash=h, file_name="a.wav", file_size=10)
        >>> entry.captions[0].start_ms
        0.0
    """

    def __init__(
        self,
        transcriber: Transcriber,
        config: TranscriptionConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transcriber = transcriber
        self.config = config or TranscriptionConfig()
        self._clock = clock

    def chunks_to_process(self, total: int) -> int:
        """Number of chunks actually run, honoring the debug limit."""
        cfg = self.config
        if cfg.debug_mode and cfg.use_chunking:
            if cfg.debug_chunks < 1:
                raise ValidationError(f"debug_chunks must be >= 1, got {cfg.debug_chunks}")
            return min(cfg.debug_chunks, total)
        return total

    def run(
        self,
        source: SampleBuffer,
        *,
        file_hash: str,
        file_name: str,
        file_size: int,
        cancel_token: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
        on_status: StatusFn | None = None,
        on_complete: CompleteFn | None = None,
    ) -> CacheEntry | None:
        """Transcribe *source* and return the finished cache entry.

        Parameters:
            source (SampleBuffer): Decoded source audio.
            file_hash (str): Content hash of the source file.
            file_name (str): Original file name, stored in the entry.
            file_size (int): Source file size in bytes.
            cancel_token (CancelToken, optional): Cooperative cancellation flag.
            on_progress (callable, optional): Receives one
                :class:`ProgressUpdate` per phase-progress tick.
            on_status (callable, optional): Receives human-readable status.
            on_complete (callable, optional): Called with ``(entry,
                total_seconds)`` when the run finishes uncancelled.

        Returns:
            CacheEntry | None: The transcript, or ``None`` when cancelled.

        Raises:
            CapabilityError: The transcriber cannot run here.
            ExternalPhaseError: Model fetch, resample or transcribe failed.
            ValidationError: Invalid chunk configuration.
        """
        token = cancel_token or CancelToken()
        started = self._clock()

        def status(text: str) -> None:
            if on_status is not None and not token.cancelled:
                on_status(text)

        try:
            entry = self._run(
                source, token, started, status, on_progress, file_hash, file_name, file_size
            )
        except ClipscribeError as exc:
            if token.cancelled:
                logger.info(f"Run cancelled while failing: {exc}")
                return None
            logger.error(f"Transcription failed: {exc}")
            status(f"Error: {exc}")
            raise

        if entry is None or token.cancelled:
            logger.info(f"Transcription of {file_name} cancelled")
            return None

        total_time = self._clock() - started
        status(f"Transcription complete! (Total time: {format_eta(total_time)})")
        if on_complete is not None:
            on_complete(entry, total_time)
        return entry

    def _run(
        self,
        source: SampleBuffer,
        token: CancelToken,
        started: float,
        status: StatusFn,
        on_progress: ProgressCallback | None,
        file_hash: str,
        file_name: str,
        file_size: int,
    ) -> CacheEntry | None:
        cfg = self.config
        model = cfg.model_name

        status("Checking environment compatibility...")
        try:
            report = self.transcriber.check_support(model)
        except Exception as exc:
            raise CapabilityError(f"Capability check failed: {exc}") from exc
        if not report.supported:
            raise CapabilityError(
                f"Transcriber is not supported in this environment: {report.reason}"
            )

        status("Downloading model...")

        def on_model_progress(p: float) -> None:
            status(f"Downloading model ({round(p * 100)}%)...")

        self._phase("model", None, lambda: self.transcriber.fetch_model(model, on_model_progress))

        if cfg.use_chunking:
            status("Chunking audio...")
        windows = plan_chunks(source.duration_sec, cfg.planned_chunks)
        n = self.chunks_to_process(len(windows))
        tracker = ProgressTracker(n, clock=self._clock, started_at=started)
        logger.info(
            f"Transcribing {file_name}: dur={source.duration_sec:.2f}s, "
            f"chunks={n}/{len(windows)}, model={model}"
        )

        captions: list[Caption] = []
        for i in range(n):
            if token.cancelled:
                return None
            chunk_captions = self._run_chunk(
                source, windows[i], n, tracker, token, status, on_progress
            )
            _warn_on_overlap(captions[-1] if captions else None, chunk_captions, i)
            captions.extend(chunk_captions)

        if token.cancelled:
            return None

        return CacheEntry(
            hash=file_hash,
            file_name=file_name,
            file_size=file_size,
            processed_at=datetime.now().isoformat(timespec="seconds"),
            num_chunks=cfg.planned_chunks,
            chunking_enabled=cfg.use_chunking,
            model_used=model,
            captions=captions,
        )

    def _run_chunk(
        self,
        source: SampleBuffer,
        window: ChunkWindow,
        total: int,
        tracker: ProgressTracker,
        token: CancelToken,
        status: StatusFn,
        on_progress: ProgressCallback | None,
    ) -> list[Caption]:
        i = window.index
        label = f" (chunk {i + 1}/{total})" if self.config.use_chunking else ""
        chunk = slice_window(source, window)
        if chunk.num_frames == 0:
            logger.warning(f"Skipping empty chunk {i}")
            return []
        wav = encode_wav(chunk)

        def reporter(phase_index: int) -> Callable[[float], None]:
            def report(p: float) -> None:
                if token.cancelled:
                    return
                update = tracker.update(i, phase_index, p)
                if on_progress is not None:
                    on_progress(update)
                status(f"{_PHASES[phase_index]}{label} ({round(p * 100)}%)...")

            return report

        status(f"{_PHASES[0]}{label}...")
        waveform = self._phase("resample", i, lambda: self.transcriber.resample(wav, reporter(0)))

        status(f"{_PHASES[1]}{label}...")
        segments = self._phase(
            "transcribe",
            i,
            lambda: self.transcriber.transcribe(waveform, self.config.model_name, reporter(1)),
        )
        raw = self._phase("transcribe", i, lambda: self.transcriber.to_captions(segments))

        offset_ms = window.source_start_sec * 1000.0
        kept = [c.shifted(offset_ms) for c in raw if c.start_ms != c.end_ms]
        logger.debug(f"Chunk {i}: {len(kept)}/{len(raw)} captions kept, offset={offset_ms:.0f}ms")
        return kept

    @staticmethod
    def _phase(name: str, chunk_index: int | None, call: Callable[[], T]) -> T:
        """Run one external phase, wrapping failures in ExternalPhaseError."""
        try:
            return call()
        except ClipscribeError:
            raise
        except Exception as exc:
            where = "" if chunk_index is None else f" (chunk {chunk_index + 1})"
            raise ExternalPhaseError(name, f"{name} failed{where}: {exc}", chunk_index) from exc



def _warn_on_overlap(previous: Caption | None, chunk: list[Caption], chunk_index: int) -> None:
    """Log captions that start before the caption ahead of them has ended.

    The timeline is kept as the transcriber produced it.
    """
    for caption in chunk:
        if previous is not None and caption.start_ms < previous.end_ms:
            logger.warning(
                f"Chunk {chunk_index + 1}: caption '{caption.text.strip()}' at "
                f"{caption.start_ms:.0f}ms starts before the previous one ends "
                f"({previous.end_ms:.0f}ms)"
            )
        previous = caption
