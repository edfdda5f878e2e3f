"""Chunked transcription orchestration, progress tracking and file service."""

from .orchestrator import TranscriptionOrchestrator
from .progress import ProgressTracker, ProgressUpdate, format_eta
from .protocols import SupportReport, Transcriber
from .service import ProcessResult, process_file

__all__ = [
    "TranscriptionOrchestrator",
    "ProgressTracker",
    "ProgressUpdate",
    "format_eta",
    "SupportReport",
    "Transcriber",
    "ProcessResult",
    "process_file",
]
