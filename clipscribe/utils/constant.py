"""Project-wide constants for convenient reuse."""

from __future__ import annotations

import os
import pathlib
import sys
from typing import Final

from clipscribe.utils.env_loader import load_project_env

# Ensure .env is loaded exactly once at import time for the whole project
if "pytest" not in sys.modules:
    load_project_env()


# Repository root resolved relative to this file (utils/constant.py → package → repo)
REPO_ROOT: Final[pathlib.Path] = pathlib.Path(__file__).resolve().parents[2]

# Default path of the dotenv file containing runtime overrides
ENV_FILE: Final[pathlib.Path] = REPO_ROOT / ".env"

# Number of equal-length windows used when chunked transcription is enabled.
DEFAULT_NUM_CHUNKS: Final[int] = int(os.getenv("NUM_CHUNKS", "4"))

# Chunked transcription is opt-in, matching the interactive default.
DEFAULT_USE_CHUNKING: Final[bool] = os.getenv("USE_CHUNKING", "False").lower() == "true"

# Debug runs only transcribe the first N chunks.
DEFAULT_DEBUG_CHUNKS: Final[int] = int(os.getenv("DEBUG_CHUNKS", "1"))

# Model identifier handed to the external transcriber and stored in the cache.
DEFAULT_MODEL_NAME: Final[str] = os.getenv("CLIPSCRIBE_MODEL_NAME", "tiny.en")

# Root log level used when neither --verbose nor --quiet is given.
DEFAULT_LOG_LEVEL: Final[str] = os.getenv("CLIPSCRIBE_LOG_LEVEL", "INFO")

# Record and timestamp format shared by every entry point.
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Import path ("module:attribute") of the transcriber factory used by the CLI.
DEFAULT_TRANSCRIBER: Final[str] = os.getenv("CLIPSCRIBE_TRANSCRIBER", "")

# Directory holding one JSON document per cached transcript.
CACHE_DIR: Final[pathlib.Path] = pathlib.Path(
    os.getenv("CLIPSCRIBE_CACHE_DIR", str(pathlib.Path.home() / ".cache" / "clipscribe"))
)

# WSOLA analysis window length in milliseconds (hop = window/2, search = window/4).
WSOLA_WINDOW_MS: Final[float] = float(os.getenv("WSOLA_WINDOW_MS", "30"))

# Display batching thresholds for caption groups.
DISPLAY_MIN_CHARS: Final[int] = int(os.getenv("DISPLAY_MIN_CHARS", "80"))
DISPLAY_MAX_CHARS: Final[int] = int(os.getenv("DISPLAY_MAX_CHARS", "200"))

# Phases run per chunk by the orchestrator: 0 = resample, 1 = transcribe.
NUM_PHASES: Final[int] = 2

# ETA is only reported once overall progress reaches this percentage.
ETA_MIN_PROGRESS_PCT: Final[float] = 1.0

# Supported audio/video file formats accepted by the CLI
SUPPORTED_AUDIO_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".wav",
    ".mp3",
    ".flac",
    ".ogg",
    ".m4a",
    ".aac",
    ".wma",
    ".opus",
})

SUPPORTED_VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".mp4",
    ".mkv",
    ".avi",
    ".mov",
    ".webm",
    ".flv",
    ".wmv",
})

SUPPORTED_EXTENSIONS: Final[frozenset[str]] = (
    SUPPORTED_AUDIO_EXTENSIONS | SUPPORTED_VIDEO_EXTENSIONS
)
