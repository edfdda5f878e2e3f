"""Early ``.env`` loading for clipscribe's env-driven defaults.

:mod:`clipscribe.utils.constant` reads chunking, cache and WSOLA settings from
the environment at import time, so the dotenv file has to be applied before
that module is first imported. By default the file sits at the repository
root; ``CLIPSCRIBE_ENV_FILE`` points at another one.

Usage (call as soon as possible in your CLI / entry-point):

    from clipscribe.utils.env_loader import load_project_env
    load_project_env()
"""

from __future__ import annotations

import functools
import logging
import os
import pathlib
from typing import Final

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_REPO_ROOT: Final[pathlib.Path] = pathlib.Path(__file__).resolve().parents[2]
_ENV_FILE: Final[pathlib.Path] = _REPO_ROOT / ".env"


def env_file() -> pathlib.Path:
    """Return the dotenv path, honoring ``CLIPSCRIBE_ENV_FILE``."""
    override = os.getenv("CLIPSCRIBE_ENV_FILE")
    return pathlib.Path(override).expanduser() if override else _ENV_FILE


def load_project_env(force: bool = False) -> bool:
    """Apply the dotenv file to ``os.environ`` without overriding the shell.

    Only the first call does any work; pass ``force=True`` to re-read the
    file, e.g. after ``CLIPSCRIBE_ENV_FILE`` changed.

    Args:
        force: Clear the memoized result and load again.

    Returns:
        bool: Whether a dotenv file was found and applied.
    """
    if force:
        _load_once.cache_clear()
    return _load_once()


@functools.lru_cache(maxsize=1)
def _load_once() -> bool:
    path = env_file()
    if not path.is_file():
        return False
    load_dotenv(dotenv_path=path, override=False)
    logger.debug(f"Loaded environment overrides from {path}")
    return True


__all__ = ["env_file", "load_project_env"]
