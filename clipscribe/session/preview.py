"""Single-slot temporary file holding the current preview WAV."""

from __future__ import annotations

import logging
import pathlib
import tempfile

logger = logging.getLogger(__name__)

__all__ = ["PreviewSlot"]


class PreviewSlot:
    """Own at most one live preview file at a time.

    Every :meth:`replace` writes a fresh temporary file and removes the
    previous one; :meth:`release` removes whatever is still live.

    Args:
        directory: Directory for preview files; the system temp dir when
            ``None``.
        prefix: File name prefix.

    Examples:
        >>> with PreviewSlot() as slot:
        ...     path = slot.replace(wav_bytes)
        ...     path.exists()
        True
    """

    def __init__(
        self, directory: pathlib.Path | str | None = None, prefix: str = "clipscribe_preview_"
    ) -> None:
        self.directory = pathlib.Path(directory) if directory is not None else None
        self.prefix = prefix
        self._path: pathlib.Path | None = None

    @property
    def path(self) -> pathlib.Path | None:
        """Path of the live preview file, or ``None``."""
        return self._path

    def replace(self, blob: bytes) -> pathlib.Path:
        """Write *blob* to a new preview file and release the previous one.

        Args:
            blob: Encoded WAV bytes.

        Returns:
            pathlib.Path: The new live preview path.
        """
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            prefix=self.prefix,
            suffix=".wav",
            dir=self.directory,
            delete=False,
        ) as fh:
            fh.write(blob)
            new_path = pathlib.Path(fh.name)
        self.release()
        self._path = new_path
        logger.debug(f"Preview written to {new_path} ({len(blob)} bytes)")
        return new_path

    def release(self) -> None:
        """Delete the live preview file, if any."""
        if self._path is None:
            return
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(f"Could not remove preview {self._path}: {exc}")
        self._path = None

    def __enter__(self) -> PreviewSlot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
