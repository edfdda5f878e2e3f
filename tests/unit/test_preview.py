"""Unit tests for the single-slot preview file."""

from __future__ import annotations

from pathlib import Path

from clipscribe.session import PreviewSlot


def test_replace_releases_previous_file(tmp_path: Path) -> None:
    """Only the newest preview file exists after a replace."""
    slot = PreviewSlot(tmp_path)
    first = slot.replace(b"one")
    second = slot.replace(b"two")
    assert not first.exists()
    assert second.read_bytes() == b"two"
    assert slot.path == second
    assert list(tmp_path.iterdir()) == [second]


def test_release_is_idempotent(tmp_path: Path) -> None:
    """Releasing twice, or with nothing live, is harmless."""
    slot = PreviewSlot(tmp_path)
    slot.release()
    path = slot.replace(b"data")
    slot.release()
    slot.release()
    assert not path.exists()
    assert slot.path is None


def test_context_manager_releases_on_exit(tmp_path: Path) -> None:
    """Leaving the ``with`` block removes the live file."""
    with PreviewSlot(tmp_path) as slot:
        path = slot.replace(b"data")
        assert path.exists()
    assert not path.exists()
