"""Unit tests for project-wide constants."""

from __future__ import annotations

import importlib

import pytest

import clipscribe.utils.constant as constant


@pytest.fixture
def reload_constant(monkeypatch: pytest.MonkeyPatch):
    """Reload the constants module, restoring defaults afterwards."""
    yield lambda: importlib.reload(constant)
    monkeypatch.undo()
    importlib.reload(constant)


def test_env_overrides_are_read(monkeypatch: pytest.MonkeyPatch, reload_constant) -> None:
    """Environment variables override the built-in defaults."""
    monkeypatch.setenv("NUM_CHUNKS", "7")
    monkeypatch.setenv("USE_CHUNKING", "TRUE")
    monkeypatch.setenv("CLIPSCRIBE_CACHE_DIR", "/tmp/clipscribe-test-cache")

    reloaded = reload_constant()

    assert reloaded.DEFAULT_NUM_CHUNKS == 7
    assert reloaded.DEFAULT_USE_CHUNKING is True
    assert str(reloaded.CACHE_DIR) == "/tmp/clipscribe-test-cache"


def test_supported_extensions_cover_audio_and_video() -> None:
    """The accepted extension set is the union of audio and video types."""
    assert ".wav" in constant.SUPPORTED_EXTENSIONS
    assert ".mp4" in constant.SUPPORTED_EXTENSIONS
    assert constant.SUPPORTED_AUDIO_EXTENSIONS.isdisjoint(constant.SUPPORTED_VIDEO_EXTENSIONS)


def test_wsola_window_default() -> None:
    """The WSOLA window defaults to 30 ms."""
    assert constant.WSOLA_WINDOW_MS == 30.0
