"""Unit tests for the transcript output formatters."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from clipscribe.config import DisplayConfig
from clipscribe.formatting import (
    FORMATTERS,
    format_caption_line,
    format_clock,
    get_formatter,
    get_formatter_spec,
    output_path_for,
    render_transcript,
)
from clipscribe.timestamps.models import CacheEntry, Caption


@pytest.fixture
def entry() -> CacheEntry:
    """A short transcript with one sentence per display group."""
    return CacheEntry(
        hash="d" * 64,
        file_name="talk.wav",
        file_size=10,
        processed_at="2024-06-01T12:00:00",
        num_chunks=1,
        chunking_enabled=False,
        model_used="tiny.en",
        captions=[
            Caption(text=" Hello", start_ms=0, end_ms=480, confidence=0.98765),
            Caption(text=" world.", start_ms=480, end_ms=1_020, confidence=None),
            Caption(text=" Bye.", start_ms=3_723_004.7, end_ms=3_723_500, confidence=0.5),
        ],
    )


@pytest.mark.parametrize(
    "ms,expected",
    [
        (0, "00:00:00,000"),
        (1_020, "00:00:01,020"),
        (61_999.9, "00:01:01,999"),
        (3_723_004, "01:02:03,004"),
    ],
)
def test_format_clock(ms: float, expected: str) -> None:
    """Clock strings truncate to whole milliseconds."""
    assert format_clock(ms) == expected


def test_export_line_format(entry: CacheEntry) -> None:
    """Export lines carry the range, text and three-decimal confidence."""
    assert format_caption_line(entry.captions[0]) == (
        "[00:00:00,000 --> 00:00:00,480]  Hello (confidence: 0.988)"
    )
    assert format_caption_line(entry.captions[1]).endswith("(confidence: N/A)")


def test_txt_has_one_line_per_caption(entry: CacheEntry) -> None:
    """The txt formatter emits one export line per caption."""
    lines = get_formatter("txt")(entry).splitlines()
    assert len(lines) == 3
    assert lines[2].startswith("[01:02:03,004 --> 01:02:03,500]")


def test_json_is_the_cache_record(entry: CacheEntry) -> None:
    """The json formatter round-trips through the cache record."""
    text = get_formatter("JSON")(entry)
    assert text.startswith('{\n  "hash"')
    assert CacheEntry.model_validate(json.loads(text)) == entry


def test_srt_has_one_cue_per_display_group(entry: CacheEntry) -> None:
    """Sentence ends close groups once long enough."""
    srt = get_formatter("srt")(entry, display=DisplayConfig(min_chars=5))
    assert srt.split("\n") == [
        "1",
        "00:00:00,000 --> 00:00:01,020",
        "Hello world.",
        "",
        "2",
        "01:02:03,004 --> 01:02:03,500",
        "Bye.",
        "",
    ]


def test_srt_highlighting(entry: CacheEntry) -> None:
    """Highlighting bolds each word."""
    srt = get_formatter("srt")(entry, highlight_words=True, display=DisplayConfig(min_chars=5))
    assert "<b>Hello</b> <b>world.</b>" in srt


def test_registry_metadata() -> None:
    """Every registered format declares its extension."""
    assert set(FORMATTERS) == {"txt", "json", "srt"}
    assert get_formatter_spec("srt").file_extension == ".srt"
    assert get_formatter_spec("srt").supports_highlighting is True


def test_unknown_format_raises() -> None:
    """Unknown formats raise ``ValueError`` listing the supported ones."""
    with pytest.raises(ValueError, match="Supported formats"):
        get_formatter("vtt")
    with pytest.raises(ValueError):
        get_formatter_spec("docx")


def test_render_transcript_forwards_highlighting_only_where_supported(entry: CacheEntry) -> None:
    """``highlight_words`` bolds SRT words and is ignored by txt."""
    assert "<b>" in render_transcript(entry, "SRT", highlight_words=True)
    txt = render_transcript(entry, "txt", highlight_words=True)
    assert "<b>" not in txt
    assert len(txt.splitlines()) == 3


def test_output_path_for() -> None:
    """Exports default to the source stem with the format extension."""
    assert output_path_for("media/talk.mp4", "srt") == Path("media/talk.srt")
    assert output_path_for(Path("media/talk.mp4"), "json", "out") == Path("out/talk.json")


def test_render_transcript_forwards_display_thresholds(entry: CacheEntry) -> None:
    """A tight ``max_chars`` gives every SRT word its own cue; txt ignores it."""
    tight = DisplayConfig(min_chars=1, max_chars=1)
    srt = render_transcript(entry, "srt", display=tight)
    assert srt.split("\n")[::4] == ["1", "2", "3"]
    assert "Hello\n\n2" in srt
    txt = render_transcript(entry, "txt", display=tight)
    assert txt == render_transcript(entry, "txt")
