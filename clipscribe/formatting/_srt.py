"""Formatter for SubRip Subtitle format (.srt)."""

from clipscribe.chunking.grouping import group_captions_for_display
from clipscribe.config import DisplayConfig
from clipscribe.timestamps.models import CacheEntry

from ._txt import format_clock


def to_srt(
    entry: CacheEntry,
    highlight_words: bool = False,
    display: DisplayConfig | None = None,
) -> str:
    """Convert a transcript to SRT, one cue per display group.

    Args:
        entry: The transcript containing the caption timeline.
        highlight_words: If ``True``, wrap each word in ``<b>`` tags.
        display: Group length thresholds; the env-driven defaults otherwise.

    Returns:
        A string in SRT format.
    """
    display = display or DisplayConfig()
    captions = entry.captions
    groups = group_captions_for_display(
        captions, min_chars=display.min_chars, max_chars=display.max_chars
    )
    srt_lines: list[str] = []
    for i, group in enumerate(groups, start=1):
        words = [captions[j].text.strip() for j in group.indices]
        if highlight_words:
            text = " ".join(f"<b>{w}</b>" for w in words)
        else:
            text = " ".join(words)
        srt_lines.append(str(i))
        srt_lines.append(
            f"{format_clock(captions[group.start].start_ms)} --> "
            f"{format_clock(captions[group.stop - 1].end_ms)}"
        )
        srt_lines.append(text)
        srt_lines.append("")
    return "\n".join(srt_lines)
