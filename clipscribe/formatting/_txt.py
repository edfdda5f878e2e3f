"""Formatter for the plain text (.txt) export lines."""

from clipscribe.timestamps.models import CacheEntry, Caption


def format_clock(ms: float) -> str:
    """Format milliseconds as ``HH:MM:SS,mmm`` (truncating sub-millisecond parts)."""
    total = max(int(ms), 0)
    hours, rest = divmod(total, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def format_caption_line(caption: Caption) -> str:
    """Render one caption as ``[start --> end] text (confidence: X.XXX)``."""
    confidence = "N/A" if caption.confidence is None else f"{caption.confidence:.3f}"
    return (
        f"[{format_clock(caption.start_ms)} --> {format_clock(caption.end_ms)}] "
        f"{caption.text} (confidence: {confidence})"
    )


def to_txt(entry: CacheEntry, **kwargs: object) -> str:
    """Format a transcript as one export line per caption.

    Args:
        entry: The transcript to render.
        **kwargs: Additional keyword arguments (ignored for plain text output).

    Returns:
        str: Newline-separated export lines; empty for an empty timeline.
    """
    return "\n".join(format_caption_line(c) for c in entry.captions)
