"""Transcript export formats.

Every format renders a :class:`~clipscribe.timestamps.models.CacheEntry`:

- ``txt``: one export line per caption with its confidence,
- ``json``: the camelCase cache record,
- ``srt``: SubRip cues built from display groups.

New formats are added by writing a ``to_<name>(entry, **options)`` function
and registering it in ``FORMATTERS``.
"""

from __future__ import annotations

import pathlib
from collections.abc import Callable
from dataclasses import dataclass

from clipscribe.config import DisplayConfig
from clipscribe.timestamps.models import CacheEntry

from ._json import to_json
from ._srt import to_srt
from ._txt import format_caption_line, format_clock, to_txt

__all__ = [
    "FORMATTERS",
    "FormatterSpec",
    "get_formatter",
    "get_formatter_spec",
    "render_transcript",
    "output_path_for",
    "format_caption_line",
    "format_clock",
]


@dataclass(frozen=True)
class FormatterSpec:
    """A registered export format.

    Attributes:
        format_func: Renders a CacheEntry to text.
        supports_highlighting: Accepts ``highlight_words`` (bold words).
        file_extension: Extension of exported files, dot included.
        supports_display: Accepts ``display`` (caption grouping thresholds).
    """

    format_func: Callable[..., str]
    supports_highlighting: bool
    file_extension: str
    supports_display: bool = False


FORMATTERS: dict[str, FormatterSpec] = {
    "txt": FormatterSpec(to_txt, supports_highlighting=False, file_extension=".txt"),
    "json": FormatterSpec(to_json, supports_highlighting=False, file_extension=".json"),
    "srt": FormatterSpec(
        to_srt, supports_highlighting=True, file_extension=".srt", supports_display=True
    ),
}


def get_formatter_spec(format_name: str) -> FormatterSpec:
    """Look up a format by case-insensitive name.

    Raises:
        ValueError: For an unregistered format; the message lists the
            supported ones.
    """
    spec = FORMATTERS.get(format_name.lower())
    if spec is None:
        raise ValueError(
            f"Unsupported format: '{format_name}'. Supported formats are: {list(FORMATTERS)}"
        )
    return spec


def get_formatter(format_name: str) -> Callable[..., str]:
    """Return the render function registered for *format_name*."""
    return get_formatter_spec(format_name).format_func


def render_transcript(
    entry: CacheEntry,
    format_name: str,
    *,
    highlight_words: bool = False,
    display: DisplayConfig | None = None,
) -> str:
    """Render *entry* in the given format.

    ``highlight_words`` and ``display`` are only forwarded to formats that
    support them and are ignored otherwise.
    """
    spec = get_formatter_spec(format_name)
    options: dict[str, object] = {}
    if spec.supports_highlighting:
        options["highlight_words"] = highlight_words
    if spec.supports_display and display is not None:
        options["display"] = display
    return spec.format_func(entry, **options)


def output_path_for(
    source: pathlib.Path | str, format_name: str, output_dir: pathlib.Path | str | None = None
) -> pathlib.Path:
    """Default export path: the source stem with the format's extension.

    Examples:
        >>> output_path_for("talks/intro.mp4", "srt")
        PosixPath('talks/intro.srt')
        >>> output_path_for("talks/intro.mp4", "json", "out")
        PosixPath('out/intro.json')
    """
    source = pathlib.Path(source)
    directory = pathlib.Path(output_dir) if output_dir is not None else source.parent
    return directory / f"{source.stem}{get_formatter_spec(format_name).file_extension}"
