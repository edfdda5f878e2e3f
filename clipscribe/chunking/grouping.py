"""Greedy batching of captions into display groups.

Captions are scanned left to right while their character counts accumulate
(plus one per inter-word space). A group closes at a sentence end once it is
long enough, or unconditionally once it is too long. The trailing partial
group is always emitted, so the groups partition the caption list exactly.
"""

from __future__ import annotations

from collections.abc import Sequence

from clipscribe.timestamps.models import Caption, CaptionGroup
from clipscribe.utils.constant import DISPLAY_MAX_CHARS, DISPLAY_MIN_CHARS

__all__ = ["group_captions_for_display"]


def group_captions_for_display(
    captions: Sequence[Caption],
    min_chars: int = DISPLAY_MIN_CHARS,
    max_chars: int = DISPLAY_MAX_CHARS,
) -> list[CaptionGroup]:
    """Partition *captions* into contiguous display groups.

    Parameters:
        captions (Sequence[Caption]): Timeline in display order.
        min_chars (int): Minimum accumulated length before a sentence end
            (a word ending in ``.``) may close the group.
        max_chars (int): Accumulated length that always closes the group.

    Returns:
        list[CaptionGroup]: Non-empty groups whose ranges, concatenated,
            reproduce ``range(len(captions))``.
    """
    groups: list[CaptionGroup] = []
    group_start = 0
    accumulated = 0
    for i, caption in enumerate(captions):
        word = caption.text.strip()
        if i > group_start:
            accumulated += 1
        accumulated += len(word)
        if (word.endswith(".") and accumulated >= min_chars) or accumulated >= max_chars:
            groups.append(CaptionGroup(start=group_start, stop=i + 1))
            group_start = i + 1
            accumulated = 0
    if group_start < len(captions):
        groups.append(CaptionGroup(start=group_start, stop=len(captions)))
    return groups
