"""Chunk planning and display grouping.

This module splits a source buffer into equal transcription windows and
batches the resulting caption timeline into display groups.
"""

from .grouping import group_captions_for_display
from .planner import plan_chunks, slice_window

__all__ = [
    "plan_chunks",
    "slice_window",
    "group_captions_for_display",
]
