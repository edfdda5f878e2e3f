"""Formatter for JSON (.json) output."""

import json

from clipscribe.timestamps.models import CacheEntry


def to_json(entry: CacheEntry, **kwargs: object) -> str:
    """Serialize a transcript as its camelCase cache record.

    Args:
        entry: The transcript to serialize.
        **kwargs: Additional arguments; ignored for JSON output.

    Returns:
        JSON string pretty-printed with two-space indentation.
    """
    return json.dumps(entry.to_record(), indent=2, ensure_ascii=False)
