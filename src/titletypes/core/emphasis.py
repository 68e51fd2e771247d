"""Inline emphasis formatting for taxonomy labels.

Text wrapped in single asterisks (``*like this*``) is emphasized. A lone
asterisk or an empty pair (``**``) is kept as literal text.
"""

import re
from dataclasses import dataclass

# Capturing group keeps the matched spans in re.split() output
_EMPHASIS_RE = re.compile(r"(\*[^*]+\*)")


@dataclass(frozen=True)
class Segment:
    """A run of label text, either plain or emphasized."""

    text: str
    emphasized: bool = False


def format_emphasis(text: str) -> list[Segment]:
    """Split text into plain and emphasized segments.

    Args:
        text: Label text

    Returns:
        Segments in original order. Empty plain runs are omitted, so an
        empty string yields no segments.
    """
    segments: list[Segment] = []
    for i, part in enumerate(_EMPHASIS_RE.split(text)):
        if not part:
            continue
        # Odd indices are the captured *span* matches
        if i % 2 == 1:
            segments.append(Segment(text=part[1:-1], emphasized=True))
        else:
            segments.append(Segment(text=part))
    return segments
