"""Split long replies into transport-sized messages."""

from __future__ import annotations

from typing import NamedTuple

# A line break earlier than this fraction of the window would leave a
# near-empty segment, so the split falls back to the hard limit.
MIN_BREAK_RATIO = 0.3


class Segment(NamedTuple):
    text: str
    consumed_break: bool  # newline after this segment was dropped


def split_segments(text: str, max_len: int) -> list[Segment]:
    """Split ``text`` into segments of at most ``max_len`` characters."""
    if max_len <= 0:
        raise ValueError("max_len must be positive")
    if len(text) <= max_len:
        return [Segment(text, False)]

    segments: list[Segment] = []
    remaining = text
    while len(remaining) > max_len:
        split_at = remaining.rfind("\n", 0, max_len + 1)
        if split_at < max_len * MIN_BREAK_RATIO:
            segments.append(Segment(remaining[:max_len], False))
            remaining = remaining[max_len:]
        else:
            segments.append(Segment(remaining[:split_at], True))
            remaining = remaining[split_at + 1 :]
    segments.append(Segment(remaining, False))
    return segments


def join_segments(segments: list[Segment]) -> str:
    """Rebuild the original text from ``split_segments`` output."""
    return "".join(seg.text + ("\n" if seg.consumed_break else "") for seg in segments)


def split_message(text: str, max_len: int) -> list[str]:
    """Split text preferring line boundaries; order is preserved."""
    return [seg.text for seg in split_segments(text, max_len)]
