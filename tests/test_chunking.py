from __future__ import annotations

import pytest

from apollo.text import join_segments, split_message, split_segments


def test_short_text_is_one_segment() -> None:
    assert split_message("short", 10) == ["short"]
    assert split_message("", 10) == [""]


def test_prefers_line_break_and_drops_it() -> None:
    assert split_message("aaaaa\nbbbbb", 8) == ["aaaaa", "bbbbb"]


def test_break_exactly_at_limit_counts() -> None:
    assert split_message("a" * 10 + "\nbbb", 10) == ["a" * 10, "bbb"]


def test_hard_split_without_line_breaks() -> None:
    assert split_message("x" * 25, 10) == ["x" * 10, "x" * 10, "x" * 5]


def test_early_break_falls_back_to_hard_split() -> None:
    text = "ab\n" + "c" * 20

    chunks = split_message(text, 10)

    assert chunks[0] == "ab\n" + "c" * 7
    assert all(len(chunk) <= 10 for chunk in chunks)


def test_segments_rebuild_the_original_text() -> None:
    text = "\n".join(f"line {i}: " + "z" * (i * 7 % 40) for i in range(60))

    segments = split_segments(text, 120)

    assert all(len(seg.text) <= 120 for seg in segments)
    assert join_segments(segments) == text


def test_non_positive_limit_is_rejected() -> None:
    with pytest.raises(ValueError):
        split_message("abc", 0)
