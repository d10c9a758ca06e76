"""Scrolling helpers shared by every list-style view."""

from __future__ import annotations

from typing import Sequence


def clamp_offset(offset: int, cursor_line: int, total_lines: int, height: int) -> int:
    """Return the scroll offset that keeps cursor_line inside a window of height lines.

    The offset only moves when the cursor would leave the window, and is kept
    within ``[0, max(0, total_lines - height)]``.
    """
    if height <= 0 or total_lines <= height:
        return 0
    if cursor_line < offset:
        offset = cursor_line
    if cursor_line >= offset + height:
        offset = cursor_line - height + 1
    offset = max(offset, 0)
    return min(offset, total_lines - height)


def slice_lines(lines: Sequence[str], offset: int, height: int) -> list[str]:
    """Return exactly height lines starting at offset, padding with empty strings."""
    if height <= 0:
        return []
    offset = max(offset, 0)
    window = list(lines[offset:offset + height])
    return window + [""] * (height - len(window))