"""Soft wrapping and truncation of text measured in characters."""

from __future__ import annotations

DEFAULT_WIDTH = 80


def wrap_text(text: str, width: int) -> list[str]:
    """Soft-wrap text into lines of at most width characters.

    Breaks at whitespace where possible and hard-cuts words longer than the
    width. Each newline starts a new paragraph; empty paragraphs stay as
    empty lines.
    """
    if width <= 0:
        width = DEFAULT_WIDTH
    if text == "":
        return [""]
    out: list[str] = []
    for paragraph in text.split("\n"):
        if paragraph == "":
            out.append("")
        else:
            out.extend(wrap_paragraph(paragraph, width))
    return out


def wrap_paragraph(paragraph: str, width: int) -> list[str]:
    """Wrap a single line of text to width characters."""
    words = paragraph.split()
    if not words:
        return [paragraph]

    out: list[str] = []
    line = ""
    for word in words:
        while len(word) > width:
            if line:
                out.append(line)
                line = ""
            out.append(word[:width])
            word = word[width:]
        needed = len(word) + (1 if line else 0)
        if len(line) + needed > width:
            if line:
                out.append(line)
            line = word
        else:
            line = f"{line} {word}" if line else word
    if line:
        out.append(line)
    return out


def truncate_runes(text: str, limit: int) -> str:
    """Limit text to limit characters, ending with an ellipsis when cut.

    With a limit of one or less there is no room for the ellipsis, so the
    plain prefix is returned.
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative: {limit}")
    if len(text) <= limit:
        return text
    if limit <= 1:
        return text[:limit]
    return text[: limit - 1] + "…"


def rune_prefix(text: str, n: int) -> str:
    """Return the first n characters of text."""
    if n <= 0:
        return ""
    return text[:n]