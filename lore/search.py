"""Full-text search across session transcripts."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from lore.session import Session

SNIPPET_MAX_LEN = 80

_PROJECT_PREFIX = "project:"
_BRANCH_PREFIX = "branch:"


@dataclass
class SearchHit:
    """One session that matches a search query."""

    session: Session
    hit_count: int
    snippet: str = ""


@dataclass
class SearchFilters:
    """Structured filters parsed from a query; empty strings mean no filter."""

    project: str = ""
    branch: str = ""


def parse_search_query(query: str) -> tuple[str, SearchFilters]:
    """Split a query into free text and ``project:``/``branch:`` filters.

    The prefixes may appear anywhere in the query and are matched without
    regard to case.
    """
    filters = SearchFilters()
    text_parts = []
    for part in query.split():
        lower = part.lower()
        if lower.startswith(_PROJECT_PREFIX):
            filters.project = part[len(_PROJECT_PREFIX):]
        elif lower.startswith(_BRANCH_PREFIX):
            filters.branch = part[len(_BRANCH_PREFIX):]
        else:
            text_parts.append(part)
    return " ".join(text_parts), filters


def _same(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def search_sessions_filtered(
    sessions: Iterable[Session], text: str, filters: SearchFilters
) -> list[SearchHit]:
    """Filter sessions by project and branch, then search their text.

    With no free text every remaining session is returned as a hit of count one.
    """
    candidates = list(sessions)
    if filters.project:
        candidates = [s for s in candidates if _same(s.project, filters.project)]
    if filters.branch:
        candidates = [s for s in candidates if _same(s.branch, filters.branch)]
    if not text:
        return [SearchHit(session=s, hit_count=1) for s in candidates]
    return search_sessions(candidates, text)


def search_sessions(sessions: Iterable[Session], query: str) -> list[SearchHit]:
    """Search each session's transcript for query, case-insensitively.

    Results are ordered by hit count, then by timestamp, both descending.
    An empty query yields no results.
    """
    if not query:
        return []
    query = query.lower()
    results = [hit for hit in (search_session(s, query) for s in sessions) if hit]
    results.sort(key=lambda h: (h.hit_count, h.session.timestamp), reverse=True)
    return results


def search_session(session: Session, query: str) -> Optional[SearchHit]:
    """Search one transcript for an already lower-cased query.

    Returns None when the file cannot be read or holds no match.
    """
    hit_count = 0
    first_snippet = ""
    try:
        with open(session.path, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                try:
                    event = json.loads(line)
                except ValueError:
                    continue
                if not isinstance(event, dict):
                    continue
                kind = event.get("type")
                if kind == "user":
                    hits, snippet = match_user_event(event, query)
                elif kind == "assistant":
                    hits, snippet = match_assistant_event(event, query)
                else:
                    continue
                if hits > 0:
                    hit_count += hits
                    if not first_snippet:
                        first_snippet = snippet
    except OSError:
        return None

    if hit_count == 0:
        return None
    return SearchHit(session=session, hit_count=hit_count, snippet=first_snippet)


def _content(event: Any) -> Any:
    if not isinstance(event, dict):
        return None
    message = event.get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


def _block_type(block: Any) -> Optional[str]:
    if not isinstance(block, dict):
        return None
    kind = block.get("type")
    return kind if isinstance(kind, str) else None


def match_user_event(event: Any, query: str) -> tuple[int, str]:
    """Count matches in a user event's text; tool-result-only events are skipped."""
    content = _content(event)
    if content is None:
        return 0, ""

    text_parts: list[str] = []
    if isinstance(content, str):
        text_parts.append(content)
        all_tool_results = False
    elif isinstance(content, list):
        all_tool_results = bool(content)
        for block in content:
            kind = _block_type(block)
            if kind is None:
                continue
            if kind != "tool_result":
                all_tool_results = False
            if kind == "text":
                text = block.get("text")
                if isinstance(text, str):
                    text_parts.append(text)
    else:
        return 0, ""

    if all_tool_results and not text_parts:
        return 0, ""
    text = " ".join(text_parts)
    if not text:
        return 0, ""
    return count_and_snippet(text, query)


def match_assistant_event(event: Any, query: str) -> tuple[int, str]:
    """Count matches in an assistant event's text blocks only."""
    content = _content(event)
    if not isinstance(content, list):
        return 0, ""

    hit_count = 0
    first_snippet = ""
    for block in content:
        if _block_type(block) != "text":
            continue
        text = block.get("text")
        if not isinstance(text, str) or not text:
            continue
        hits, snippet = count_and_snippet(text, query)
        hit_count += hits
        if not first_snippet and hits > 0:
            first_snippet = snippet
    return hit_count, first_snippet


def count_and_snippet(text: str, query: str) -> tuple[int, str]:
    """Count case-insensitive occurrences of a lower-case query and build a snippet."""
    lower_text = text.lower()
    count = lower_text.count(query)
    if count == 0:
        return 0, ""
    match_pos = lower_text.find(query)
    if match_pos < 0:
        return count, ""
    return count, build_snippet(text, query, match_pos)


def build_snippet(text: str, query: str, match_pos: int) -> str:
    """Cut text to at most SNIPPET_MAX_LEN characters around the match.

    A match past character 40 is brought into view with the window starting
    about 20 characters before it; cut ends are marked with ``...``.
    """
    if len(text) <= SNIPPET_MAX_LEN:
        return text

    if match_pos > 40:
        start = max(match_pos - 20, 0)
        end = start + SNIPPET_MAX_LEN
        if end > len(text):
            end = len(text)
            start = max(end - SNIPPET_MAX_LEN, 0)
        snippet = text[start:end]
        if start > 0:
            snippet = "..." + snippet[3:]
        if end < len(text):
            snippet = snippet[:-3] + "..."
        return snippet

    return text[: SNIPPET_MAX_LEN - 3] + "..."