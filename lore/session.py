"""Discovery and metadata parsing of conversation transcripts stored as JSONL."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Union

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class SessionParseError(ValueError):
    """Raised when a transcript holds no usable session metadata."""


@dataclass
class Session:
    """One conversation transcript on disk."""

    id: str = ""
    path: str = ""
    cwd: str = ""
    project: str = ""
    branch: str = ""
    slug: str = ""
    query: str = ""
    timestamp: datetime = field(default=ZERO_TIME)


_SYSTEM_TAGS = "local-command-caveat|command-name|command-message|command-args|system-reminder"
_SYSTEM_TAG_RE = re.compile(
    rf"<({_SYSTEM_TAGS})(?:[^>]*)>.*?</(?:{_SYSTEM_TAGS})>",
    re.DOTALL,
)

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)

_EVENT_FIELDS = ("type", "sessionId", "timestamp", "cwd", "gitBranch", "slug")


def _parse_timestamp(value: str) -> datetime:
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        raise SessionParseError(f"cannot parse timestamp {value!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "").ljust(6, "0")[:6])
    try:
        if zone == "Z":
            tz = timezone.utc
        else:
            sign = -1 if zone[0] == "-" else 1
            hours, minutes = int(zone[1:3]), int(zone[4:6])
            if minutes >= 60:
                raise ValueError("offset minutes out of range")
            tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micro, tzinfo=tz,
        )
    except ValueError as exc:
        raise SessionParseError(f"cannot parse timestamp {value!r}: {exc}") from exc


def _string_fields(event: Any) -> Optional[dict]:
    """Return the event's string fields, or None if the line has the wrong shape."""
    if event is None:
        return dict.fromkeys(_EVENT_FIELDS, "")
    if not isinstance(event, dict):
        return None
    fields = {}
    for key in _EVENT_FIELDS:
        value = event.get(key)
        if value is None:
            value = ""
        elif not isinstance(value, str):
            return None
        fields[key] = value
    return fields


def _basename(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip(os.sep)
    if not stripped:
        return os.sep
    return stripped.rsplit(os.sep, 1)[-1]


def parse_session_metadata(stream: Iterable[str]) -> Session:
    """Read session metadata from the first user event in a JSONL stream.

    Metadata comes from the first user event; the query preview comes from the
    first user event whose message holds real text once system tags are removed.
    """
    session: Optional[Session] = None
    for line in stream:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        try:
            event = json.loads(line)
        except ValueError:
            continue
        fields = _string_fields(event)
        if fields is None or fields["type"] != "user":
            continue

        if session is None:
            cwd = fields["cwd"]
            session = Session(
                id=fields["sessionId"],
                cwd=cwd,
                project=_basename(cwd),
                branch=fields["gitBranch"],
                slug=fields["slug"],
                timestamp=_parse_timestamp(fields["timestamp"]),
            )

        query = _query_from_message(event.get("message"), "message" in event)
        if query:
            session.query = query
            return session

    if session is None:
        raise SessionParseError("no user event found")
    return session


def scan_sessions(root_dir: Union[str, os.PathLike]) -> tuple[list[Session], list[str]]:
    """Find every transcript under root_dir, newest first.

    Files that cannot be read or parsed are skipped; each skip yields one
    warning line of the form ``<path>: <reason>``.
    """
    root = os.fspath(root_dir)
    marker = f"{os.sep}subagents{os.sep}"
    sessions: list[Session] = []
    warnings: list[str] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if os.path.splitext(path)[1] != ".jsonl" or marker in path:
                continue
            try:
                with open(path, encoding="utf-8", errors="replace") as handle:
                    meta = parse_session_metadata(handle)
            except (OSError, SessionParseError) as exc:
                warnings.append(f"{path}: {exc}")
                continue
            meta.path = path
            sessions.append(meta)

    sessions.sort(key=lambda s: s.timestamp, reverse=True)
    return sessions, warnings


def _query_from_message(message: Any, present: bool = True) -> str:
    if not present or not isinstance(message, dict):
        return ""
    if "content" not in message:
        return ""
    content = message["content"]
    if content is None:
        return ""
    if isinstance(content, str):
        return collapse_whitespace(strip_system_tags(content))
    if not isinstance(content, list):
        return ""

    parts = []
    for block in content:
        if block is None:
            continue
        if not isinstance(block, dict):
            return ""
        block_type = block.get("type")
        text = block.get("text")
        if block_type is not None and not isinstance(block_type, str):
            return ""
        if text is not None and not isinstance(text, str):
            return ""
        if block_type == "text" and text:
            cleaned = collapse_whitespace(strip_system_tags(text))
            if cleaned:
                parts.append(cleaned)
    return collapse_whitespace(" ".join(parts))


def extract_query(raw: Union[str, bytes, None]) -> str:
    """Return the cleaned user text of a raw JSON message object, or ''."""
    if not raw:
        return ""
    try:
        message = json.loads(raw)
    except ValueError:
        return ""
    return _query_from_message(message)


def strip_system_tags(text: str) -> str:
    """Remove system-injected tag blocks such as caveats and slash commands."""
    return _SYSTEM_TAG_RE.sub("", text)


def collapse_whitespace(text: str) -> str:
    """Turn newlines, returns and tabs into spaces, squeeze runs and trim."""
    for char in "\n\r\t":
        text = text.replace(char, " ")
    text = re.sub(" {2,}", " ", text)
    return text.strip()