"""Token usage totals and cost estimates for session transcripts."""

from __future__ import annotations

import functools
import json
import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from lore.session import Session

PRICING_ENV_VAR = "LORE_PRICING_FILE"

_PER_MILLION = 1_000_000


@dataclass
class SessionStats:
    """Token usage summed over one session."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0
    model: str = ""
    estimated_cost_usd: float = 0.0


@dataclass
class StatsRow:
    """A session paired with its usage totals for display."""

    session: Session
    stats: SessionStats = field(default_factory=SessionStats)


@dataclass(frozen=True)
class PricingEntry:
    """Rates for every model whose name contains ``substr``."""

    substr: str = ""
    input_per_mtok: float = 0.0
    output_per_mtok: float = 0.0
    cache_read_fraction: float = 0.0


_DEFAULT_PRICING: tuple[PricingEntry, ...] = (
    PricingEntry("opus", 15.0, 75.0, 0.1),
    PricingEntry("sonnet", 3.0, 15.0, 0.1),
    PricingEntry("haiku", 0.8, 4.0, 0.1),
)


def _token_count(usage: dict, key: str) -> int:
    value = usage.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} is not an integer")
    return value


def _read_usage(event: Any) -> Optional[tuple[str, int, int, int, int]]:
    """Return (model, input, output, cache write, cache read) of an assistant event.

    Returns None for events that carry no usage; raises ValueError for a
    line whose fields have the wrong types.
    """
    if not isinstance(event, dict):
        raise ValueError("event is not an object")
    kind = event.get("type")
    if kind is not None and not isinstance(kind, str):
        raise ValueError("type is not a string")
    message = event.get("message")
    if message is not None and not isinstance(message, dict):
        raise ValueError("message is not an object")
    if message is not None:
        model = message.get("model")
        if model is None:
            model = ""
        elif not isinstance(model, str):
            raise ValueError("model is not a string")
        usage = message.get("usage")
        if usage is None:
            usage = {}
        elif not isinstance(usage, dict):
            raise ValueError("usage is not an object")
        counts = (
            _token_count(usage, "input_tokens"),
            _token_count(usage, "output_tokens"),
            _token_count(usage, "cache_creation_input_tokens"),
            _token_count(usage, "cache_read_input_tokens"),
        )
    if kind != "assistant" or message is None:
        return None
    return (model, *counts)


def parse_session_stats(stream: Iterable[Union[str, bytes]]) -> SessionStats:
    """Sum token usage over every assistant event of a JSONL stream.

    The model is the last non-empty model name seen. Malformed lines are skipped.
    """
    stats = SessionStats()
    for line in stream:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        try:
            usage = _read_usage(json.loads(line))
        except ValueError:
            continue
        if usage is None:
            continue
        model, input_tokens, output_tokens, cache_write, cache_read = usage
        stats.input_tokens += input_tokens
        stats.output_tokens += output_tokens
        stats.cache_write_tokens += cache_write
        stats.cache_read_tokens += cache_read
        if model:
            stats.model = model
    return stats


def _number(entry: dict, key: str) -> float:
    value = entry.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} is not a number")
    return float(value)


def _parse_pricing(data: Union[str, bytes]) -> tuple[PricingEntry, ...]:
    entries = json.loads(data)
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise ValueError("pricing table is not a list")
    table = []
    for entry in entries:
        if entry is None:
            table.append(PricingEntry())
            continue
        if not isinstance(entry, dict):
            raise ValueError("pricing entry is not an object")
        substr = entry.get("substr")
        if substr is None:
            substr = ""
        elif not isinstance(substr, str):
            raise ValueError("substr is not a string")
        table.append(
            PricingEntry(
                substr=substr,
                input_per_mtok=_number(entry, "input_per_mtok"),
                output_per_mtok=_number(entry, "output_per_mtok"),
                cache_read_fraction=_number(entry, "cache_read_fraction"),
            )
        )
    return tuple(table)


@functools.lru_cache(maxsize=None)
def pricing_table() -> tuple[PricingEntry, ...]:
    """Return the pricing table, loaded once.

    A JSON file named by the LORE_PRICING_FILE environment variable replaces
    the built-in rates; an unreadable or invalid file leaves them in place.
    """
    path = os.environ.get(PRICING_ENV_VAR, "")
    if not path:
        return _DEFAULT_PRICING
    try:
        with open(path, "rb") as handle:
            data = handle.read()
        return _parse_pricing(data)
    except (OSError, ValueError):
        return _DEFAULT_PRICING


def reset_pricing_table() -> None:
    """Forget the loaded pricing table so the next lookup reads it again."""
    pricing_table.cache_clear()


def estimate_cost(stats: SessionStats) -> float:
    """Estimate the USD cost of a session; 0 for an empty or unknown model."""
    if not stats.model:
        return 0.0
    model = stats.model.lower()
    for entry in pricing_table():
        if entry.substr in model:
            return (
                stats.input_tokens / _PER_MILLION * entry.input_per_mtok
                + stats.output_tokens / _PER_MILLION * entry.output_per_mtok
                + stats.cache_read_tokens / _PER_MILLION
                * entry.input_per_mtok * entry.cache_read_fraction
                + stats.cache_write_tokens / _PER_MILLION * entry.input_per_mtok
            )
    return 0.0


def format_token_count(n: int) -> str:
    """Format a token count as-is below 1000, else with a k or M suffix."""
    if n < 1000:
        return str(n)
    if n < 1_000_000:
        return f"{n / 1000:.1f}k"
    return f"{n / 1_000_000:.1f}M"


def compute_stats_rows(sessions: Iterable[Session]) -> list[StatsRow]:
    """Compute usage and estimated cost for each session.

    A transcript that cannot be read gives empty stats.
    """
    rows = []
    for session in sessions:
        try:
            with open(session.path, encoding="utf-8", errors="replace") as handle:
                stats = parse_session_stats(handle)
        except OSError:
            stats = SessionStats()
        stats.estimated_cost_usd = estimate_cost(stats)
        rows.append(StatsRow(session=session, stats=stats))
    return rows