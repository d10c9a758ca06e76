"""An eight-week, day-by-day activity heatmap of sessions."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Iterable, Iterator, Optional

from lore.session import Session

HEATMAP_ROWS = 7  # Monday .. Sunday
HEATMAP_COLS = 8  # weeks; the rightmost column is the current week


@dataclass(frozen=True)
class HeatmapDay:
    """One calendar day and the number of sessions started on it."""

    date: datetime
    count: int = 0


@dataclass
class Heatmap:
    """A 7 x 8 grid indexed ``cells[weekday][week]``.

    Weekday 0 is Monday and 6 is Sunday; week 0 is the oldest and week 7
    the one holding the moment the heatmap was built for.
    """

    cells: list[list[HeatmapDay]]

    def _positions(self) -> Iterator[tuple[int, int, HeatmapDay]]:
        for row, days in enumerate(self.cells):
            for col, cell in enumerate(days):
                yield row, col, cell

    def count_on(self, day: datetime) -> int:
        """Return the session count of the given day, or 0 outside the grid."""
        day = start_of_day(day)
        for _, _, cell in self._positions():
            if cell.date == day:
                return cell.count
        return 0

    def cell_of(self, day: datetime) -> Optional[tuple[int, int]]:
        """Return the (row, col) of the given day, or None outside the grid."""
        day = start_of_day(day)
        for row, col, cell in self._positions():
            if cell.date == day:
                return row, col
        return None

    def earliest_day(self) -> datetime:
        """Return the Monday of the leftmost column."""
        return self.cells[0][0].date

    def latest_day(self) -> datetime:
        """Return the Sunday of the rightmost column."""
        return self.cells[HEATMAP_ROWS - 1][HEATMAP_COLS - 1].date


def start_of_day(moment: datetime) -> datetime:
    """Return midnight of the moment's day, in the moment's own time zone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _add_days(day: datetime, days: int) -> datetime:
    return datetime.combine(day.date() + timedelta(days=days), time(), tzinfo=day.tzinfo)


def monday_of(moment: datetime) -> datetime:
    """Return midnight of the Monday of the week holding moment."""
    day = start_of_day(moment)
    return _add_days(day, -day.weekday())


def build_heatmap(sessions: Iterable[Session], now: datetime) -> Heatmap:
    """Count sessions per day over the eight weeks ending with the week of now."""
    monday = monday_of(now)
    earliest = _add_days(monday, -(HEATMAP_COLS - 1) * 7)
    latest = _add_days(monday, HEATMAP_ROWS - 1)

    counts: Counter[datetime] = Counter()
    for session in sessions:
        day = start_of_day(session.timestamp)
        if earliest <= day <= latest:
            counts[day] += 1

    cells = []
    for row in range(HEATMAP_ROWS):
        days = []
        for col in range(HEATMAP_COLS):
            date = _add_days(earliest, col * 7 + row)
            days.append(HeatmapDay(date=date, count=counts[date]))
        cells.append(days)
    return Heatmap(cells=cells)


def heatmap_bucket(count: int) -> int:
    """Map a session count to an intensity level from 0 to 3.

    0 is empty, 1 is one or two sessions, 2 is three to five and 3 is six or more.
    """
    if count <= 0:
        return 0
    if count <= 2:
        return 1
    if count <= 5:
        return 2
    return 3