"""SQLite storage of habit marks, one row per habit and day."""

from __future__ import annotations

import re
import sqlite3
import threading
from pathlib import Path

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_SCHEMA = """PRAGMA busy_timeout = 5000;
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;
CREATE TABLE IF NOT EXISTS marks (
    habit INTEGER NOT NULL,
    date  INTEGER NOT NULL,
    PRIMARY KEY (habit, date)
);"""
_WHERE = "habit = ? AND date = strftime('%s', ?)"


def is_valid_date(text: object) -> bool:
    """Whether ``text`` has the shape ``YYYY-MM-DD``."""
    return isinstance(text, str) and _DATE_RE.fullmatch(text) is not None


class MarkStore:
    """Marks kept in an SQLite file; dates are stored as Unix epoch seconds."""

    def __init__(self, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        self._conn.executescript(_SCHEMA)

    def marks_for_year(self, habit: int, year: int | str) -> list[str]:
        """Return the marked dates of ``habit`` within ``year``, in order."""
        year_text = str(year)
        next_year = str(int(year_text) + 1) if year_text.isdigit() else "1"
        with self._lock:
            rows = self._conn.execute(
                """SELECT strftime('%Y-%m-%d', date, 'unixepoch') FROM marks
                   WHERE habit = ?
                     AND date >= strftime('%s', ? || '-01-01')
                     AND date <  strftime('%s', ? || '-01-01')
                   ORDER BY date""",
                (habit, year_text, next_year),
            ).fetchall()
        return [day for (day,) in rows]

    def toggle(self, habit: int, date: str) -> bool:
        """Flip the mark of ``habit`` on ``date``; return whether it is now marked."""
        if not is_valid_date(date):
            raise ValueError(f"bad date: {date!r}")
        with self._lock:
            (exists,) = self._conn.execute(
                f"SELECT EXISTS(SELECT 1 FROM marks WHERE {_WHERE})", (habit, date)
            ).fetchone()
            if exists:
                self._conn.execute(f"DELETE FROM marks WHERE {_WHERE}", (habit, date))
            else:
                self._conn.execute(
                    "INSERT INTO marks(habit, date) VALUES (?, strftime('%s', ?))", (habit, date)
                )
        return not exists

    def ping(self) -> bool:
        """Whether the database answers a trivial query."""
        try:
            with self._lock:
                self._conn.execute("SELECT 1")
        except sqlite3.Error:
            return False
        return True

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> MarkStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()