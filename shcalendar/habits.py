"""The list of habits that can be marked on the calendar."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import getenv

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

FALLBACK_NAME = "Привычка"


@dataclass(frozen=True)
class Habit:
    """A habit with its integer code and display name."""

    code: int
    name: str

    def to_dict(self) -> dict[str, object]:
        """Return the JSON form of the habit."""
        return {"code": self.code, "name": self.name}


def default_habits() -> list[Habit]:
    """Habits used when no habits file can be read."""
    return [
        Habit(1, "Пить воду"),
        Habit(2, "Читать 20 минут"),
        Habit(3, "Прогулка 30 минут"),
        Habit(4, "Медитация 10 минут"),
        Habit(5, "Без кофе сегодня"),
    ]


def _parse_code(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def parse_habits(text: str) -> list[Habit]:
    """Parse ``code,name`` lines; blank lines, comments, bad and repeated codes are skipped."""
    habits: dict[int, Habit] = {}
    for raw in text.split("\n"):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        code_text, sep, name = line.partition(",")
        if not sep:
            continue
        code_text, name = code_text.strip(), name.strip()
        if not code_text or not name:
            continue
        code = _parse_code(code_text)
        if code is None or code in habits:
            continue
        habits[code] = Habit(code, name)
    if not habits:
        return [Habit(1, FALLBACK_NAME)]
    return list(habits.values())


def load_habits(
    path: str = "habits.txt", environ: Mapping[str, str] | None = None
) -> list[Habit]:
    """Read habits from ``HABITS_FILE`` or ``path``, falling back to the defaults."""
    file_name = getenv("HABITS_FILE", path, environ)
    try:
        data = Path(file_name).read_bytes()
    except OSError:
        return default_habits()
    return parse_habits(data.decode("utf-8", errors="replace"))