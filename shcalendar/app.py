"""WSGI application serving the habit calendar and its JSON API."""

from __future__ import annotations

import gzip
import json
import logging
import re
import sqlite3
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs

from .habits import Habit
from .store import MarkStore, is_valid_date

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]
_Response = tuple[int, list[tuple[str, str]], bytes]

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_MAX_TOGGLE_BODY = 2 << 10
_BAD_YEAR_CHARS = frozenset("^/\\:;,'\" ")

_FAVICON_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="64" height="64" viewBox="0 0 64 64">
  <defs>
    <linearGradient id="g" x1="0" y1="0" x2="0" y2="1">
      <stop offset="0%" stop-color="#ff5f6d"/>
      <stop offset="100%" stop-color="#ffc371"/>
    </linearGradient>
  </defs>
  <!-- calendar body -->
  <rect x="6" y="8" width="52" height="50" rx="8" ry="8" fill="#ffffff" stroke="#e5e5e5"/>
  <!-- header bar -->
  <rect x="6" y="8" width="52" height="14" rx="8" ry="8" fill="url(#g)"/>
  <!-- rings -->
  <circle cx="22" cy="15" r="2.2" fill="#ffffff"/>
  <circle cx="42" cy="15" r="2.2" fill="#ffffff"/>
  <!-- day number -->
  <text x="50%" y="46" text-anchor="middle" font-family="-apple-system,Segoe UI,Roboto,Arial,sans-serif" font-size="28" font-weight="700" fill="#222">{day}</text>
</svg>"""


def favicon_svg(day: int) -> str:
    """Return the calendar icon showing ``day``."""
    return _FAVICON_TEMPLATE.format(day=day)


def _error(message: str, status: int) -> _Response:
    return status, [("Content-Type", "text/plain; charset=utf-8")], (message + "\n").encode("utf-8")


def _json(value: Any) -> _Response:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":")) + "\n"
    return 200, [("Content-Type", "application/json")], text.encode("utf-8")


def _decode_toggle(data: bytes) -> tuple[str, int]:
    """Decode a toggle body into ``(date, habit)``; raise ``ValueError`` if malformed."""
    text = data.decode("utf-8", errors="replace").lstrip(" \t\r\n")
    value, _ = json.JSONDecoder().raw_decode(text)
    if value is None:
        return "", 0
    if not isinstance(value, dict):
        raise ValueError("toggle request must be an object")
    fields = {key.lower(): item for key, item in value.items() if item is not None}
    when, habit = fields.get("date", ""), fields.get("habit", 0)
    if not isinstance(when, str) or isinstance(habit, bool) or not isinstance(habit, int):
        raise ValueError("bad field type")
    return when, habit


class CalendarApp:
    """Routes requests for the page, the habit list, marks, health and icon."""

    def __init__(self, store: MarkStore, habits: Sequence[Habit], index_html: bytes | str) -> None:
        self._store = store
        self._habits = list(habits)
        self._names = {habit.code: habit.name for habit in self._habits}
        self._index_html = index_html.encode("utf-8") if isinstance(index_html, str) else bytes(index_html)
        self._routes: dict[str, tuple[str | None, Callable[[dict], _Response]]] = {
            "/api/habits": ("GET", lambda environ: _json([h.to_dict() for h in self._habits])),
            "/api/marks": ("GET", self._marks),
            "/api/toggle": ("POST", self._toggle),
            "/healthz": ("GET", self._healthz),
            "/favicon.ico": (None, self._favicon),
            "/favicon.svg": (None, self._favicon),
        }

    def __call__(self, environ: dict, start_response: Callable) -> list[bytes]:
        path = environ.get("PATH_INFO") or "/"
        if path in self._routes:
            method, handler = self._routes[path]
            if method and environ.get("REQUEST_METHOD") != method:
                status, headers, body = _error("method not allowed", 405)
            else:
                status, headers, body = handler(environ)
        elif path == "/":
            status, headers, body = 200, [("Content-Type", "text/html; charset=utf-8")], self._index_html
        else:
            status, headers, body = _error("404 page not found", 404)
        phrase = HTTPStatus(status).phrase
        start_response(f"{status} {phrase}", [*headers, ("Content-Length", str(len(body)))])
        return [body]

    def _marks(self, environ: dict) -> _Response:
        query = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
        year = query.get("year", [""])[0] or str(date.today().year)
        if len(year.encode("utf-8")) != 4 or _BAD_YEAR_CHARS.intersection(year):
            return _error("bad year", 400)
        habit_text = query.get("habit", [""])[0]
        if not _INT_RE.fullmatch(habit_text):
            return _error("bad habit", 400)
        if int(habit_text) not in self._names:
            return _error("unknown habit", 400)
        try:
            return _json(self._store.marks_for_year(int(habit_text), year))
        except sqlite3.Error as exc:
            return _error(str(exc), 500)

    def _toggle(self, environ: dict) -> _Response:
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        data = environ["wsgi.input"].read(min(length, _MAX_TOGGLE_BODY)) if length > 0 else b""
        try:
            when, habit = _decode_toggle(data)
        except ValueError:
            return _error("bad json", 400)
        if not is_valid_date(when):
            return _error("bad date", 400)
        if habit not in self._names:
            return _error("unknown habit", 400)
        try:
            return _json({"marked": self._store.toggle(habit, when)})
        except sqlite3.Error as exc:
            return _error(str(exc), 500)

    def _healthz(self, environ: dict) -> _Response:
        if not self._store.ping():
            return _error("db not ready", 503)
        return 200, [("Content-Type", "text/plain; charset=utf-8")], b"ok"

    def _favicon(self, environ: dict) -> _Response:
        headers = [("Content-Type", "image/svg+xml; charset=utf-8"), ("Cache-Control", "public, max-age=3600")]
        return 200, headers, favicon_svg(date.today().day).encode("utf-8")


def security_headers(app: WSGIApp) -> WSGIApp:
    """Add protective headers to every response."""
    extra = [("X-Content-Type-Options", "nosniff"), ("X-Frame-Options", "DENY"), ("Referrer-Policy", "no-referrer")]

    def wrapped(environ: dict, start_response: Callable) -> Iterable[bytes]:
        def secure_start(status: str, headers: list, exc_info: Any = None) -> Callable:
            return start_response(status, [*headers, *extra], exc_info)

        return app(environ, secure_start)

    return wrapped


def gzip_middleware(app: WSGIApp) -> WSGIApp:
    """Gzip the whole response when the client accepts it."""

    def wrapped(environ: dict, start_response: Callable) -> Iterable[bytes]:
        if "gzip" not in environ.get("HTTP_ACCEPT_ENCODING", ""):
            return app(environ, start_response)
        started: list[tuple[str, list, Any]] = []

        def gzip_start(status: str, headers: list, exc_info: Any = None) -> Callable:
            kept = [(k, v) for k, v in headers if k.lower() not in ("content-length", "content-encoding")]
            started.append((status, [*kept, ("Content-Encoding", "gzip")], exc_info))
            return lambda data: None

        compressed = gzip.compress(b"".join(app(environ, gzip_start)), mtime=0)
        status, headers, exc_info = started[-1]
        start_response(status, [*headers, ("Content-Length", str(len(compressed)))], exc_info)
        return [compressed]

    return wrapped


def log_requests(app: WSGIApp) -> WSGIApp:
    """Log method, path and handling time of every request."""

    def wrapped(environ: dict, start_response: Callable) -> Iterable[bytes]:
        start = time.perf_counter()
        body = b"".join(app(environ, start_response))
        elapsed = (time.perf_counter() - start) * 1000
        _log.info("%s %s %.3fms", environ.get("REQUEST_METHOD", ""), environ.get("PATH_INFO", ""), elapsed)
        return [body]

    return wrapped