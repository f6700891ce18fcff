"""Command that runs the calendar service with a graceful shutdown."""

from __future__ import annotations

import argparse
import logging
import signal
import sqlite3
import threading
from collections.abc import Sequence
from pathlib import Path
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .app import CalendarApp, WSGIApp, gzip_middleware, log_requests, security_headers
from .config import AppConfig, load_config
from .habits import load_habits
from .store import MarkStore

_log = logging.getLogger(__name__)


def build_app(
    config: AppConfig, habits_path: str = "habits.txt", index_html: bytes = b""
) -> tuple[WSGIApp, MarkStore]:
    """Open the store and return the wrapped application together with it."""
    store = MarkStore(config.db_path)
    app = CalendarApp(store, load_habits(habits_path), index_html)
    return log_requests(gzip_middleware(security_headers(app))), store


class _ThreadingServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _Handler(WSGIRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        _log.debug(format, *args)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the service until SIGINT or SIGTERM; return the exit status."""
    parser = argparse.ArgumentParser(prog="shcalendar", description="Habit calendar service")
    parser.add_argument("--index-html", default="web/index.html", help="page served at /")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    config = load_config()
    try:
        index_html = Path(args.index_html).read_bytes()
    except OSError as exc:
        _log.warning("index page unavailable: %s", exc)
        index_html = b""
    try:
        app, store = build_app(config, "habits.txt", index_html)
    except (sqlite3.Error, OSError) as exc:
        _log.error("DB open error: %s", exc)
        return 1

    with store:
        _Handler.timeout = config.read_timeout
        try:
            server = make_server("", int(config.port), app, server_class=_ThreadingServer, handler_class=_Handler)
        except (OSError, ValueError, OverflowError) as exc:
            _log.error("listen: %s", exc)
            return 1

        stop = threading.Event()
        previous = {sig: signal.signal(sig, lambda *_: stop.set()) for sig in (signal.SIGINT, signal.SIGTERM)}
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        _log.info("SHCalendar listening on http://localhost:%s", config.port)
        try:
            while not stop.wait(0.5):
                pass
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            _log.info("Shutting down...")
            server.shutdown()
            server.server_close()
            thread.join(config.write_timeout)
            _log.info("Server stopped")
    return 0