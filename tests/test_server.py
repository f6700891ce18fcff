import gzip
import io
import json
from wsgiref.util import setup_testing_defaults

import pytest

from shcalendar.config import AppConfig
from shcalendar.server import build_app, main


def call(app, method="GET", path="/", body=b"", headers=None):
    environ = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": "",
        "CONTENT_LENGTH": str(len(body)),
        "wsgi.input": io.BytesIO(body),
    }
    environ.update(headers or {})
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, response_headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(response_headers)

    result = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], result


@pytest.fixture
def built(tmp_path, monkeypatch):
    monkeypatch.delenv("HABITS_FILE", raising=False)
    habits_file = tmp_path / "habits.txt"
    habits_file.write_text("1,Run\n# note\n2,Read\n", encoding="utf-8")
    config = AppConfig(db_path=str(tmp_path / "db" / "calendar.db"))
    app, store = build_app(config, str(habits_file), b"<p>page</p>")
    with store:
        yield app


def test_build_app_serves_habits_from_file(built):
    status, headers, body = call(built, path="/api/habits")
    assert status.startswith("200")
    assert json.loads(body) == [{"code": 1, "name": "Run"}, {"code": 2, "name": "Read"}]
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["Referrer-Policy"] == "no-referrer"


def test_build_app_serves_index(built):
    status, _, body = call(built)
    assert status.startswith("200")
    assert body == b"<p>page</p>"


def test_build_app_gzips_and_toggles(built):
    raw = json.dumps({"date": "2024-03-05", "habit": 2}).encode()
    status, headers, body = call(
        built, "POST", "/api/toggle", body=raw, headers={"HTTP_ACCEPT_ENCODING": "gzip"}
    )
    assert status.startswith("200")
    assert headers["Content-Encoding"] == "gzip"
    assert json.loads(gzip.decompress(body)) == {"marked": True}


def test_main_fails_when_db_cannot_open(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    blocked = tmp_path / "blocked"
    blocked.mkdir()
    monkeypatch.setenv("DB_PATH", str(blocked))
    assert main(["--index-html", str(tmp_path / "missing.html")]) == 1


def test_main_fails_on_bad_port(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_PATH", str(tmp_path / "calendar.db"))
    monkeypatch.setenv("PORT", "notaport")
    assert main([]) == 1
    assert (tmp_path / "calendar.db").exists()