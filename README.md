# shcalendar

A small self-hosted habit calendar service. Each habit has a set of marked
days; a day's mark is toggled through a JSON API. Marks are kept in a SQLite
database and the service is a plain WSGI application with no third-party
dependencies.

## Install

    pip install .

## Run

    shcalendar

or, to name the page served at `/`:

    shcalendar --index-html path/to/index.html

The server listens on port `8086` by default and serves requests in threads.
Settings come from the environment:

| Variable      | Default        | Meaning                              |
|---------------|----------------|--------------------------------------|
| `PORT`        | `8086`         | TCP port to listen on                |
| `DB_PATH`     | `calendar.db`  | SQLite file; parent dirs are created |
| `HABITS_FILE` | `habits.txt`   | List of habits (see below)           |

The `--index-html` option defaults to `web/index.html`. If that file cannot
be read, a warning is logged and `/` answers with an empty page. Each request
is logged with its method, path and handling time.

Stop the server with Ctrl+C or SIGTERM; it shuts down cleanly. The command
exits with status 1 if the database cannot be opened or the port cannot be
bound.

## Habits file

One habit per line as `code,name`. Blank lines and lines starting with `#`
are ignored, as are lines without a comma, an empty code or name, a
non-integer code, or a code that was already used:

    # code,name
    1,Drink water
    2,Read 20 minutes
    3,Walk 30 minutes

If the file cannot be read, a built-in set of five habits is used. If it is
readable but holds no valid lines, a single habit with code `1` is used.

## HTTP API

| Method | Path                           | Result                                        |
|--------|--------------------------------|-----------------------------------------------|
| GET    | `/`                            | The page given by `--index-html`              |
| GET    | `/api/habits`                  | `[{"code":1,"name":"..."}, ...]`              |
| GET    | `/api/marks?habit=1&year=2024` | Marked dates of that year, `["2024-01-05"]`   |
| POST   | `/api/toggle`                  | Body `{"date": "2024-01-05", "habit": 1}`, returns `{"marked":true}` |
| GET    | `/healthz`                     | `ok` when the database answers, else `503`    |
| any    | `/favicon.svg`, `/favicon.ico` | An SVG icon showing today's day of month      |

`year` defaults to the current year. Bad input gets `400`, a wrong method
gets `405`, any other path gets `404`. At most 2 KB of a toggle body is
read. Responses carry `X-Content-Type-Options`, `X-Frame-Options` and
`Referrer-Policy` headers and are gzip-compressed when the client's
`Accept-Encoding` includes `gzip`.

## What it does not include

The package does not ship a calendar page of its own: `/` serves whatever
HTML file `--index-html` points to. Without one, only the JSON API, the
health check and the icon are useful.

## Using it from Python

    from shcalendar.config import load_config
    from shcalendar.server import build_app

    app, store = build_app(load_config(), "habits.txt", b"<html>...</html>")

`app` is a WSGI callable that any WSGI server can host; `store` is the open
`MarkStore`, to be closed when done (it is also a context manager). The
pieces are usable on their own:

- `shcalendar.config`: `AppConfig`, `load_config`, `getenv`.
- `shcalendar.habits`: `Habit`, `default_habits`, `parse_habits`, `load_habits`.
- `shcalendar.store`: `MarkStore` with `marks_for_year`, `toggle`, `ping`
  and `close`, and `is_valid_date`.
- `shcalendar.app`: `CalendarApp`, `favicon_svg`, and the
  `security_headers`, `gzip_middleware` and `log_requests` wrappers.

## Tests

    pip install ".[test]"
    pytest