"""Habit calendar web service: per-habit day marks in SQLite, served over WSGI."""

__version__ = "0.1.0"