import sqlite3

import pytest

from shcalendar.store import MarkStore, is_valid_date


@pytest.fixture
def store(tmp_path):
    s = MarkStore(str(tmp_path / "calendar.db"))
    yield s
    s.close()


@pytest.mark.parametrize("text", ["2024-01-01", "0000-99-99"])
def test_is_valid_date_accepts(text):
    assert is_valid_date(text) is True


@pytest.mark.parametrize(
    "text", ["2024-1-01", "2024-01-01\n", " 2024-01-01", "20240101", "", "２０２４-01-01", 20240101]
)
def test_is_valid_date_rejects(text):
    assert is_valid_date(text) is False


def test_toggle_marks_then_unmarks(store):
    assert store.toggle(1, "2024-03-05") is True
    assert store.marks_for_year(1, "2024") == ["2024-03-05"]
    assert store.toggle(1, "2024-03-05") is False
    assert store.marks_for_year(1, "2024") == []


def test_marks_sorted_by_date(store):
    for day in ["2024-06-10", "2024-01-02", "2024-03-15"]:
        store.toggle(2, day)
    assert store.marks_for_year(2, 2024) == ["2024-01-02", "2024-03-15", "2024-06-10"]


def test_marks_limited_to_year(store):
    for day in ["2023-12-31", "2024-01-01", "2024-12-31", "2025-01-01"]:
        store.toggle(1, day)
    assert store.marks_for_year(1, "2024") == ["2024-01-01", "2024-12-31"]
    assert store.marks_for_year(1, "2023") == ["2023-12-31"]


def test_marks_limited_to_habit(store):
    store.toggle(1, "2024-05-05")
    store.toggle(2, "2024-05-06")
    assert store.marks_for_year(1, "2024") == ["2024-05-05"]
    assert store.marks_for_year(2, "2024") == ["2024-05-06"]
    assert store.marks_for_year(3, "2024") == []


def test_toggle_rejects_malformed_date(store):
    with pytest.raises(ValueError):
        store.toggle(1, "05/05/2024")


def test_toggle_impossible_date_fails_in_database(store):
    with pytest.raises(sqlite3.IntegrityError):
        store.toggle(1, "2024-13-45")
    assert store.marks_for_year(1, "2024") == []


def test_data_persists_across_reopen(tmp_path):
    path = str(tmp_path / "calendar.db")
    with MarkStore(path) as first:
        first.toggle(4, "2022-07-07")
    with MarkStore(path) as second:
        assert second.marks_for_year(4, "2022") == ["2022-07-07"]


def test_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "calendar.db"
    with MarkStore(str(path)) as s:
        s.toggle(1, "2024-02-29")
        assert s.marks_for_year(1, "2024") == ["2024-02-29"]
    assert path.exists()


def test_ping_before_and_after_close(tmp_path):
    s = MarkStore(str(tmp_path / "calendar.db"))
    assert s.ping() is True
    s.close()
    assert s.ping() is False


def test_context_manager_closes(tmp_path):
    with MarkStore(str(tmp_path / "calendar.db")) as s:
        assert s.ping() is True
    assert s.ping() is False