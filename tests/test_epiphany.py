import os
import sqlite3
import sys
from datetime import datetime, timezone

import pytest

from kooky import epiphany
from kooky.filters import name

COLUMNS = "id INTEGER PRIMARY KEY, name TEXT, value TEXT, host TEXT, path TEXT, expiry INTEGER, " \
          "lastAccessed INTEGER, isSecure INTEGER, isHttpOnly INTEGER, sameSite INTEGER"


def _make_db(path, rows, columns=COLUMNS):
    connection = sqlite3.connect(str(path))
    with connection:
        connection.execute(f"CREATE TABLE moz_cookies ({columns})")
        for row in rows:
            marks = ", ".join("?" for _ in row)
            connection.execute(f"INSERT INTO moz_cookies VALUES ({marks})", row)
    connection.close()
    return str(path)


@pytest.fixture
def database(tmp_path):
    return _make_db(
        tmp_path / "cookies.sqlite",
        [
            (1, "NID", "204=blabla", ".google.de", "/", 1620681285, 0, 1, 1, 0),
            (2, "session", "token", "example.com", "/app", None, 0, 0, 0, 0),
        ],
    )


def test_read_cookies(database):
    cookies = epiphany.read_cookies(database)
    assert [c.name for c in cookies] == ["NID", "session"]
    first = cookies[0]
    assert first.value == "204=blabla"
    assert first.domain == ".google.de"
    assert first.path == "/"
    assert first.expires == datetime.fromtimestamp(1620681285, tz=timezone.utc)
    assert first.secure and first.http_only


def test_null_expiry_falls_back_to_epoch(database):
    cookies = epiphany.read_cookies(database, name("session"))
    assert len(cookies) == 1
    assert cookies[0].expires == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert not cookies[0].secure and not cookies[0].http_only


def test_browser_is_store(database):
    store = epiphany.cookie_store(database)
    try:
        cookies = list(store.traverse_cookies())
        assert all(c.browser is store for c in cookies)
        assert store.browser == "epiphany"
    finally:
        store.close()
    assert store.database is None


def test_traverse_closes(database):
    cookies = list(epiphany.traverse_cookies(database, name("NID")))
    assert [c.value for c in cookies] == ["204=blabla"]


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        epiphany.read_cookies(str(tmp_path / "absent.sqlite"))


def test_missing_table(tmp_path):
    target = tmp_path / "other.sqlite"
    connection = sqlite3.connect(str(target))
    connection.execute("CREATE TABLE unrelated (x INTEGER)")
    connection.close()
    with pytest.raises(sqlite3.OperationalError):
        epiphany.read_cookies(str(target))


def test_missing_column(tmp_path):
    target = _make_db(
        tmp_path / "partial.sqlite",
        [("n", "v", "example.com", "/", 0, 0)],
        columns="name TEXT, value TEXT, host TEXT, path TEXT, expiry INTEGER, isSecure INTEGER",
    )
    with pytest.raises(ValueError, match="isHttpOnly"):
        epiphany.read_cookies(target)


def test_find_cookie_stores(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    stores = list(epiphany.find_cookie_stores())
    assert [s.file_path for s in stores] == [
        os.path.join(str(tmp_path), ".var", "app", "org.gnome.Epiphany", "data", "epiphany", "cookies.sqlite"),
        os.path.join(str(tmp_path), ".local", "share", "epiphany", "cookies.sqlite"),
        os.path.join(str(tmp_path / "data"), "epiphany", "cookies.sqlite"),
    ]
    assert [s.is_default_profile for s in stores] == [False, False, True]


def test_find_cookie_stores_windows(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    assert list(epiphany.find_cookie_stores()) == []