"""Cookie store of the Epiphany (GNOME Web) browser (cookies.sqlite)."""

from __future__ import annotations

import os
import sqlite3
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import IO, Any, Iterator, Mapping, Optional

from .cookie import Cookie, FileCookieStore
from .filters import filter_cookie

_TABLE = "moz_cookies"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _unix_time(seconds: int) -> datetime:
    try:
        return _EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        limit = datetime.max if seconds > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)


def _column(row: Mapping[str, Any], column: str) -> Any:
    if column not in row:
        raise ValueError(f"column {column!r} not found")
    return row[column]


def _string(row: Mapping[str, Any], column: str) -> str:
    item = _column(row, column)
    if isinstance(item, bytes):
        return item.decode("utf-8", errors="replace")
    if not isinstance(item, str):
        raise ValueError(f"column {column!r} is not a string: {item!r}")
    return item


def _boolean(row: Mapping[str, Any], column: str) -> bool:
    item = _column(row, column)
    if isinstance(item, bool) or not isinstance(item, int):
        raise ValueError(f"column {column!r} is not an integer: {item!r}")
    return item != 0


def _int_or_zero(row: Mapping[str, Any], column: str) -> int:
    item = row.get(column)
    if item is None:
        return 0
    if isinstance(item, bool) or not isinstance(item, int):
        raise ValueError(f"column {column!r} is not an integer: {item!r}")
    return item


def _row_cookie(row: Mapping[str, Any]) -> Cookie:
    return Cookie(
        name=_string(row, "name"),
        value=_string(row, "value"),
        domain=_string(row, "host"),
        path=_string(row, "path"),
        expires=_unix_time(_int_or_zero(row, "expiry")),
        secure=_boolean(row, "isSecure"),
        http_only=_boolean(row, "isHttpOnly"),
    )


@dataclass(eq=False)
class EpiphanyCookieStore(FileCookieStore):
    """Epiphany cookie database: an SQLite file with a moz_cookies table."""

    browser: str = "epiphany"
    database: Optional[sqlite3.Connection] = field(default=None, repr=False)

    def open(self) -> None:
        """Open the database read-only unless it is already open."""
        if self.database is not None:
            return
        if not self.file_path:
            raise ValueError("cookie store has no file path")
        if not os.path.isfile(self.file_path):
            raise FileNotFoundError(self.file_path)
        uri = Path(self.file_path).absolute().as_uri() + "?mode=ro"
        self.database = sqlite3.connect(uri, uri=True)

    def close(self) -> None:
        """Close the database if it is open."""
        if self.database is None:
            return
        self.database.close()
        self.database = None

    def _rows(self) -> Iterator[dict[str, Any]]:
        if self.database is None:
            raise RuntimeError("database is not open")
        cursor = self.database.execute(f"SELECT * FROM {_TABLE}")
        columns = [description[0] for description in cursor.description]
        for record in cursor:
            yield dict(zip(columns, record))

    def _parse(self, stream: Optional[IO[bytes]] = None) -> Iterator[Cookie]:
        """Yield the cookies of the open database; the stream is not used."""
        for row in self._rows():
            yield _row_cookie(row)

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; a malformed row raises ValueError."""
        self.open()
        for cookie in self._parse():
            cookie.browser = self
            if filter_cookie(cookie, *args):
                yield cookie


def cookie_store(filename: str) -> EpiphanyCookieStore:
    """Return an unopened store for the given Epiphany cookie database."""
    return EpiphanyCookieStore(file_path=filename)


def traverse_cookies(filename: str, *args: Any) -> Iterator[Cookie]:
    """Yield the filtered cookies of a database, closing it when done."""
    store = cookie_store(filename)
    try:
        yield from store.traverse_cookies(*args)
    finally:
        store.close()


def read_cookies(filename: str, *args: Any) -> list[Cookie]:
    """Read all filtered cookies of a database into a list."""
    return cookie_store(filename).read_cookies(*args)


def _roots() -> list[str]:
    roots = []
    home = os.path.expanduser("~")
    if home != "~":
        roots = [
            os.path.join(home, ".var", "app", "org.gnome.Epiphany", "data", "epiphany"),  # flatpak
            os.path.join(home, ".local", "share", "epiphany"),
        ]
    data_dir = os.environ.get("XDG_DATA_HOME")
    if data_dir is not None:
        roots.append(os.path.join(data_dir, "epiphany"))
    return roots


def find_cookie_stores() -> Iterator[EpiphanyCookieStore]:
    """Yield Epiphany cookie stores; the last one found is the default."""
    if sys.platform == "win32" or sys.platform.startswith(("android", "ios")):
        return
    roots = _roots()
    last = len(roots) - 1
    for index, root in enumerate(roots):
        yield EpiphanyCookieStore(
            file_path=os.path.join(root, "cookies.sqlite"),
            is_default_profile=index == last,
        )