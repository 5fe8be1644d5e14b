"""Cookie store of the w3m text browser (~/.w3m/cookie)."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Any, Iterator, Optional

from .cookie import Cookie, FileCookieStore

_FIELD_COUNT = 11
_COO_SECURE = 2
_INTEGER = re.compile(r"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UNIX_PLATFORMS = ("linux", "freebsd", "openbsd", "netbsd", "dragonfly", "sunos")


def _unix_time(seconds: int) -> datetime:
    try:
        return _EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        limit = datetime.max if seconds > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)


def _lines(stream: IO[bytes]) -> Iterator[str]:
    for raw in stream:
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        yield raw.decode("utf-8", errors="replace")


def _home() -> str:
    home = os.path.expanduser("~")
    if home == "~":
        raise RuntimeError("cannot determine the home directory")
    return home


def _parse_line(line: str) -> Optional[Cookie]:
    # url, name, value, expires, domain, path, flags, version, ports, comment, comment url
    fields = line.split("\t")
    if len(fields) != _FIELD_COUNT:
        return None
    if not (_INTEGER.fullmatch(fields[3]) and _INTEGER.fullmatch(fields[6])):
        return None
    flags = int(fields[6])
    return Cookie(
        name=fields[1],
        value=fields[2],
        path=fields[5],
        domain=fields[4],
        expires=_unix_time(int(fields[3])),
        secure=bool(flags & _COO_SECURE),
    )


@dataclass(eq=False)
class W3mCookieStore(FileCookieStore):
    """w3m cookie file: eleven tab separated fields per line; other lines are skipped."""

    browser: str = "w3m"

    def _parse(self, stream: IO[bytes]) -> Iterator[Cookie]:
        for line in _lines(stream):
            cookie = _parse_line(line)
            if cookie is not None:
                yield cookie

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; malformed lines are ignored."""
        return super().traverse_cookies(*args)


def cookie_store(filename: str) -> W3mCookieStore:
    """Return an unopened store for the given w3m cookie file."""
    return W3mCookieStore(file_path=filename)


def traverse_cookies(filename: str, *args: Any) -> Iterator[Cookie]:
    """Yield the filtered cookies of a file, closing it when done."""
    store = cookie_store(filename)
    try:
        yield from store.traverse_cookies(*args)
    finally:
        store.close()


def read_cookies(filename: str, *args: Any) -> list[Cookie]:
    """Read all filtered cookies of a file into a list."""
    return cookie_store(filename).read_cookies(*args)


def find_cookie_stores() -> Iterator[W3mCookieStore]:
    """Yield the default w3m cookie store on Unix-like systems."""
    if not sys.platform.startswith(_UNIX_PLATFORMS):
        return
    yield W3mCookieStore(
        file_path=os.path.join(_home(), ".w3m", "cookie"),
        is_default_profile=True,
    )