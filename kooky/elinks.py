"""Cookie store of the ELinks text browser (~/.elinks/cookies)."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Any, Iterator

from .cookie import Cookie, FileCookieStore

_FIELD_COUNT = 8
_INTEGER = re.compile(r"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UNIX_PLATFORMS = ("linux", "freebsd", "openbsd", "netbsd", "dragonfly", "sunos")


def _unix_time(seconds: int) -> datetime:
    try:
        return _EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        limit = datetime.max if seconds > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)


def _parse_int(text: str, field_name: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"{field_name} field is not an integer: {text!r}")
    return int(text)


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


def _parse_line(line: str) -> Cookie:
    fields = line.split("\t")
    if len(fields) != _FIELD_COUNT:
        raise ValueError(f"has {len(fields)} fields; expected are {_FIELD_COUNT}: {line!r}")
    expires = _parse_int(fields[5], "Expires")
    secure = _parse_int(fields[6], "Secure")
    return Cookie(
        name=fields[0],
        value=fields[1],
        path=fields[3],
        domain=fields[4],
        expires=_unix_time(expires),
        secure=secure == 1,
    )


@dataclass(eq=False)
class ElinksCookieStore(FileCookieStore):
    """ELinks cookie file: one cookie per line, eight tab separated fields."""

    browser: str = "elinks"

    def _parse(self, stream: IO[bytes]) -> Iterator[Cookie]:
        for number, line in enumerate(_lines(stream), start=1):
            try:
                cookie = _parse_line(line)
            except ValueError as exc:
                raise ValueError(f"row {number}: {exc}") from exc
            yield cookie

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; a malformed row raises ValueError."""
        return super().traverse_cookies(*args)


def cookie_store(filename: str) -> ElinksCookieStore:
    """Return an unopened store for the given ELinks cookie file."""
    return ElinksCookieStore(file_path=filename)


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


def find_cookie_stores() -> Iterator[ElinksCookieStore]:
    """Yield the default ELinks cookie store on Unix-like systems."""
    if not sys.platform.startswith(_UNIX_PLATFORMS):
        return
    yield ElinksCookieStore(
        file_path=os.path.join(_home(), ".elinks", "cookies"),
        is_default_profile=True,
    )