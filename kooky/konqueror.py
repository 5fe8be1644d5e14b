"""Cookie store of the Konqueror browser (kcookiejar/cookies)."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Any, Iterator, Optional

from .cookie import Cookie, FileCookieStore

_SECURE = 1
_HTTP_ONLY = 2
_INTEGER = re.compile(r"[+-]?[0-9]+")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


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
        yield raw.decode("latin-1")


def _next_word(text: str) -> Optional[tuple[str, str]]:
    word, sep, rest = text.lstrip(" ").partition(" ")
    return (word, rest) if sep else None


def _next_quoted(text: str) -> Optional[tuple[str, str]]:
    parts = text.lstrip(" ").split('"', 2)
    if len(parts) != 3 or parts[0]:
        return None
    return parts[1], parts[2]


def _parse_line(line: str) -> Optional[Cookie]:
    # Host "Domain" "Path" Expires Prot Name Sec Value
    if not line or line[0] in "#[":
        return None
    host, sep, rest = line.partition(" ")
    if not sep:
        return None
    quoted = _next_quoted(rest)
    if quoted is None:
        return None
    cookie_domain, rest = quoted
    # An empty domain field means the cookie is not for subdomains.
    cookie_domain = cookie_domain or host
    quoted = _next_quoted(rest)
    if quoted is None:
        return None
    cookie_path, rest = quoted

    words = []
    for _ in range(4):
        step = _next_word(rest)
        if step is None:
            return None
        word, rest = step
        words.append(word)
    expires, protocol, cookie_name, sec = words
    if not all(_INTEGER.fullmatch(w) for w in (expires, protocol, sec)):
        return None
    flags = int(sec)
    return Cookie(
        name=cookie_name,
        value=rest.strip(" "),
        domain=cookie_domain,
        path=cookie_path,
        expires=_unix_time(int(expires)),
        secure=bool(flags & _SECURE),
        http_only=bool(flags & _HTTP_ONLY),
    )


@dataclass(eq=False)
class KonquerorCookieStore(FileCookieStore):
    """Konqueror cookie jar: Latin-1 text, comments and domain headers skipped."""

    browser: str = "konqueror"

    def _parse(self, stream: IO[bytes]) -> Iterator[Cookie]:
        for line in _lines(stream):
            cookie = _parse_line(line)
            if cookie is not None:
                yield cookie

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; malformed lines are ignored."""
        return super().traverse_cookies(*args)


def cookie_store(filename: str) -> KonquerorCookieStore:
    """Return an unopened store for the given Konqueror cookie file."""
    return KonquerorCookieStore(file_path=filename)


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


def _roots() -> Iterator[str]:
    home = os.path.expanduser("~")
    if home != "~":
        yield os.path.join(home, ".local", "share")
    data_dir = os.environ.get("XDG_DATA_HOME")
    if data_dir is not None:
        yield data_dir


def find_cookie_stores() -> Iterator[KonquerorCookieStore]:
    """Yield the Konqueror cookie stores at their usual places, except on Windows."""
    if sys.platform == "win32":
        return
    for root in _roots():
        yield KonquerorCookieStore(file_path=os.path.join(root, "kcookiejar", "cookies"))