"""Cookie store of the Safari browser (Cookies.binarycookies)."""

from __future__ import annotations

import math
import os
import struct
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Any, Iterator

from .cookie import ZERO_TIME, Cookie, FileCookieStore

SAFARI_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

_MAGIC = b"cook"
_PAGE_MAGIC = b"\x00\x00\x01\x00"
_FILE_HEADER = struct.Struct(">4si")
_PAGE_HEADER = struct.Struct("<4si")
_COOKIE_HEADER = struct.Struct("<8i8sdd")
_CHECKSUM_SIZE = 8
_FLAG_SECURE = 1
_FLAG_HTTP_ONLY = 4


def from_safari_time(seconds: float) -> datetime:
    """Convert seconds since 2001-01-01 UTC into an aware datetime."""
    if math.isnan(seconds):
        return ZERO_TIME
    try:
        return SAFARI_EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        limit = datetime.max if seconds > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)


def _read_exact(stream: IO[bytes], size: int, what: str) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        raise ValueError(f"{what}: unexpected EOF")
    return data


def _read_string(page: bytes, field_name: str, start: int, offset: int) -> str:
    position = start + offset
    if position < 0:
        raise ValueError(f"seeking for {field_name!r} at offset {offset}")
    end = page.find(b"\x00", position) if position <= len(page) else -1
    if end < 0:
        raise ValueError(f"reading for {field_name!r} at offset {offset}")
    return page[position:end].decode("utf-8", errors="replace")


def _read_cookie(page: bytes, start: int) -> Cookie:
    if start < 0 or start + _COOKIE_HEADER.size > len(page):
        raise ValueError("unexpected EOF")
    (
        _size,
        _unknown1,
        flags,
        _unknown2,
        url_offset,
        name_offset,
        path_offset,
        value_offset,
        _end,
        expiration,
        creation,
    ) = _COOKIE_HEADER.unpack_from(page, start)
    return Cookie(
        domain=_read_string(page, "url", start, url_offset),
        name=_read_string(page, "name", start, name_offset),
        path=_read_string(page, "path", start, path_offset),
        value=_read_string(page, "value", start, value_offset),
        expires=from_safari_time(expiration),
        creation=from_safari_time(creation),
        secure=bool(flags & _FLAG_SECURE),
        http_only=bool(flags & _FLAG_HTTP_ONLY),
    )


def _read_page(stream: IO[bytes], index: int, page_size: int) -> Iterator[Cookie]:
    prefix = f"error reading page {index}"
    if page_size < 0:
        raise ValueError(f"{prefix}: negative page size {page_size}")
    page = _read_exact(stream, page_size, prefix)
    if len(page) < _PAGE_HEADER.size:
        raise ValueError(f"{prefix}: error reading header: unexpected EOF")
    header, count = _PAGE_HEADER.unpack_from(page, 0)
    if header != _PAGE_MAGIC:
        raise ValueError(
            f"{prefix}: expected first 4 bytes of page to be {list(_PAGE_MAGIC)}; got {list(header)}"
        )
    offsets_end = _PAGE_HEADER.size + 4 * count
    if count < 0 or offsets_end > len(page):
        raise ValueError(f"{prefix}: error reading cookie offsets: unexpected EOF")
    offsets = struct.unpack_from(f"<{count}i", page, _PAGE_HEADER.size)
    for number, offset in enumerate(offsets):
        try:
            cookie = _read_cookie(page, offset)
        except ValueError as exc:
            raise ValueError(f"{prefix}: cookie {number}: {exc}") from exc
        yield cookie


@dataclass(eq=False)
class SafariCookieStore(FileCookieStore):
    """Safari binary cookie file: big-endian page index, little-endian pages."""

    browser: str = "safari"

    def _parse(self, stream: IO[bytes]) -> Iterator[Cookie]:
        header = stream.read(_FILE_HEADER.size)
        if header is None or len(header) < _FILE_HEADER.size:
            raise ValueError("error reading header: unexpected EOF")
        magic, num_pages = _FILE_HEADER.unpack(header)
        if magic != _MAGIC:
            raise ValueError(f"expected first 4 bytes to be {_MAGIC.decode()!r}; got {magic!r}")
        if num_pages < 0:
            raise ValueError(f"error reading page sizes: negative page count {num_pages}")
        sizes_raw = _read_exact(stream, 4 * num_pages, "error reading page sizes")
        page_sizes = struct.unpack(f">{num_pages}i", sizes_raw)
        for index, page_size in enumerate(page_sizes):
            yield from _read_page(stream, index, page_size)
        _read_exact(stream, _CHECKSUM_SIZE, "error reading checksum")

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; a damaged file raises ValueError."""
        return super().traverse_cookies(*args)


def cookie_store(filename: str) -> SafariCookieStore:
    """Return an unopened store for the given Safari cookie file."""
    return SafariCookieStore(file_path=filename)


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


def _home() -> str:
    home = os.path.expanduser("~")
    if home == "~":
        raise RuntimeError("cannot determine the home directory")
    return home


def _cookie_files() -> list[str]:
    if sys.platform == "darwin":
        home = _home()
        return [
            os.path.join(
                home, "Library", "Containers", "com.apple.Safari", "Data",
                "Library", "Cookies", "Cookies.binarycookies",
            ),
            os.path.join(home, "Library", "Cookies", "Cookies.binarycookies"),
        ]
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA", "")
        if not app_data:
            raise RuntimeError("%AppData% is not defined")
        return [os.path.join(app_data, "Apple Computer", "Safari", "Cookies", "Cookies.binarycookies")]
    return []


def find_cookie_stores() -> Iterator[SafariCookieStore]:
    """Yield Safari cookie stores on macOS and Windows; the first is the default."""
    for index, path in enumerate(_cookie_files()):
        yield SafariCookieStore(file_path=path, is_default_profile=index == 0)