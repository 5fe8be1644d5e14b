"""Cookie store of the Opera Presto browser (cookies4.dat)."""

from __future__ import annotations

import os
import struct
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import IO, Any, Iterator

from .cookie import Cookie, FileCookieStore

_FILE_HEADER = struct.Struct(">IIHH")
_EXPIRY = struct.Struct(">q")
_SQLITE_MAGIC = b"SQLite format 3\x00"
_SUPPORTED_VERSION = (1, 0)
_NO_LENGTH_BIT = 0x80
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FILE_TYPE_COOKIES4 = "opera_cookies4_1.0"
FILE_TYPE_SQLITE = "sqlite"
FILE_TYPE_UNKNOWN = "unknown"


class _Tag(IntEnum):
    DOMAIN_START = 0x01
    PATH_START = 0x02
    COOKIE = 0x03
    DOMAIN_END = 0x04
    PATH_END = 0x05
    COOKIE_NAME = 0x10
    COOKIE_VALUE = 0x11
    COOKIE_EXPIRY = 0x12
    COOKIE_HTTPS_ONLY = 0x19
    PATH_NAME = 0x1D
    DOMAIN_NAME = 0x1E


# Records that open a nested structure: their payload is the records that follow.
_STRUCT_TAGS = frozenset({_Tag.DOMAIN_START, _Tag.PATH_START, _Tag.COOKIE})


def _unix_time(seconds: int) -> datetime:
    try:
        return _EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        limit = datetime.max if seconds > 0 else datetime.min
        return limit.replace(tzinfo=timezone.utc)


def _read_exact(stream: IO[bytes], size: int, what: str) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        raise ValueError(f"{what}: unexpected EOF")
    return data


def _records(stream: IO[bytes], id_length: int, length_length: int) -> Iterator[tuple[int, bytes]]:
    """Yield (tag, payload) pairs until the data ends at a record boundary."""
    while True:
        raw_tag = stream.read(id_length)
        if not raw_tag:
            return
        if len(raw_tag) < id_length:
            raise ValueError("reading record tag: unexpected EOF")
        no_length = bool(raw_tag[0] & _NO_LENGTH_BIT)
        tag = int.from_bytes(bytes([raw_tag[0] & ~_NO_LENGTH_BIT & 0xFF]) + raw_tag[1:], "big")
        if no_length:
            yield tag, b""
            continue
        length = int.from_bytes(_read_exact(stream, length_length, "reading record length"), "big")
        if length and tag not in _STRUCT_TAGS:
            yield tag, _read_exact(stream, length, f"reading payload of tag {tag:#x}")
        else:
            yield tag, b""


def _text(payload: bytes) -> str:
    return payload.decode("utf-8", errors="replace")


def _cookies(stream: IO[bytes], id_length: int, length_length: int) -> Iterator[Cookie]:
    domain_parts: list[str] = []
    cookie_path = ""
    current = None
    for tag, payload in _records(stream, id_length, length_length):
        if tag == _Tag.COOKIE:
            if current is not None:
                yield current
            current = Cookie(domain=".".join(reversed(domain_parts)), path=cookie_path)
        elif tag == _Tag.DOMAIN_NAME:
            domain_parts.append(_text(payload))
        elif tag == _Tag.DOMAIN_END:
            if domain_parts:
                domain_parts.pop()
        elif tag == _Tag.PATH_NAME:
            cookie_path = _text(payload)
        elif tag in (_Tag.PATH_START, _Tag.PATH_END):
            cookie_path = ""
        elif tag == _Tag.COOKIE_EXPIRY and len(payload) != _EXPIRY.size:
            # A malformed expiry ends the record stream.
            break
        elif current is None:
            continue
        elif tag == _Tag.COOKIE_NAME:
            current.name = _text(payload)
        elif tag == _Tag.COOKIE_VALUE:
            current.value = _text(payload)
        elif tag == _Tag.COOKIE_EXPIRY:
            current.expires = _unix_time(_EXPIRY.unpack(payload)[0])
        elif tag == _Tag.COOKIE_HTTPS_ONLY:
            current.secure = True
    if current is not None:
        yield current


@dataclass(eq=False)
class OperaPrestoCookieStore(FileCookieStore):
    """Opera Presto cookies4.dat file: a tree of tagged binary records."""

    browser: str = "opera"

    def _parse(self, stream: IO[bytes]) -> Iterator[Cookie]:
        header = stream.read(_FILE_HEADER.size)
        if header is None or len(header) < _FILE_HEADER.size:
            raise ValueError("error reading header: unexpected EOF")
        file_version, _app_version, id_length, length_length = _FILE_HEADER.unpack(header)
        major, minor = file_version >> 12, file_version & 0xFFF
        if (major, minor) != _SUPPORTED_VERSION:
            raise ValueError(f"unsupported file format version {major}.{minor}")
        if not (1 <= id_length <= 4 and 1 <= length_length <= 4):
            raise ValueError("unexpected byte length values")
        yield from _cookies(stream, id_length, length_length)

    def traverse_cookies(self, *args: Any) -> Iterator[Cookie]:
        """Yield the cookies passing the filters; a damaged file raises ValueError."""
        return super().traverse_cookies(*args)


def _detect_file_type(filename: str) -> str:
    with open(filename, "rb") as stream:
        head = stream.read(len(_SQLITE_MAGIC))
    if head.startswith(_SQLITE_MAGIC):
        return FILE_TYPE_SQLITE
    if len(head) >= _FILE_HEADER.size:
        file_version = _FILE_HEADER.unpack_from(head)[0]
        if (file_version >> 12, file_version & 0xFFF) == _SUPPORTED_VERSION:
            return FILE_TYPE_COOKIES4
    return FILE_TYPE_UNKNOWN


def cookie_store(filename: str) -> OperaPrestoCookieStore:
    """Return an unopened store for an Opera cookie file, checking its type first."""
    file_type = _detect_file_type(filename)
    if file_type == FILE_TYPE_COOKIES4:
        return OperaPrestoCookieStore(file_path=filename)
    if file_type == FILE_TYPE_SQLITE:
        raise ValueError(f"unsupported file type {file_type!r}: Chromium-based cookie database")
    raise ValueError("unknown file type")


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


def _presto_roots() -> Iterator[str]:
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data is None:
            raise RuntimeError("%AppData% not set")
        yield os.path.join(app_data, "Opera", "Opera")
    elif sys.platform == "darwin":
        yield os.path.join(_home(), "Library", "Opera")
    else:
        yield os.path.join(_home(), ".opera")


def find_cookie_stores() -> Iterator[OperaPrestoCookieStore]:
    """Yield the Opera Presto cookie stores at their usual places."""
    for root in _presto_roots():
        yield OperaPrestoCookieStore(
            file_path=os.path.join(root, "cookies4.dat"),
            is_default_profile=True,
        )