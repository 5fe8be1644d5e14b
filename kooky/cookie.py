"""Cookie records and the base class for cookie stores kept in one file."""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import IO, Any, Iterable, Iterator, Optional

from .filters import filter_cookie

# The moment used for "no time set", matching an unset timestamp.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_SEPARATORS = set('()<>@,;:\\"/[]?={} \t')
_TOKEN_CHARS = frozenset(chr(c) for c in range(33, 127)) - _SEPARATORS


def _is_cookie_domain_name(domain: str) -> bool:
    if not domain or len(domain) > 255:
        return False
    if domain.startswith("."):
        domain = domain[1:]
    last = "."
    ok = False
    part_len = 0
    for char in domain:
        if ("a" <= char <= "z") or ("A" <= char <= "Z") or char == "_":
            ok = True
            part_len += 1
        elif "0" <= char <= "9":
            part_len += 1
        elif char == "-":
            if last == ".":
                return False
            part_len += 1
        elif char == ".":
            if last in ".-":
                return False
            if part_len > 63 or part_len == 0:
                return False
            part_len = 0
        else:
            return False
        last = char
    if last == "-" or part_len > 63:
        return False
    return ok


def _is_valid_cookie_domain(domain: str) -> bool:
    if _is_cookie_domain_name(domain):
        return True
    if ":" in domain:
        return False
    try:
        ipaddress.ip_address(domain)
    except ValueError:
        return False
    return True


@dataclass
class Cookie:
    """A browser cookie together with the store it was read from."""

    name: str = ""
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: datetime = ZERO_TIME
    creation: datetime = ZERO_TIME
    secure: bool = False
    http_only: bool = False
    container: str = ""
    browser: Any = field(default=None, repr=False, compare=False)

    def is_well_formed(self) -> bool:
        """Tell whether name, value, path, domain and expiry are acceptable HTTP cookie fields."""
        if not self.name or any(char not in _TOKEN_CHARS for char in self.name):
            return False
        if self.expires != ZERO_TIME and self.expires.year < 1601:
            return False
        for char in self.value:
            if not (0x20 <= ord(char) < 0x7F) or char in '";\\':
                return False
        for char in self.path:
            if not (0x20 <= ord(char) < 0x7F) or char == ";":
                return False
        if self.domain and not _is_valid_cookie_domain(self.domain):
            return False
        return True


def to_cookie_header(cookies: Optional[Iterable[Optional[Cookie]]]) -> str:
    """Join cookies into a Cookie header value: "name1=value1; name2=value2"."""
    if not cookies:
        return ""
    return "; ".join(f"{c.name}={c.value}" for c in cookies if c is not None)


def to_cookie_header_from_seq(seq: Optional[Iterable[Any]]) -> str:
    """Like to_cookie_header, but skips missing entries and errors found in the sequence."""
    if seq is None:
        return ""
    return "; ".join(
        f"{item.name}={item.value}"
        for item in seq
        if item is not None and not isinstance(item, BaseException)
    )


@dataclass(eq=False)
class FileCookieStore(ABC):
    """A cookie store held in a single file; subclasses parse its contents."""

    file_path: str = ""
    browser: str = ""
    profile: str = ""
    is_default_profile: bool = False
    os_name: str = ""
    file: Optional[IO[bytes]] = field(default=None, repr=False)

    def open(self) -> None:
        """Open the file, or rewind it if it is already open."""
        if self.file is not None:
            self.file.seek(0)
            return
        if not self.file_path:
            raise ValueError("cookie store has no file path")
        self.file = open(self.file_path, "rb")

    def close(self) -> None:
        """Close the file if it is open."""
        if self.file is not None:
            try:
                self.file.close()
            finally:
                self.file = None

    def __enter__(self) -> "FileCookieStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @abstractmethod
    def _parse(self, stream: IO[bytes]) -> Iterable[Cookie]:
        """Yield the cookies held in the open file."""

    def traverse_cookies(self, *filters: Any) -> Iterator[Cookie]:
        """Yield the store's cookies that pass all filters."""
        self.open()
        assert self.file is not None
        for cookie in self._parse(self.file):
            if cookie is None:
                continue
            if cookie.browser is None:
                cookie.browser = self
            if filter_cookie(cookie, *filters):
                yield cookie

    def read_cookies(self, *filters: Any) -> list[Cookie]:
        """Read all cookies passing the filters, then close the store."""
        try:
            return list(self.traverse_cookies(*filters))
        finally:
            self.close()