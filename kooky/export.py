"""Export of cookies in the Netscape cookies.txt format used by curl and wget."""

from __future__ import annotations

import math
from typing import IO, Iterable, Optional

from .cookie import Cookie

HTTP_ONLY_PREFIX = "#HttpOnly_"
NETSCAPE_HEADER = "# HTTP Cookie File\n\n"


def _flag(flag: bool) -> str:
    return "TRUE" if flag else "FALSE"


def format_cookie_line(cookie: Cookie) -> str:
    """Render one cookie as a tab separated Netscape line, newline included."""
    domain = (HTTP_ONLY_PREFIX if cookie.http_only else "") + cookie.domain
    fields = [
        domain,
        _flag(cookie.domain.startswith(".")),
        cookie.path,
        _flag(cookie.secure),
        str(math.floor(cookie.expires.timestamp())),
        cookie.name,
        cookie.value,
    ]
    return "\t".join(fields) + "\n"


def export_cookies(cookies: Optional[Iterable[Optional[Cookie]]], stream: IO[str]) -> int:
    """Write the cookies to a text stream; return how many were written.

    The header is written before the first cookie; nothing is written if there is none.
    """
    if cookies is None:
        return 0
    written = 0
    for cookie in cookies:
        if cookie is None or isinstance(cookie, BaseException):
            continue
        if not written:
            stream.write(NETSCAPE_HEADER)
        stream.write(format_cookie_line(cookie))
        written += 1
    return written