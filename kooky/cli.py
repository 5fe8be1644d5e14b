"""Command line tool listing or exporting the cookies of the installed browsers."""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from . import elinks, epiphany, konqueror, opera, safari, w3m
from .cookie import Cookie
from .export import export_cookies
from .filters import domain_contains, valid
from .filters import name as name_filter
from .finder import register_finder, traverse_cookies

TRIM_LEN = 45
_ELLIPSIS = "\u2026"
_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}
_BROWSERS = {
    "elinks": elinks,
    "epiphany": epiphany,
    "konqueror": konqueror,
    "opera": opera,
    "safari": safari,
    "w3m": w3m,
}


def _register_browsers() -> None:
    for browser, module in _BROWSERS.items():
        register_finder(browser, module.find_cookie_stores)


def trim_str(text: str, length: int) -> str:
    """Shorten text to at most length characters, ending it with an ellipsis."""
    if length < 0:
        raise ValueError("length must not be negative")
    if len(text) <= length:
        return text
    if length > 0:
        return text[: length - 1] + _ELLIPSIS
    return ""


def store_filter(browser: Optional[str], profile: Optional[str], default_profile: bool) -> Callable[[Any], bool]:
    """Return a filter on the store a cookie came from; empty criteria match all."""

    def passes(cookie: Optional[Cookie]) -> bool:
        if cookie is None or cookie.browser is None:
            return False
        store = cookie.browser
        if browser and store.browser != browser:
            return False
        if profile and store.profile != profile:
            return False
        if default_profile and not store.is_default_profile:
            return False
        return True

    return passes


def _quote(text: str) -> str:
    out = []
    for char in text:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif char.isprintable():
            out.append(char)
        elif ord(char) < 0x80:
            out.append(f"\\x{ord(char):02x}")
        elif ord(char) <= 0xFFFF:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(f"\\U{ord(char):08x}")
    return '"' + "".join(out) + '"'


def _time_text(moment: datetime) -> str:
    try:
        local = moment.astimezone()
    except (OverflowError, ValueError, OSError):
        local = moment
    return (
        f"{local.year:04d}.{local.month:02d}.{local.day:02d} "
        f"{local.hour:02d}:{local.minute:02d}:{local.second:02d}"
    )


def _store_attr(cookie: Cookie, attr: str) -> str:
    if cookie.browser is None:
        return ""
    return str(getattr(cookie.browser, attr, ""))


def format_cookie_row(cookie: Optional[Cookie], trim_len: int) -> str:
    """Render a cookie as tab separated table cells, without a newline."""
    if cookie is None:
        return ""
    container = f" [{cookie.container}]" if cookie.container else ""
    fields = [
        _store_attr(cookie, "browser"),
        _store_attr(cookie, "profile"),
        container,
        trim_str(_store_attr(cookie, "file_path"), trim_len),
        trim_str(cookie.domain, trim_len),
        trim_str(cookie.name, trim_len),
        trim_str(_quote(cookie.value).strip('"'), trim_len),
        _time_text(cookie.expires),
    ]
    return "\t".join(fields)


def _cookie_json(cookie: Cookie) -> dict[str, Any]:
    store = cookie.browser
    return {
        "name": cookie.name,
        "value": cookie.value,
        "domain": cookie.domain,
        "path": cookie.path,
        "expires": cookie.expires.isoformat(),
        "creation": cookie.creation.isoformat(),
        "secure": cookie.secure,
        "http_only": cookie.http_only,
        "container": cookie.container,
        "browser": None if store is None else {
            "browser": getattr(store, "browser", ""),
            "profile": getattr(store, "profile", ""),
            "is_default_profile": getattr(store, "is_default_profile", False),
            "file_path": getattr(store, "file_path", ""),
        },
    }


def _align(lines: list[str]) -> str:
    """Pad tab separated cells so that columns line up within runs of such lines."""
    out: list[str] = []
    block: list[list[str]] = []

    def flush() -> None:
        if not block:
            return
        widths: list[int] = []
        for cells in block:
            for index, cell in enumerate(cells[:-1]):
                if index == len(widths):
                    widths.append(0)
                widths[index] = max(widths[index], len(cell) + 1)
        for cells in block:
            padded = [cell.ljust(widths[index]) for index, cell in enumerate(cells[:-1])]
            out.append("".join(padded) + cells[-1] + "\n")
        block.clear()

    for line in lines:
        if "\t" in line:
            block.append(line.split("\t"))
        else:
            flush()
            out.append(line + "\n")
    flush()
    return "".join(out)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kooky", description="List the cookies of installed browsers.")
    parser.add_argument("-b", "--browser", default="", help="browser filter")
    parser.add_argument("-p", "--profile", default="", help="profile filter")
    parser.add_argument("-q", "--default-profile", action="store_true", help="only default profile(s)")
    parser.add_argument("-e", "--expired", action="store_true", help="show expired cookies")
    parser.add_argument("-d", "--domain", default="", help="cookie domain filter (partial)")
    parser.add_argument("-n", "--name", default="", help="cookie name filter (exact)")
    parser.add_argument("-o", "--export", default="", help="export cookies in netscape format")
    parser.add_argument("-j", "--jsonl", action="store_true", help="JSON Lines output format")
    return parser


def _export(cookies: Any, target: str) -> int:
    if target == "-":
        export_cookies(cookies, sys.stdout)
        return 0
    try:
        descriptor = os.open(target, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    with open(descriptor, "w", encoding="utf-8") as stream:
        export_cookies(cookies, stream)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line tool and return its exit status."""
    args = _parser().parse_args(argv)
    _register_browsers()

    filters: list[Any] = [store_filter(args.browser, args.profile, args.default_profile)]
    if not args.expired:
        filters.append(valid)
    if args.domain:
        filters.append(domain_contains(args.domain))
    if args.name:
        filters.append(name_filter(args.name))

    cookies = traverse_cookies(*filters)
    try:
        if args.export:
            try:
                return _export(cookies, args.export)
            except KeyboardInterrupt:
                return 0
        lines: list[str] = []
        try:
            for cookie in cookies:
                if cookie is None or isinstance(cookie, BaseException):
                    continue
                if args.jsonl:
                    lines.append(json.dumps(_cookie_json(cookie)))
                else:
                    lines.append(format_cookie_row(cookie, TRIM_LEN))
        except KeyboardInterrupt:
            pass
        sys.stdout.write(_align(lines))
        return 0
    finally:
        cookies.close()


if __name__ == "__main__":
    raise SystemExit(main())