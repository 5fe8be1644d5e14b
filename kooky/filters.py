"""Cookie filters: callables that take a cookie and tell whether it passes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional

if TYPE_CHECKING:
    from .cookie import Cookie

Filter = Callable[["Cookie"], bool]


def _moment(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment
    try:
        return moment.astimezone()
    except (OverflowError, ValueError):
        return moment.replace(tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValueFilter:
    """A filter that looks at the cookie value, which may need decrypting first."""

    func: Optional[Callable[["Cookie"], bool]]

    def __call__(self, cookie: Optional["Cookie"]) -> bool:
        return self.func is not None and cookie is not None and bool(self.func(cookie))


@dataclass(frozen=True)
class DomainFilter:
    """A filter passing cookies whose domain equals the given one."""

    domain: str
    kind: str = "domain"

    def __call__(self, cookie: Optional["Cookie"]) -> bool:
        return cookie is not None and cookie.domain == self.domain


def filter_cookie(cookie: Optional["Cookie"], *filters: Optional[Filter]) -> bool:
    """Tell whether a cookie passes all filters; missing filters are ignored."""
    if cookie is None:
        return False
    return all(f(cookie) for f in filters if f is not None)


def filter_cookies(cookies: Optional[Iterable[Optional["Cookie"]]], *filters: Optional[Filter]) -> Iterator["Cookie"]:
    """Yield the cookies that pass all filters."""
    if cookies is None:
        raise TypeError("no cookies given")
    if isinstance(cookies, (list, tuple)) and not cookies:
        raise ValueError("cookie list of length 0")
    for cookie in cookies:
        if cookie is not None and filter_cookie(cookie, *filters):
            yield cookie


def debug(cookie: Optional["Cookie"]) -> bool:
    """Print the cookie and let it pass; place it after the filter under test."""
    print(repr(cookie))
    return True


def domain(name: str) -> DomainFilter:
    return DomainFilter(name)


def domain_contains(substr: str) -> Filter:
    return lambda cookie: cookie is not None and substr in cookie.domain


def domain_has_prefix(prefix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.domain.startswith(prefix)


def domain_has_suffix(suffix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.domain.endswith(suffix)


def name(value: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.name == value


def name_contains(substr: str) -> Filter:
    return lambda cookie: cookie is not None and substr in cookie.name


def name_has_prefix(prefix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.name.startswith(prefix)


def name_has_suffix(suffix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.name.endswith(suffix)


def path(value: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.path == value


def path_contains(substr: str) -> Filter:
    return lambda cookie: cookie is not None and substr in cookie.path


def path_has_prefix(prefix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.path.startswith(prefix)


def path_has_suffix(suffix: str) -> Filter:
    return lambda cookie: cookie is not None and cookie.path.endswith(suffix)


def path_depth(depth: int) -> Filter:
    return lambda cookie: cookie is not None and cookie.path.rstrip("/").count("/") == depth


def value(value: str) -> ValueFilter:
    expected = value
    return ValueFilter(lambda cookie: cookie.value == expected)


def value_contains(substr: str) -> ValueFilter:
    return ValueFilter(lambda cookie: substr in cookie.value)


def value_has_prefix(prefix: str) -> ValueFilter:
    return ValueFilter(lambda cookie: cookie.value.startswith(prefix))


def value_has_suffix(suffix: str) -> ValueFilter:
    return ValueFilter(lambda cookie: cookie.value.endswith(suffix))


def value_len(length: int) -> ValueFilter:
    """Pass cookies whose value is the given number of UTF-8 bytes long."""
    return ValueFilter(lambda cookie: len(cookie.value.encode("utf-8")) == length)


def secure(cookie: Optional["Cookie"]) -> bool:
    return cookie is not None and cookie.secure


def http_only(cookie: Optional["Cookie"]) -> bool:
    return cookie is not None and cookie.http_only


def valid(cookie: Optional["Cookie"]) -> bool:
    """Pass cookies that have not expired and are well formed."""
    return cookie is not None and _moment(cookie.expires) > _now() and cookie.is_well_formed()


def expired(cookie: Optional["Cookie"]) -> bool:
    return cookie is not None and _moment(cookie.expires) < _now()


def expires_after(moment: datetime) -> Filter:
    limit = _moment(moment)
    return lambda cookie: cookie is not None and _moment(cookie.expires) > limit


def expires_before(moment: datetime) -> Filter:
    limit = _moment(moment)
    return lambda cookie: cookie is not None and _moment(cookie.expires) < limit


def creation_after(moment: datetime) -> Filter:
    limit = _moment(moment)
    return lambda cookie: cookie is not None and _moment(cookie.creation) > limit


def creation_before(moment: datetime) -> Filter:
    limit = _moment(moment)
    return lambda cookie: cookie is not None and _moment(cookie.creation) < limit


__all__ = [
    "Filter",
    "ValueFilter",
    "DomainFilter",
    "filter_cookie",
    "filter_cookies",
    "debug",
    "domain",
    "domain_contains",
    "domain_has_prefix",
    "domain_has_suffix",
    "name",
    "name_contains",
    "name_has_prefix",
    "name_has_suffix",
    "path",
    "path_contains",
    "path_has_prefix",
    "path_has_suffix",
    "path_depth",
    "value",
    "value_contains",
    "value_has_prefix",
    "value_has_suffix",
    "value_len",
    "secure",
    "http_only",
    "valid",
    "expired",
    "expires_after",
    "expires_before",
    "creation_after",
    "creation_before",
]


def _unused(*_: Any) -> None:  # pragma: no cover
    return None