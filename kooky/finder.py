"""Registry of cookie store finders and traversal of every store they find."""

from __future__ import annotations

import queue
import threading
from functools import partial
from typing import Any, Callable, Iterable, Iterator

_POLL_SECONDS = 0.05
_DONE = object()

_finders: dict[str, Any] = {}
_lock = threading.RLock()


class CookieStoreError(Exception):
    """A finder failed while looking for cookie stores."""


def register_finder(browser: str, finder: Any) -> None:
    """Register a finder under a browser name; a missing finder is ignored.

    A finder is either an object with a ``find_cookie_stores()`` method or a
    callable taking no arguments; both return an iterable of cookie stores.
    """
    if finder is None:
        return
    with _lock:
        _finders[browser] = finder


def registered_browsers() -> list[str]:
    """Return the names of the registered finders, sorted."""
    with _lock:
        return sorted(_finders)


def _search(finder: Any) -> Iterable[Any]:
    find = getattr(finder, "find_cookie_stores", None)
    if callable(find):
        return find()
    if callable(finder):
        return finder()
    raise TypeError(f"not a cookie store finder: {finder!r}")


class _Merger:
    """Runs producers in threads and hands their items to one consumer."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._pending = 0

    def spawn(self, produce: Callable[[], Iterable[Any]]) -> None:
        with self._lock:
            self._pending += 1
        threading.Thread(target=self._run, args=(produce,), daemon=True).start()

    def _put(self, item: Any) -> bool:
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _run(self, produce: Callable[[], Iterable[Any]]) -> None:
        iterator = None
        try:
            iterator = iter(produce())
            for item in iterator:
                if not self._put(item):
                    return
        except Exception as exc:
            self._put(exc)
        finally:
            close = getattr(iterator, "close", None)
            if callable(close):
                try:
                    close()
                except Exception:
                    pass
            self._put(_DONE)

    def __iter__(self) -> Iterator[Any]:
        try:
            while True:
                with self._lock:
                    if self._pending == 0:
                        return
                item = self._queue.get()
                if item is _DONE:
                    with self._lock:
                        self._pending -= 1
                    continue
                yield item
        finally:
            self._stop.set()


def traverse_cookie_stores() -> Iterator[Any]:
    """Yield the stores of all registered finders, run concurrently.

    A finder that fails puts its exception into the sequence in place of a store.
    """
    with _lock:
        finders = list(_finders.values())
    merger = _Merger()
    for finder in finders:
        merger.spawn(partial(_search, finder))
    yield from merger


def find_all_cookie_stores() -> list[Any]:
    """Return every cookie store the registered finders find; failures are dropped."""
    return [
        store
        for store in traverse_cookie_stores()
        if store is not None and not isinstance(store, BaseException)
    ]


def _store_cookies(store: Any, filters: tuple[Any, ...]) -> Iterator[Any]:
    try:
        yield from store.traverse_cookies(*filters)
    finally:
        close = getattr(store, "close", None)
        if callable(close):
            close()


def traverse_cookies(*args: Any) -> Iterator[Any]:
    """Yield the cookies passing the filters from every store found, read concurrently.

    Exceptions take the place of items that could not be read: a failing
    finder appears as a CookieStoreError, a failing store as its own error.
    """
    merger = _Merger()

    def stores() -> Iterator[Any]:
        for item in traverse_cookie_stores():
            if isinstance(item, BaseException):
                error = CookieStoreError(f"cookie store: {item}")
                error.__cause__ = item
                yield error
            elif item is not None:
                merger.spawn(partial(_store_cookies, item, args))

    merger.spawn(stores)
    yield from merger