import pytest

from kooky import finder
from kooky.cookie import Cookie
from kooky.filters import name
from kooky.w3m import W3mCookieStore

FUTURE = 4102444800


def _w3m_line(cookie_name, cookie_value, expires=FUTURE, domain="example.com"):
    fields = ["http://" + domain + "/", cookie_name, cookie_value, str(expires),
              domain, "/", "0", "0", "", "", ""]
    return "\t".join(fields) + "\n"


@pytest.fixture(autouse=True)
def empty_registry(monkeypatch):
    monkeypatch.setattr(finder, "_finders", {})


@pytest.fixture
def store_files(tmp_path):
    first = tmp_path / "first"
    first.write_text(_w3m_line("alpha", "1") + _w3m_line("beta", "2"))
    second = tmp_path / "second"
    second.write_text(_w3m_line("gamma", "3"))
    return str(first), str(second)


def _finder_for(*paths):
    def find():
        for path in paths:
            yield W3mCookieStore(file_path=path)
    return find


def test_register_finder_ignores_none():
    finder.register_finder("nothing", None)
    finder.register_finder("some", _finder_for())
    assert finder.registered_browsers() == ["some"]


def test_registered_browsers_sorted():
    finder.register_finder("zeta", _finder_for())
    finder.register_finder("alpha", _finder_for())
    assert finder.registered_browsers() == ["alpha", "zeta"]


def test_empty_registry_finds_nothing():
    assert finder.find_all_cookie_stores() == []
    assert list(finder.traverse_cookies()) == []


def test_find_all_cookie_stores_from_several_finders(store_files):
    first, second = store_files
    finder.register_finder("one", _finder_for(first))
    finder.register_finder("two", _finder_for(second))
    stores = finder.find_all_cookie_stores()
    assert sorted(store.file_path for store in stores) == sorted([first, second])


def test_finder_object_with_method(store_files):
    first, _ = store_files

    class ObjectFinder:
        def find_cookie_stores(self):
            return [W3mCookieStore(file_path=first)]

    finder.register_finder("object", ObjectFinder())
    stores = finder.find_all_cookie_stores()
    assert [store.file_path for store in stores] == [first]


def test_failing_finder_appears_as_exception(store_files):
    first, _ = store_files

    def broken():
        raise RuntimeError("boom")

    finder.register_finder("broken", broken)
    finder.register_finder("good", _finder_for(first))
    items = list(finder.traverse_cookie_stores())
    errors = [item for item in items if isinstance(item, BaseException)]
    assert len(errors) == 1
    assert str(errors[0]) == "boom"
    assert [store.file_path for store in finder.find_all_cookie_stores()] == [first]


def test_traverse_cookies_collects_all_stores(store_files):
    finder.register_finder("one", _finder_for(*store_files))
    cookies = list(finder.traverse_cookies())
    assert all(isinstance(cookie, Cookie) for cookie in cookies)
    assert sorted(cookie.name for cookie in cookies) == ["alpha", "beta", "gamma"]


def test_traverse_cookies_applies_filters(store_files):
    finder.register_finder("one", _finder_for(*store_files))
    cookies = list(finder.traverse_cookies(name("beta")))
    assert [(cookie.name, cookie.value) for cookie in cookies] == [("beta", "2")]


def test_traverse_cookies_wraps_finder_errors():
    def broken():
        raise RuntimeError("boom")

    finder.register_finder("broken", broken)
    items = list(finder.traverse_cookies())
    assert len(items) == 1
    assert isinstance(items[0], finder.CookieStoreError)
    assert str(items[0]) == "cookie store: boom"
    assert isinstance(items[0].__cause__, RuntimeError)


def test_traverse_cookies_reports_unreadable_store(tmp_path, store_files):
    missing = str(tmp_path / "missing")
    finder.register_finder("one", _finder_for(missing, store_files[1]))
    items = list(finder.traverse_cookies())
    errors = [item for item in items if isinstance(item, BaseException)]
    cookies = [item for item in items if isinstance(item, Cookie)]
    assert len(errors) == 1
    assert isinstance(errors[0], FileNotFoundError)
    assert [cookie.name for cookie in cookies] == ["gamma"]


def test_traverse_cookies_stops_early(store_files):
    finder.register_finder("one", _finder_for(*store_files))
    seq = finder.traverse_cookies()
    first = next(seq)
    seq.close()
    assert first.name in {"alpha", "beta", "gamma"}
    assert len(list(finder.traverse_cookies())) == 3


def test_cookies_keep_their_store(store_files):
    first, _ = store_files
    finder.register_finder("one", _finder_for(first))
    cookies = list(finder.traverse_cookies())
    assert {cookie.browser.file_path for cookie in cookies} == {first}