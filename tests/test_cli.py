import json
from datetime import datetime

import pytest

from kooky import cli, finder
from kooky.cookie import Cookie
from kooky.w3m import W3mCookieStore

FUTURE = 4102444800
PAST = 1000000000


def _w3m_line(cookie_name, cookie_value, expires=FUTURE, domain="example.com"):
    fields = ["http://" + domain + "/", cookie_name, cookie_value, str(expires),
              domain, "/", "0", "0", "", "", ""]
    return "\t".join(fields) + "\n"


@pytest.fixture
def environment(tmp_path, monkeypatch):
    monkeypatch.setattr(finder, "_finders", {})
    home = tmp_path / "home"
    home.mkdir()
    for variable in ("HOME", "USERPROFILE", "APPDATA", "XDG_DATA_HOME", "XDG_CONFIG_HOME"):
        monkeypatch.setenv(variable, str(home))
    short = tmp_path / "a"
    short.write_text(_w3m_line("sid", "one") + _w3m_line("old", "gone", expires=PAST))
    long_path = tmp_path / "a_much_longer_file_name"
    long_path.write_text(_w3m_line("lang", "en", domain="example.org"))

    def find():
        yield W3mCookieStore(file_path=str(short), profile="main", is_default_profile=True)
        yield W3mCookieStore(file_path=str(long_path), profile="other")

    finder.register_finder("custom", find)
    return short, long_path


def test_trim_str_keeps_short_text():
    assert cli.trim_str("abc", 5) == "abc"
    assert cli.trim_str("abc", 3) == "abc"


def test_trim_str_adds_ellipsis():
    assert cli.trim_str("abcdef", 3) == "ab\u2026"
    assert len(cli.trim_str("x" * 100, cli.TRIM_LEN)) == cli.TRIM_LEN


def test_trim_str_zero_and_negative():
    assert cli.trim_str("abc", 0) == ""
    with pytest.raises(ValueError):
        cli.trim_str("abc", -1)


def test_store_filter_criteria():
    default_store = W3mCookieStore(file_path="f", profile="main", is_default_profile=True)
    other_store = W3mCookieStore(file_path="g", profile="other")
    first = Cookie(name="a", browser=default_store)
    second = Cookie(name="b", browser=other_store)
    assert cli.store_filter("", "", False)(first) is True
    assert cli.store_filter("w3m", "", False)(second) is True
    assert cli.store_filter("elinks", "", False)(first) is False
    assert cli.store_filter("", "other", False)(first) is False
    assert cli.store_filter("", "", True)(first) is True
    assert cli.store_filter("", "", True)(second) is False


def test_store_filter_rejects_cookie_without_store():
    assert cli.store_filter("", "", False)(Cookie(name="a")) is False
    assert cli.store_filter("", "", False)(None) is False


def test_format_cookie_row_fields():
    store = W3mCookieStore(file_path="/tmp/x", profile="p")
    cookie = Cookie(
        name="sid",
        value="a\nb",
        domain="example.com",
        container="c",
        expires=datetime(2030, 1, 2, 3, 4, 5).astimezone(),
        browser=store,
    )
    row = cli.format_cookie_row(cookie, cli.TRIM_LEN)
    assert row.split("\t") == [
        "w3m", "p", " [c]", "/tmp/x", "example.com", "sid", "a\\nb", "2030.01.02 03:04:05",
    ]


def test_format_cookie_row_none():
    assert cli.format_cookie_row(None, cli.TRIM_LEN) == ""


def test_main_table_output_aligned(environment, capsys):
    assert cli.main([]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert all(line.startswith("w3m ") for line in lines)
    assert "old" not in " ".join(lines)
    positions = {line.index("example.") for line in lines}
    assert len(positions) == 1


def test_main_shows_expired_with_flag(environment, capsys):
    assert cli.main(["-e", "-n", "old"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    assert "gone" in lines[0]


def test_main_jsonl(environment, capsys):
    assert cli.main(["-j"]) == 0
    records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert sorted(record["name"] for record in records) == ["lang", "sid"]
    assert all(record["browser"]["browser"] == "w3m" for record in records)


def test_main_filters(environment, capsys):
    assert cli.main(["-j", "-d", "example.org"]) == 0
    records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [record["value"] for record in records] == ["en"]

    assert cli.main(["-j", "-q"]) == 0
    records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [record["name"] for record in records] == ["sid"]

    assert cli.main(["-b", "elinks"]) == 0
    assert capsys.readouterr().out == ""


def test_main_export_to_file(environment, tmp_path):
    target = tmp_path / "out.txt"
    assert cli.main(["-o", str(target), "-p", "main"]) == 0
    text = target.read_text()
    assert text.startswith("# HTTP Cookie File\n\n")
    body = [line for line in text.splitlines()[2:] if line]
    assert len(body) == 1
    assert body[0].split("\t")[5:] == ["sid", "one"]


def test_main_export_to_stdout(environment, capsys):
    assert cli.main(["-o", "-", "-n", "lang"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("# HTTP Cookie File\n\n")
    assert out.rstrip("\n").split("\t")[-2:] == ["lang", "en"]


def test_main_export_unwritable_target(environment, tmp_path):
    target = tmp_path / "no_such_dir" / "out.txt"
    assert cli.main(["-o", str(target)]) == 1
    assert not target.exists()