# kooky

Reach into the cookie stores of web browsers, read the cookies they hold,
filter them and export them in the Netscape `cookies.txt` format that
curl, wget and many other tools understand.

The package uses only the standard library.

## Supported cookie stores

| Browser   | File read                                  | Module            | Store class              |
|-----------|--------------------------------------------|-------------------|--------------------------|
| ELinks    | tab-separated text (`~/.elinks/cookies`)   | `kooky.elinks`    | `ElinksCookieStore`      |
| w3m       | tab-separated text (`~/.w3m/cookie`)       | `kooky.w3m`       | `W3mCookieStore`         |
| Konqueror | `kcookiejar/cookies` text file (Latin-1)   | `kooky.konqueror` | `KonquerorCookieStore`   |
| Safari    | `Cookies.binarycookies`                    | `kooky.safari`    | `SafariCookieStore`      |
| Epiphany  | `cookies.sqlite` (table `moz_cookies`)     | `kooky.epiphany`  | `EpiphanyCookieStore`    |
| Opera     | Presto `cookies4.dat`                      | `kooky.opera`     | `OperaPrestoCookieStore` |

How each reader treats damaged input:

- ELinks: a line that does not have eight fields, or whose expiry or secure
  field is not an integer, raises `ValueError` naming the row number.
- w3m and Konqueror: lines that do not parse are skipped; Konqueror also skips
  comment lines and `[domain]` section headers.
- Safari: a wrong magic number, a wrong page header or a truncated file raises
  `ValueError`.
- Epiphany: a missing file raises `FileNotFoundError`; a missing or mistyped
  column raises `ValueError`. The database is opened read-only.
- Opera: the file type is checked first; anything but a version 1.0
  `cookies4.dat` file raises `ValueError`.

## What this package does not do

- It does not read the cookies of Chrome, Chromium, Edge, Firefox or
  Internet Explorer, nor Netscape-format `cookies.txt` files; it only writes
  that format.
- It does not read Opera's SQLite cookie database (Chromium-based Opera);
  `kooky.opera.cookie_store` raises `ValueError` for such a file.
- It does not decrypt encrypted cookie values, and it never writes into a
  browser's own cookie store.

## Installation

```
pip install .
```

## Command line

```
kooky [options]
```

The same tool runs as `python -m kooky.cli`.

Without options, `kooky` looks in the default locations of the supported
browsers and lists every valid cookie it finds, one per line, in aligned
columns: browser, profile, container, file, domain, name, value (with
control characters escaped) and expiry time in local time
(`YYYY.MM.DD hh:mm:ss`). File, domain, name and value are cut to 45
characters, ending in `…`.

| Option                     | Meaning                                                               |
|----------------------------|-----------------------------------------------------------------------|
| `-b`, `--browser NAME`     | only cookies of this browser (`elinks`, `w3m`, `konqueror`, `safari`, `epiphany`, `opera`) |
| `-p`, `--profile NAME`     | only cookies of this profile                                          |
| `-q`, `--default-profile`  | only cookies of default profiles                                      |
| `-e`, `--expired`          | include expired and malformed cookies                                 |
| `-d`, `--domain TEXT`      | cookie domain contains TEXT                                           |
| `-n`, `--name NAME`        | cookie name is exactly NAME                                           |
| `-o`, `--export FILE`      | write the cookies in Netscape format to FILE (`-` for standard output) |
| `-j`, `--jsonl`            | print one JSON object per cookie                                      |

With `-o FILE` the file is created with mode 0644 if needed and written from
the start; an existing file is not truncated first. Stores that cannot be
read are left out silently.

Each JSON line holds `name`, `value`, `domain`, `path`, `expires` and
`creation` (ISO 8601), `secure`, `http_only`, `container` and `browser`,
an object with the store's `browser`, `profile`, `is_default_profile` and
`file_path`.

Examples:

```
kooky -b w3m -d example.com
kooky -n session -o cookies.txt
kooky -j -e
```

## Library

### Reading one file

```python
from kooky import w3m
from kooky.filters import domain_contains, valid

cookies = w3m.read_cookies("/home/me/.w3m/cookie", valid, domain_contains("example.com"))
for cookie in cookies:
    print(cookie.domain, cookie.name, cookie.value)
```

Every browser module offers the same functions:

- `read_cookies(filename, *filters)` reads all matching cookies into a list
  and closes the file,
- `traverse_cookies(filename, *filters)` yields them one by one and closes
  the file when the iteration ends,
- `cookie_store(filename)` returns an unopened store object,
- `find_cookie_stores()` yields the stores at the browser's default
  locations (ELinks and w3m on Unix-like systems, Konqueror everywhere but
  Windows, Safari on macOS and Windows, Epiphany everywhere but Windows).

`kooky.safari.from_safari_time(seconds)` converts Safari timestamps
(seconds since 2001-01-01 UTC) into aware datetimes.

### Cookies and stores

`kooky.cookie.Cookie` is a dataclass with `name`, `value`, `domain`, `path`,
`expires`, `creation` (aware datetimes), `secure`, `http_only`, `container`
and `browser`, the store the cookie was read from. `is_well_formed()` tells
whether name, value, path, domain and expiry are acceptable HTTP cookie
fields.

Every store derives from `kooky.cookie.FileCookieStore`, which carries
`file_path`, `browser`, `profile`, `is_default_profile` and `os_name`, and
offers `open()`, `close()`, `traverse_cookies(*filters)` and
`read_cookies(*filters)`. A store is also a context manager that closes
itself:

```python
from kooky import safari

with safari.cookie_store("Cookies.binarycookies") as store:
    for cookie in store.traverse_cookies():
        print(cookie.name)
```

### Filters

A filter is a callable that takes a cookie and returns whether it passes.
`kooky.filters` provides:

- domain: `domain` (a `DomainFilter`), `domain_contains`, `domain_has_prefix`, `domain_has_suffix`
- name: `name`, `name_contains`, `name_has_prefix`, `name_has_suffix`
- path: `path`, `path_contains`, `path_has_prefix`, `path_has_suffix`,
  `path_depth` (number of `/` once trailing slashes are removed)
- value: `value`, `value_contains`, `value_has_prefix`, `value_has_suffix`,
  `value_len` (length in UTF-8 bytes); these are `ValueFilter` objects
- flags: `secure`, `http_only`
- time: `valid` (not expired and well formed), `expired`, `expires_after`,
  `expires_before`, `creation_after`, `creation_before`; naive datetimes are
  taken as local time
- `debug`, which prints each cookie that reaches it and lets it pass

`filter_cookie(cookie, *filters)` tells whether one cookie passes all
filters (`None` filters are ignored); `filter_cookies(cookies, *filters)`
yields the cookies that do, and raises `ValueError` for an empty list.

### Searching all browsers

`kooky.finder` keeps a registry of finders. A finder is an object with a
`find_cookie_stores()` method or a callable taking no arguments; register
one per browser, then search them all at once, concurrently:

```python
from kooky import finder, w3m, konqueror
from kooky.filters import domain_contains, valid

finder.register_finder("w3m", w3m.find_cookie_stores)
finder.register_finder("konqueror", konqueror.find_cookie_stores)

for item in finder.traverse_cookies(valid, domain_contains("example.com")):
    if isinstance(item, Exception):
        continue  # a finder or store that failed
    print(item.name)
```

`traverse_cookies` puts exceptions into the sequence in place of what could
not be read: a failing finder appears as `finder.CookieStoreError`, a
failing store as its own error. `traverse_cookie_stores()` yields the
stores (or finder errors), `find_all_cookie_stores()` returns the stores
alone, and `registered_browsers()` lists the registered names.

### Exporting

```python
import sys
from kooky.export import export_cookies

count = export_cookies(cookies, sys.stdout)
```

writes a `# HTTP Cookie File` header followed by one tab-separated line per
cookie (domain, subdomain flag, path, secure flag, expiry as Unix time,
name, value) and returns how many cookies it wrote; nothing is written when
there are none. HTTP-only cookies get the `#HttpOnly_` domain prefix.
`format_cookie_line(cookie)` gives a single line.

### Cookie headers

```python
from kooky.cookie import to_cookie_header

header = to_cookie_header(cookies)   # "name1=value1; name2=value2"
```

`to_cookie_header_from_seq(seq)` does the same for any iterable and skips
`None` entries and exceptions in it.

## Tests

```
pip install .[test]
pytest
```