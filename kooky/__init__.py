"""Read, filter and export cookies from the cookie stores of web browsers."""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "cookie",
    "elinks",
    "epiphany",
    "export",
    "filters",
    "finder",
    "konqueror",
    "opera",
    "safari",
    "w3m",
]