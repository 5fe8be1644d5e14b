[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kooky"
version = "0.1.0"
description = "Read, filter and export cookies from the cookie stores of web browsers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "cookies",
    "browser",
    "cookie-jar",
    "cookies.txt",
    "safari",
    "opera",
    "konqueror",
    "w3m",
    "elinks",
    "epiphany",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Browsers",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kooky = "kooky.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["kooky"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
