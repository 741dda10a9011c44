[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "atcli"
version = "0.1"
description = "A terminal user interface for sending AT commands to serial modems"
requires-python = ">=3.10"
keywords = ["at-commands", "modem", "serial", "gps", "signal", "tui", "terminal"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
    "Topic :: Communications",
]
dependencies = [
    "pyserial",
    "urwid",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
atcli = "atcli.app:main"

[tool.hatch.build.targets.wheel]
packages = ["atcli"]

[tool.pytest.ini_options]
addopts = "-ra"
