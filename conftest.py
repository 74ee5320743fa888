from __future__ import annotations

import platform

import termbg

import pytest
from sybil import Sybil
from sybil.parsers.codeblock import PythonCodeBlockParser
from sybil.parsers.doctest import DocTestParser
from sybil.parsers.rest import SkipParser


def _setup(namespace):
    namespace["termbg"] = termbg


pytest_collect_file = Sybil(
    parsers=[
        DocTestParser(),
        PythonCodeBlockParser(),
        SkipParser(),
    ],
    patterns=["termbg/*.py"],
    excludes=["termbg/__main__.py"],
    setup=_setup,
).pytest()

_PLATFORMS = {"windows", "linux", "darwin"}


def pytest_configure(config):
    for plat in sorted(_PLATFORMS):
        config.addinivalue_line("markers", f"{plat}: only run on {plat}")


def pytest_runtest_setup(item):
    supported_platforms = _PLATFORMS.intersection(
        mark.name for mark in item.iter_markers()
    )
    plat = platform.system().lower()
    if supported_platforms and plat not in supported_platforms:
        pytest.skip(f"cannot run on platform {plat}")
