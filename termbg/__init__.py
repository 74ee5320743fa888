# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Termbg library. Detects terminal's background color and whether its theme
is light or dark.

Overview
--------

Use :mod:`termbg.probe` to query the attached terminal::

    import termbg.probe

    try:
        theme = termbg.probe.classify_theme(timeout=0.1)
    except termbg.ProbeError:
        theme = None

Lower-level building blocks live in :mod:`termbg.term` (terminal family detection
and the query/response protocol), :mod:`termbg.color` (decoding colors),
and :mod:`termbg.theme` (light/dark classification).


Errors
------

Every probe either returns a value or raises exactly one subclass
of :class:`ProbeError`:

.. autoclass:: ProbeError

.. autoclass:: TerminalIOError

.. autoclass:: TimeoutError

.. autoclass:: UnsupportedError

.. autoclass:: MalformedResponseError


Debugging
---------

.. autofunction:: enable_internal_logging

"""

from __future__ import annotations

import builtins as _builtins
import logging as _logging
import os as _os
import sys as _sys

from termbg._version import *  # noqa: F403

__all__ = [
    "MalformedResponseError",
    "ProbeError",
    "TerminalIOError",
    "TimeoutError",
    "UnsupportedError",
    "enable_internal_logging",
]


class ProbeError(Exception):
    """
    Base class for all errors that a probe can end with.

    """


class TerminalIOError(ProbeError):
    """
    Reading from or writing to the terminal failed. The underlying :class:`OSError`
    is available as ``__cause__``.

    """


class TimeoutError(ProbeError, _builtins.TimeoutError):
    """
    Terminal didn't reply before the deadline. It probably ignores the query;
    retrying with a longer timeout may help on slow connections.

    """


class UnsupportedError(ProbeError):
    """
    Terminal or environment is known to be unable to answer the query.

    """


class MalformedResponseError(ProbeError, ValueError):
    """
    Terminal replied, but the reply could not be decoded.

    """

    def __init__(self, msg: str, raw: str, /):
        super().__init__(msg, raw)

        self.raw: str = raw
        """
        Offending text, kept for diagnostics.

        """

    def __str__(self) -> str:
        return f"{self.args[0]}: {self.raw!r}"


_logger = _logging.getLogger("termbg.internal")
_logger.propagate = False

__stderr_handler = _logging.StreamHandler(_sys.__stderr__)
__stderr_handler.setLevel("CRITICAL")
_logger.addHandler(__stderr_handler)


def enable_internal_logging(
    path: str | None = None, level: str | int | None = None, propagate=None
):  # pragma: no cover
    """
    Enable Termbg's internal logging.

    Internal log records are sent to the ``termbg.internal`` channel. They include
    detected terminal family, raw terminal replies, and fallback decisions.

    :param path:
        if given, adds a handler that outputs internal log messages to the given file.
    :param level:
        configures logging level for file handler. Default is ``DEBUG``.
    :param propagate:
        if given, enables or disables log message propagation
        from ``termbg.internal`` to the root logger.

    """

    if level is None:
        level = _os.environ.get("TERMBG_DEBUG", "").strip().upper() or "DEBUG"
    if level in ["1", "Y", "YES", "TRUE"]:
        level = "DEBUG"

    _logger.setLevel(level)

    if path:
        file_handler = _logging.FileHandler(path, delay=True)
        file_handler.setFormatter(
            _logging.Formatter("%(filename)s:%(lineno)d: %(levelname)s: %(message)s")
        )
        file_handler.setLevel(level)
        _logger.addHandler(file_handler)

    if propagate is not None:
        _logger.propagate = propagate


_debug = "TERMBG_DEBUG" in _os.environ or "TERMBG_DEBUG_FILE" in _os.environ
if _debug:  # pragma: no cover
    enable_internal_logging(
        path=_os.environ.get("TERMBG_DEBUG_FILE") or "termbg.log", propagate=False
    )
