# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Probing the attached terminal for its background color and latency.

Every probe is self-contained: it detects terminal family, sends a query,
waits for a reply, and restores terminal mode. Nothing is cached between calls,
because user can reattach a multiplexer session to a different terminal
at any moment.

.. autofunction:: probe_color

.. autofunction:: probe_latency

.. autofunction:: classify_theme

All probes return a value or raise a subclass of :class:`termbg.ProbeError`.
If background color can't be queried, :func:`probe_color` falls back
to the ``COLORFGBG`` environment variable.

Set ``TERMBG_DISABLE_QUERIES`` to disable sending control sequences
altogether.


Background color sources
------------------------

Depending on terminal family, background color comes from one of the following
sources:

.. autoclass:: BackgroundColorSource
   :members:

.. autoclass:: EscapeSequenceProbe

.. autoclass:: NativeAttributeQuery

.. autoclass:: KnownUnsupported

.. autofunction:: select_source

.. autoclass:: ProbeStreams
   :members:

"""

from __future__ import annotations

import abc
import math
import os
import sys
import time
from dataclasses import dataclass

import termbg
import termbg.color
import termbg.term
import termbg.theme
from termbg import _typing as _t

__all__ = [
    "DEFAULT_LATENCY_TIMEOUT",
    "DEFAULT_TIMEOUT",
    "BackgroundColorSource",
    "EscapeSequenceProbe",
    "KnownUnsupported",
    "NativeAttributeQuery",
    "ProbeStreams",
    "classify_theme",
    "probe_color",
    "probe_latency",
    "select_source",
]


DEFAULT_TIMEOUT: float = 0.1
"""
Default time to wait for a color reply, in seconds.

"""

DEFAULT_LATENCY_TIMEOUT: float = 1.0
"""
Default time to wait for a device status report, in seconds.

"""


@dataclass(frozen=True, slots=True)
class ProbeStreams:
    """
    Streams attached to the terminal being probed.

    """

    istream: _t.TextIO | None
    """
    Stream that receives terminal's replies, usually :data:`sys.stdin`.

    """

    ostream: _t.TextIO | None
    """
    Standard output, usually :data:`sys.stdout`. We don't write to it, but it still
    should be attached to the same terminal.

    """

    estream: _t.TextIO | None
    """
    Stream that we send queries to, usually :data:`sys.stderr`.

    """

    @classmethod
    def from_sys(
        cls,
        istream: _t.TextIO | None = None,
        ostream: _t.TextIO | None = None,
        estream: _t.TextIO | None = None,
    ) -> ProbeStreams:
        """
        Fill in missing streams from :mod:`sys`.

        """

        return cls(
            istream if istream is not None else sys.stdin,
            ostream if ostream is not None else sys.stdout,
            estream if estream is not None else sys.stderr,
        )


class BackgroundColorSource(abc.ABC):
    """
    Something that can tell us terminal's background color.

    """

    @abc.abstractmethod
    def query(
        self, streams: ProbeStreams, timeout: float, env: _t.Environ
    ) -> termbg.color.ColorSample:
        """
        Get background color, or raise :class:`~termbg.ProbeError`.

        """

        raise NotImplementedError()


class EscapeSequenceProbe(BackgroundColorSource):
    """
    Sends OSC 11 query to an XTerm-compatible terminal, possibly wrapping it
    into a multiplexer's passthrough envelope.

    """

    def __init__(self, family: termbg.term.TerminalFamily, /):
        self.family = family

    def query(
        self, streams: ProbeStreams, timeout: float, env: _t.Environ
    ) -> termbg.color.ColorSample:
        query = termbg.term.build_query(
            self.family, termbg.term.Request.BACKGROUND_COLOR
        )
        payload, _ = _exchange(
            streams, query, termbg.term.Terminator.COLOR, timeout, env
        )
        sample = termbg.color.decode_x11_color(
            payload.decode("utf-8", errors="replace")
        )
        termbg._logger.debug("decoded background color: %r", sample)
        return sample

    def __repr__(self):
        return f"{self.__class__.__name__}({self.family})"


class NativeAttributeQuery(BackgroundColorSource):
    """
    Reads background color from Windows console attributes. Doesn't send
    any control sequences, so there's no timeout.

    """

    def query(
        self, streams: ProbeStreams, timeout: float, env: _t.Environ
    ) -> termbg.color.ColorSample:
        if streams.ostream is None:
            raise termbg.UnsupportedError("stdout is not available")
        attributes = termbg.term.get_console_attributes(streams.ostream)
        termbg._logger.debug("console attributes: %#06x", attributes)
        return termbg.color.from_console_attributes(attributes)

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class KnownUnsupported(BackgroundColorSource):
    """
    Terminal is known to never answer queries. Fails immediately, without
    touching terminal mode.

    """

    def __init__(self, reason: str, /):
        self.reason = reason

    def query(
        self, streams: ProbeStreams, timeout: float, env: _t.Environ
    ) -> termbg.color.ColorSample:
        raise termbg.UnsupportedError(self.reason)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.reason!r})"


def select_source(family: termbg.term.TerminalFamily, /) -> BackgroundColorSource:
    """
    Select background color source for the given terminal family.

    :example:
        ::

            >>> select_source(termbg.term.TerminalFamily.TMUX)
            EscapeSequenceProbe(TerminalFamily.TMUX)
            >>> select_source(termbg.term.TerminalFamily.EMACS)
            KnownUnsupported('Emacs shell does not answer queries')

    """

    if family is termbg.term.TerminalFamily.EMACS:
        return KnownUnsupported("Emacs shell does not answer queries")
    elif family is termbg.term.TerminalFamily.WINDOWS:
        return NativeAttributeQuery()
    else:
        return EscapeSequenceProbe(family)


def probe_color(
    timeout: float = DEFAULT_TIMEOUT,
    *,
    env: _t.Environ | None = None,
    istream: _t.TextIO | None = None,
    ostream: _t.TextIO | None = None,
    estream: _t.TextIO | None = None,
) -> termbg.color.ColorSample:
    """
    Get terminal's background color.

    If terminal can't be queried, or query fails, tries to use
    the ``COLORFGBG`` environment variable. If that fails as well,
    raises the error from the terminal query.

    :param timeout:
        time to wait for terminal's reply, in seconds.
    :param env:
        environment variables, default is :data:`os.environ`.
    :param istream:
        input stream, default is :data:`sys.stdin`.
    :param ostream:
        output stream, default is :data:`sys.stdout`.
    :param estream:
        stream to send queries to, default is :data:`sys.stderr`.
    :raises:
        :class:`~termbg.ProbeError` subclass describing why the terminal
        query failed.

    """

    _check_timeout(timeout)
    if env is None:
        env = os.environ
    streams = ProbeStreams.from_sys(istream, ostream, estream)

    family = termbg.term.detect_family(env)
    source = select_source(family)
    termbg._logger.debug("querying background color with %r", source)

    try:
        return source.query(streams, timeout, env)
    except termbg.ProbeError as e:
        termbg._logger.debug("background color query failed: %s", e)
        error = e

    try:
        sample = termbg.color.from_env(env)
    except termbg.ProbeError as fallback_error:
        termbg._logger.debug("COLORFGBG fallback failed: %s", fallback_error)
        raise error

    termbg._logger.debug("using COLORFGBG fallback: %r", sample)
    return sample


def probe_latency(
    timeout: float = DEFAULT_LATENCY_TIMEOUT,
    *,
    env: _t.Environ | None = None,
    istream: _t.TextIO | None = None,
    ostream: _t.TextIO | None = None,
    estream: _t.TextIO | None = None,
) -> float:
    """
    Measure how long it takes the terminal to answer a device status report,
    in seconds.

    Use it to pick a timeout for :func:`probe_color`, for example,
    when running over a slow SSH connection.

    Emacs shell and legacy Windows console can't be measured;
    for them, this function always returns zero.

    Parameters are the same as in :func:`probe_color`.

    """

    _check_timeout(timeout)
    if env is None:
        env = os.environ
    streams = ProbeStreams.from_sys(istream, ostream, estream)

    family = termbg.term.detect_family(env)
    if family in (
        termbg.term.TerminalFamily.EMACS,
        termbg.term.TerminalFamily.WINDOWS,
    ):
        termbg._logger.debug(
            "%s can't be measured, assuming zero latency", family.name
        )
        return 0.0

    query = termbg.term.build_query(family, termbg.term.Request.LATENCY)
    _, elapsed = _exchange(
        streams, query, termbg.term.Terminator.LATENCY, timeout, env
    )
    termbg._logger.debug("measured latency: %.3fs", elapsed)
    return elapsed


def classify_theme(
    timeout: float = DEFAULT_TIMEOUT,
    *,
    env: _t.Environ | None = None,
    istream: _t.TextIO | None = None,
    ostream: _t.TextIO | None = None,
    estream: _t.TextIO | None = None,
) -> termbg.theme.Theme:
    """
    Get terminal's background color and classify it as light or dark.

    Parameters are the same as in :func:`probe_color`.

    """

    sample = probe_color(
        timeout, env=env, istream=istream, ostream=ostream, estream=estream
    )
    return termbg.theme.classify(sample)


def _check_timeout(timeout: float):
    if not (math.isfinite(timeout) and timeout > 0):
        raise ValueError(f"timeout should be a positive number, got {timeout}")


def _exchange(
    streams: ProbeStreams,
    query: str,
    terminator: termbg.term.Terminator,
    timeout: float,
    env: _t.Environ,
) -> tuple[bytes, float]:
    if "TERMBG_DISABLE_QUERIES" in env:
        raise termbg.UnsupportedError(
            "queries are disabled by TERMBG_DISABLE_QUERIES"
        )

    if not termbg.term.streams_are_tty(
        streams.istream, streams.ostream, streams.estream
    ):
        raise termbg.UnsupportedError(
            "stdin, stdout and stderr should be attached to a foreground terminal"
        )

    assert streams.istream is not None and streams.estream is not None

    with termbg.term.RawModeGuard.acquire(streams.istream):
        termbg.term.send_query(streams.estream, query)
        start = time.monotonic()
        termbg._logger.debug("query sent: %r", query)

        try:
            payload = termbg.term.read_until(
                streams.istream, terminator, start + timeout
            )
        except termbg.TimeoutError:
            termbg._logger.debug("no reply after %.3fs", timeout)
            raise

        elapsed = time.monotonic() - start

    termbg._logger.debug("got reply after %.3fs: %r", elapsed, payload)
    return payload, elapsed
