# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Querying terminal family and talking to terminals.

This is a low-level module upon which :mod:`termbg.probe` builds
its higher-level abstraction.


Detecting terminal family
-------------------------

Different terminals (and terminal multiplexers) need queries in different
envelopes, and some of them can't be queried at all. Family is detected
from environment variables:

.. autofunction:: detect_family

.. autoclass:: TerminalFamily
   :members:


Query/response protocol
-----------------------

A probe puts terminal into raw mode, sends a query, and reads reply byte
by byte until a terminator or a deadline:

.. autoclass:: RawModeGuard
   :members:

.. autoclass:: Request
   :members:

.. autofunction:: build_query

.. autofunction:: send_query

.. autoclass:: Terminator
   :members:

.. autofunction:: read_until

.. autofunction:: streams_are_tty

.. autofunction:: get_console_attributes

"""

from __future__ import annotations

import enum
import os
import time

import termbg
from termbg import _typing as _t

__all__ = [
    "RawModeGuard",
    "Request",
    "TerminalFamily",
    "Terminator",
    "build_query",
    "detect_family",
    "get_console_attributes",
    "read_until",
    "send_query",
    "streams_are_tty",
]


class TerminalFamily(enum.Enum):
    """
    Kind of terminal we're talking to, as far as querying is concerned.

    """

    XTERM_COMPATIBLE = "xterm"
    """
    Terminal understands XTerm control sequences directly. This includes
    Windows Terminal and VSCode's terminal on Windows.

    """

    TMUX = "tmux"
    """
    We're inside of tmux. Queries must be wrapped into tmux's passthrough envelope.

    """

    SCREEN = "screen"
    """
    We're inside of GNU screen. Queries must be wrapped into screen's
    passthrough envelope.

    """

    EMACS = "emacs"
    """
    We're inside of Emacs shell. It never answers queries.

    """

    WINDOWS = "windows"
    """
    Legacy Windows console. Colors can only be found via console API.

    """

    @property
    def is_multiplexer(self) -> bool:
        """
        Return :data:`True` if queries need a passthrough envelope.

        """

        return self in (TerminalFamily.TMUX, TerminalFamily.SCREEN)


def detect_family(
    env: _t.Environ | None = None, /, *, platform: str | None = None
) -> TerminalFamily:
    """
    Detect terminal family by scanning environment variables.

    :param env:
        environment to scan, default is :data:`os.environ`.
    :param platform:
        ``"posix"`` or ``"nt"``, default is :data:`os.name`.

    :example:
        ::

            >>> detect_family({"TMUX": "/tmp/tmux-1000/default,1,0"}, platform="posix")
            <TerminalFamily.TMUX: 'tmux'>
            >>> detect_family({"TERM": "screen.xterm-256color"}, platform="posix")
            <TerminalFamily.SCREEN: 'screen'>
            >>> detect_family({}, platform="nt")
            <TerminalFamily.WINDOWS: 'windows'>

    """

    if env is None:
        env = os.environ
    if platform is None:
        platform = os.name

    if "INSIDE_EMACS" in env:
        family = TerminalFamily.EMACS
    elif "TMUX" in env:
        family = TerminalFamily.TMUX
    elif env.get("TERM", "").startswith("screen"):
        family = TerminalFamily.SCREEN
    elif platform == "nt":
        if env.get("TERM_PROGRAM") == "vscode" or "WT_SESSION" in env:
            # Windows Terminal is XTerm-compatible,
            # see https://github.com/microsoft/terminal/issues/3718.
            family = TerminalFamily.XTERM_COMPATIBLE
        else:
            family = TerminalFamily.WINDOWS
    else:
        family = TerminalFamily.XTERM_COMPATIBLE

    termbg._logger.debug("detected terminal family: %s", family.name)
    return family


class Request(enum.Enum):
    """
    Purpose of a query.

    """

    BACKGROUND_COLOR = enum.auto()
    """
    Ask for terminal's default background color (OSC 11).

    """

    LATENCY = enum.auto()
    """
    Ask for device status report (DSR 5). We only care about
    how fast the terminal replies.

    """


def build_query(family: TerminalFamily, request: Request, /) -> str:
    """
    Build control sequence for the given terminal family and request.

    :example:
        ::

            >>> build_query(TerminalFamily.XTERM_COMPATIBLE, Request.BACKGROUND_COLOR)
            '\\x1b]11;?\\x1b\\\\'
            >>> build_query(TerminalFamily.TMUX, Request.BACKGROUND_COLOR)
            '\\x1bPtmux;\\x1b\\x1b]11;?\\x07\\x1b\\\\\\x03'

    """

    if request is Request.LATENCY:
        return "\x1b[5n"

    if family is TerminalFamily.XTERM_COMPATIBLE:
        return "\x1b]11;?\x1b\\"
    elif family.is_multiplexer:
        if family is TerminalFamily.TMUX:
            # Inner escapes are doubled in tmux's envelope.
            prefix = "\x1bPtmux;\x1b"
        else:
            prefix = "\x1bP"
        return prefix + "\x1b]11;?\a\x1b\\\x03"
    else:
        raise termbg.UnsupportedError(
            f"{family.name} terminals can't be queried for background color"
        )


def send_query(stream: _t.TextIO, query: str, /):
    """
    Write query to the given stream and flush it. This function doesn't wait
    for a reply.

    We normally send queries to stderr: it's still attached to the terminal
    when stdout is redirected.

    """

    try:
        stream.write(query)
        stream.flush()
    except OSError as e:
        raise termbg.TerminalIOError("failed to send query to the terminal") from e


class Terminator(enum.Enum):
    """
    Rule for finding the end of terminal's reply.

    """

    COLOR = enum.auto()
    """
    Skip everything up to the first ``:``, then collect payload until
    ``BEL`` or ``ESC \\``.

    """

    LATENCY = enum.auto()
    """
    Skip everything up to and including the first ``n``.

    """


def read_until(
    istream: _t.TextIO, terminator: Terminator, deadline: float, /
) -> bytes:
    """
    Read terminal's reply byte by byte until the given terminator.

    Terminal should be in raw mode, see :class:`RawModeGuard`.

    :param istream:
        stream to read from.
    :param terminator:
        how to find the end of the reply.
    :param deadline:
        absolute deadline, as returned by :func:`time.monotonic`. The deadline
        is shared by all bytes, so a slowly trickling reply fails just the same
        as a missing one.
    :returns:
        payload of the reply, without terminators. Reply to a latency query
        has no payload.
    :raises:
        :class:`~termbg.TimeoutError` if the deadline passes,
        :class:`~termbg.TerminalIOError` if reading fails.

    """

    payload = bytearray()

    if terminator is Terminator.LATENCY:
        while _read_byte_before(istream, deadline) != b"n":
            pass
        return bytes(payload)

    while _read_byte_before(istream, deadline) != b":":
        pass

    while True:
        byte = _read_byte_before(istream, deadline)
        if byte == b"\a":
            break
        elif byte == b"\x1b":
            # Consume backslash that finishes the string terminator.
            _read_byte_before(istream, deadline)
            break
        payload += byte

    return bytes(payload)


_MAX_WAIT: float = 3600.0
"""
Longest single wait passed to :func:`select.select` or ``WaitForSingleObject``;
longer waits overflow platform's timeout types.

"""


def _read_byte_before(istream: _t.TextIO, deadline: float) -> bytes:
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise termbg.TimeoutError("terminal didn't reply in time")
        wait = min(remaining, _MAX_WAIT)

        try:
            byte = _read_byte(istream, wait)
        except _TERMINAL_ERRORS as e:
            raise termbg.TerminalIOError("failed to read from the terminal") from e

        if byte is not None or wait == remaining:
            break

    if byte is None:
        raise termbg.TimeoutError("terminal didn't reply in time")
    elif not byte:
        raise termbg.TerminalIOError("unexpected end of terminal input")
    else:
        return byte


class RawModeGuard:
    """
    Keeps terminal in raw mode, i.e. without echo and line buffering,
    and restores previous mode when released.

    Use it as a context manager::

        with RawModeGuard.acquire(sys.stdin):
            ...

    Guard is released when ``with`` block is left for any reason. If restoring
    terminal mode fails while another exception is propagating, the failure
    is logged, and the original exception is kept.

    Raw mode is a property of the terminal device, so guards are not
    synchronized: don't acquire them from several threads at once.

    """

    def __init__(self, istream: _t.TextIO, prev_mode: _t.Any, /):
        self._istream = istream
        self._prev_mode = prev_mode
        self._released = False

    @classmethod
    def acquire(cls, istream: _t.TextIO, /) -> RawModeGuard:
        """
        Switch terminal attached to the given stream into raw mode.

        """

        try:
            prev_mode = _get_mode(istream)
            _set_raw_mode(istream, prev_mode)
        except _TERMINAL_ERRORS as e:
            raise termbg.TerminalIOError("failed to enter raw mode") from e

        termbg._logger.debug("entered raw mode")
        return cls(istream, prev_mode)

    @property
    def released(self) -> bool:
        """
        Return :data:`True` if terminal mode was already restored
        (or an attempt to restore it was made).

        """

        return self._released

    def release(self):
        """
        Restore terminal mode. Calling this method more than once is a no-op.

        """

        if self._released:
            return
        self._released = True

        try:
            _set_mode(self._istream, self._prev_mode)
        except _TERMINAL_ERRORS as e:
            raise termbg.TerminalIOError("failed to restore terminal mode") from e

        termbg._logger.debug("left raw mode")

    def __enter__(self) -> RawModeGuard:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        try:
            self.release()
        except termbg.TerminalIOError:
            if exc_type is None:
                raise
            termbg._logger.warning("failed to restore terminal mode", exc_info=True)


def streams_are_tty(*streams: _t.TextIO | None) -> bool:
    """
    Return :data:`True` if all given streams are attached to a terminal,
    and this process is in the terminal's foreground process group.

    Changing mode of a terminal from a background process would stop it
    with ``SIGTTOU``.

    """

    return all(_is_tty(stream) for stream in streams) and all(
        _is_foreground(stream) for stream in streams
    )


def _is_tty(stream: _t.TextIO | None) -> bool:
    try:
        return stream is not None and stream.isatty()
    except Exception:  # pragma: no cover
        return False


def get_console_attributes(ostream: _t.TextIO, /) -> int:
    """
    Get character attributes of a Windows console attached to the given stream.

    Background color is encoded in bits ``0xF0``,
    see :func:`termbg.color.from_console_attributes`.

    :raises:
        :class:`~termbg.UnsupportedError` on platforms other than Windows,
        :class:`~termbg.TerminalIOError` if console API fails.

    """

    if os.name != "nt":
        raise termbg.UnsupportedError("console API is only available on Windows")

    try:
        return _get_console_attributes(ostream)
    except OSError as e:
        raise termbg.TerminalIOError("failed to query console attributes") from e


# Platform-specific code for working with terminals.
if os.name == "posix":
    import select
    import termios
    import tty

    _TERMINAL_ERRORS: tuple[type[BaseException], ...] = (OSError, termios.error)

    def _is_foreground(stream: _t.TextIO | None) -> bool:
        try:
            return stream is not None and os.getpgrp() == os.tcgetpgrp(stream.fileno())
        except Exception:  # pragma: no cover
            return False

    def _get_mode(istream: _t.TextIO) -> _t.Any:
        return termios.tcgetattr(istream)

    def _set_raw_mode(istream: _t.TextIO, prev_mode: _t.Any):
        new_mode = prev_mode.copy()
        new_mode[tty.LFLAG] &= ~(
            termios.ECHO  # Don't print back what terminal sends us.
            | termios.ICANON  # Disable line editing.
            | termios.ISIG  # Disable signals on C-c and C-z.
        )
        new_mode[tty.CC] = new_mode[tty.CC].copy()
        new_mode[tty.CC][termios.VMIN] = 1
        new_mode[tty.CC][termios.VTIME] = 0
        termios.tcsetattr(istream, termios.TCSAFLUSH, new_mode)

    def _set_mode(istream: _t.TextIO, mode: _t.Any):
        # Flushing also drops leftovers of a late or partial reply.
        termios.tcsetattr(istream, termios.TCSAFLUSH, mode)

    def _read_byte(istream: _t.TextIO, timeout: float) -> bytes | None:
        fd = istream.fileno()
        if not select.select([fd], [], [], timeout)[0]:
            return None
        return os.read(fd, 1)

    def _get_console_attributes(ostream: _t.TextIO) -> int:  # pragma: no cover
        raise OSError("not supported")

elif os.name == "nt":
    import ctypes
    import ctypes.wintypes
    import msvcrt

    _TERMINAL_ERRORS: tuple[type[BaseException], ...] = (OSError,)

    _GetConsoleMode = ctypes.windll.kernel32.GetConsoleMode
    _GetConsoleMode.argtypes = [ctypes.wintypes.HANDLE, ctypes.wintypes.LPDWORD]
    _GetConsoleMode.restype = ctypes.wintypes.BOOL

    _SetConsoleMode = ctypes.windll.kernel32.SetConsoleMode
    _SetConsoleMode.argtypes = [ctypes.wintypes.HANDLE, ctypes.wintypes.DWORD]
    _SetConsoleMode.restype = ctypes.wintypes.BOOL

    _WaitForSingleObject = ctypes.windll.kernel32.WaitForSingleObject
    _WaitForSingleObject.argtypes = [ctypes.wintypes.HANDLE, ctypes.wintypes.DWORD]
    _WaitForSingleObject.restype = ctypes.wintypes.DWORD

    _ReadConsoleW = ctypes.windll.kernel32.ReadConsoleW
    _ReadConsoleW.argtypes = [
        ctypes.wintypes.HANDLE,
        ctypes.wintypes.LPVOID,
        ctypes.wintypes.DWORD,
        ctypes.wintypes.LPDWORD,
        ctypes.wintypes.LPVOID,
    ]
    _ReadConsoleW.restype = ctypes.wintypes.BOOL

    class _CONSOLE_SCREEN_BUFFER_INFO(ctypes.Structure):
        _fields_ = [
            ("dwSize", ctypes.wintypes._COORD),
            ("dwCursorPosition", ctypes.wintypes._COORD),
            ("wAttributes", ctypes.wintypes.WORD),
            ("srWindow", ctypes.wintypes.SMALL_RECT),
            ("dwMaximumWindowSize", ctypes.wintypes._COORD),
        ]

    _GetConsoleScreenBufferInfo = ctypes.windll.kernel32.GetConsoleScreenBufferInfo
    _GetConsoleScreenBufferInfo.argtypes = [
        ctypes.wintypes.HANDLE,
        ctypes.POINTER(_CONSOLE_SCREEN_BUFFER_INFO),
    ]
    _GetConsoleScreenBufferInfo.restype = ctypes.wintypes.BOOL

    _ENABLE_VIRTUAL_TERMINAL_INPUT = 0x0200
    _WAIT_OBJECT_0 = 0x00000000
    _WAIT_TIMEOUT = 0x00000102

    def _is_foreground(stream: _t.TextIO | None) -> bool:
        return True

    def _get_mode(istream: _t.TextIO) -> _t.Any:
        handle = msvcrt.get_osfhandle(istream.fileno())
        mode = ctypes.wintypes.DWORD()
        if not _GetConsoleMode(handle, ctypes.byref(mode)):
            raise ctypes.WinError()
        return mode.value

    def _set_raw_mode(istream: _t.TextIO, prev_mode: _t.Any):
        _set_mode(istream, _ENABLE_VIRTUAL_TERMINAL_INPUT)

    def _set_mode(istream: _t.TextIO, mode: _t.Any):
        handle = msvcrt.get_osfhandle(istream.fileno())
        if not _SetConsoleMode(handle, mode):
            raise ctypes.WinError()

    def _read_byte(istream: _t.TextIO, timeout: float) -> bytes | None:
        # Note: console input handle is signaled by any input event,
        # including ones that `ReadConsoleW` skips, e.g. focus changes.
        # In that case the read blocks past the deadline.
        handle = msvcrt.get_osfhandle(istream.fileno())
        result = _WaitForSingleObject(handle, max(int(timeout * 1000), 1))
        if result == _WAIT_TIMEOUT:
            return None
        elif result != _WAIT_OBJECT_0:
            raise ctypes.WinError()

        n_read = ctypes.wintypes.DWORD()
        buffer = (ctypes.wintypes.WCHAR * 1)()
        if not _ReadConsoleW(handle, ctypes.byref(buffer), 1, ctypes.byref(n_read), 0):
            raise ctypes.WinError()
        return buffer.value[: n_read.value].encode("utf-8", errors="replace")

    def _get_console_attributes(ostream: _t.TextIO) -> int:
        handle = msvcrt.get_osfhandle(ostream.fileno())
        info = _CONSOLE_SCREEN_BUFFER_INFO()
        if not _GetConsoleScreenBufferInfo(handle, ctypes.byref(info)):
            raise ctypes.WinError()
        return info.wAttributes

else:  # pragma: no cover
    _TERMINAL_ERRORS: tuple[type[BaseException], ...] = (OSError,)

    def _is_foreground(stream: _t.TextIO | None) -> bool:
        return False

    def _get_mode(istream: _t.TextIO) -> _t.Any:
        raise OSError("not supported")

    def _set_raw_mode(istream: _t.TextIO, prev_mode: _t.Any):
        raise OSError("not supported")

    def _set_mode(istream: _t.TextIO, mode: _t.Any):
        raise OSError("not supported")

    def _read_byte(istream: _t.TextIO, timeout: float) -> bytes | None:
        raise OSError("not supported")

    def _get_console_attributes(ostream: _t.TextIO) -> int:
        raise OSError("not supported")
