import contextlib
import io

import pytest

import termbg.term
from termbg import _typing as _t


class MockTerminal:
    """
    Pretends to be a terminal device: answers known queries by pushing replies
    into its input buffer, and keeps track of raw mode.

    """

    def __init__(self):
        self.replies: _t.Dict[str, bytes] = {}
        self.tty = True
        self.input = bytearray()
        self.sent: _t.List[str] = []
        self.raw = False
        self.raw_mode_entered = 0
        self.fail_restore = False

    def send(self, s: str):
        self.sent.append(s)
        reply = self.replies.get(s)
        if reply is not None:
            self.input += reply

    def read_byte(self, timeout: float) -> _t.Optional[bytes]:
        if not self.raw:
            raise AssertionError("reading from a terminal that's not in raw mode")
        assert timeout > 0
        if not self.input:
            # Terminal is silent, pretend that we've waited for `timeout` seconds.
            return None
        byte = bytes(self.input[:1])
        del self.input[:1]
        return byte

    def get_mode(self):
        return "raw" if self.raw else "cooked"

    def set_raw_mode(self, prev_mode):
        assert not self.raw, "entering raw mode twice"
        self.raw = True
        self.raw_mode_entered += 1

    def set_mode(self, mode):
        if self.fail_restore:
            raise OSError("can't restore terminal mode")
        self.raw = mode == "raw"


class MockOStream(io.StringIO):
    def __init__(self, terminal: MockTerminal):
        super().__init__()
        self.__terminal = terminal

    def isatty(self) -> bool:
        return self.__terminal.tty

    def write(self, s) -> int:
        self.__terminal.send(s)
        return super().write(s)


class MockIStream(io.StringIO):
    def __init__(self, terminal: MockTerminal):
        super().__init__()
        self.__terminal = terminal

    def isatty(self) -> bool:
        return self.__terminal.tty

    def read(self, size=None):
        raise RuntimeError("term not supposed to use stream.read")

    def readline(self, size=None):
        raise RuntimeError("term not supposed to use stream.readline")


@contextlib.contextmanager
def mock_term_io(terminal: MockTerminal):
    istream = MockIStream(terminal)
    ostream = MockOStream(terminal)
    estream = MockOStream(terminal)

    old_read_byte, termbg.term._read_byte = (
        termbg.term._read_byte,
        lambda _, timeout: terminal.read_byte(timeout),
    )
    old_is_foreground, termbg.term._is_foreground = (
        termbg.term._is_foreground,
        lambda *_, **__: True,
    )
    old_get_mode, termbg.term._get_mode = (
        termbg.term._get_mode,
        lambda _: terminal.get_mode(),
    )
    old_set_raw_mode, termbg.term._set_raw_mode = (
        termbg.term._set_raw_mode,
        lambda _, prev_mode: terminal.set_raw_mode(prev_mode),
    )
    old_set_mode, termbg.term._set_mode = (
        termbg.term._set_mode,
        lambda _, mode: terminal.set_mode(mode),
    )

    try:
        yield istream, ostream, estream
    finally:
        termbg.term._read_byte = old_read_byte
        termbg.term._is_foreground = old_is_foreground
        termbg.term._get_mode = old_get_mode
        termbg.term._set_raw_mode = old_set_raw_mode
        termbg.term._set_mode = old_set_mode


@pytest.fixture
def terminal() -> MockTerminal:
    return MockTerminal()


@pytest.fixture
def term_io(terminal: MockTerminal):
    with mock_term_io(terminal) as streams:
        yield streams
