import sys

import pytest

import termbg
import termbg.__main__

COLOR_QUERY = "\x1b]11;?\x1b\\"
LATENCY_QUERY = "\x1b[5n"


@pytest.fixture
def cli(terminal, term_io, monkeypatch):
    istream, ostream, estream = term_io
    for name in [
        "TMUX",
        "STY",
        "INSIDE_EMACS",
        "COLORFGBG",
        "TERMBG_DISABLE_QUERIES",
        "TERM_PROGRAM",
        "WT_SESSION",
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")

    def run(*args):
        # Patch streams here rather than at fixture setup: pytest's output
        # capturing re-installs its own sys.stdout/sys.stderr for the call phase.
        monkeypatch.setattr(sys, "stdin", istream)
        monkeypatch.setattr(sys, "stdout", ostream)
        monkeypatch.setattr(sys, "stderr", estream)
        assert termbg.__main__.main(list(args)) == 0
        return ostream.getvalue().splitlines()

    return run


@pytest.mark.linux
@pytest.mark.darwin
def test_all_detected(terminal, cli):
    terminal.replies[LATENCY_QUERY] = b"\x1b[0n"
    terminal.replies[COLOR_QUERY] = b"\x1b]11;rgb:1e1e/1e1e/2e2e\x1b\\"

    header, term, latency, color, theme = cli()
    assert header == "Check terminal background color"
    assert term == "  Term: xterm"
    assert latency.startswith("  Latency: ") and latency.endswith("ms")
    assert color == "  Color: R=1e1e, G=1e1e, B=2e2e"
    assert theme == "  Theme: dark"
    assert not terminal.raw


@pytest.mark.linux
@pytest.mark.darwin
def test_silent_terminal(terminal, cli):
    assert cli("--timeout", "0.01", "--latency-timeout", "0.01") == [
        "Check terminal background color",
        "  Term: xterm",
        "  Latency: detection failed (timeout)",
        "  Color: detection failed (timeout)",
        "  Theme: detection failed (timeout)",
    ]


@pytest.mark.linux
@pytest.mark.darwin
def test_malformed_reply(terminal, cli):
    terminal.replies[LATENCY_QUERY] = b"\x1b[0n"
    terminal.replies[COLOR_QUERY] = b"\x1b]11;rgb:zz/zz/zz\x07"

    lines = cli()
    assert lines[3] == (
        "  Color: detection failed "
        "(malformed response: invalid color component: 'zz/zz/zz')"
    )
    assert lines[4].startswith("  Theme: detection failed (malformed response")


def test_emacs(terminal, cli, monkeypatch):
    monkeypatch.setenv("INSIDE_EMACS", "29.1,comint")

    assert cli() == [
        "Check terminal background color",
        "  Term: emacs",
        "  Latency: 0.0ms",
        "  Color: detection failed "
        "(unsupported: Emacs shell does not answer queries)",
        "  Theme: detection failed "
        "(unsupported: Emacs shell does not answer queries)",
    ]
    assert terminal.raw_mode_entered == 0


@pytest.mark.linux
@pytest.mark.darwin
def test_colorfgbg_fallback(terminal, cli, monkeypatch):
    terminal.tty = False
    monkeypatch.setenv("COLORFGBG", "0;15")

    lines = cli()
    assert lines[2].startswith("  Latency: detection failed (unsupported: ")
    assert lines[3] == "  Color: R=ff00, G=ff00, B=ff00"
    assert lines[4] == "  Theme: light"


@pytest.mark.parametrize("value", ["0", "-1", "abc", "nan", "inf", "-inf"])
def test_invalid_timeout(cli, value):
    with pytest.raises(SystemExit):
        cli("--timeout", value)
