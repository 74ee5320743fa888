# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Print what we can find out about the attached terminal.

Run it as ``python -m termbg``.

"""

from __future__ import annotations

import argparse
import logging
import math
import sys

import termbg
import termbg.probe
import termbg.term
from termbg import _typing as _t

__all__ = [
    "main",
]


def _positive_float(value: str) -> float:
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not (math.isfinite(result) and result > 0):
        raise argparse.ArgumentTypeError(f"should be a positive number: {value!r}")
    return result


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termbg",
        description="Detect terminal's background color and theme.",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_positive_float,
        default=termbg.probe.DEFAULT_TIMEOUT,
        metavar="SECONDS",
        help="time to wait for color reply (default: %(default)s)",
    )
    parser.add_argument(
        "--latency-timeout",
        type=_positive_float,
        default=termbg.probe.DEFAULT_LATENCY_TIMEOUT,
        metavar="SECONDS",
        help="time to wait for device status report (default: %(default)s)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="print internal log messages to stderr",
    )
    return parser


def main(args: _t.Sequence[str] | None = None, /) -> int:
    """
    Entry point for the ``termbg`` command.

    """

    ns = _make_parser().parse_args(args)

    if ns.debug:
        logging.basicConfig(format="%(levelname)s: %(message)s")
        termbg.enable_internal_logging(level="DEBUG", propagate=True)

    out = sys.stdout

    out.write("Check terminal background color\n")
    out.write(f"  Term: {termbg.term.detect_family().value}\n")

    try:
        latency = termbg.probe.probe_latency(ns.latency_timeout)
    except termbg.ProbeError as e:
        out.write(f"  Latency: detection failed ({_describe(e)})\n")
    else:
        out.write(f"  Latency: {latency * 1000:.1f}ms\n")

    try:
        sample = termbg.probe.probe_color(ns.timeout)
    except termbg.ProbeError as e:
        out.write(f"  Color: detection failed ({_describe(e)})\n")
    else:
        out.write(f"  Color: R={sample.r:x}, G={sample.g:x}, B={sample.b:x}\n")

    try:
        theme = termbg.probe.classify_theme(ns.timeout)
    except termbg.ProbeError as e:
        out.write(f"  Theme: detection failed ({_describe(e)})\n")
    else:
        out.write(f"  Theme: {theme.name.lower()}\n")

    out.flush()
    return 0


def _describe(e: termbg.ProbeError) -> str:
    if isinstance(e, termbg.TimeoutError):
        return "timeout"
    elif isinstance(e, termbg.UnsupportedError):
        return f"unsupported: {e}"
    elif isinstance(e, termbg.MalformedResponseError):
        return f"malformed response: {e}"
    else:
        return f"io error: {e}"


if __name__ == "__main__":
    sys.exit(main())
