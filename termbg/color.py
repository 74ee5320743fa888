# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Color values reported by terminals, and decoders that produce them.

Terminals report colors in X11 ``rgb:`` notation, where each channel
has from one to four hex digits. We always normalize channels to 16 bits,
so a sample doesn't depend on how verbose the terminal was.

.. autoclass:: ColorSample
   :members:

.. autofunction:: decode_x11_color

.. autofunction:: from_colorfgbg

.. autofunction:: from_env

.. autofunction:: from_console_attributes

.. autodata:: RXVT_COLORS

.. autodata:: CONSOLE_COLORS

"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

import termbg
from termbg import _typing as _t

__all__ = [
    "CONSOLE_COLORS",
    "ColorSample",
    "RXVT_COLORS",
    "decode_x11_color",
    "from_colorfgbg",
    "from_console_attributes",
    "from_env",
]


@dataclass(frozen=True, slots=True)
class ColorSample:
    """
    A single color with three 16-bit channels.

    Each channel is a linear intensity between ``0`` and ``0xFFFF``.

    """

    r: int
    """
    Red channel.

    """

    g: int
    """
    Green channel.

    """

    b: int
    """
    Blue channel.

    """

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ValueError(
                    f"{name} channel should be between 0 and 65535, got {value}"
                )

    @classmethod
    def from_rgb8(cls, r: int, g: int, b: int, /) -> ColorSample:
        """
        Create a color sample from 8-bit components.

        Components are scaled by ``256``, same as terminals do when they
        report 8-bit palettes.

        :example:
            ::

                >>> ColorSample.from_rgb8(0xFF, 0x80, 0x00)
                <ColorSample rgb:ff00/8000/0000>

        """

        return cls(r * 256, g * 256, b * 256)

    def to_rgb8(self) -> tuple[int, int, int]:
        """
        Return 8-bit RGB components of the color.

        :example:
            ::

                >>> ColorSample(0x1234, 0xABCD, 0xFFFF).to_rgb8()
                (18, 171, 255)

        """

        return self.r >> 8, self.g >> 8, self.b >> 8

    def to_hex(self) -> str:
        """
        Return color in hex format with leading ``#``, with 8 bits per channel.

        """

        r, g, b = self.to_rgb8()
        return f"#{r:02X}{g:02X}{b:02X}"

    def to_x11(self) -> str:
        """
        Return color in X11 ``rgb:`` notation, with 16 bits per channel.

        """

        return f"rgb:{self.r:04x}/{self.g:04x}/{self.b:04x}"

    @property
    def luma_1000(self) -> int:
        """
        Luma of this color by ITU-R BT.601, multiplied by 1000 so that it stays
        an exact integer.

        """

        return 299 * self.r + 587 * self.g + 114 * self.b

    @property
    def luminance(self) -> float:
        """
        Luma of this color by ITU-R BT.601, on the same 16-bit scale as channels.

        """

        return self.luma_1000 / 1000

    def __repr__(self) -> str:
        return f"<ColorSample {self.to_x11()}>"


_HEX_RE = re.compile(r"[0-9a-fA-F]{1,4}")


def decode_x11_color(payload: str, /) -> ColorSample:
    """
    Decode payload of a color reply, i.e. everything between ``rgb:``
    and the string terminator.

    Payload consists of three hex components separated by slashes. Each component
    has from one to four digits, and is expanded to 16 bits by shifting it left::

        >>> decode_x11_color("1111/2222/3333")
        <ColorSample rgb:1111/2222/3333>
        >>> decode_x11_color("3/33/333")
        <ColorSample rgb:3000/3300/3330>

    Anything else raises :class:`~termbg.MalformedResponseError`::

        >>> decode_x11_color("1111/2222")
        Traceback (most recent call last):
        ...
        termbg.MalformedResponseError: expected three color components: '1111/2222'

    """

    components = payload.split("/")
    if len(components) != 3:
        raise termbg.MalformedResponseError(
            "expected three color components", payload
        )

    channels = []
    for component in components:
        if not _HEX_RE.fullmatch(component):
            raise termbg.MalformedResponseError(
                "invalid color component", payload
            )
        channels.append(int(component, 16) << ((4 - len(component)) * 4))

    r, g, b = channels
    return ColorSample(r, g, b)


RXVT_COLORS: tuple[tuple[int, int, int], ...] = (
    (0, 0, 0),  # black
    (205, 0, 0),  # red
    (0, 205, 0),  # green
    (205, 205, 0),  # yellow
    (0, 0, 238),  # blue
    (205, 0, 205),  # magenta
    (0, 205, 205),  # cyan
    (229, 229, 229),  # white
    (127, 127, 127),  # bright black
    (255, 0, 0),  # bright red
    (0, 255, 0),  # bright green
    (255, 255, 0),  # bright yellow
    (92, 92, 255),  # bright blue
    (255, 0, 255),  # bright magenta
    (0, 255, 255),  # bright cyan
    (255, 255, 255),  # bright white
)
"""
Default 8-bit palette of rxvt, indexed by ``COLORFGBG`` values.

"""


def from_colorfgbg(value: str, /) -> ColorSample:
    """
    Decode background color from a value of the ``COLORFGBG`` variable.

    The value consists of foreground and background palette indices separated
    by a semicolon. Background index is looked up in :data:`RXVT_COLORS`::

        >>> from_colorfgbg("0;15")
        <ColorSample rgb:ff00/ff00/ff00>

    """

    parts = value.split(";")
    if len(parts) != 2:
        raise termbg.MalformedResponseError("expected 'fg;bg'", value)

    bg = parts[1]
    if not (bg.isascii() and bg.isdecimal()):
        raise termbg.MalformedResponseError(
            "background index is not a number", value
        )

    index = int(bg)
    if index >= len(RXVT_COLORS):
        raise termbg.MalformedResponseError(
            "background index is out of range", value
        )

    return ColorSample.from_rgb8(*RXVT_COLORS[index])


def from_env(env: _t.Environ | None = None, /) -> ColorSample:
    """
    Get background color from the ``COLORFGBG`` environment variable.

    Raises :class:`~termbg.UnsupportedError` if the variable is not set.
    This function never touches the terminal.

    """

    if env is None:
        env = os.environ

    value = env.get("COLORFGBG")
    if value is None:
        raise termbg.UnsupportedError("COLORFGBG is not set")

    return from_colorfgbg(value)


CONSOLE_COLORS: tuple[tuple[int, int, int], ...] = (
    (0, 0, 0),
    (0, 0, 128),
    (0, 128, 0),
    (0, 128, 128),
    (128, 0, 0),
    (128, 0, 128),
    (128, 128, 0),
    (192, 192, 192),
    (128, 128, 128),
    (0, 0, 255),
    (0, 255, 0),
    (0, 255, 255),
    (255, 0, 0),
    (255, 0, 255),
    (255, 255, 0),
    (255, 255, 255),
)
"""
Default palette of Windows console, indexed by background attribute bits
(``BLUE | GREEN << 1 | RED << 2 | INTENSITY << 3``).

"""

_BACKGROUND_ATTRIBUTES_MASK = 0xF0


def from_console_attributes(attributes: int, /) -> ColorSample:
    """
    Get background color from Windows console character attributes,
    as reported by ``GetConsoleScreenBufferInfo``::

        >>> from_console_attributes(0x07)  # grey on black
        <ColorSample rgb:0000/0000/0000>
        >>> from_console_attributes(0xF0)  # black on bright white
        <ColorSample rgb:ff00/ff00/ff00>

    """

    index = (attributes & _BACKGROUND_ATTRIBUTES_MASK) >> 4
    return ColorSample.from_rgb8(*CONSOLE_COLORS[index])
