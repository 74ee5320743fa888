# Yuio project, MIT license.
#
# https://github.com/taminomara/yuio/
#
# You're free to copy this file to your project and edit it for your needs,
# just keep this copyright line please :3

"""
Deciding whether a background color is light or dark.

.. autoclass:: Theme
   :members:

.. autofunction:: classify

"""

from __future__ import annotations

import enum

import termbg.color

__all__ = [
    "LIGHTNESS_THRESHOLD",
    "Theme",
    "classify",
]


class Theme(enum.Enum):
    """
    Overall color theme of a terminal.

    Can help with deciding which colors to use when printing output.

    """

    LIGHT = enum.auto()
    """
    Terminal background is light.

    """

    DARK = enum.auto()
    """
    Terminal background is dark.

    """


LIGHTNESS_THRESHOLD: int = 32768
"""
Backgrounds with luma above this value are considered light.

"""


def classify(sample: termbg.color.ColorSample, /) -> Theme:
    """
    Classify background color by its ITU-R BT.601 luma::

        >>> classify(termbg.color.ColorSample(0, 0, 0))
        <Theme.DARK: 2>
        >>> classify(termbg.color.ColorSample(0xFFFF, 0xFFFF, 0xFFFF))
        <Theme.LIGHT: 1>

    """

    if sample.luma_1000 > LIGHTNESS_THRESHOLD * 1000:
        return Theme.LIGHT
    else:
        return Theme.DARK
