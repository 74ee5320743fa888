import pytest

import termbg.color
import termbg.theme


@pytest.mark.parametrize(
    ("rgb", "expect"),
    [
        ((0, 0, 0), termbg.theme.Theme.DARK),
        ((0xFFFF, 0xFFFF, 0xFFFF), termbg.theme.Theme.LIGHT),
        # Luma is exactly at the threshold.
        ((0x8000, 0x8000, 0x8000), termbg.theme.Theme.DARK),
        ((0x8001, 0x8000, 0x8000), termbg.theme.Theme.LIGHT),
        ((0x1E1E, 0x1E1E, 0x1E1E), termbg.theme.Theme.DARK),
        ((0xFDFD, 0xF6F6, 0xE3E3), termbg.theme.Theme.LIGHT),
        # Pure green is brighter than pure blue.
        ((0, 0xFFFF, 0), termbg.theme.Theme.LIGHT),
        ((0, 0, 0xFFFF), termbg.theme.Theme.DARK),
        ((0xFFFF, 0, 0), termbg.theme.Theme.DARK),
    ],
)
def test_classify(rgb, expect):
    assert termbg.theme.classify(termbg.color.ColorSample(*rgb)) is expect


def test_classify_is_monotonic():
    prev = termbg.theme.Theme.DARK
    for v in range(0, 0x10000, 0x100):
        theme = termbg.theme.classify(termbg.color.ColorSample(v, v, v))
        if prev is termbg.theme.Theme.LIGHT:
            assert theme is termbg.theme.Theme.LIGHT
        prev = theme
    assert prev is termbg.theme.Theme.LIGHT


def test_classify_agrees_with_luminance():
    for rgb in [(0x8000, 0x8000, 0x8000), (0x4000, 0xC000, 0x2000)]:
        sample = termbg.color.ColorSample(*rgb)
        expect = (
            termbg.theme.Theme.LIGHT
            if sample.luminance > termbg.theme.LIGHTNESS_THRESHOLD + 1e-6
            else termbg.theme.Theme.DARK
        )
        assert termbg.theme.classify(sample) is expect
