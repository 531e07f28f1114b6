"""Tests for the title strip."""

import numpy as np
import pytest

from tuneconverter.raster import INK
from tuneconverter.title_page import TITLE_HEIGHT, TitlePage, title_tier
from tuneconverter.tune_parser import parse_tune_text

WIDTH = 1292


def _title_strip(record: str) -> np.ndarray:
    return TitlePage().create(parse_tune_text(record), WIDTH)


@pytest.mark.parametrize(
    ("title", "tier"),
    [
        ("Jig", (72, 2, 0)),
        ("Nine Char", (72, 2, 0)),
        ("The Kesh Jig", (48, 1, 9)),
        ("The Mist Covered Mountain", (36, 0, 13)),
    ],
)
def test_title_tier_by_length(title: str, tier: tuple[int, int, int]) -> None:
    assert title_tier(title) == tier


def test_strip_shape() -> None:
    strip = _title_strip("The Kesh\nJig\nG Major")
    assert strip.shape == (TITLE_HEIGHT, WIDTH)
    assert strip.dtype == np.uint8


def test_title_and_underline_are_centred() -> None:
    strip = _title_strip("Mist Covered Mountain\nJig\nD Major")
    _, xs = np.nonzero(strip[:150] == INK)
    assert abs((xs.min() + xs.max()) / 2 - WIDTH / 2) <= 4


def test_type_and_key_on_the_left() -> None:
    strip = _title_strip("Mist Covered Mountain\nJig\nD Major")
    assert (strip[160:TITLE_HEIGHT, : WIDTH // 4] == INK).any()
    assert not (strip[160:TITLE_HEIGHT, WIDTH // 2 :] == INK).any()


def test_composer_on_the_right() -> None:
    strip = _title_strip("Mist Covered Mountain\nJig\nD Major\nTrad.")
    assert (strip[160:TITLE_HEIGHT, WIDTH // 2 :] == INK).any()
