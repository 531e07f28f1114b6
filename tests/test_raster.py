"""Unit tests for the raster primitives."""

import numpy as np
import pytest

from tuneconverter.errors import LayoutOverflowError
from tuneconverter.raster import (
    INK,
    PAPER,
    blank,
    freeze,
    invert,
    paste,
    scale,
    shift,
    stamp,
)


def test_blank_is_paper() -> None:
    image = blank(4, 3)
    assert image.shape == (3, 4)
    assert image.dtype == np.uint8
    assert (image == PAPER).all()


def test_paste_copies_source() -> None:
    dst = blank(5, 5)
    src = blank(2, 2, fill=INK)
    paste(dst, src, 3, 1)
    assert (dst[1:3, 3:5] == INK).all()
    assert (dst == INK).sum() == 4


def test_paste_overwrites_existing_ink() -> None:
    dst = blank(2, 2, fill=INK)
    paste(dst, blank(2, 2), 0, 0)
    assert (dst == PAPER).all()


@pytest.mark.parametrize(("x", "y"), [(4, 0), (0, 4), (-1, 0), (0, -1)])
def test_paste_outside_canvas_raises(x: int, y: int) -> None:
    with pytest.raises(LayoutOverflowError):
        paste(blank(5, 5), blank(2, 2), x, y)


def test_stamp_keeps_ink_from_both_layers() -> None:
    dst = blank(2, 1)
    dst[0, 0] = INK
    src = blank(2, 1)
    src[0, 1] = INK
    stamp(dst, src)
    assert (dst == INK).all()


def test_stamp_outside_canvas_raises() -> None:
    with pytest.raises(LayoutOverflowError):
        stamp(blank(3, 3), blank(4, 1))


def test_shift_moves_content_and_fills_with_paper() -> None:
    image = blank(4, 4)
    image[0, 0] = INK
    moved = shift(image, 2, 1)
    assert moved[1, 2] == INK
    assert (moved == INK).sum() == 1
    assert image[0, 0] == INK


def test_shift_past_the_edge_is_blank() -> None:
    image = blank(4, 4, fill=INK)
    assert (shift(image, 0, 4) == PAPER).all()


def test_scale_rounds_dimensions() -> None:
    assert scale(blank(120, 140), 0.633333).shape == (89, 76)
    assert scale(blank(192, 120), 0.79166667).shape == (95, 152)


def test_invert_swaps_ink_and_paper() -> None:
    image = blank(2, 1)
    image[0, 0] = INK
    assert invert(image).tolist() == [[PAPER, INK]]


def test_frozen_raster_is_read_only() -> None:
    image = freeze(blank(2, 2))
    with pytest.raises(ValueError):
        image[0, 0] = INK
