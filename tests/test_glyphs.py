"""Tests for the directory-backed and drawn glyph libraries."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from tuneconverter.errors import UnknownGlyphError
from tuneconverter.glyphs import DirectoryGlyphLibrary, DrawnGlyphLibrary
from tuneconverter.raster import INK, PAPER


def _save_glyph(directory: Path, name: str) -> None:
    image = Image.new("RGBA", (6, 4), (0, 0, 0, 0))
    image.putpixel((1, 2), (0, 0, 0, 255))
    image.save(directory / f"{name}.png")


def test_directory_library_loads_png(tmp_path: Path) -> None:
    _save_glyph(tmp_path, "sharp")
    glyph = DirectoryGlyphLibrary(tmp_path).get("sharp")

    assert glyph is not None
    assert glyph.shape == (4, 6)
    assert glyph[2, 1] == INK
    assert (glyph == PAPER).sum() == 23
    assert not glyph.flags.writeable


def test_directory_library_missing_glyph(tmp_path: Path) -> None:
    library = DirectoryGlyphLibrary(tmp_path)
    assert library.get("flat") is None
    with pytest.raises(UnknownGlyphError, match="flat"):
        library.require("flat")


def test_directory_library_needs_a_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        DirectoryGlyphLibrary(tmp_path / "nope")


def test_glyphs_are_cached(tmp_path: Path) -> None:
    _save_glyph(tmp_path, "A")
    library = DirectoryGlyphLibrary(tmp_path)
    assert library.get("A") is library.get("A")


@pytest.mark.parametrize(
    ("name", "shape"),
    [
        ("A", (80, 60)),
        ("r", (80, 60)),
        ("sharp", (22, 14)),
        ("high", (14, 14)),
        ("__", (6, 40)),
        ("duplet", (120, 76)),
        ("triplet", (120, 152)),
        ("space", (120, 6)),
        ("linkMiddle", (141, 40)),
        ("repeatDouble", (40, 30)),
        ("part12", (28, 28)),
    ],
)
def test_drawn_glyph_sizes(name: str, shape: tuple[int, int]) -> None:
    glyph = DrawnGlyphLibrary().get(name)
    assert glyph is not None
    assert glyph.shape == shape
    assert (glyph == INK).any()


def test_drawn_library_has_no_unknown_names() -> None:
    library = DrawnGlyphLibrary()
    assert library.get("H") is None
    assert library.get("partX") is None


def test_drawn_glyphs_are_deterministic() -> None:
    assert np.array_equal(DrawnGlyphLibrary().get("G"), DrawnGlyphLibrary().get("G"))
