"""Unit tests for SheetExporter (no rendering needed; pages are synthetic rasters)."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from tuneconverter.raster import INK, blank
from tuneconverter.sheet_exporter import SheetExporter


def _pages(count: int) -> list[np.ndarray]:
    pages = []
    for i in range(count):
        page = blank(42, 60)
        page[i, :] = INK
        pages.append(page)
    return pages


def test_unsupported_format_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported output format"):
        SheetExporter(output_format="svg")


def test_format_is_normalised() -> None:
    exporter = SheetExporter(output_format=" PDF ")
    assert exporter.output_format == "pdf"
    assert exporter.default_extension == ".pdf"


def test_no_pages_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="no pages"):
        SheetExporter().export([], tmp_path / "tune.png")


def test_single_page_png_keeps_the_name(tmp_path: Path) -> None:
    written = SheetExporter().export(_pages(1), tmp_path / "tune.png")
    assert written == [tmp_path / "tune.png"]
    with Image.open(written[0]) as image:
        assert image.mode == "L"
        assert image.size == (42, 60)


def test_multi_page_png_is_numbered(tmp_path: Path) -> None:
    written = SheetExporter().export(_pages(3), tmp_path / "tune.png")
    assert [p.name for p in written] == ["tune-1.png", "tune-2.png", "tune-3.png"]
    for row, path in enumerate(written):
        with Image.open(path) as image:
            pixels = np.array(image)
        assert (pixels[row] == INK).all()
        assert (pixels == INK).sum() == 42


def test_png_suffix_is_added(tmp_path: Path) -> None:
    written = SheetExporter().export(_pages(1), tmp_path / "tune")
    assert written == [tmp_path / "tune.png"]


def test_pdf_holds_every_page(tmp_path: Path) -> None:
    written = SheetExporter(output_format="pdf").export(_pages(2), tmp_path / "tune.txt")
    assert written == [tmp_path / "tune.pdf"]
    data = written[0].read_bytes()
    assert data.startswith(b"%PDF")
    assert b"/Count 2" in data


def test_missing_directory_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        SheetExporter().export(_pages(1), tmp_path / "missing" / "tune.png")
