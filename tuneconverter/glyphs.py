"""
Glyph libraries supplying the symbol bitmaps the renderers compose.

A glyph is a read-only raster (see :mod:`tuneconverter.raster`) looked up by
name: pitch letters ``A``..``G``, ``_``, ``r``, ``l``; marks ``sharp``,
``flat``, ``natural``, ``high``, ``low``, ``__``; ornaments ``duplet`` and
``triplet``; layout pieces ``space``, ``x``, ``linkStart``, ``linkMiddle``,
``linkEnd``, ``part<N>`` and ``repeatSingle``/``repeatDouble``.
"""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from tuneconverter.errors import UnknownGlyphError
from tuneconverter.raster import INK, PAPER, freeze, from_image

logger = logging.getLogger(__name__)

_PART_NAME = re.compile(r"^part(\d+)$")


class GlyphLibrary(ABC):
    """Abstract glyph source; ``None`` from :meth:`get` means "omit this overlay"."""

    @abstractmethod
    def get(self, name: str) -> np.ndarray | None:
        """Return the named glyph, or None when the library has no such glyph."""

    def require(self, name: str) -> np.ndarray:
        """
        Return a glyph the layout cannot do without.

        Raises:
            UnknownGlyphError: If the library has no glyph by that name.
        """
        glyph = self.get(name)
        if glyph is None:
            raise UnknownGlyphError(f"Glyph '{name}' is missing from the glyph library.")
        return glyph


class DirectoryGlyphLibrary(GlyphLibrary):
    """
    Load glyphs from ``<directory>/<name>.png``.

    Images are converted to 8-bit grayscale (transparent areas become paper)
    on first use and cached for the lifetime of the library.
    """

    SUFFIX = ".png"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Glyph directory '{self.directory}' does not exist.")
        self._cache: dict[str, np.ndarray | None] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> np.ndarray | None:
        with self._lock:
            if name in self._cache:
                return self._cache[name]

        path = self.directory / f"{name}{self.SUFFIX}"
        glyph: np.ndarray | None = None
        if path.is_file():
            with Image.open(path) as image:
                glyph = freeze(from_image(image))
            logger.debug("Loaded glyph '%s' (%dx%d)", name, glyph.shape[1], glyph.shape[0])

        with self._lock:
            self._cache[name] = glyph
        return glyph


class DrawnGlyphLibrary(GlyphLibrary):
    """
    Draw every glyph procedurally with Pillow.

    No image assets are needed, which makes this the default library and the
    one the tests render with. Glyph sizes are chosen to fit the renderer's
    layout constants: pitch glyphs are 60x80, marks are 14 px wide, link
    pieces are 40x141.
    """

    NOTE_SIZE = (60, 80)
    MARK_SIZE = (14, 22)
    DOT_SIZE = (14, 14)
    LINK_SIZE = (40, 141)

    def __init__(self, font_path: str | None = None) -> None:
        self.font_path = font_path
        self._cache: dict[str, np.ndarray | None] = {}
        self._lock = threading.Lock()
        self._painters: dict[str, Callable[[], Image.Image]] = {
            "_": self._draw_hold,
            "r": lambda: self._draw_rest(low=False),
            "l": lambda: self._draw_rest(low=True),
            "sharp": self._draw_sharp,
            "flat": self._draw_flat,
            "natural": self._draw_natural,
            "high": lambda: self._draw_dot(filled=True),
            "low": lambda: self._draw_dot(filled=False),
            "__": self._draw_long,
            "duplet": lambda: self._draw_bracket(76, "2"),
            "triplet": lambda: self._draw_bracket(152, "3"),
            "space": self._draw_barline,
            "x": self._draw_cross,
            "linkStart": lambda: self._draw_link(start=True, end=False),
            "linkMiddle": lambda: self._draw_link(start=False, end=False),
            "linkEnd": lambda: self._draw_link(start=False, end=True),
            "repeatSingle": lambda: self._draw_repeat(double=False),
            "repeatDouble": lambda: self._draw_repeat(double=True),
        }
        for letter in "ABCDEFG":
            self._painters[letter] = lambda letter=letter: self._draw_letter(letter)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if self.font_path:
            return ImageFont.truetype(self.font_path, size)
        return ImageFont.load_default(size=size)

    def _canvas(self, size: tuple[int, int]) -> tuple[Image.Image, ImageDraw.ImageDraw]:
        image = Image.new("L", size, PAPER)
        return image, ImageDraw.Draw(image)

    def _draw_letter(self, letter: str) -> Image.Image:
        image, draw = self._canvas(self.NOTE_SIZE)
        w, h = self.NOTE_SIZE
        draw.text((w / 2, h / 2), letter, font=self._font(56), fill=INK, anchor="mm")
        return image

    def _draw_hold(self) -> Image.Image:
        image, draw = self._canvas(self.NOTE_SIZE)
        w, h = self.NOTE_SIZE
        draw.rectangle((6, h // 2 - 3, w - 6, h // 2 + 3), fill=INK)
        return image

    def _draw_rest(self, low: bool) -> Image.Image:
        image, draw = self._canvas(self.NOTE_SIZE)
        w, h = self.NOTE_SIZE
        top = h // 2 if low else h // 4
        points = [(w // 3, top), (2 * w // 3, top + 12), (w // 3, top + 24), (2 * w // 3, top + 36)]
        draw.line(points, fill=INK, width=4)
        return image

    def _draw_sharp(self) -> Image.Image:
        image, draw = self._canvas(self.MARK_SIZE)
        w, h = self.MARK_SIZE
        draw.line((4, 1, 4, h - 2), fill=INK, width=2)
        draw.line((w - 5, 1, w - 5, h - 2), fill=INK, width=2)
        draw.line((0, 8, w - 1, 6), fill=INK, width=2)
        draw.line((0, 15, w - 1, 13), fill=INK, width=2)
        return image

    def _draw_flat(self) -> Image.Image:
        image, draw = self._canvas(self.MARK_SIZE)
        w, h = self.MARK_SIZE
        draw.line((3, 0, 3, h - 1), fill=INK, width=2)
        draw.ellipse((3, h // 2, w - 2, h - 1), outline=INK, width=2)
        return image

    def _draw_natural(self) -> Image.Image:
        image, draw = self._canvas(self.MARK_SIZE)
        w, h = self.MARK_SIZE
        draw.line((3, 0, 3, h - 6), fill=INK, width=2)
        draw.line((w - 4, 5, w - 4, h - 1), fill=INK, width=2)
        draw.line((3, 7, w - 4, 5), fill=INK, width=2)
        draw.line((3, h - 6, w - 4, h - 8), fill=INK, width=2)
        return image

    def _draw_dot(self, filled: bool) -> Image.Image:
        image, draw = self._canvas(self.DOT_SIZE)
        w, h = self.DOT_SIZE
        if filled:
            draw.ellipse((2, 2, w - 3, h - 3), fill=INK)
        else:
            draw.ellipse((2, 2, w - 3, h - 3), outline=INK, width=2)
        return image

    def _draw_long(self) -> Image.Image:
        image, draw = self._canvas((40, 6))
        draw.rectangle((0, 1, 39, 4), fill=INK)
        return image

    def _draw_bracket(self, width: int, label: str) -> Image.Image:
        image, draw = self._canvas((width, 120))
        draw.line([(4, 18), (4, 8), (width - 5, 8), (width - 5, 18)], fill=INK, width=2)
        draw.rectangle((width // 2 - 9, 0, width // 2 + 9, 16), fill=PAPER)
        draw.text((width // 2, 8), label, font=self._font(16), fill=INK, anchor="mm")
        return image

    def _draw_barline(self) -> Image.Image:
        image, draw = self._canvas((6, 120))
        draw.rectangle((2, 14, 3, 110), fill=INK)
        return image

    def _draw_cross(self) -> Image.Image:
        image, draw = self._canvas(self.DOT_SIZE)
        w, h = self.DOT_SIZE
        draw.line((1, 1, w - 2, h - 2), fill=INK, width=2)
        draw.line((1, h - 2, w - 2, 1), fill=INK, width=2)
        return image

    def _draw_link(self, start: bool, end: bool) -> Image.Image:
        image, draw = self._canvas(self.LINK_SIZE)
        w, h = self.LINK_SIZE
        draw.rectangle((0, 4, w - 1, 6), fill=INK)
        if start:
            draw.rectangle((2, 4, 4, h - 10), fill=INK)
        if end:
            draw.rectangle((w - 5, 4, w - 3, h - 10), fill=INK)
        return image

    def _draw_repeat(self, double: bool) -> Image.Image:
        image, draw = self._canvas((30, 40))
        draw.rectangle((2, 0, 5, 39), fill=INK)
        if double:
            draw.rectangle((10, 0, 11, 39), fill=INK)
        draw.ellipse((18, 10, 24, 16), fill=INK)
        draw.ellipse((18, 24, 24, 30), fill=INK)
        return image

    def _draw_part_badge(self, number: int) -> Image.Image:
        image, draw = self._canvas((28, 28))
        draw.ellipse((0, 0, 27, 27), outline=INK, width=2)
        draw.text((14, 14), str(number), font=self._font(16), fill=INK, anchor="mm")
        return image

    def _paint(self, name: str) -> Image.Image | None:
        painter = self._painters.get(name)
        if painter is not None:
            return painter()
        match = _PART_NAME.match(name)
        if match:
            return self._draw_part_badge(int(match.group(1)))
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, name: str) -> np.ndarray | None:
        with self._lock:
            if name in self._cache:
                return self._cache[name]

        painted = self._paint(name)
        glyph = None if painted is None else freeze(from_image(painted))

        with self._lock:
            self._cache[name] = glyph
        return glyph
