"""TitlePage: draws the header strip for the first page of a tune."""

from __future__ import annotations

from typing import Final

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from tuneconverter.bar_renderer import NOTE_GAP, NOTE_HEIGHT
from tuneconverter.raster import from_image, invert
from tuneconverter.tune_models import Tune

TITLE_HEIGHT: Final[int] = NOTE_HEIGHT * 2 + 120

#: (longest title, font size, stroke width, baseline drop) per title length tier.
TITLE_TIERS: Final[tuple[tuple[int | None, int, int, int], ...]] = (
    (9, 72, 2, 0),
    (18, 48, 1, 9),
    (None, 36, 0, 13),
)

UNDERLINE_OVERHANG: Final[int] = NOTE_HEIGHT
UNDERLINE_DROP: Final[int] = 30
UNDERLINE_THICKNESS: Final[int] = 3

SIDE_FONT_SIZE: Final[int] = 20
SIDE_TEXT_X: Final[int] = NOTE_GAP
SIDE_TEXT_ROWS: Final[tuple[int, int]] = (180, 205)
RIGHT_MARGIN: Final[int] = 60

BACKGROUND: Final[int] = 0
FOREGROUND: Final[int] = 255


def title_tier(title: str) -> tuple[int, int, int]:
    """Return ``(font size, stroke width, baseline drop)`` for a title's length."""
    for longest, size, stroke, drop in TITLE_TIERS:
        if longest is None or len(title) <= longest:
            return size, stroke, drop
    raise AssertionError("TITLE_TIERS must end with an open-ended tier")


class TitlePage:
    """
    Render a tune's title, type, key and composer into a header strip.

    The title is centred using its measured extents and underlined. Tune type
    and key go on the left margin, the composer is right-justified. Text is
    drawn light-on-dark and the strip is inverted at the end, so the result is
    ink on paper like every other page piece.
    """

    def __init__(self, font_path: str | None = None) -> None:
        self.font_path = font_path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if self.font_path:
            return ImageFont.truetype(self.font_path, size)
        return ImageFont.load_default(size=size)

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str, width: int) -> None:
        size, stroke, drop = title_tier(title)
        font = self._font(size)
        left, top, right, bottom = draw.textbbox(
            (0, 0), title, font=font, anchor="ls", stroke_width=stroke
        )
        text_w, text_h = right - left, bottom - top

        x = int(width / 2 - text_w / 2)
        baseline = int(TITLE_HEIGHT / 3 - text_h * 0.1)
        draw.text(
            (x, baseline + drop),
            title,
            font=font,
            fill=FOREGROUND,
            anchor="ls",
            stroke_width=stroke,
            stroke_fill=FOREGROUND,
        )

        line_y = baseline + UNDERLINE_DROP
        draw.line(
            (x - UNDERLINE_OVERHANG, line_y, x + text_w + UNDERLINE_OVERHANG, line_y),
            fill=FOREGROUND,
            width=UNDERLINE_THICKNESS,
        )

    def _draw_left(self, draw: ImageDraw.ImageDraw, lines: tuple[str, str]) -> None:
        font = self._font(SIDE_FONT_SIZE)
        for text, y in zip(lines, SIDE_TEXT_ROWS):
            draw.text((SIDE_TEXT_X, y), text, font=font, fill=FOREGROUND, anchor="ls")

    def _draw_right(self, draw: ImageDraw.ImageDraw, composer: str, width: int) -> None:
        if not composer:
            return
        font = self._font(SIDE_FONT_SIZE)
        for text, y in zip(("Composer", composer), SIDE_TEXT_ROWS):
            text_w = draw.textlength(text, font=font)
            draw.text(
                (width - RIGHT_MARGIN - text_w, y), text, font=font, fill=FOREGROUND, anchor="ls"
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, tune: Tune, width: int) -> np.ndarray:
        """Return the title strip for ``tune``, ``width`` pixels wide."""
        image = Image.new("L", (width, TITLE_HEIGHT), BACKGROUND)
        draw = ImageDraw.Draw(image)

        self._draw_title(draw, tune.title, width)
        self._draw_left(draw, (tune.tune_type.value, str(tune.key)))
        self._draw_right(draw, tune.composer, width)

        return invert(from_image(image))
