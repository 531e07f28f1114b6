"""PageLayout: stitches bar tiles into lines, parts, link bridges and pages."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Final

import numpy as np

from tuneconverter.bar_renderer import NOTE_HEIGHT, NOTE_WIDTH, SLOT_WIDTH, TILE_HEIGHT, BarRenderer
from tuneconverter.glyphs import GlyphLibrary
from tuneconverter.raster import blank, height_of, paste, scale, stamp, width_of
from tuneconverter.tune_models import Line, Part, RepeatStyle
from tuneconverter.tune_types import LayoutConfig

logger = logging.getLogger(__name__)

# ── Lines ───────────────────────────────────────────────────────────────────
LINE_OFFSET: Final[int] = NOTE_HEIGHT
BAR_GAP: Final[int] = 55

# ── Link bridge ─────────────────────────────────────────────────────────────
LINK_OFFSET: Final[int] = 40
LINK_BAR_GAP: Final[int] = 30
LINK_SCALE: Final[float] = 0.75
LINK_HEIGHT: Final[int] = TILE_HEIGHT + 21
LINK_DROP: Final[int] = 20

# ── Parts ───────────────────────────────────────────────────────────────────
ROW_TOP: Final[int] = 10
ROW_PITCH: Final[int] = TILE_HEIGHT + 40
PART_MARGIN: Final[int] = TILE_HEIGHT
CROWDED_LINES: Final[int] = 5
CROWDED_EXTRA: Final[int] = NOTE_WIDTH
BADGE_POSITION: Final[tuple[int, int]] = (10, 5)
REPEAT_POSITION: Final[tuple[int, int]] = (37, NOTE_HEIGHT)
REPEAT_X_POSITION: Final[tuple[int, int]] = (19, NOTE_HEIGHT + 7)

# ── Pages ───────────────────────────────────────────────────────────────────
SPACER_HEIGHT: Final[int] = 50
LINK_RIGHT_MARGIN: Final[int] = 122
LINK_RAISE: Final[int] = 70
PAPER_RATIO: Final[float] = 210 / 297
PAPER_MARGIN: Final[int] = 25


class SegmentKind(Enum):
    TITLE = "title"
    HEADER = "header"
    PART = "part"
    LINK = "link"
    SPACER = "spacer"


@dataclass(frozen=True)
class Segment:
    """One horizontal strip of a page, stacked top to bottom."""

    kind: SegmentKind
    image: np.ndarray

    @property
    def height(self) -> int:
        return height_of(self.image)


def fit_to_paper(page: np.ndarray) -> np.ndarray:
    """
    Letterbox or pillarbox a page to the 210:297 paper ratio.

    A page too wide for its height is width-constrained: it gets a margin on
    each side and enough height to reach the ratio. Otherwise the height is
    kept and the width grows to the ratio. Content is centred horizontally
    and top-aligned.
    """
    h, w = page.shape
    if h * PAPER_RATIO < w + 2 * PAPER_MARGIN:
        paper_w = w + 2 * PAPER_MARGIN
        paper_h = math.ceil(paper_w / PAPER_RATIO)
    else:
        paper_h = h
        paper_w = int(h * PAPER_RATIO)

    paper = blank(paper_w, paper_h)
    return paste(paper, page, (paper_w - w) // 2, 0)


def compose_page(segments: list[Segment], width: int, height: int) -> np.ndarray:
    """
    Stack segments top to bottom on a blank page.

    Link bridges are right-aligned and raised into the bottom margin of the
    part above them.
    """
    page = blank(width, height)
    marker = 0
    for segment in segments:
        x, y = 0, marker
        if segment.kind is SegmentKind.LINK:
            x = max(0, width - width_of(segment.image) - LINK_RIGHT_MARGIN)
            y = max(0, marker - LINK_RAISE)
        stamp(page, segment.image, x, y)
        marker += segment.height
    return page


class PageLayout:
    """
    Compose lines, parts and link bridges from cached bar tiles.

    Every method takes the tune's :class:`LayoutConfig`, which fixes the
    page width and bar capacity.
    """

    def __init__(self, glyphs: GlyphLibrary, bar_renderer: BarRenderer) -> None:
        self.glyphs = glyphs
        self.bar_renderer = bar_renderer

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _link_tile_width(self, layout: LayoutConfig) -> int:
        return max(1, round(SLOT_WIDTH * layout.bar_length * LINK_SCALE))

    def _link_content_width(self, line: Line, layout: LayoutConfig) -> int:
        bars = len(line.bars)
        return (
            2 * LINK_OFFSET
            + bars * self._link_tile_width(layout)
            + max(0, bars - 1) * LINK_BAR_GAP
        )

    def _overlay(self, image: np.ndarray, name: str, position: tuple[int, int]) -> None:
        glyph = self.glyphs.get(name)
        if glyph is not None:
            stamp(image, glyph, *position)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def page_width(self, layout: LayoutConfig) -> int:
        return SLOT_WIDTH * layout.page_width_notes

    def create_line(self, line: Line, layout: LayoutConfig, width: int) -> np.ndarray:
        """Place bar tiles left to right with a bar-line glyph in each gap."""
        image = blank(width, TILE_HEIGHT)
        space = self.glyphs.get("space")
        x = LINE_OFFSET

        for i, bar in enumerate(line.bars):
            tile = self.bar_renderer.render_bar(bar, layout)
            paste(image, tile, x, 0)
            x += width_of(tile)
            if space is not None and i < len(line.bars) - 1:
                stamp(image, space, x + (BAR_GAP - width_of(space)) // 2, 0)
            x += BAR_GAP

        return image

    def create_link_line(self, line: Line, layout: LayoutConfig, width: int) -> np.ndarray:
        """Place shrunken bar tiles tightly, with no bar-line glyphs."""
        image = blank(width, LINK_HEIGHT)
        x = LINK_OFFSET
        for bar in line.bars:
            tile = scale(self.bar_renderer.render_bar(bar, layout), LINK_SCALE)
            paste(image, tile, x, LINK_DROP)
            x += width_of(tile) + LINK_BAR_GAP
        return image

    def create_link(self, line: Line, layout: LayoutConfig) -> np.ndarray:
        """
        Build the link bridge strip with the link line's notes masked into it.

        The bridge has ``bars * (bar_length + 1)`` segments, and more if the
        notes need more room.

        Raises:
            UnknownGlyphError: If a link start, middle or end glyph is missing.
        """
        start = self.glyphs.require("linkStart")
        middle = self.glyphs.require("linkMiddle")
        end = self.glyphs.require("linkEnd")

        count = max(2, len(line.bars) * (layout.bar_length + 1))
        needed = self._link_content_width(line, layout)
        while width_of(start) + (count - 2) * width_of(middle) + width_of(end) < needed:
            count += 1

        width = width_of(start) + (count - 2) * width_of(middle) + width_of(end)
        bridge = blank(width, LINK_HEIGHT)
        paste(bridge, start, 0, 0)
        x = width_of(start)
        for _ in range(count - 2):
            paste(bridge, middle, x, 0)
            x += width_of(middle)
        paste(bridge, end, x, 0)

        return stamp(bridge, self.create_link_line(line, layout, width), 0, 0)

    def create_part(
        self,
        part: Part,
        layout: LayoutConfig,
        repeat_style: RepeatStyle = RepeatStyle.DOUBLE,
    ) -> np.ndarray:
        """Stack a part's melody lines and mark it with its number and repeat sign."""
        width = self.page_width(layout)
        rows = len(part.lines)
        extra = CROWDED_EXTRA if rows > CROWDED_LINES else 0
        image = blank(width, ROW_PITCH * rows + PART_MARGIN + extra)

        for i, line in enumerate(part.lines):
            paste(image, self.create_line(line, layout, width), 0, ROW_TOP + i * ROW_PITCH)

        self._overlay(image, f"part{part.number}", BADGE_POSITION)
        self._overlay(image, repeat_style.glyph_name, REPEAT_POSITION)
        self._overlay(image, "x", REPEAT_X_POSITION)
        return image

    def assemble_part_segments(
        self,
        part: Part,
        layout: LayoutConfig,
        repeat_style: RepeatStyle = RepeatStyle.DOUBLE,
    ) -> list[Segment]:
        """Return the part strip, its link bridge and spacers, in page order."""
        width = self.page_width(layout)
        segments = [Segment(SegmentKind.PART, self.create_part(part, layout, repeat_style))]

        if part.link is not None:
            segments.append(Segment(SegmentKind.LINK, self.create_link(part.link, layout)))
            segments.append(Segment(SegmentKind.SPACER, blank(width, SPACER_HEIGHT)))

        if layout.spec.padded:
            segments.append(Segment(SegmentKind.SPACER, blank(width, SPACER_HEIGHT)))

        logger.debug(
            "Part %d: %d segment(s), %d px high",
            part.number,
            len(segments),
            sum(s.height for s in segments),
        )
        return segments
