"""Unit tests for PageLayout, compose_page and fit_to_paper."""

import math

import numpy as np
import pytest

from tuneconverter.bar_renderer import SLOT_WIDTH, TILE_HEIGHT, BarRenderer
from tuneconverter.errors import LayoutOverflowError, UnknownGlyphError
from tuneconverter.glyphs import DrawnGlyphLibrary, GlyphLibrary
from tuneconverter.page_layout import (
    LINK_HEIGHT,
    PAPER_MARGIN,
    PAPER_RATIO,
    SPACER_HEIGHT,
    PageLayout,
    Segment,
    SegmentKind,
    compose_page,
    fit_to_paper,
)
from tuneconverter.raster import INK, PAPER, blank
from tuneconverter.tune_models import Part
from tuneconverter.tune_parser import TuneParser
from tuneconverter.tune_types import LayoutConfig, TuneType

JIG = LayoutConfig.for_tune_type(TuneType.JIG)
REEL = LayoutConfig.for_tune_type(TuneType.REEL)


class _WithoutGlyphs(GlyphLibrary):
    """Drawn glyphs minus the names listed in ``missing``."""

    def __init__(self, *missing: str) -> None:
        self.missing = set(missing)
        self.inner = DrawnGlyphLibrary()

    def get(self, name: str) -> np.ndarray | None:
        return None if name in self.missing else self.inner.get(name)


def _layout(glyphs: GlyphLibrary | None = None) -> PageLayout:
    glyphs = glyphs or DrawnGlyphLibrary()
    return PageLayout(glyphs, BarRenderer(glyphs))


def _part(lines: list[str], layout: LayoutConfig = JIG) -> Part:
    return TuneParser().parse_part(lines, 1, layout)


# ---------------------------------------------------------------------------
# Lines and parts
# ---------------------------------------------------------------------------

def test_page_width_is_notes_times_slot() -> None:
    assert _layout().page_width(JIG) == 17 * SLOT_WIDTH == 1292


def test_line_is_one_tile_high() -> None:
    layout = _layout()
    line = TuneParser().parse_line("ABC DEF GAB CDE", JIG)
    image = layout.create_line(line, JIG, layout.page_width(JIG))
    assert image.shape == (TILE_HEIGHT, 1292)
    assert (image == INK).any()


def test_line_longer_than_the_page_overflows() -> None:
    layout = _layout()
    line = TuneParser().parse_line("ABC DEF GAB CDE FGA", JIG)
    with pytest.raises(LayoutOverflowError):
        layout.create_line(line, JIG, layout.page_width(JIG))


@pytest.mark.parametrize(("rows", "height"), [(1, 280), (2, 440), (5, 920), (6, 1140)])
def test_part_height_grows_with_lines(rows: int, height: int) -> None:
    image = _layout().create_part(_part(["ABC DEF"] * rows), JIG)
    assert image.shape == (height, 1292)


def test_part_badge_is_drawn() -> None:
    image = _layout().create_part(_part(["ABC"]), JIG)
    assert (image[5:33, 10:38] == INK).any()


# ---------------------------------------------------------------------------
# Link bridge
# ---------------------------------------------------------------------------

def test_link_bridge_fits_its_bars() -> None:
    part = _part(["ABC", "|DEF"])
    bridge = _layout().create_link(part.link, JIG)
    assert bridge.shape[0] == LINK_HEIGHT
    assert bridge.shape[1] >= 3 * SLOT_WIDTH
    assert bridge.shape[1] % 40 == 0


def test_link_bridge_grows_with_bar_count() -> None:
    layout = _layout()
    one = layout.create_link(_part(["|DEF"]).link, JIG)
    three = layout.create_link(_part(["|DEF GAB CDE"]).link, JIG)
    assert three.shape[1] > one.shape[1]


def test_link_bridge_needs_its_glyphs() -> None:
    layout = _layout(_WithoutGlyphs("linkStart"))
    with pytest.raises(UnknownGlyphError):
        layout.create_link(_part(["|DEF"]).link, JIG)


def test_link_notes_are_masked_into_the_bridge() -> None:
    layout = _layout()
    bridge = layout.create_link(_part(["|DEF"]).link, JIG)
    # Below the bridge's top rule only the start post and the notes carry ink.
    assert (bridge[30:110, 40:211] == INK).any()


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

def test_part_segments_without_link() -> None:
    segments = _layout().assemble_part_segments(_part(["ABC"]), JIG)
    assert [s.kind for s in segments] == [SegmentKind.PART]


def test_part_segments_with_link() -> None:
    segments = _layout().assemble_part_segments(_part(["ABC", "|DEF"]), JIG)
    assert [s.kind for s in segments] == [SegmentKind.PART, SegmentKind.LINK, SegmentKind.SPACER]
    assert segments[2].height == SPACER_HEIGHT


def test_reel_parts_are_padded() -> None:
    segments = _layout().assemble_part_segments(_part(["ABCD"], REEL), REEL)
    assert [s.kind for s in segments] == [SegmentKind.PART, SegmentKind.SPACER]
    assert segments[-1].height == SPACER_HEIGHT
    assert sum(s.height for s in segments) == 280 + 50


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def test_compose_page_stacks_segments() -> None:
    top = blank(10, 3, fill=INK)
    bottom = blank(10, 2)
    bottom[1, :] = INK
    page = compose_page(
        [Segment(SegmentKind.TITLE, top), Segment(SegmentKind.PART, bottom)], 10, 8
    )
    assert page.shape == (8, 10)
    assert (page[0:3] == INK).all()
    assert (page[3] == PAPER).all()
    assert (page[4] == INK).all()
    assert (page[5:] == PAPER).all()


def test_compose_page_raises_links_into_the_part_above() -> None:
    part = Segment(SegmentKind.PART, blank(400, 200))
    link = Segment(SegmentKind.LINK, blank(100, 10, fill=INK))
    page = compose_page([part, link], 400, 300)
    ys, xs = np.nonzero(page == INK)
    assert ys.min() == 200 - 70
    assert xs.min() == 400 - 100 - 122


def test_compose_page_overflow() -> None:
    with pytest.raises(LayoutOverflowError):
        compose_page([Segment(SegmentKind.PART, blank(10, 10))], 10, 5)


def test_fit_wide_page_adds_margins_and_height() -> None:
    page = blank(1000, 100, fill=INK)
    paper = fit_to_paper(page)
    assert paper.shape == (math.ceil(1050 / PAPER_RATIO), 1000 + 2 * PAPER_MARGIN)
    assert (paper[:100, PAPER_MARGIN : PAPER_MARGIN + 1000] == INK).all()
    assert (paper[:, :PAPER_MARGIN] == PAPER).all()
    assert (paper[100:] == PAPER).all()


def test_fit_tall_page_keeps_height() -> None:
    paper = fit_to_paper(blank(100, 1000, fill=INK))
    assert paper.shape == (1000, int(1000 * PAPER_RATIO))
    ys, xs = np.nonzero(paper == INK)
    assert xs.min() == (paper.shape[1] - 100) // 2
    assert ys.min() == 0
