"""BarRenderer: composes one bar's note-groups into a fixed-size raster tile."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Final

import numpy as np

from tuneconverter.errors import LayoutOverflowError
from tuneconverter.glyphs import GlyphLibrary
from tuneconverter.raster import blank, freeze, paste, scale, shift, stamp, width_of
from tuneconverter.tune_models import (
    Accidental,
    Bar,
    Duplet,
    Note,
    NoteGroup,
    Octave,
    Singlet,
    Triplet,
)
from tuneconverter.tune_types import LayoutConfig

logger = logging.getLogger(__name__)

# ── Geometry (pixels) ───────────────────────────────────────────────────────
NOTE_HEIGHT: Final[int] = 80
NOTE_WIDTH: Final[int] = 60
NOTE_GAP: Final[int] = 16
SLOT_WIDTH: Final[int] = NOTE_WIDTH + NOTE_GAP
TILE_HEIGHT: Final[int] = NOTE_HEIGHT + 40

GLYPH_X: Final[int] = 4
GLYPH_Y: Final[int] = 18
REST_RAISE: Final[int] = 10

DUPLET_SCALE: Final[float] = 0.633333
DUPLET_Y: Final[int] = 25
DUPLET_DROP: Final[int] = 10
TRIPLET_SCALE: Final[float] = 0.79166667
TRIPLET_NOTE_WIDTH: Final[int] = NOTE_WIDTH + 4
TRIPLET_Y: Final[int] = 22

RIGHT: Final[str] = "right"
LEFT: Final[str] = "left"


@dataclass(frozen=True)
class Overlay:
    """
    Placement of one mark glyph on a note canvas.

    Attributes:
        glyph:  Glyph name in the library.
        anchor: ``"right"`` measures ``dx`` from the canvas' right edge to the
                glyph's right edge; ``"left"`` measures it from the left edge.
        dx:     Horizontal offset from the anchor edge.
        dy:     Offset from the top of the canvas.
    """

    glyph: str
    anchor: str
    dx: int
    dy: int

    def position(self, canvas_width: int, glyph_width: int) -> tuple[int, int]:
        if self.anchor == RIGHT:
            return canvas_width - glyph_width - self.dx, self.dy
        return self.dx, self.dy


#: Width of the high-octave mark; a following accidental sits just left of it.
HIGH_MARK_WIDTH: Final[int] = 14

_LOW_MARK = Overlay("low", LEFT, 10, NOTE_HEIGHT + GLYPH_Y)

#: Octave and accidental overlays for every (octave, accidental) combination.
OVERLAY_TABLE: Final[dict[tuple[Octave, Accidental], tuple[Overlay, ...]]] = {
    (Octave.NONE, Accidental.NONE): (),
    (Octave.NONE, Accidental.SHARP): (Overlay("sharp", RIGHT, 0, 0),),
    (Octave.NONE, Accidental.FLAT): (Overlay("flat", RIGHT, 0, 0),),
    (Octave.NONE, Accidental.NATURAL): (Overlay("natural", RIGHT, 0, 0),),
    (Octave.HIGH, Accidental.NONE): (Overlay("high", RIGHT, 10, 0),),
    (Octave.HIGH, Accidental.SHARP): (
        Overlay("high", RIGHT, 0, 0),
        Overlay("sharp", RIGHT, HIGH_MARK_WIDTH, 1),
    ),
    (Octave.HIGH, Accidental.FLAT): (
        Overlay("high", RIGHT, 0, 0),
        Overlay("flat", RIGHT, HIGH_MARK_WIDTH, 1),
    ),
    (Octave.HIGH, Accidental.NATURAL): (
        Overlay("high", RIGHT, 0, 0),
        Overlay("natural", RIGHT, HIGH_MARK_WIDTH, 1),
    ),
    (Octave.LOW, Accidental.NONE): (_LOW_MARK,),
    (Octave.LOW, Accidental.SHARP): (_LOW_MARK, Overlay("sharp", RIGHT, 0, 0)),
    (Octave.LOW, Accidental.FLAT): (_LOW_MARK, Overlay("flat", RIGHT, 8, 0)),
    (Octave.LOW, Accidental.NATURAL): (_LOW_MARK, Overlay("natural", RIGHT, 0, 0)),
}

#: The long-duration bar sits under the note, right-aligned.
LONG_OVERLAY: Final[Overlay] = Overlay("__", RIGHT, 2, NOTE_WIDTH + NOTE_GAP + 16)


class BarRenderer:
    """
    Render bars into raster tiles, reusing tiles for structurally equal bars.

    Tile layout
    -----------
    A tile is ``SLOT_WIDTH * bar_length`` wide and ``TILE_HEIGHT`` high.
    Note-groups are placed left to right, one slot each, except triplets,
    which are drawn two slots wide and push later groups one slot further
    right.

    Note glyphs
    -----------
    Each note starts from its pitch glyph on a blank canvas. The duration bar
    is added below it, then the octave and accidental marks from
    :data:`OVERLAY_TABLE`. Marks are combined with a logical AND so the ink of
    both layers is kept. A mark the glyph library does not have is skipped.

    Cache
    -----
    Tiles are kept in an unbounded dict keyed by the frozen Bar, so a bar
    shape is composed once however often the tune repeats it. Tiles are
    read-only. Two threads rendering the same new bar at the same moment may
    both compose it; the results are identical and the last one is kept.
    """

    def __init__(self, glyphs: GlyphLibrary) -> None:
        self.glyphs = glyphs
        self._cache: dict[tuple[Bar, int], np.ndarray] = {}
        self._lock = threading.Lock()
        self.render_count = 0
        self.cache_hits = 0

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply(self, canvas: np.ndarray, overlay: Overlay) -> np.ndarray:
        glyph = self.glyphs.get(overlay.glyph)
        if glyph is None:
            return canvas
        x, y = overlay.position(width_of(canvas), width_of(glyph))
        return stamp(canvas, glyph, x, y)

    def _note_canvas(self, note: Note, width: int, x: int) -> np.ndarray:
        canvas = blank(width, TILE_HEIGHT)
        y = GLYPH_Y - REST_RAISE if note.pitch.is_rest else GLYPH_Y
        paste(canvas, self.glyphs.require(note.pitch.value), x, y)
        return self.arrange_note(canvas, note)

    def _ornament_mark(self, canvas: np.ndarray, name: str) -> np.ndarray:
        mark = self.glyphs.get(name)
        if mark is not None:
            stamp(canvas, mark, 0, 0)
        return canvas

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def arrange_note(self, canvas: np.ndarray, note: Note) -> np.ndarray:
        """Stamp the duration, octave and accidental marks for ``note`` onto ``canvas``."""
        if note.long:
            self._apply(canvas, LONG_OVERLAY)
        for overlay in OVERLAY_TABLE[(note.octave, note.accidental)]:
            self._apply(canvas, overlay)
        return canvas

    def create_singlet(self, group: Singlet) -> np.ndarray:
        return self._note_canvas(group.note, SLOT_WIDTH, GLYPH_X)

    def create_duplet(self, group: Duplet) -> np.ndarray:
        """Two notes shrunk side by side under the duplet mark, one slot wide."""
        full = blank(NOTE_WIDTH * 2, NOTE_HEIGHT + NOTE_WIDTH)
        for i, note in enumerate(group.notes):
            paste(full, self._note_canvas(note, NOTE_WIDTH, 0), i * NOTE_WIDTH, 0)

        tile = self._ornament_mark(blank(SLOT_WIDTH, TILE_HEIGHT), "duplet")
        stamp(tile, scale(full, DUPLET_SCALE), 0, DUPLET_Y)
        return shift(tile, 0, DUPLET_DROP)

    def create_triplet(self, group: Triplet) -> np.ndarray:
        """Three notes shrunk side by side under the triplet mark, two slots wide."""
        full = blank(TRIPLET_NOTE_WIDTH * 3, TILE_HEIGHT)
        for i, note in enumerate(group.notes):
            paste(full, self._note_canvas(note, TRIPLET_NOTE_WIDTH, GLYPH_X), i * TRIPLET_NOTE_WIDTH, 0)

        tile = self._ornament_mark(blank(SLOT_WIDTH * 2, TILE_HEIGHT), "triplet")
        return stamp(tile, scale(full, TRIPLET_SCALE), 0, TRIPLET_Y)

    def create_group(self, group: NoteGroup) -> np.ndarray:
        if group.kind == Triplet.kind:
            return self.create_triplet(group)  # type: ignore[arg-type]
        if group.kind == Duplet.kind:
            return self.create_duplet(group)  # type: ignore[arg-type]
        return self.create_singlet(group)  # type: ignore[arg-type]

    def create_bar(self, bar: Bar, bar_length: int) -> np.ndarray:
        """
        Compose a bar tile without consulting the cache.

        Raises:
            LayoutOverflowError: If the note-groups need more slots than the
                bar holds.
        """
        if bar.span > bar_length:
            raise LayoutOverflowError(
                f"Bar needs {bar.span} slot(s) to draw but holds {bar_length}."
            )

        with self._lock:
            self.render_count += 1

        tile = blank(SLOT_WIDTH * bar_length, TILE_HEIGHT)
        slot = 0
        for group in bar.groups:
            paste(tile, self.create_group(group), slot * SLOT_WIDTH, 0)
            slot += group.span
        return tile

    def render_bar(self, bar: Bar, layout: LayoutConfig) -> np.ndarray:
        """Return the read-only tile for ``bar``, composing it on first use."""
        key = (bar, layout.bar_length)
        with self._lock:
            tile = self._cache.get(key)
            if tile is not None:
                self.cache_hits += 1
                return tile

        tile = freeze(self.create_bar(bar, layout.bar_length))
        with self._lock:
            self._cache[key] = tile
        logger.debug("Cached bar tile #%d (%d group(s))", len(self._cache), len(bar.groups))
        return tile

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
