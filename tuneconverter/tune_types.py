"""Tune type registry: bar, line and page geometry for each dance rhythm."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from tuneconverter.errors import MalformedTitleError


class TuneType(Enum):
    """Dance-rhythm category named in a tune's title record."""

    POLKA = "Polka"
    SLIPJIG = "Slipjig"
    JIG = "Jig"
    SLIDE = "Slide"
    REEL = "Reel"
    HORNPIPE = "Hornpipe"
    BARNDANCE = "Barndance"
    FLING = "Fling"
    WALTZ = "Waltz"
    MAZURKA = "Mazurka"

    @classmethod
    def from_name(cls, name: str) -> TuneType:
        """
        Look up a tune type by its title-record name (case-insensitive).

        Raises:
            MalformedTitleError: If the name is not a known tune type.
        """
        wanted = name.strip().replace("-", "").lower()
        for tune_type in cls:
            if tune_type.value.lower() == wanted:
                return tune_type
        known = ", ".join(t.value for t in cls)
        raise MalformedTitleError(f"Unknown tune type '{name}'. Use one of: {known}.")


@dataclass(frozen=True)
class TuneTypeSpec:
    """
    Fixed geometry for one tune type.

    Attributes:
        bar_length:     Note slots per bar.
        line_length:    Bars per melody line.
        page_width:     Nominal page width in notes, counting bar spaces.
        notes_consumed: Notes an ornament stands in for. Informational only.
        padded:         Whether parts get an extra spacer below them.
    """

    bar_length: int
    line_length: int
    page_width: int
    notes_consumed: int
    padded: bool = False


_REGISTRY: Final[dict[TuneType, TuneTypeSpec]] = {
    TuneType.POLKA: TuneTypeSpec(bar_length=2, line_length=4, page_width=13, notes_consumed=2),
    TuneType.SLIPJIG: TuneTypeSpec(bar_length=3, line_length=3, page_width=14, notes_consumed=6),
    TuneType.JIG: TuneTypeSpec(bar_length=3, line_length=4, page_width=17, notes_consumed=3),
    TuneType.SLIDE: TuneTypeSpec(bar_length=3, line_length=4, page_width=17, notes_consumed=6),
    TuneType.REEL: TuneTypeSpec(
        bar_length=4, line_length=4, page_width=21, notes_consumed=4, padded=True
    ),
    TuneType.HORNPIPE: TuneTypeSpec(bar_length=4, line_length=4, page_width=21, notes_consumed=6),
    TuneType.BARNDANCE: TuneTypeSpec(bar_length=4, line_length=4, page_width=21, notes_consumed=6),
    TuneType.FLING: TuneTypeSpec(bar_length=4, line_length=4, page_width=21, notes_consumed=6),
    TuneType.WALTZ: TuneTypeSpec(bar_length=6, line_length=4, page_width=29, notes_consumed=6),
    TuneType.MAZURKA: TuneTypeSpec(bar_length=6, line_length=4, page_width=29, notes_consumed=6),
}


def tune_type_spec(tune_type: TuneType) -> TuneTypeSpec:
    """Return the registry entry for a tune type."""
    return _REGISTRY[tune_type]


@dataclass(frozen=True)
class LayoutConfig:
    """
    Per-tune layout parameters, built once by the parser and passed to every
    rendering call.
    """

    tune_type: TuneType
    bar_length: int
    line_length: int

    @classmethod
    def for_tune_type(cls, tune_type: TuneType) -> LayoutConfig:
        spec = tune_type_spec(tune_type)
        return cls(tune_type=tune_type, bar_length=spec.bar_length, line_length=spec.line_length)

    @property
    def spec(self) -> TuneTypeSpec:
        return tune_type_spec(self.tune_type)

    @property
    def page_width_notes(self) -> int:
        return self.spec.page_width
