"""Immutable tune model built by the parser and read by the renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from tuneconverter.tune_types import LayoutConfig, TuneType


class PitchClass(Enum):
    """Pitch or rest symbol; the value is both the notation character and the glyph name."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    HOLD = "_"
    REST = "r"
    LOW_REST = "l"

    @property
    def is_rest(self) -> bool:
        return self in (PitchClass.REST, PitchClass.LOW_REST)


class Octave(Enum):
    NONE = ""
    HIGH = "'"
    LOW = "L"


class Accidental(Enum):
    """Accidental mark; NATURAL is an explicit courtesy sign, NONE means no mark."""

    NONE = ""
    SHARP = "#"
    FLAT = "b"
    NATURAL = "n"


class KeyType(Enum):
    MAJOR = "Major"
    MINOR = "Minor"
    DORIAN = "Dorian"
    MIXOLYDIAN = "Mixolydian"
    LYDIAN = "Lydian"
    PHRYGIAN = "Phrygian"
    AEOLIAN = "Aeolian"
    IONIAN = "Ionian"
    LOCRIAN = "Locrian"


class RepeatStyle(Enum):
    """Repeat-mark variant drawn at the head of every part."""

    SINGLE = "Single"
    DOUBLE = "Double"

    @property
    def glyph_name(self) -> str:
        return f"repeat{self.value}"


@dataclass(frozen=True)
class Note:
    """A single note with its octave, accidental and duration marks."""

    pitch: PitchClass
    octave: Octave = Octave.NONE
    accidental: Accidental = Accidental.NONE
    long: bool = False


@dataclass(frozen=True)
class Singlet:
    """One note in one slot."""

    kind: ClassVar[str] = "singlet"
    span: ClassVar[int] = 1

    note: Note

    @property
    def notes(self) -> tuple[Note, ...]:
        return (self.note,)

    @property
    def slots(self) -> int:
        return 1


@dataclass(frozen=True)
class Duplet:
    """Two notes played in the time of one."""

    kind: ClassVar[str] = "duplet"
    span: ClassVar[int] = 1

    first: Note
    second: Note

    @property
    def notes(self) -> tuple[Note, ...]:
        return (self.first, self.second)

    @property
    def slots(self) -> int:
        return 1


@dataclass(frozen=True)
class Triplet:
    """Three notes played in the time of two; drawn two slots wide."""

    kind: ClassVar[str] = "triplet"
    span: ClassVar[int] = 2

    first: Note
    second: Note
    third: Note

    @property
    def notes(self) -> tuple[Note, ...]:
        return (self.first, self.second, self.third)

    @property
    def slots(self) -> int:
        return 1


NoteGroup = Union[Singlet, Duplet, Triplet]


@dataclass(frozen=True)
class Bar:
    """
    One measure: an ordered run of note-groups.

    Bars are hashable by value, so two bars with the same groups and capacity
    share one rendered tile.
    """

    groups: tuple[NoteGroup, ...]
    max_length: int

    @property
    def current_length(self) -> int:
        """Metrical slots used by the bar's note-groups."""
        return sum(group.slots for group in self.groups)

    @property
    def span(self) -> int:
        """Slots needed to draw the bar's note-groups side by side."""
        return sum(group.span for group in self.groups)


@dataclass(frozen=True)
class Line:
    """
    A row of bars.

    Melody lines declare the tune type's line length; a link line declares its
    own bar count.
    """

    bars: tuple[Bar, ...]
    max_length: int
    is_link: bool = False


@dataclass(frozen=True)
class Part:
    """A numbered tune part with an optional link line bridging to the repeat."""

    number: int
    lines: tuple[Line, ...]
    link: Line | None = None

    @property
    def max_length(self) -> int:
        """Melody line count; the link line is not counted."""
        return len(self.lines)


@dataclass(frozen=True)
class Key:
    pitch: PitchClass
    key_type: KeyType
    accidental: Accidental = Accidental.NONE

    def __str__(self) -> str:
        return f"{self.pitch.value}{self.accidental.value} {self.key_type.value}"


@dataclass(frozen=True)
class Tune:
    """
    A complete parsed tune.

    Attributes:
        title:        Title text shown on the first page.
        tune_type:    Dance rhythm; fixes bar, line and page geometry.
        key:          Key note, accidental and mode.
        parts:        Parts numbered 1..N in input order.
        layout:       Layout parameters derived from ``tune_type``.
        composer:     Composer credit; empty when unknown.
        repeat_style: Repeat-mark variant drawn on every part.
    """

    title: str
    tune_type: TuneType
    key: Key
    parts: tuple[Part, ...]
    layout: LayoutConfig
    composer: str = ""
    repeat_style: RepeatStyle = field(default=RepeatStyle.DOUBLE)

    @property
    def max_length(self) -> int:
        return len(self.parts)
