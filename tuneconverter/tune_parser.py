"""TuneParser: turns raw tune text into the immutable Tune model."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from typing import Final

from tuneconverter.errors import MalformedTitleError, ParseAmbiguityError
from tuneconverter.tune_models import (
    Accidental,
    Bar,
    Duplet,
    Key,
    KeyType,
    Line,
    Note,
    NoteGroup,
    Octave,
    Part,
    PitchClass,
    RepeatStyle,
    Singlet,
    Triplet,
    Tune,
)
from tuneconverter.tune_types import LayoutConfig, TuneType

logger = logging.getLogger(__name__)

LINK_PREFIX: Final[str] = "|"
ORNAMENT_MARKER: Final[str] = "*"
COMMENT_PREFIX: Final[str] = "#"

_BY_WHITESPACE = re.compile(r"\s+")
_BY_ORNAMENT = re.compile(r"\*[\w#']+\*")
_BY_NOTE = re.compile(r"[A-G_rl][^A-G_rl]*")

_PITCHES: Final[dict[str, PitchClass]] = {p.value: p for p in PitchClass}
_OCTAVES: Final[dict[str, Octave]] = {"'": Octave.HIGH, "L": Octave.LOW}
_ACCIDENTALS: Final[dict[str, Accidental]] = {
    "#": Accidental.SHARP,
    "b": Accidental.FLAT,
    "n": Accidental.NATURAL,
}
LONG_MARK: Final[str] = "-"


def split_pages(text: str) -> list[list[str]]:
    """
    Split a tune text file into pages.

    Pages are separated by one or more blank lines. The first page is the
    title record, each following page is one part. Lines starting with ``#``
    are comments and are dropped.

    Args:
        text: Full contents of a tune file.

    Returns:
        A list of pages, each a list of stripped, non-empty lines.
    """
    pages: list[list[str]] = []
    current: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith(COMMENT_PREFIX):
            continue
        if not line:
            if current:
                pages.append(current)
                current = []
            continue
        current.append(line)
    if current:
        pages.append(current)
    return pages


def _lookup_key_type(token: str) -> KeyType:
    wanted = token.strip().lower()
    for key_type in KeyType:
        if key_type.value.lower() == wanted:
            return key_type
    known = ", ".join(k.value for k in KeyType)
    raise MalformedTitleError(f"Unknown key type '{token}'. Use one of: {known}.")


def _lookup_repeat_style(token: str) -> RepeatStyle:
    wanted = token.strip().lower()
    for style in RepeatStyle:
        if style.value.lower() == wanted:
            return style
    raise MalformedTitleError(f"Unknown repeat style '{token}'. Use 'single' or 'double'.")


class TuneParser:
    """
    Parse the plain-text tune notation.

    The input is a list of pages. The first page is the title record
    (title, tune type, key, and optionally composer and repeat style). Every
    following page is a part, one text line per melody line, with an optional
    link line prefixed by ``|``.

    Bars are separated by whitespace. Inside a bar, notes are packed without
    spaces and ornaments (duplets and triplets) are wrapped in ``*``.

    Strict vs lenient
    -----------------
    By default, characters the notation does not recognise are ignored.
    With ``strict=True`` they raise :class:`ParseAmbiguityError`, as does a bar
    or link line with no notes in it.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _reject(self, message: str) -> None:
        if self.strict:
            raise ParseAmbiguityError(message)
        logger.debug("Ignoring: %s", message)

    def _parse_key(self, key_field: str) -> Key:
        tokens = key_field.split()
        if len(tokens) != 2:
            raise MalformedTitleError(
                f"Key '{key_field}' must be a key note and a mode, e.g. 'D Major'."
            )
        note_token, mode_token = tokens

        chars = list(note_token)
        pitch = _PITCHES.get(chars[0])
        if pitch is None or pitch.is_rest or pitch is PitchClass.HOLD:
            raise MalformedTitleError(f"Unknown key note '{note_token}'.")

        accidental = Accidental.NONE
        if len(chars) > 2:
            raise MalformedTitleError(f"Unknown key note '{note_token}'.")
        if len(chars) == 2:
            if chars[1] not in _ACCIDENTALS:
                raise MalformedTitleError(f"Unknown accidental in key note '{note_token}'.")
            accidental = _ACCIDENTALS[chars[1]]

        return Key(pitch=pitch, key_type=_lookup_key_type(mode_token), accidental=accidental)

    def _iter_runs(self, bar_text: str) -> Iterator[tuple[str, bool]]:
        """
        Yield each ``*``-separated run of a bar with its ornament flag.

        A run counts as an ornament when its text equals the inside of any
        ``*...*`` match in the bar and it is longer than one character, so
        ``AB*AB*`` reads as two duplets.
        """
        bounded = {m.group()[1:-1] for m in _BY_ORNAMENT.finditer(bar_text)}
        for run in bar_text.split(ORNAMENT_MARKER):
            yield run, run in bounded and len(run) > 1

    def _tokenize(self, run: str) -> list[str]:
        matches = list(_BY_NOTE.finditer(run))
        leading = run[: matches[0].start()] if matches else run
        if leading:
            self._reject(f"characters '{leading}' before the first note in '{run}'")
        return [m.group() for m in matches]

    def _build_ornament(self, run: str) -> NoteGroup:
        notes = [self.build_note(token) for token in self._tokenize(run)]
        if len(notes) == 2:
            return Duplet(notes[0], notes[1])
        if len(notes) == 3:
            return Triplet(notes[0], notes[1], notes[2])
        raise ParseAmbiguityError(
            f"Ornament '*{run}*' has {len(notes)} notes; a duplet needs 2 and a triplet 3."
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_note(self, token: str) -> Note:
        """
        Build a Note from one token: a pitch letter followed by its marks.

        Args:
            token: e.g. ``"A"``, ``"F#'"``, ``"BL-"``.
        """
        pitch = _PITCHES[token[0]]
        octave = Octave.NONE
        accidental = Accidental.NONE
        long = False

        for mark in token[1:]:
            if mark in _OCTAVES:
                octave = _OCTAVES[mark]
            elif mark in _ACCIDENTALS:
                accidental = _ACCIDENTALS[mark]
            elif mark == LONG_MARK:
                long = True
            else:
                self._reject(f"unknown mark '{mark}' in note '{token}'")

        return Note(pitch=pitch, octave=octave, accidental=accidental, long=long)

    def parse_bar(self, bar_text: str, layout: LayoutConfig) -> Bar:
        """Parse one whitespace-free bar into its note-groups."""
        groups: list[NoteGroup] = []
        for run, is_ornament in self._iter_runs(bar_text):
            if is_ornament:
                groups.append(self._build_ornament(run))
            else:
                groups.extend(Singlet(self.build_note(t)) for t in self._tokenize(run))

        if not groups:
            self._reject(f"bar '{bar_text}' contains no notes")
        return Bar(groups=tuple(groups), max_length=layout.bar_length)

    def parse_line(self, line_text: str, layout: LayoutConfig, is_link: bool = False) -> Line:
        """Parse one text line into bars; link lines declare their own length."""
        bar_texts = [b for b in _BY_WHITESPACE.split(line_text.strip()) if b]
        bars = tuple(self.parse_bar(b, layout) for b in bar_texts)
        max_length = len(bars) if is_link else layout.line_length
        return Line(bars=bars, max_length=max_length, is_link=is_link)

    def parse_part(self, lines: Sequence[str], number: int, layout: LayoutConfig) -> Part:
        melody: list[Line] = []
        link: Line | None = None

        for text in lines:
            if not text.strip():
                continue
            if text.startswith(LINK_PREFIX):
                if link is not None:
                    raise ParseAmbiguityError(f"Part {number} has more than one link line.")
                candidate = self.parse_line(text[len(LINK_PREFIX):], layout, is_link=True)
                if candidate.bars:
                    link = candidate
                else:
                    self._reject(f"empty link line in part {number}")
            else:
                melody.append(self.parse_line(text, layout))

        return Part(number=number, lines=tuple(melody), link=link)

    def parse(self, pages: Sequence[Sequence[str]]) -> Tune:
        """
        Parse a title record plus one page per part into a Tune.

        Raises:
            MalformedTitleError: If the title record is incomplete or names an
                unknown tune type, key or mode.
            ParseAmbiguityError: If a bar cannot be decomposed into notes.
        """
        if not pages:
            raise MalformedTitleError("Tune text is empty; expected a title record.")

        fields = [f.strip() for f in pages[0]]
        if len(fields) < 3:
            raise MalformedTitleError(
                "Title record needs a title, a tune type and a key "
                f"(got {len(fields)} field(s))."
            )

        title = fields[0]
        tune_type = TuneType.from_name(fields[1])
        key = self._parse_key(fields[2])
        composer = fields[3] if len(fields) > 3 else ""
        repeat_style = _lookup_repeat_style(fields[4]) if len(fields) > 4 else RepeatStyle.DOUBLE

        layout = LayoutConfig.for_tune_type(tune_type)
        logger.debug(
            "Parsing '%s' as %s: %d slot(s) per bar, %d bar(s) per line",
            title,
            tune_type.value,
            layout.bar_length,
            layout.line_length,
        )

        parts = tuple(
            self.parse_part(lines, number, layout)
            for number, lines in enumerate(pages[1:], start=1)
        )
        logger.info("Parsed '%s' with %d part(s)", title, len(parts))

        return Tune(
            title=title,
            tune_type=tune_type,
            key=key,
            parts=parts,
            layout=layout,
            composer=composer,
            repeat_style=repeat_style,
        )


def parse_tune_text(text: str, strict: bool = False) -> Tune:
    """Convenience wrapper: split a tune file's text into pages and parse it."""
    return TuneParser(strict=strict).parse(split_pages(text))
