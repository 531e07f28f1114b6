"""Exception types raised while parsing and rendering tunes."""


class TuneConverterError(Exception):
    """Base class for every failure surfaced by a tune conversion."""


class ParseError(TuneConverterError, ValueError):
    """The tune text is structurally invalid and cannot be rendered."""


class MalformedTitleError(ParseError):
    """Unknown tune type, key or mode token in the title record."""


class ParseAmbiguityError(ParseError):
    """A note-group run has no valid note or ornament decomposition."""


class LayoutError(TuneConverterError, RuntimeError):
    """A fixed layout table produced an impossible placement."""


class LayoutOverflowError(LayoutError):
    """A glyph placement would exceed its destination canvas."""


class UnknownGlyphError(TuneConverterError, LookupError):
    """A mandatory glyph is missing from the glyph library."""
