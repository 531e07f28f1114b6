"""TuneConverter: renders dance-tune text notation as paginated sheet-music pages."""

__version__ = "0.1.0"
