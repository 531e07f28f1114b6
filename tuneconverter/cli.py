"""TuneConverter CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from tuneconverter import __version__
from tuneconverter.errors import TuneConverterError
from tuneconverter.glyphs import DirectoryGlyphLibrary, DrawnGlyphLibrary, GlyphLibrary
from tuneconverter.tune_models import Tune
from tuneconverter.tune_parser import TuneParser, split_pages


def _read_tune(tune_file: str, strict: bool) -> Tune:
    """Read and parse a tune file, exiting with an error line on failure."""
    try:
        text = Path(tune_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        click.echo(f"  ERROR: Could not read tune file — {exc}", err=True)
        sys.exit(1)

    try:
        return TuneParser(strict=strict).parse(split_pages(text))
    except TuneConverterError as exc:
        click.echo(f"  ERROR: Could not parse tune — {exc}", err=True)
        sys.exit(1)


def _get_glyphs(glyph_dir: str | None, font_path: str | None) -> GlyphLibrary:
    """Return the glyph library for the requested directory, or the drawn default."""
    if glyph_dir is None:
        return DrawnGlyphLibrary(font_path)
    return DirectoryGlyphLibrary(glyph_dir)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="tuneconverter")
@click.option("--verbose", "-v", is_flag=True, help="Log parse and layout details to stderr.")
def main(verbose: bool) -> None:
    """TuneConverter — dance-tune text notation to sheet-music pages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("tune_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination path. Defaults to the tune file name with the format's extension.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["png", "pdf"], case_sensitive=False),
    default="png",
    show_default=True,
    help="Page output format: one PNG per page or a single PDF.",
)
@click.option(
    "--glyphs",
    "glyph_dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    metavar="DIR",
    help="Directory of <name>.png glyph images. Defaults to built-in drawn glyphs.",
)
@click.option(
    "--font",
    "font_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    metavar="TTF",
    help="TrueType font for the title page and drawn glyphs.",
)
@click.option("--strict", is_flag=True, help="Reject characters the notation does not recognise.")
@click.option(
    "--workers",
    type=click.IntRange(1, 64),
    default=None,
    help="Worker threads for part and page rendering.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    metavar="SECS",
    help="Give up if a rendering stage takes longer than this.",
)
def render(
    tune_file: str,
    output: str | None,
    output_format: str,
    glyph_dir: str | None,
    font_path: str | None,
    strict: bool,
    workers: int | None,
    timeout: float | None,
) -> None:
    """
    Render a tune text file as sheet-music pages.

    TUNE_FILE holds a title record (title, tune type, key, and optionally
    composer and repeat style) followed by one blank-line separated block per
    part.

    \b
    Examples:
      tuneconverter render mist_covered_mountain.txt
      tuneconverter render reel.txt --format pdf -o reel.pdf
      tuneconverter render jig.txt --glyphs ./glyphs --strict
    """
    from tuneconverter.page_assembler import PageAssembler
    from tuneconverter.sheet_exporter import SheetExporter

    exporter = SheetExporter(output_format=output_format)
    resolved_output = output if output is not None else str(
        Path(tune_file).with_suffix(exporter.default_extension)
    )

    click.echo(f"tuneconverter v{__version__}")
    click.echo(f"  Tune   : {tune_file}")
    click.echo(f"  Format : {exporter.output_format}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    # ── Step 1: Parse ───────────────────────────────────────────────────
    click.echo("[1/3] Parsing tune notation...")
    tune = _read_tune(tune_file, strict)
    click.echo(f"      {tune.title} — {tune.tune_type.value} in {tune.key}, {len(tune.parts)} part(s)")

    # ── Step 2: Render ──────────────────────────────────────────────────
    click.echo("[2/3] Rendering pages...")
    try:
        assembler = PageAssembler(
            glyphs=_get_glyphs(glyph_dir, font_path),
            max_workers=workers,
            timeout=timeout,
            font_path=font_path,
        )
        pages = assembler.create_tune(tune)
    except (TuneConverterError, TimeoutError, OSError) as exc:
        click.echo(f"  ERROR: Could not render tune — {exc}", err=True)
        sys.exit(1)
    click.echo(f"      {len(pages)} page(s)")

    # ── Step 3: Write ───────────────────────────────────────────────────
    click.echo(f"[3/3] Writing {exporter.output_format.upper()} output...")
    try:
        written = exporter.export(pages, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    for path in written:
        click.echo(f"Done!  Wrote '{path}'.")


# ── check subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("tune_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--strict", is_flag=True, help="Reject characters the notation does not recognise.")
def check(tune_file: str, strict: bool) -> None:
    """
    Parse a tune text file and print its structure without rendering.

    \b
    Examples:
      tuneconverter check mist_covered_mountain.txt --strict
    """
    tune = _read_tune(tune_file, strict)

    click.echo(f"Title  : {tune.title}")
    click.echo(f"Type   : {tune.tune_type.value}  "
               f"({tune.layout.bar_length} slot(s)/bar, {tune.layout.line_length} bar(s)/line)")
    click.echo(f"Key    : {tune.key}")
    if tune.composer:
        click.echo(f"By     : {tune.composer}")
    click.echo(f"Parts  : {len(tune.parts)}")
    for part in tune.parts:
        bars = sum(len(line.bars) for line in part.lines)
        link = f", link of {len(part.link.bars)} bar(s)" if part.link is not None else ""
        click.echo(f"  Part {part.number}: {len(part.lines)} line(s), {bars} bar(s){link}")
