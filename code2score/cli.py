"""Code2Score CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from code2score import __version__
from code2score.composition_builder import Composition, CompositionBuilder
from code2score.midi_encoder import MIDI_FILENAME, MidiEncoder
from code2score.midi_exporter import MidiExporter
from code2score.playback import build_playback_schedule, total_duration

DEFAULT_FILENAME = "example.js"
DEFAULT_TEMPO = 120


def _read_source(source: str) -> str:
    """Read the document text from a path, or from stdin when source is '-'."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _resolve_filename(source: str, filename: str | None) -> str:
    """The name whose extension picks the key: --filename, else the source's name."""
    if filename is not None:
        return filename
    if source == "-":
        return DEFAULT_FILENAME
    return Path(source).name


def _load_composition(source: str, filename: str | None) -> Composition:
    """Read and analyse a document, exiting with an error message on failure."""
    try:
        text = _read_source(source)
    except (OSError, ValueError) as exc:
        click.echo(f"  ERROR: Could not read source — {exc}", err=True)
        sys.exit(1)
    return CompositionBuilder().build(text, _resolve_filename(source, filename))


def _describe(composition: Composition) -> None:
    click.echo(
        f"      {len(composition)} note(s)  |  Key: {composition.key_signature}  "
        f"|  Time: {composition.time_signature}"
    )


# ── Shared options ─────────────────────────────────────────────────────────────

source_argument = click.argument(
    "source",
    type=click.Path(exists=True, dir_okay=False, readable=True, allow_dash=True),
)

filename_option = click.option(
    "--filename",
    default=None,
    metavar="NAME",
    help="Treat the source as this filename when choosing the key. Defaults to the source's name.",
)

tempo_option = click.option(
    "--tempo",
    type=click.IntRange(20, 300),
    default=DEFAULT_TEMPO,
    show_default=True,
    help="Playback tempo in BPM.",
)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="code2score")
@click.option("--verbose", "-v", is_flag=True, help="Log analysis details to stderr.")
def main(verbose: bool) -> None:
    """Code2Score — turn source code into a melody, a MIDI file and a score."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── compose subcommand ─────────────────────────────────────────────────────────

@main.command()
@source_argument
@filename_option
@tempo_option
@click.option(
    "--output",
    "-o",
    default=MIDI_FILENAME,
    show_default=True,
    metavar="PATH",
    help="Destination MIDI file path.",
)
@click.option(
    "--ensemble",
    is_flag=True,
    help="Write one track per instrument (format 1) instead of a single track (format 0).",
)
def compose(source: str, filename: str | None, tempo: int, output: str, ensemble: bool) -> None:
    """
    Convert a source file into a MIDI melody.

    SOURCE is the code file to analyse ('-' reads stdin).

    \b
    Examples:
      code2score compose app.py
      code2score compose main.go --tempo 90 -o main.mid
      cat snippet.txt | code2score compose - --filename snippet.rs --ensemble
    """
    click.echo(f"code2score v{__version__}")
    click.echo(f"  Source : {source}")
    click.echo(f"  Tempo  : {tempo} BPM  |  Layout: {'ensemble' if ensemble else 'single track'}")
    click.echo()

    click.echo("[1/2] Analysing source lines...")
    composition = _load_composition(source, filename)
    _describe(composition)

    click.echo(f"[2/2] Writing MIDI file → '{output}'...")
    try:
        if ensemble:
            MidiExporter(tempo=tempo).export(composition, output)
        else:
            MidiEncoder(tempo=tempo).write(composition, output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Open '{output}' in GarageBand, MuseScore, or any MIDI player.")


# ── analyze subcommand ─────────────────────────────────────────────────────────

@main.command()
@source_argument
@filename_option
@tempo_option
def analyze(source: str, filename: str | None, tempo: int) -> None:
    """
    Print the note derived from every non-blank line of SOURCE.

    \b
    Examples:
      code2score analyze app.js
      code2score analyze script.txt --filename script.py
    """
    composition = _load_composition(source, filename)
    schedule = build_playback_schedule(composition, tempo)

    click.echo(f"Key: {composition.key_signature}  |  Time: {composition.time_signature}  |  Tempo: {tempo} BPM")
    if composition.is_empty:
        click.echo("No non-blank lines — nothing to play.")
        return

    click.echo(f"{'line':>4}  {'start':>6}  {'note':<4}  {'dur':<3}  {'vel':>4}  {'instrument':<12}  code")
    for note, event in zip(composition, schedule):
        click.echo(
            f"{note.line_index:>4}  {event.start_offset:6.2f}  {note.spelling:<4}  "
            f"{note.duration.value:<3}  {note.velocity:4.2f}  {note.instrument.value:<12}  {note.text.strip()}"
        )
    click.echo(f"Total length: {total_duration(schedule):.2f} s")


# ── sheet subcommand ───────────────────────────────────────────────────────────

@main.command()
@source_argument
@filename_option
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination sheet file path. Defaults to extension based on --format.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output header. Defaults to the source filename.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["md-vexflow", "html-vexflow"], case_sensitive=False),
    default="md-vexflow",
    show_default=True,
    help="Sheet output format: Markdown or self-contained HTML, both drawn by VexFlow.",
)
def sheet(
    source: str,
    filename: str | None,
    output: str | None,
    title: str | None,
    output_format: str,
) -> None:
    """
    Write the score of SOURCE as a VexFlow page (Markdown or HTML).

    \b
    Examples:
      code2score sheet app.py
      code2score sheet app.py --format html-vexflow -o score.html --title "My App"
    """
    from code2score.sheet_exporter import SheetExporter

    resolved_filename = _resolve_filename(source, filename)
    resolved_title = title if title is not None else resolved_filename
    normalized_format = output_format.lower()
    default_suffix = ".html" if normalized_format == "html-vexflow" else ".md"
    resolved_output = (
        output if output is not None else str(Path(resolved_filename or "score").with_suffix(default_suffix))
    )

    click.echo(f"code2score v{__version__}")
    click.echo(f"  Source : {source}")
    click.echo(f"  Format : {normalized_format}")
    click.echo(f"  Title  : {resolved_title}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/2] Analysing source lines...")
    composition = _load_composition(source, filename)
    _describe(composition)

    click.echo("[2/2] Writing score page...")
    exporter = SheetExporter(title=resolved_title, output_format=normalized_format)
    try:
        exporter.export(composition, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    if normalized_format == "html-vexflow":
        click.echo(f"Done!  Open '{resolved_output}' in any browser. Use Print → Save as PDF.")
    else:
        click.echo(
            f"Done!  Open '{resolved_output}' in a Markdown viewer that allows embedded JavaScript."
        )
