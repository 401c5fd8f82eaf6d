"""SheetExporter: converts a Composition into a VexFlow score page (Markdown or HTML)."""

from __future__ import annotations

import logging
from fractions import Fraction
from pathlib import Path
from typing import Final

from code2score.composition_builder import Composition
from code2score.line_analyzer import Note
from code2score.pitch import PitchClass
from code2score.scale_resolver import key_signature_accidentals, resolve_scale
from code2score.sheet_models import ScoreDocument, VexflowMeasure, VexflowNote
from code2score.sheet_renderers import (
    SheetRenderer,
    VexflowHtmlRenderer,
    VexflowMarkdownRenderer,
)

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: Final[set[str]] = {"html-vexflow", "md-vexflow"}

# Velocity thresholds for dynamics marks under a note.
FORTE_THRESHOLD: Final[float] = 0.7
PIANO_THRESHOLD: Final[float] = 0.4


class SheetExporter:
    """
    Convert a Composition into sheet output via a pluggable renderer.

    Supported formats:
    - ``md-vexflow``: markdown file with embedded VexFlow JavaScript renderer.
    - ``html-vexflow``: self-contained HTML page with the same renderer.

    Notes are packed into bars by the composition's time signature. A note
    that does not fit in the remaining space of a bar starts the next bar; it
    is never tied across the barline.
    """

    def __init__(self, title: str = "", output_format: str = "md-vexflow") -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.renderer = self._build_renderer(normalized)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "html-vexflow":
            return VexflowHtmlRenderer()
        return VexflowMarkdownRenderer()

    def _key_spellings(self, key_label: str) -> tuple[bool, dict[str, str]]:
        """Whether the key is written with flats, and each letter as its signature alters it."""
        flats = key_signature_accidentals(key_label) < 0
        spellings: dict[str, str] = {}
        for member in resolve_scale(key_label).value:
            name = self._spell(member, flats)
            spellings.setdefault(name[0], name)
        return flats, spellings

    def _spell(self, pitch_class: PitchClass, flats: bool) -> str:
        return (pitch_class.flat_spelling if flats else pitch_class.spelling).lower()

    def _note_to_token(self, note: Note, flats: bool, key_spellings: dict[str, str]) -> VexflowNote:
        name = self._spell(note.pitch_class, flats)
        letter, accidental = name[0], name[1:]
        if key_spellings.get(letter, letter) == name:
            shown = None
        elif accidental:
            shown = accidental
        else:
            shown = "n"
        return VexflowNote(
            keys=[f"{name}/{note.octave}"],
            duration=note.duration.vexflow,
            accidentals=[shown],
            annotation=self._dynamics_mark(note.velocity),
        )

    def _dynamics_mark(self, velocity: float) -> str | None:
        if velocity > FORTE_THRESHOLD:
            return "f"
        if velocity < PIANO_THRESHOLD:
            return "p"
        return None

    def _default_rest(self) -> VexflowNote:
        return VexflowNote(keys=["b/4"], duration="wr", accidentals=[None])

    def _pack_measures(self, composition: Composition) -> list[VexflowMeasure]:
        capacity = composition.time_signature.bar_quarter_notes
        flats, key_spellings = self._key_spellings(composition.key_signature)
        measures: list[list[VexflowNote]] = []
        current: list[VexflowNote] = []
        filled = Fraction(0)

        for note in composition:
            length = note.duration.quarter_notes
            if current and filled + length > capacity:
                measures.append(current)
                current, filled = [], Fraction(0)
            current.append(self._note_to_token(note, flats, key_spellings))
            filled += length

        if current:
            measures.append(current)
        if not measures:
            measures.append([self._default_rest()])
        return [VexflowMeasure(notes=notes) for notes in measures]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_document(self, composition: Composition) -> ScoreDocument:
        """Translate a composition into the renderer-neutral score model."""
        time_signature = composition.time_signature
        return ScoreDocument(
            title=self.title,
            time_signature=str(time_signature),
            beats=time_signature.beats_per_bar,
            beat_value=time_signature.beat_unit,
            key_signature=composition.key_signature,
            measures=self._pack_measures(composition),
        )

    def export(self, composition: Composition, output_path: str | Path) -> None:
        """
        Render a composition in the selected sheet format and write it to disk.

        Raises:
            OSError: If the output file cannot be written.
        """
        document = self.build_document(composition)
        content = self.renderer.render(title=self.title, score_document=document)

        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)
        logger.info("Wrote %d measures to %s", len(document.measures), output_path)
