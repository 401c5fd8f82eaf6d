"""CompositionBuilder: Folds the LineAnalyzer over a whole document."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from code2score.line_analyzer import COMMON_TIME, LineAnalyzer, Note, TimeSignature
from code2score.pitch import Lookup
from code2score.scale_resolver import resolve_scale

logger = logging.getLogger(__name__)

DEFAULT_KEY = "C"

#: File extension → key label.
EXTENSION_KEYS: Mapping[str, str] = MappingProxyType(
    {
        "js": "C",
        "jsx": "G",
        "ts": "D",
        "tsx": "A",
        "py": "Am",
        "php": "F",
        "java": "Bb",
        "c": "Eb",
        "cpp": "Ab",
        "rb": "E",
        "go": "B",
        "rs": "Em",
        "swift": "D",
    }
)

# Average line length thresholds (characters) for the time signature.
SHORT_LINE_THRESHOLD = 20
LONG_LINE_THRESHOLD = 60

WALTZ_TIME = TimeSignature(3, 4)
COMPOUND_TIME = TimeSignature(6, 8)


@dataclass(frozen=True)
class Composition:
    """
    The ordered notes of one analyzed document.

    Attributes:
        notes:          One Note per non-blank line, in source order.
        time_signature: Bar layout derived from the average line length.
        key_signature:  Key label derived from the filename extension.
    """

    notes: tuple[Note, ...] = ()
    time_signature: TimeSignature = COMMON_TIME
    key_signature: str = DEFAULT_KEY

    def __iter__(self) -> Iterator[Note]:
        return iter(self.notes)

    def __len__(self) -> int:
        return len(self.notes)

    @property
    def is_empty(self) -> bool:
        return not self.notes


def key_for_filename(filename: str) -> Lookup[str]:
    """
    Look up the key for a filename by its extension (text after the last dot).

    Unknown or missing extensions resolve to C.
    """
    if "." not in filename:
        return Lookup.default(DEFAULT_KEY)

    extension = filename.rsplit(".", maxsplit=1)[-1].lower()
    if extension in EXTENSION_KEYS:
        return Lookup.found(EXTENSION_KEYS[extension])

    logger.debug("Unknown extension %r, using key %s", extension, DEFAULT_KEY)
    return Lookup.default(DEFAULT_KEY)


def time_signature_for(avg_line_length: float) -> TimeSignature:
    """Short lines → 3/4, long lines → 6/8, everything else → 4/4."""
    if avg_line_length < SHORT_LINE_THRESHOLD:
        return WALTZ_TIME
    if avg_line_length > LONG_LINE_THRESHOLD:
        return COMPOUND_TIME
    return COMMON_TIME


def split_lines(document_text: str) -> list[tuple[int, str]]:
    """
    Split on newlines, drop CR line endings, and discard blank lines.

    Returns:
        (1-based source line number, line text) for every kept line.
    """
    lines = (line.removesuffix("\r") for line in document_text.split("\n"))
    return [(number, line) for number, line in enumerate(lines, start=1) if line.strip()]


class CompositionBuilder:
    """
    Builds a Composition from the full text of a document.

    The composition is rebuilt from scratch on every call; nothing is cached
    between documents.
    """

    def __init__(self, analyzer: LineAnalyzer | None = None) -> None:
        """
        Args:
            analyzer: LineAnalyzer to apply to each line. Defaults to the
                      standard velocity curve.
        """
        self.analyzer = analyzer if analyzer is not None else LineAnalyzer()

    def build(self, document_text: str, filename: str) -> Composition:
        """
        Analyse every non-blank line of a document.

        Args:
            document_text: Full document text with '\\n' separators.
            filename:      Name whose extension selects the key.

        Returns:
            Composition whose notes follow source line order. A document with
            no non-blank lines yields an empty composition in 4/4.
        """
        key_label = key_for_filename(filename).value
        lines = split_lines(document_text)
        if not lines:
            return Composition(notes=(), time_signature=COMMON_TIME, key_signature=key_label)

        avg_line_length = sum(len(line) for _, line in lines) / len(lines)
        time_signature = time_signature_for(avg_line_length)
        scale = resolve_scale(key_label).value

        notes = tuple(
            self.analyzer.analyze(
                line,
                number,
                key_label,
                scale=scale,
                time_signature=time_signature,
            )
            for number, line in lines
        )
        logger.debug(
            "Built %d notes in %s, key %s (avg line length %.1f)",
            len(notes),
            time_signature,
            key_label,
            avg_line_length,
        )
        return Composition(notes=notes, time_signature=time_signature, key_signature=key_label)


def build(document_text: str, filename: str) -> Composition:
    """Build a composition with the default analyzer."""
    return CompositionBuilder().build(document_text, filename)
