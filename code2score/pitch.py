"""Pitch vocabulary: pitch classes, MIDI numbers and tagged lookup results."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── MIDI constants ──────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
MIDDLE_C_MIDI = 60  # C4 in Scientific Pitch Notation
MIDI_MIN = 0
MIDI_MAX = 127
DEFAULT_OCTAVE = 4


class PitchClass(IntEnum):
    """The 12 pitch classes, sharp-spelled, valued by chroma (0=C … 11=B)."""

    C = 0
    C_SHARP = 1
    D = 2
    D_SHARP = 3
    E = 4
    F = 5
    F_SHARP = 6
    G = 7
    G_SHARP = 8
    A = 9
    A_SHARP = 10
    B = 11

    @property
    def spelling(self) -> str:
        """Canonical name, e.g. 'F#'."""
        return NOTE_NAMES[self.value]

    @property
    def flat_spelling(self) -> str:
        """Name with flats for the black keys, e.g. 'Gb'."""
        return FLAT_NOTE_NAMES[self.value]


#: Chromatic pitch class names (index 0 = C)
NOTE_NAMES: tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
FLAT_NOTE_NAMES: tuple[str, ...] = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")

_LETTER_CHROMA = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)?$")


class LookupSource(Enum):
    """Where a lookup's value came from."""

    FOUND = "found"
    DEFAULT = "default"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """
    Tagged outcome of a table or parse lookup.

    Lookups that can fail never raise; they return the fallback value tagged
    with ``LookupSource.DEFAULT`` so the caller sees which branch was taken.
    """

    value: T
    source: LookupSource = LookupSource.FOUND

    @property
    def used_default(self) -> bool:
        return self.source is LookupSource.DEFAULT

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(value, LookupSource.FOUND)

    @classmethod
    def default(cls, value: T) -> "Lookup[T]":
        return cls(value, LookupSource.DEFAULT)


def parse_pitch_class(name: str) -> Lookup[PitchClass]:
    """
    Parse a pitch class name such as 'C', 'F#' or 'Bb' (case-insensitive letter).

    Flats are folded onto their sharp-spelled enharmonic (Bb → A#, Cb → B).
    Unparseable names resolve to C.
    """
    match = _NOTE_PATTERN.match(name.strip()) if name else None
    if match is None or match.group(3) is not None:
        return Lookup.default(PitchClass.C)
    letter, accidental, _ = match.groups()
    chroma = _LETTER_CHROMA[letter.upper()]
    if accidental == "#":
        chroma += 1
    elif accidental == "b":
        chroma -= 1
    return Lookup.found(PitchClass(chroma % SEMITONES_PER_OCTAVE))


def parse_note_name(note_name: str) -> Lookup[tuple[PitchClass, int]]:
    """
    Parse a note spelling such as 'C#4' or 'Eb5' into (pitch class, octave).

    Anything that is not a letter, an optional accidental and an octave number
    maps to C4.
    """
    match = _NOTE_PATTERN.match(note_name.strip()) if note_name else None
    if match is None or match.group(3) is None:
        logger.warning("Invalid note %r, defaulting to C4", note_name)
        return Lookup.default((PitchClass.C, DEFAULT_OCTAVE))

    letter, accidental, octave_text = match.groups()
    pitch_class = parse_pitch_class(letter + accidental).value
    return Lookup.found((pitch_class, int(octave_text)))


def pitch_to_midi(pitch_class: int, octave: int) -> int:
    """
    Convert a pitch class (0-11) and an octave number to an absolute MIDI note.

    MIDI octave numbering: C-1 = 0, C0 = 12, C1 = 24, ... C4 (Middle C) = 60.
    """
    return (octave + 1) * SEMITONES_PER_OCTAVE + int(pitch_class)


def midi_to_pitch(midi_number: int) -> Lookup[tuple[PitchClass, int]]:
    """
    Convert a MIDI note number to (pitch class, octave).

    Numbers outside the MIDI range 0-127 fall back to C4.
    """
    if not MIDI_MIN <= midi_number <= MIDI_MAX:
        logger.debug("MIDI number %d out of range, defaulting to C4", midi_number)
        return Lookup.default((PitchClass.C, DEFAULT_OCTAVE))

    octave = midi_number // SEMITONES_PER_OCTAVE - 1
    return Lookup.found((PitchClass(midi_number % SEMITONES_PER_OCTAVE), octave))


def spell(pitch_class: PitchClass, octave: int) -> str:
    """Scientific pitch spelling, e.g. 'F#4'."""
    return f"{pitch_class.spelling}{octave}"
