"""LineAnalyzer: Derives pitch, rhythm, dynamics and instrument from one line of source code."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from types import MappingProxyType
from typing import Mapping

from code2score.pitch import (
    MIDDLE_C_MIDI,
    SEMITONES_PER_OCTAVE,
    Lookup,
    PitchClass,
    midi_to_pitch,
    pitch_to_midi,
    spell,
)
from code2score.pitch_mapper import snap_to_scale
from code2score.scale_resolver import ScaleResolution, resolve_scale


class Duration(Enum):
    """Note length, valued by its symbolic token ('4n' = quarter note)."""

    WHOLE = "1n"
    HALF = "2n"
    QUARTER = "4n"
    EIGHTH = "8n"

    @property
    def quarter_notes(self) -> Fraction:
        """Length measured in quarter notes (beats at the MIDI tempo)."""
        return _QUARTER_NOTES[self]

    @property
    def vexflow(self) -> str:
        """VexFlow duration code: 'w', 'h', 'q' or '8'."""
        return _VEXFLOW_CODES[self]

    def seconds(self, tempo_bpm: float) -> float:
        """Length in seconds at the given tempo."""
        return float(self.quarter_notes) * 60.0 / tempo_bpm


_QUARTER_NOTES = {
    Duration.WHOLE: Fraction(4),
    Duration.HALF: Fraction(2),
    Duration.QUARTER: Fraction(1),
    Duration.EIGHTH: Fraction(1, 2),
}

_VEXFLOW_CODES = {
    Duration.WHOLE: "w",
    Duration.HALF: "h",
    Duration.QUARTER: "q",
    Duration.EIGHTH: "8",
}


class Instrument(Enum):
    """Instrument voice assigned to a note."""

    PIANO = "piano"
    STRINGS = "strings"
    SYNTH = "synth"
    PLUCK = "pluck"
    METAL = "metal"
    MARIMBA = "marimba"
    ORGAN = "organ"
    HORN = "horn"
    BELL = "bell"
    GLOCKENSPIEL = "glockenspiel"
    HARP = "harp"
    WOODWIND = "woodwind"
    BRASS = "brass"
    PLUCKED = "plucked"


# ── Lookup tables ───────────────────────────────────────────────────────────

#: Leading keyword → instrument. Unlisted words play on the piano.
KEYWORD_INSTRUMENTS: Mapping[str, Instrument] = MappingProxyType(
    {
        "function": Instrument.PIANO,
        "class": Instrument.STRINGS,
        "const": Instrument.SYNTH,
        "let": Instrument.PLUCK,
        "var": Instrument.METAL,
        "if": Instrument.PIANO,
        "for": Instrument.MARIMBA,
        "while": Instrument.ORGAN,
        "return": Instrument.HORN,
        "import": Instrument.BELL,
        "export": Instrument.GLOCKENSPIEL,
        "def": Instrument.HARP,        # Python
        "print": Instrument.BELL,      # Python
        "echo": Instrument.WOODWIND,   # PHP
        "System": Instrument.BRASS,    # Java
        "fmt": Instrument.PLUCKED,     # Go
    }
)

#: Closing character → note length. Anything else is a quarter note.
LAST_CHAR_DURATIONS: Mapping[str, Duration] = MappingProxyType(
    {
        "}": Duration.HALF,
        ";": Duration.QUARTER,
        ":": Duration.EIGHTH,
    }
)

DEFAULT_INSTRUMENT = Instrument.PIANO
DEFAULT_DURATION = Duration.QUARTER

_TRAILING_PUNCTUATION = "({;:,"


@dataclass(frozen=True)
class TimeSignature:
    """Bar layout shared by every note of a composition."""

    beats_per_bar: int
    beat_unit: int

    @property
    def bar_quarter_notes(self) -> Fraction:
        """Capacity of one bar measured in quarter notes."""
        return Fraction(self.beats_per_bar * 4, self.beat_unit)

    def __str__(self) -> str:
        return f"{self.beats_per_bar}/{self.beat_unit}"


COMMON_TIME = TimeSignature(4, 4)


@dataclass(frozen=True)
class Note:
    """
    A single analyzed line of source code and the note it plays.

    Attributes:
        line_index:     1-based line number in the source document.
        text:           Original line content, indentation included.
        length:         Character count of the line.
        last_char:      Last non-whitespace character ('' for none).
        pitch_class:    In-scale pitch class.
        octave:         Scientific octave number (4 = Middle C octave).
        duration:       Note length.
        velocity:       Loudness in [0.0, 1.0].
        instrument:     Instrument voice.
        time_signature: Composition-wide bar layout.
        key_signature:  Composition-wide key label, e.g. "Am".
        raw_midi:       MIDI number before scale snapping.
    """

    line_index: int
    text: str
    length: int
    last_char: str
    pitch_class: PitchClass
    octave: int
    duration: Duration
    velocity: float
    instrument: Instrument
    time_signature: TimeSignature = COMMON_TIME
    key_signature: str = "C"
    raw_midi: int = MIDDLE_C_MIDI

    @property
    def spelling(self) -> str:
        """Scientific pitch spelling, e.g. 'F#4'."""
        return spell(self.pitch_class, self.octave)

    @property
    def midi_number(self) -> int:
        return pitch_to_midi(self.pitch_class, self.octave)


# ── Feature extractors ──────────────────────────────────────────────────────

def indent_level(line: str) -> int:
    """Number of leading whitespace characters."""
    return len(line) - len(line.lstrip())


def instrument_for(line: str) -> Lookup[Instrument]:
    """
    Map the first word of a line to an instrument.

    The first whitespace-delimited word loses one trailing ``( { ; : ,``. A
    dotted word that is not a known keyword is looked up by its first
    segment, so ``fmt.Println(x)`` is looked up as ``fmt``. Keywords glued to
    a parenthesis, as in ``while(true)``, are not recognised.
    """
    words = line.split()
    if not words:
        return Lookup.default(DEFAULT_INSTRUMENT)

    word = words[0]
    if word[-1] in _TRAILING_PUNCTUATION:
        word = word[:-1]
    if word in KEYWORD_INSTRUMENTS:
        return Lookup.found(KEYWORD_INSTRUMENTS[word])

    if "." in word:
        receiver = word.split(".", maxsplit=1)[0]
        if receiver in KEYWORD_INSTRUMENTS:
            return Lookup.found(KEYWORD_INSTRUMENTS[receiver])

    return Lookup.default(DEFAULT_INSTRUMENT)


def duration_for(line: str) -> Lookup[Duration]:
    """Pick a note length from the line's last non-whitespace character."""
    stripped = line.rstrip()
    if stripped and stripped[-1] in LAST_CHAR_DURATIONS:
        return Lookup.found(LAST_CHAR_DURATIONS[stripped[-1]])
    return Lookup.default(DEFAULT_DURATION)


class LineAnalyzer:
    """
    Turns one line of source text into a Note.

    Mapping overview
    ----------------
    1. **Indentation** – Each leading whitespace character adds
       ``VELOCITY_STEP`` to ``BASE_VELOCITY`` (capped at 1.0); every
       ``SPACES_PER_OCTAVE`` characters raise the register by an octave.

    2. **Pitch** – Starting from Middle C (plus the octave shift), every
       ``CHARS_PER_SEMITONE`` characters of line length add a semitone, up to
       one octave. The result is snapped into the key's scale.

    3. **Rhythm** – The closing character picks the note length:
       ``}`` half, ``;`` quarter, ``:`` eighth, anything else quarter.

    4. **Timbre** – The leading keyword picks the instrument.
    """

    BASE_VELOCITY = 0.3
    VELOCITY_STEP = 0.05
    MAX_VELOCITY = 1.0
    SPACES_PER_OCTAVE = 4
    CHARS_PER_SEMITONE = 5
    MAX_PITCH_OFFSET = SEMITONES_PER_OCTAVE

    def __init__(
        self,
        base_velocity: float = BASE_VELOCITY,
        velocity_step: float = VELOCITY_STEP,
    ) -> None:
        """
        Args:
            base_velocity: Velocity of an unindented line.
            velocity_step: Velocity added per leading whitespace character.
        """
        self.base_velocity = base_velocity
        self.velocity_step = velocity_step

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _velocity(self, indent: int) -> float:
        return min(self.base_velocity + indent * self.velocity_step, self.MAX_VELOCITY)

    def _raw_midi(self, line: str, indent: int) -> int:
        octave_shift = indent // self.SPACES_PER_OCTAVE
        base_pitch = MIDDLE_C_MIDI + octave_shift * SEMITONES_PER_OCTAVE
        pitch_offset = min(len(line) // self.CHARS_PER_SEMITONE, self.MAX_PITCH_OFFSET)
        return base_pitch + pitch_offset

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(
        self,
        line: str,
        line_index: int,
        key_label: str,
        *,
        scale: ScaleResolution | None = None,
        time_signature: TimeSignature = COMMON_TIME,
    ) -> Note:
        """
        Analyse a single non-blank line.

        Args:
            line:           Line text without its newline.
            line_index:     1-based line number in the source document.
            key_label:      Key the pitch is snapped into (e.g. "C", "Am").
            scale:          Pre-resolved scale for ``key_label``; resolved on
                            demand when omitted.
            time_signature: Composition-wide time signature to stamp on the note.

        Returns:
            The derived Note.
        """
        if scale is None:
            scale = resolve_scale(key_label).value

        indent = indent_level(line)
        raw_midi = self._raw_midi(line, indent)
        pitch_class, octave = midi_to_pitch(raw_midi).value
        pitch_class, octave = snap_to_scale(pitch_class, octave, scale)

        stripped = line.rstrip()
        return Note(
            line_index=line_index,
            text=line,
            length=len(line),
            last_char=stripped[-1] if stripped else "",
            pitch_class=pitch_class,
            octave=octave,
            duration=duration_for(line).value,
            velocity=self._velocity(indent),
            instrument=instrument_for(line).value,
            time_signature=time_signature,
            key_signature=key_label,
            raw_midi=raw_midi,
        )


def analyze_line(line: str, line_index: int, key_label: str) -> Note:
    """Analyse one line with the default velocity curve."""
    return LineAnalyzer().analyze(line, line_index, key_label)
