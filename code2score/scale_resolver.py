"""ScaleResolver: Maps a key label such as 'G' or 'Am' to its 7 diatonic pitch classes."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from code2score.pitch import SEMITONES_PER_OCTAVE, Lookup, PitchClass, parse_pitch_class

logger = logging.getLogger(__name__)


class KeyMode(Enum):
    """Diatonic mode of a key."""

    MAJOR = "major"
    MINOR = "minor"


# ── Interval tables ─────────────────────────────────────────────────────────

#: Major scale steps in semitones: W-W-H-W-W-W-H
MAJOR_STEPS: tuple[int, ...] = (2, 2, 1, 2, 2, 2, 1)

#: Natural minor scale steps in semitones: W-H-W-W-H-W-W
MINOR_STEPS: tuple[int, ...] = (2, 1, 2, 2, 1, 2, 2)

#: Labels treated as minor even without relying on the trailing 'm' rule.
MINOR_KEY_LABELS: frozenset[str] = frozenset({"Am", "Em", "Dm", "Bm"})

#: C major, used whenever a key label cannot be resolved.
NATURAL_SCALE: tuple[PitchClass, ...] = (
    PitchClass.C,
    PitchClass.D,
    PitchClass.E,
    PitchClass.F,
    PitchClass.G,
    PitchClass.A,
    PitchClass.B,
)

_KEY_PATTERN = re.compile(r"^([A-G][#b]?)(m?)$")


@dataclass(frozen=True)
class ScaleResolution:
    """
    A resolved scale.

    Attributes:
        tonic:         Pitch class of the first scale degree.
        mode:          Major or natural minor.
        pitch_classes: The 7 scale degrees in ascending order from the tonic.
    """

    tonic: PitchClass
    mode: KeyMode
    pitch_classes: tuple[PitchClass, ...]

    def __contains__(self, pitch_class: object) -> bool:
        return pitch_class in self.pitch_classes

    def __iter__(self) -> Iterator[PitchClass]:
        return iter(self.pitch_classes)

    def __len__(self) -> int:
        return len(self.pitch_classes)


DEFAULT_SCALE = ScaleResolution(tonic=PitchClass.C, mode=KeyMode.MAJOR, pitch_classes=NATURAL_SCALE)


def classify_mode(key_label: str) -> KeyMode:
    """Minor if the label ends in a lowercase 'm' or is a known minor label."""
    if key_label in MINOR_KEY_LABELS or key_label.endswith("m"):
        return KeyMode.MINOR
    return KeyMode.MAJOR


def build_scale(tonic: PitchClass, mode: KeyMode) -> tuple[PitchClass, ...]:
    """Construct the 7 scale degrees from a tonic by stacking the mode's steps."""
    steps = MAJOR_STEPS if mode is KeyMode.MAJOR else MINOR_STEPS
    degrees = [tonic]
    chroma = int(tonic)
    # The final step returns to the tonic an octave up and is not a new degree.
    for step in steps[:-1]:
        chroma = (chroma + step) % SEMITONES_PER_OCTAVE
        degrees.append(PitchClass(chroma))
    return tuple(degrees)


def resolve_scale(key_label: str) -> Lookup[ScaleResolution]:
    """
    Resolve a key label to its diatonic scale.

    Args:
        key_label: Tonic letter with an optional '#' or 'b', followed by 'm'
                   for natural minor (e.g. "C", "Bb", "F#m", "Am").

    Returns:
        Lookup of a ScaleResolution. Unrecognized labels yield C major tagged
        as a default; the result always holds exactly 7 distinct pitch classes.
    """
    match = _KEY_PATTERN.match(key_label.strip()) if key_label else None
    if match is None:
        logger.debug("Unknown key label %r, using C major", key_label)
        return Lookup.default(DEFAULT_SCALE)

    tonic_lookup = parse_pitch_class(match.group(1))
    if tonic_lookup.used_default:
        return Lookup.default(DEFAULT_SCALE)

    mode = classify_mode(key_label.strip())
    pitch_classes = build_scale(tonic_lookup.value, mode)
    return Lookup.found(ScaleResolution(tonic=tonic_lookup.value, mode=mode, pitch_classes=pitch_classes))


def key_signature_accidentals(key_label: str) -> int:
    """
    Count the accidentals in a key's signature: positive for sharps, negative for flats.

    Minor keys share the signature of their relative major (three semitones up).
    Six accidentals are written as sharps (F# major / D# minor).
    """
    scale = resolve_scale(key_label).value
    major_tonic = int(scale.tonic)
    if scale.mode is KeyMode.MINOR:
        major_tonic = (major_tonic + 3) % SEMITONES_PER_OCTAVE

    # Position on the circle of fifths, clockwise from C.
    fifths = (major_tonic * 7) % SEMITONES_PER_OCTAVE
    return fifths if fifths <= 6 else fifths - SEMITONES_PER_OCTAVE
