"""PitchMapper: Snaps a pitch onto the nearest member of a diatonic scale."""

from __future__ import annotations

import numpy as np

from code2score.pitch import (
    SEMITONES_PER_OCTAVE,
    Lookup,
    PitchClass,
    parse_note_name,
    spell,
)
from code2score.scale_resolver import ScaleResolution


def chromatic_distance(a: int, b: int) -> int:
    """
    Shortest distance between two chromas around the 12-tone circle (0-6).
    """
    direct = abs(int(a) - int(b)) % SEMITONES_PER_OCTAVE
    return min(direct, SEMITONES_PER_OCTAVE - direct)


def snap_to_scale(
    pitch_class: PitchClass,
    octave: int,
    scale: ScaleResolution,
) -> tuple[PitchClass, int]:
    """
    Replace a pitch class with the closest scale member, keeping the octave.

    Distances are measured around the chroma circle. When two scale members
    are equally close, the one that comes first in the scale's own order
    (ascending from the tonic) wins.

    Args:
        pitch_class: Input pitch class.
        octave:      Input octave; returned unchanged.
        scale:       Target scale from ``resolve_scale``.

    Returns:
        (snapped pitch class, octave)
    """
    distances = np.array([chromatic_distance(member, pitch_class) for member in scale.pitch_classes])

    # argmin returns the first minimum, which gives the scale-order tie-break.
    closest = scale.pitch_classes[int(np.argmin(distances))]
    return closest, octave


def snap_note_name(note_name: str, scale: ScaleResolution) -> Lookup[str]:
    """
    Snap a spelled note such as 'C#4' into a scale and return its new spelling.

    Malformed note names yield C4 as-is, tagged as a default.
    """
    parsed = parse_note_name(note_name)
    pitch_class, octave = parsed.value
    if parsed.used_default:
        return Lookup.default(spell(pitch_class, octave))

    snapped, octave = snap_to_scale(pitch_class, octave, scale)
    return Lookup.found(spell(snapped, octave))
