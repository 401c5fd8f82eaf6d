"""Unit tests for snapping pitches into a scale."""

import pytest

from code2score.pitch import PitchClass
from code2score.pitch_mapper import chromatic_distance, snap_note_name, snap_to_scale
from code2score.scale_resolver import resolve_scale

KEYS = ["C", "G", "D", "A", "E", "B", "F", "Bb", "Eb", "Ab", "Am", "Em"]


def test_chromatic_distance_wraps_around() -> None:
    assert chromatic_distance(0, 11) == 1
    assert chromatic_distance(11, 0) == 1
    assert chromatic_distance(0, 6) == 6
    assert chromatic_distance(4, 4) == 0


def test_in_scale_pitch_is_unchanged() -> None:
    scale = resolve_scale("C").value
    assert snap_to_scale(PitchClass.E, 4, scale) == (PitchClass.E, 4)


def test_tie_prefers_earlier_scale_degree() -> None:
    scale = resolve_scale("C").value
    # C# is one semitone from both C and D.
    assert snap_to_scale(PitchClass.C_SHARP, 4, scale) == (PitchClass.C, 4)
    assert snap_to_scale(PitchClass.F_SHARP, 4, scale) == (PitchClass.F, 4)


def test_tie_across_the_tonic_uses_scale_order() -> None:
    # D major runs D E F# G A B C#; C sits between B and C#.
    scale = resolve_scale("D").value
    assert snap_to_scale(PitchClass.C, 5, scale) == (PitchClass.B, 5)


@pytest.mark.parametrize("key", KEYS)
def test_result_is_always_in_scale(key: str) -> None:
    scale = resolve_scale(key).value
    for pitch_class in PitchClass:
        snapped, _ = snap_to_scale(pitch_class, 4, scale)
        assert snapped in scale


@pytest.mark.parametrize("octave", [-1, 0, 4, 9])
def test_octave_is_preserved(octave: int) -> None:
    scale = resolve_scale("Eb").value
    for pitch_class in PitchClass:
        assert snap_to_scale(pitch_class, octave, scale)[1] == octave


def test_snap_note_name() -> None:
    scale = resolve_scale("C").value
    lookup = snap_note_name("D#5", scale)
    assert not lookup.used_default
    assert lookup.value == "D5"


def test_snap_malformed_note_name_gives_c4() -> None:
    scale = resolve_scale("D").value
    lookup = snap_note_name("not-a-note", scale)
    assert lookup.used_default
    assert lookup.value == "C4"


@pytest.mark.parametrize("key", KEYS)
def test_snapped_pitch_is_a_nearest_scale_member(key: str) -> None:
    scale = resolve_scale(key).value
    for pitch_class in PitchClass:
        snapped, _ = snap_to_scale(pitch_class, 4, scale)
        nearest = min(chromatic_distance(member, pitch_class) for member in scale)
        assert chromatic_distance(snapped, pitch_class) == nearest
