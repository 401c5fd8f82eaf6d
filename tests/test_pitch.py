"""Unit tests for pitch parsing and MIDI number conversion."""

from code2score.pitch import (
    PitchClass,
    midi_to_pitch,
    parse_note_name,
    parse_pitch_class,
    pitch_to_midi,
    spell,
)


def test_pitch_class_spelling() -> None:
    assert PitchClass.C_SHARP.spelling == "C#"
    assert PitchClass.B.spelling == "B"


def test_pitch_class_flat_spelling() -> None:
    assert PitchClass.A_SHARP.flat_spelling == "Bb"
    assert PitchClass.C_SHARP.flat_spelling == "Db"
    assert PitchClass.E.flat_spelling == "E"


def test_parse_flat_as_sharp() -> None:
    assert parse_pitch_class("Db").value is PitchClass.C_SHARP
    assert parse_pitch_class("Cb").value is PitchClass.B
    assert parse_pitch_class("E#").value is PitchClass.F


def test_parse_note_name() -> None:
    lookup = parse_note_name("F#5")
    assert not lookup.used_default
    assert lookup.value == (PitchClass.F_SHARP, 5)


def test_parse_note_name_negative_octave() -> None:
    assert parse_note_name("C-1").value == (PitchClass.C, -1)


def test_malformed_note_defaults_to_c4() -> None:
    for bad in ["", "H4", "C#", "4C", "Cx4"]:
        lookup = parse_note_name(bad)
        assert lookup.used_default
        assert lookup.value == (PitchClass.C, 4)


def test_midi_to_pitch_middle_c() -> None:
    assert midi_to_pitch(60).value == (PitchClass.C, 4)
    assert midi_to_pitch(69).value == (PitchClass.A, 4)
    assert midi_to_pitch(0).value == (PitchClass.C, -1)
    assert midi_to_pitch(127).value == (PitchClass.G, 9)


def test_midi_out_of_range_falls_back_to_c4() -> None:
    for number in (-1, 128, 180):
        lookup = midi_to_pitch(number)
        assert lookup.used_default
        assert lookup.value == (PitchClass.C, 4)


def test_pitch_to_midi_inverts_midi_to_pitch() -> None:
    for number in (0, 60, 61, 75, 127):
        pitch_class, octave = midi_to_pitch(number).value
        assert pitch_to_midi(pitch_class, octave) == number


def test_spell() -> None:
    assert spell(PitchClass.D_SHARP, 5) == "D#5"
