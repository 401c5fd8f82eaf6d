"""Unit tests for key label → scale resolution."""

import pytest

from code2score.pitch import PitchClass
from code2score.scale_resolver import (
    NATURAL_SCALE,
    KeyMode,
    build_scale,
    classify_mode,
    key_signature_accidentals,
    resolve_scale,
)

SUPPORTED_KEYS = ["C", "G", "D", "A", "E", "B", "F", "Bb", "Eb", "Ab", "Am", "Em", "Dm", "Bm", "F#m"]


def _names(key: str) -> list[str]:
    return [pc.spelling for pc in resolve_scale(key).value]


def test_c_major_is_natural_notes() -> None:
    assert _names("C") == ["C", "D", "E", "F", "G", "A", "B"]


def test_g_major_has_f_sharp() -> None:
    assert _names("G") == ["G", "A", "B", "C", "D", "E", "F#"]


def test_flat_keys_use_sharp_spelling() -> None:
    assert _names("Bb") == ["A#", "C", "D", "D#", "F", "G", "A"]
    assert _names("Eb") == ["D#", "F", "G", "G#", "A#", "C", "D"]


def test_a_minor_is_natural_minor() -> None:
    resolution = resolve_scale("Am").value
    assert resolution.mode is KeyMode.MINOR
    assert _names("Am") == ["A", "B", "C", "D", "E", "F", "G"]


def test_e_minor_scale() -> None:
    assert _names("Em") == ["E", "F#", "G", "A", "B", "C", "D"]


def test_sharp_minor_label() -> None:
    assert _names("F#m") == ["F#", "G#", "A", "B", "C#", "D", "E"]


@pytest.mark.parametrize("key", SUPPORTED_KEYS)
def test_every_scale_has_seven_distinct_pitch_classes(key: str) -> None:
    lookup = resolve_scale(key)
    assert not lookup.used_default
    assert len(set(lookup.value.pitch_classes)) == 7


@pytest.mark.parametrize("label", ["", "H", "c", "Cmaj", "C##", "m", "  "])
def test_unknown_labels_fall_back_to_c_major(label: str) -> None:
    lookup = resolve_scale(label)
    assert lookup.used_default
    assert lookup.value.pitch_classes == NATURAL_SCALE


def test_classify_mode() -> None:
    assert classify_mode("Dm") is KeyMode.MINOR
    assert classify_mode("Cm") is KeyMode.MINOR
    assert classify_mode("D") is KeyMode.MAJOR


def test_build_scale_starts_on_tonic() -> None:
    assert build_scale(PitchClass.D, KeyMode.MAJOR)[0] is PitchClass.D


def test_scale_membership() -> None:
    scale = resolve_scale("D").value
    assert PitchClass.F_SHARP in scale
    assert PitchClass.F not in scale


@pytest.mark.parametrize(
    ("key", "expected"),
    [("C", 0), ("G", 1), ("D", 2), ("B", 5), ("F", -1), ("Bb", -2), ("Ab", -4), ("Am", 0), ("Em", 1)],
)
def test_key_signature_accidentals(key: str, expected: int) -> None:
    assert key_signature_accidentals(key) == expected
