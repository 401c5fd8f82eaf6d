"""Unit tests for the multi-track (one track per instrument) MIDI export."""

import mido
import pytest

from code2score.composition_builder import build
from code2score.line_analyzer import Instrument
from code2score.midi_exporter import GM_PROGRAMS, PERCUSSION_CHANNEL, MidiExporter

SOURCE = "import os\ndef main():\n    for x in y:\n        print x\n    return 0\nimport sys"


def _export(tmp_path: pytest.TempPathFactory, source: str = SOURCE, filename: str = "main.py") -> mido.MidiFile:
    out = tmp_path / "ensemble.mid"  # type: ignore[operator]
    MidiExporter(tempo=100).export(build(source, filename), str(out))
    return mido.MidiFile(str(out))


def _messages(midi: mido.MidiFile, kind: str) -> list[mido.Message]:
    return [msg for track in midi.tracks for msg in track if msg.type == kind]


def test_every_instrument_has_a_program() -> None:
    assert set(GM_PROGRAMS) == set(Instrument)


def test_assign_tracks_in_first_use_order() -> None:
    tracks = MidiExporter()._assign_tracks(build(SOURCE, "main.py"))
    assert tracks == {
        Instrument.BELL: 1,
        Instrument.HARP: 2,
        Instrument.MARIMBA: 3,
        Instrument.HORN: 4,
    }


def test_export_is_format_one(tmp_path: pytest.TempPathFactory) -> None:
    midi = _export(tmp_path)
    assert midi.type == 1


def test_export_writes_program_changes(tmp_path: pytest.TempPathFactory) -> None:
    programs = {msg.program for msg in _messages(_export(tmp_path), "program_change")}
    assert programs == {
        GM_PROGRAMS[Instrument.BELL],
        GM_PROGRAMS[Instrument.HARP],
        GM_PROGRAMS[Instrument.MARIMBA],
        GM_PROGRAMS[Instrument.HORN],
    }


def test_export_writes_every_note(tmp_path: pytest.TempPathFactory) -> None:
    composition = build(SOURCE, "main.py")
    note_ons = [msg for msg in _messages(_export(tmp_path), "note_on") if msg.velocity > 0]
    assert sorted(msg.note for msg in note_ons) == sorted(note.midi_number for note in composition)


def test_percussion_channel_is_never_used(tmp_path: pytest.TempPathFactory) -> None:
    source = "\n".join(
        ["function", "class", "const", "let", "var", "for", "while", "return", "import", "export", "def"]
    )
    note_ons = _messages(_export(tmp_path, source, "a.js"), "note_on")
    channels = {msg.channel for msg in note_ons}
    assert len(channels) == 11
    assert PERCUSSION_CHANNEL not in channels


def test_conductor_carries_key_and_time_signature(tmp_path: pytest.TempPathFactory) -> None:
    midi = _export(tmp_path)
    key_signatures = _messages(midi, "key_signature")
    time_signatures = _messages(midi, "time_signature")
    assert key_signatures[0].key == "Am"
    assert (time_signatures[0].numerator, time_signatures[0].denominator) == (3, 4)


def test_track_names(tmp_path: pytest.TempPathFactory) -> None:
    names = {msg.name for msg in _messages(_export(tmp_path), "track_name")}
    assert {"Bell", "Harp", "Marimba", "Horn"} <= names
