"""Unit tests for the playback schedule."""

import pytest

from code2score.composition_builder import build
from code2score.line_analyzer import Instrument
from code2score.playback import build_playback_schedule, total_duration


def test_start_offsets_accumulate_with_gap() -> None:
    # quarter, half, eighth at 120 BPM → 0.5 s, 1.0 s, 0.25 s
    composition = build("x = 1;\n}\ny:", "a.js")
    events = build_playback_schedule(composition, 120)

    assert [e.duration_seconds for e in events] == pytest.approx([0.5, 1.0, 0.25])
    assert [e.start_offset for e in events] == pytest.approx([0.0, 0.6, 1.7])
    assert total_duration(events) == pytest.approx(1.95)


def test_events_carry_note_details() -> None:
    events = build_playback_schedule(build("  return x;", "a.py"), 120)
    event = events[0]
    assert event.instrument is Instrument.HORN
    assert event.velocity == pytest.approx(0.4)
    assert event.spelling == "D4"
    assert event.line_index == 1


def test_custom_gap() -> None:
    events = build_playback_schedule(build("a\nb", "a.js"), 60, gap=0.0)
    assert [e.start_offset for e in events] == pytest.approx([0.0, 1.0])


def test_empty_composition_has_no_events() -> None:
    events = build_playback_schedule(build("", "a.js"), 120)
    assert events == []
    assert total_duration(events) == 0.0


def test_non_positive_tempo_raises() -> None:
    with pytest.raises(ValueError):
        build_playback_schedule(build("a", "a.js"), 0)
