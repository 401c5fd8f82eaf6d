"""Playback schedule: timed note events handed to an audio player."""

from __future__ import annotations

from dataclasses import dataclass

from code2score.composition_builder import Composition
from code2score.line_analyzer import Instrument

DEFAULT_GAP_SECONDS = 0.1


@dataclass(frozen=True)
class PlaybackEvent:
    """
    One note as seen by a synthesizer.

    Attributes:
        spelling:         Pitch spelling, e.g. "F#4".
        duration_seconds: Sounding length in seconds.
        velocity:         Loudness in [0.0, 1.0].
        instrument:       Voice to play the note on.
        start_offset:     Seconds from the start of playback.
        line_index:       Source line the note came from.
    """

    spelling: str
    duration_seconds: float
    velocity: float
    instrument: Instrument
    start_offset: float
    line_index: int


def build_playback_schedule(
    composition: Composition,
    tempo_bpm: float,
    gap: float = DEFAULT_GAP_SECONDS,
) -> list[PlaybackEvent]:
    """
    Lay the notes of a composition end to end with a short gap between them.

    Each note starts after the previous one has finished plus ``gap`` seconds.

    Args:
        composition: Notes in playback order.
        tempo_bpm:   Tempo used to turn note lengths into seconds.
        gap:         Silence inserted after every note.

    Returns:
        PlaybackEvent list in composition order.

    Raises:
        ValueError: If tempo_bpm is not positive.
    """
    if tempo_bpm <= 0:
        raise ValueError(f"Tempo must be positive, got {tempo_bpm}.")

    events: list[PlaybackEvent] = []
    time = 0.0
    for note in composition:
        seconds = note.duration.seconds(tempo_bpm)
        events.append(
            PlaybackEvent(
                spelling=note.spelling,
                duration_seconds=seconds,
                velocity=note.velocity,
                instrument=note.instrument,
                start_offset=time,
                line_index=note.line_index,
            )
        )
        time += seconds + gap
    return events


def total_duration(events: list[PlaybackEvent]) -> float:
    """Time at which the last event stops sounding (0.0 for no events)."""
    if not events:
        return 0.0
    last = events[-1]
    return last.start_offset + last.duration_seconds
