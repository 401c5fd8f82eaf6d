"""MidiEncoder: Serializes a Composition into a format 0 Standard MIDI File."""

from __future__ import annotations

import logging
import math
import struct
from fractions import Fraction
from pathlib import Path

from code2score.composition_builder import Composition
from code2score.line_analyzer import Duration
from code2score.pitch import MIDI_MAX, MIDI_MIN

logger = logging.getLogger(__name__)

MIDI_FILENAME = "code2score_composition.mid"
MIDI_MIME_TYPE = "audio/midi"

# ── Chunk and event bytes ───────────────────────────────────────────────────
HEADER_CHUNK_ID = b"MThd"
TRACK_CHUNK_ID = b"MTrk"
HEADER_LENGTH = 6
FORMAT_SINGLE_TRACK = 0

NOTE_ON = 0x90   # channel 0
NOTE_OFF = 0x80  # channel 0
RELEASE_VELOCITY = 0x40

META_EVENT = 0xFF
META_SET_TEMPO = 0x51
META_END_OF_TRACK = 0x2F

MICROSECONDS_PER_MINUTE = 60_000_000
MAX_TEMPO_MICROSECONDS = 0xFFFFFF  # three bytes
MAX_VARIABLE_LENGTH = 0x0FFFFFFF   # four 7-bit groups
MAX_VARIABLE_LENGTH_BYTES = 4


def encode_variable_length(value: int) -> bytes:
    """
    Encode an integer as a MIDI variable-length quantity.

    Seven bits per byte, most significant group first; every byte except the
    last has its high bit set.

    Raises:
        ValueError: If value is negative or exceeds 0x0FFFFFFF.
    """
    if not 0 <= value <= MAX_VARIABLE_LENGTH:
        raise ValueError(f"Variable-length quantity out of range: {value}")

    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append(0x80 | (value & 0x7F))
        value >>= 7
    return bytes(reversed(groups))


def decode_variable_length(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode a MIDI variable-length quantity starting at ``offset``.

    Returns:
        (value, offset of the first byte after the quantity)

    Raises:
        ValueError: If the data ends mid-quantity or the quantity is longer
                    than four bytes.
    """
    value = 0
    for consumed in range(MAX_VARIABLE_LENGTH_BYTES):
        position = offset + consumed
        if position >= len(data):
            raise ValueError("Truncated variable-length quantity.")
        byte = data[position]
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, position + 1
    raise ValueError("Variable-length quantity longer than four bytes.")


def _clamp(value: int, low: int = MIDI_MIN, high: int = MIDI_MAX) -> int:
    return max(low, min(high, value))


class MidiEncoder:
    """
    Writes a Composition as a single-track (format 0) Standard MIDI File.

    Track layout
    ------------
    1. Set-tempo meta event at delta 0.
    2. For every note, in order: Note-On at delta 0, then Note-Off after the
       note's full length. Notes never overlap.
    3. End-of-track meta event at delta 0.

    Timing
    ------
    Note lengths are converted to ticks as
    ``floor(ticks_per_second × seconds)``, where
    ``ticks_per_second = TICKS_PER_BEAT / seconds_per_beat``. The arithmetic is
    exact (rational), so a quarter note is always TICKS_PER_BEAT ticks.
    """

    TICKS_PER_BEAT = 96  # division: ticks per quarter note
    DEFAULT_TEMPO = 120  # BPM

    def __init__(self, tempo: float = DEFAULT_TEMPO) -> None:
        """
        Args:
            tempo: Playback tempo in beats per minute.

        Raises:
            ValueError: If the tempo is not positive or too slow to express in
                        the three-byte tempo field.
        """
        if tempo <= 0:
            raise ValueError(f"Tempo must be positive, got {tempo}.")
        if MICROSECONDS_PER_MINUTE // Fraction(tempo) > MAX_TEMPO_MICROSECONDS:
            raise ValueError(f"Tempo {tempo} BPM is too slow for a MIDI tempo event.")
        self.tempo = tempo

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @property
    def _microseconds_per_beat(self) -> int:
        return int(MICROSECONDS_PER_MINUTE // Fraction(self.tempo))

    def _duration_ticks(self, duration: Duration) -> int:
        seconds_per_beat = Fraction(60) / Fraction(self.tempo)
        ticks_per_second = self.TICKS_PER_BEAT / seconds_per_beat
        seconds = duration.quarter_notes * seconds_per_beat
        return math.floor(ticks_per_second * seconds)

    def _header_chunk(self) -> bytes:
        return HEADER_CHUNK_ID + struct.pack(
            ">IHHH", HEADER_LENGTH, FORMAT_SINGLE_TRACK, 1, self.TICKS_PER_BEAT
        )

    def _tempo_event(self) -> bytes:
        microseconds = self._microseconds_per_beat.to_bytes(3, "big")
        return encode_variable_length(0) + bytes([META_EVENT, META_SET_TEMPO, 0x03]) + microseconds

    def _end_of_track_event(self) -> bytes:
        return encode_variable_length(0) + bytes([META_EVENT, META_END_OF_TRACK, 0x00])

    def _note_events(self, composition: Composition) -> bytes:
        events = bytearray()
        for note in composition:
            midi_number = _clamp(note.midi_number)
            velocity = _clamp(round(note.velocity * 100))
            events += encode_variable_length(0)
            events += bytes([NOTE_ON, midi_number, velocity])
            events += encode_variable_length(self._duration_ticks(note.duration))
            events += bytes([NOTE_OFF, midi_number, RELEASE_VELOCITY])
        return bytes(events)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, composition: Composition) -> bytes:
        """
        Render a composition to Standard MIDI File bytes.

        An empty composition still produces a valid 33-byte file holding only
        the tempo and end-of-track events.
        """
        track_events = self._tempo_event() + self._note_events(composition) + self._end_of_track_event()
        track_chunk = TRACK_CHUNK_ID + struct.pack(">I", len(track_events)) + track_events
        return self._header_chunk() + track_chunk

    def write(self, composition: Composition, output_path: str | Path = MIDI_FILENAME) -> Path:
        """
        Encode a composition and save it to disk.

        Args:
            composition: Notes to write.
            output_path: Destination file path.

        Returns:
            The path written.

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        path = Path(output_path)
        data = self.encode(composition)
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Wrote %d bytes (%d notes) to %s", len(data), len(composition), path)
        return path


def encode(composition: Composition, tempo_bpm: float = MidiEncoder.DEFAULT_TEMPO) -> bytes:
    """Encode a composition as format 0 Standard MIDI File bytes."""
    return MidiEncoder(tempo=tempo_bpm).encode(composition)
