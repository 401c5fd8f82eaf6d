"""MidiExporter: Writes a Composition as a multi-track MIDI file, one track per instrument."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from midiutil import MIDIFile
from midiutil.MidiFile import FLATS, MAJOR, MINOR, SHARPS

from code2score.composition_builder import Composition
from code2score.line_analyzer import Instrument
from code2score.scale_resolver import KeyMode, key_signature_accidentals, resolve_scale

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
# Instrument tracks start at 1, in order of each instrument's first note.
TRACK_CONDUCTOR = 0

PERCUSSION_CHANNEL = 9  # General MIDI drums, never used for pitched voices
MIDI_CHANNELS = 16

#: Instrument → General MIDI program number (0-based).
GM_PROGRAMS: Mapping[Instrument, int] = MappingProxyType(
    {
        Instrument.PIANO: 0,          # Acoustic Grand Piano
        Instrument.STRINGS: 48,       # String Ensemble 1
        Instrument.SYNTH: 80,         # Lead 1 (square)
        Instrument.PLUCK: 24,         # Acoustic Guitar (nylon)
        Instrument.METAL: 11,         # Vibraphone
        Instrument.MARIMBA: 12,       # Marimba
        Instrument.ORGAN: 19,         # Church Organ
        Instrument.HORN: 60,          # French Horn
        Instrument.BELL: 14,          # Tubular Bells
        Instrument.GLOCKENSPIEL: 9,   # Glockenspiel
        Instrument.HARP: 46,          # Orchestral Harp
        Instrument.WOODWIND: 73,      # Flute
        Instrument.BRASS: 61,         # Brass Section
        Instrument.PLUCKED: 25,       # Acoustic Guitar (steel)
    }
)

_DENOMINATOR_POWERS = {1: 0, 2: 1, 4: 2, 8: 3, 16: 4}
_CLOCKS_PER_TICK = 24


def _channels() -> list[int]:
    return [channel for channel in range(MIDI_CHANNELS) if channel != PERCUSSION_CHANNEL]


class MidiExporter:
    """
    Writes a multi-track MIDI file from a Composition.

    Track layout (Format 1)
    -----------------------
    Track 0 — conductor track (tempo, time signature, key signature)

    Track 1.. — one per instrument, in order of first appearance, each on its
        own channel with a General MIDI program change at time 0.

    Timing
    ------
    Notes play back to back exactly as in the single-track encoding: each note
    starts where the previous one ended, whichever track it lives on.
    """

    DEFAULT_TEMPO = 120  # BPM

    def __init__(self, tempo: int = DEFAULT_TEMPO) -> None:
        """
        Args:
            tempo: Playback tempo in beats per minute.
        """
        self.tempo = tempo

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _assign_tracks(self, composition: Composition) -> dict[Instrument, int]:
        """Map each instrument to its track number, in order of first use."""
        tracks: dict[Instrument, int] = {}
        for note in composition:
            if note.instrument not in tracks:
                tracks[note.instrument] = len(tracks) + 1
        return tracks

    def _write_conductor(self, midi: MIDIFile, composition: Composition) -> None:
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)

        time_signature = composition.time_signature
        midi.addTimeSignature(
            TRACK_CONDUCTOR,
            0,
            time_signature.beats_per_bar,
            _DENOMINATOR_POWERS.get(time_signature.beat_unit, 2),
            _CLOCKS_PER_TICK,
        )

        accidentals = key_signature_accidentals(composition.key_signature)
        mode = resolve_scale(composition.key_signature).value.mode
        midi.addKeySignature(
            TRACK_CONDUCTOR,
            0,
            abs(accidentals),
            FLATS if accidentals < 0 else SHARPS,
            MINOR if mode is KeyMode.MINOR else MAJOR,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, composition: Composition, output_path: str) -> None:
        """
        Render a composition to a Standard MIDI File (SMF format 1).

        Args:
            composition: Notes to write.
            output_path: Destination file path (e.g. "output.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        tracks = self._assign_tracks(composition)
        channels = dict(zip(tracks, _channels()))

        midi = MIDIFile(numTracks=len(tracks) + 1, removeDuplicates=False, deinterleave=False)
        self._write_conductor(midi, composition)

        for instrument, track in tracks.items():
            midi.addTrackName(track, 0, instrument.value.title())
            midi.addProgramChange(track, channels[instrument], 0, GM_PROGRAMS[instrument])

        start_beat = 0.0
        for note in composition:
            duration_beats = float(note.duration.quarter_notes)
            midi.addNote(
                track=tracks[note.instrument],
                channel=channels[note.instrument],
                pitch=max(0, min(127, note.midi_number)),
                time=start_beat,
                duration=duration_beats,
                volume=max(0, min(127, round(note.velocity * 100))),
            )
            start_beat += duration_beats

        with open(output_path, "wb") as f:
            midi.writeFile(f)
        logger.info("Wrote %d instrument tracks to %s", len(tracks), output_path)
