"""Data models for sheet music rendering outputs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VexflowNote:
    """A single VexFlow note or rest token."""

    keys: list[str]
    duration: str
    accidentals: list[str | None]
    annotation: str | None = None


@dataclass(frozen=True)
class VexflowMeasure:
    """The notes of one bar on a single treble staff."""

    notes: list[VexflowNote]


@dataclass(frozen=True)
class ScoreDocument:
    """Neutral score representation consumed by the VexFlow renderers."""

    title: str
    time_signature: str
    beats: int
    beat_value: int
    key_signature: str
    measures: list[VexflowMeasure]
