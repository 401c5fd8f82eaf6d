"""Code2Score — derive a melody from source code and export it as MIDI or a score."""

__version__ = "0.1.0"
