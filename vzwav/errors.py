"""
Exception types raised by the VZ tape encoder and decoder.
"""

from typing import Optional


class VZTapeError(Exception):
    """Base class for all tape encode/decode failures."""


class StreamExhausted(VZTapeError):
    """The sample buffer ran out in the middle of a measurement."""

    def __init__(self, position: int):
        super().__init__(f"Sample stream exhausted at sample {position}")
        self.position = position


class SyncError(VZTapeError):
    """
    Leader or preamble could not be found.

    Attributes:
        phase: "carrier", "alignment", "leader" or "preamble"
        leader_bytes: Leader bytes matched before sync was lost
        position: Sample position where the search gave up
        got: Offending byte value, if any
    """

    def __init__(
        self,
        message: str,
        phase: str,
        leader_bytes: int = 0,
        position: int = 0,
        got: Optional[int] = None,
    ):
        super().__init__(message)
        self.phase = phase
        self.leader_bytes = leader_bytes
        self.position = position
        self.got = got


class TapeFormatError(VZTapeError):
    """Tape image is malformed or cannot be represented on tape."""


class WavFormatError(VZTapeError):
    """WAV container does not match the tape audio format."""
