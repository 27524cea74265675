"""
Tape protocol parameters.

All timing and level constants used by the encoder and decoder live in one
frozen dataclass so tests (and unusual recordings) can override them
without touching module globals.
"""

from dataclasses import dataclass
from typing import Tuple

from . import (
    SAMPLE_RATE,
    HALF_CYCLE_NS,
    VALUE_HIGH,
    VALUE_LOW,
    VALUE_SILENCE,
    VALUE_NULL,
    THRESHOLD,
    LEADER_THRESHOLD,
    SHORT_CYCLE_BOUNDS,
    LONG_CYCLE_BOUNDS,
    LEADER_COUNT,
    PREAMBLE_COUNT,
    LEAD_OUT_COUNT,
    INITIAL_SILENCE_SEC,
    TAIL_SILENCE_SEC,
    GAP_TIME_NS,
    NULL_GAP_SAMPLES,
)

NS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class TapeProtocol:
    """
    Timing, level and framing parameters shared by encoder and decoder.

    Cycle bounds are (lower, upper) with the lower bound exclusive and the
    upper bound inclusive: a measured cycle of ``total`` samples is SHORT
    when ``short_bounds[0] < total <= short_bounds[1]``.
    """

    sample_rate: int = SAMPLE_RATE
    half_cycle_ns: int = HALF_CYCLE_NS
    high: int = VALUE_HIGH
    low: int = VALUE_LOW
    silence: int = VALUE_SILENCE
    null: int = VALUE_NULL
    threshold: int = THRESHOLD
    leader_threshold: int = LEADER_THRESHOLD
    short_bounds: Tuple[int, int] = SHORT_CYCLE_BOUNDS
    long_bounds: Tuple[int, int] = LONG_CYCLE_BOUNDS
    leader_count: int = LEADER_COUNT
    preamble_count: int = PREAMBLE_COUNT
    lead_out_count: int = LEAD_OUT_COUNT
    initial_silence_sec: float = INITIAL_SILENCE_SEC
    tail_silence_sec: float = TAIL_SILENCE_SEC
    gap_time_ns: int = GAP_TIME_NS
    null_gap_samples: int = NULL_GAP_SAMPLES

    def __post_init__(self):
        for name in ("high", "low", "silence", "null", "threshold", "leader_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} must be an 8-bit level, got {value}")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if self.samples_per_half_cycle < 1:
            raise ValueError(
                f"half-cycle of {self.half_cycle_ns} ns is shorter than one sample "
                f"at {self.sample_rate} Hz"
            )
        for name in ("short_bounds", "long_bounds"):
            lower, upper = getattr(self, name)
            if lower >= upper:
                raise ValueError(f"{name} lower bound must be below upper bound")
        if self.short_bounds[1] > self.long_bounds[0]:
            raise ValueError("short and long cycle windows overlap")
        if not self.low <= self.threshold < self.high:
            raise ValueError("threshold must separate the low and high levels")
        if self.silence > self.threshold or self.null > self.threshold:
            raise ValueError("silence and null levels must read as low")
        if self.null_gap_samples > self.gap_samples:
            raise ValueError("null gap is longer than the whole gap")

    @property
    def samples_per_half_cycle(self) -> int:
        return self.sample_rate * self.half_cycle_ns // NS_PER_SECOND

    @property
    def samples_per_bit(self) -> int:
        return 6 * self.samples_per_half_cycle

    @property
    def samples_per_byte(self) -> int:
        return 8 * self.samples_per_bit

    @property
    def gap_samples(self) -> int:
        return self.sample_rate * self.gap_time_ns // NS_PER_SECOND

    @property
    def gap_silence_samples(self) -> int:
        return self.gap_samples - self.null_gap_samples

    @property
    def initial_silence_samples(self) -> int:
        return int(self.sample_rate * self.initial_silence_sec)

    @property
    def tail_silence_samples(self) -> int:
        return int(self.sample_rate * self.tail_silence_sec)

    @property
    def min_samples_per_byte(self) -> int:
        """
        Fewest samples eight accepted bits can occupy.

        A 0 bit is one short and one long cycle, a 1 bit three short cycles;
        each cycle must be at least one sample above its lower bound.
        """
        shortest_short = self.short_bounds[0] + 1
        shortest_long = self.long_bounds[0] + 1
        return 8 * min(shortest_short + shortest_long, 3 * shortest_short)


DEFAULT_PROTOCOL = TapeProtocol()
