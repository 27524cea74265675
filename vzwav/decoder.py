"""
VZ Decoder - Recovers a tape image from cassette audio.

Decoding works purely on timing: each high run plus the following low run
is one cycle, classified by its length as short or long. A 0 bit is
short+long, a 1 bit short+short+short. Byte boundaries are found by
locking onto the 0x80 leader and checked against the 0xFE preamble.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from . import VZ_MAGIC, VZ_FILENAME_SIZE, LEADER_BYTE, PREAMBLE_BYTE
from .errors import StreamExhausted, SyncError, TapeFormatError
from .protocol import TapeProtocol, DEFAULT_PROTOCOL
from .tape import TapeHeader, TapeImage, compute_checksum, filename_from_field
from .wavio import read_wav

_logger = logging.getLogger(__name__)

DEFAULT_MAX_ALIGNMENT_BYTES = 400


class Cycle(Enum):
    SHORT = "short"
    LONG = "long"
    ERROR = "error"


class SampleCursor:
    """
    Read-only view of a sample buffer with a forward-only position.
    """

    def __init__(self, samples: Union[np.ndarray, bytes]):
        if isinstance(samples, (bytes, bytearray, memoryview)):
            self._samples = bytes(samples)
        else:
            self._samples = np.asarray(samples, dtype=np.uint8).tobytes()
        self.position = 0

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def remaining(self) -> int:
        return len(self._samples) - self.position

    def read(self) -> int:
        """Return the next sample and advance; raises StreamExhausted at the end."""
        if self.position >= len(self._samples):
            raise StreamExhausted(self.position)
        value = self._samples[self.position]
        self.position += 1
        return value


class CycleClassifier:
    """
    Measures and classifies one high-run + low-run cycle at a time.

    Detecting the end of a low run means reading the first sample of the
    next high run; that sample is parked in a one-slot lookahead and handed
    back on the next read instead of rewinding the cursor.
    """

    def __init__(self, cursor: SampleCursor, protocol: Optional[TapeProtocol] = None):
        self.cursor = cursor
        self.protocol = protocol or DEFAULT_PROTOCOL
        self._lookahead: Optional[int] = None

    @property
    def remaining(self) -> int:
        """Samples not yet consumed, including a parked lookahead sample."""
        return self.cursor.remaining + (0 if self._lookahead is None else 1)

    @property
    def position(self) -> int:
        """Index of the next sample that will be handed out."""
        return self.cursor.position - (0 if self._lookahead is None else 1)

    def read_sample(self) -> int:
        if self._lookahead is not None:
            value = self._lookahead
            self._lookahead = None
            return value
        return self.cursor.read()

    def push_back(self, sample: int):
        if self._lookahead is not None:
            raise RuntimeError("lookahead slot already occupied")
        self._lookahead = sample

    def measure(self) -> Tuple[int, int]:
        """
        Measure the next cycle.

        Skips low samples up to the next high one, then counts the high run
        and the low run that follows it.

        Returns:
            (hi_count, lo_count)

        Raises:
            StreamExhausted: The buffer ended before the low run was closed
                by a high sample
        """
        threshold = self.protocol.threshold

        sample = self.read_sample()
        while sample <= threshold:
            sample = self.read_sample()

        hi_count = 1
        sample = self.read_sample()
        while sample > threshold:
            hi_count += 1
            sample = self.read_sample()

        lo_count = 1
        sample = self.read_sample()
        while sample <= threshold:
            lo_count += 1
            sample = self.read_sample()

        self.push_back(sample)
        return hi_count, lo_count

    def classify(self, total: int) -> Cycle:
        """Classify a cycle length; lower bounds exclusive, upper inclusive."""
        short_lo, short_hi = self.protocol.short_bounds
        long_lo, long_hi = self.protocol.long_bounds

        if short_lo < total <= short_hi:
            return Cycle.SHORT
        if long_lo < total <= long_hi:
            return Cycle.LONG
        return Cycle.ERROR

    def next_cycle(self) -> Cycle:
        hi_count, lo_count = self.measure()
        return self.classify(hi_count + lo_count)


class BitDecoder:
    """
    Turns cycles into bits.

    short, long         -> 0
    short, short, short -> 1
    anything else       -> None (bit error)

    Cycles are consumed only as far as needed to reach a decision, so an
    unexpected cycle ends the bit immediately.
    """

    def __init__(self, classifier: CycleClassifier):
        self.classifier = classifier

    def next_bit(self) -> Optional[int]:
        if self.classifier.next_cycle() != Cycle.SHORT:
            return None

        second = self.classifier.next_cycle()
        if second == Cycle.LONG:
            return 0
        if second != Cycle.SHORT:
            return None

        if self.classifier.next_cycle() == Cycle.SHORT:
            return 1
        return None


class ByteDecoder:
    """
    Assembles bytes from eight bit decisions, MSB first.

    A bit error still counts as one of the eight decisions but does not
    shift the accumulator, so a short glitch costs one bit of the current
    byte instead of the alignment of every byte after it.
    """

    def __init__(self, bit_decoder: BitDecoder):
        self.bit_decoder = bit_decoder
        self.error_bits = 0

    def next_byte(self) -> int:
        value = 0
        for _ in range(8):
            bit = self.bit_decoder.next_bit()
            if bit is None:
                self.error_bits += 1
                continue
            value = (value << 1) | bit
        return value


@dataclass(frozen=True)
class SyncReport:
    """Where and how the decoder locked onto the recording."""

    carrier_position: int
    alignment_bytes: int
    leader_bytes: int
    data_position: int


class SyncEngine:
    """
    Locks onto the leader and verifies the preamble.

    1. Carrier search: skip samples until one clears the leader threshold.
    2. Byte alignment: decode bytes until one reads as the leader byte.
    3. Leader + preamble: consume leader bytes; the first other byte and
       the ones after it must be the preamble.
    """

    def __init__(
        self,
        classifier: CycleClassifier,
        byte_decoder: ByteDecoder,
        protocol: Optional[TapeProtocol] = None,
        max_alignment_bytes: int = DEFAULT_MAX_ALIGNMENT_BYTES,
    ):
        self.classifier = classifier
        self.byte_decoder = byte_decoder
        self.protocol = protocol or DEFAULT_PROTOCOL
        self.max_alignment_bytes = max_alignment_bytes

    def _find_carrier(self) -> int:
        threshold = self.protocol.leader_threshold
        try:
            sample = self.classifier.read_sample()
            while sample <= threshold:
                sample = self.classifier.read_sample()
        except StreamExhausted as e:
            raise SyncError(
                "No carrier found", phase="carrier", position=e.position
            ) from e

        self.classifier.push_back(sample)
        return self.classifier.position

    def _align(self) -> int:
        attempts = 0
        try:
            value = self.byte_decoder.next_byte()
            while value != LEADER_BYTE:
                attempts += 1
                if attempts >= self.max_alignment_bytes:
                    raise SyncError(
                        f"Leader not found after {attempts} bytes",
                        phase="alignment",
                        position=self.classifier.position,
                        got=value,
                    )
                value = self.byte_decoder.next_byte()
        except StreamExhausted as e:
            raise SyncError(
                f"Leader not found before end of audio ({attempts} bytes tried)",
                phase="alignment",
                position=e.position,
            ) from e
        return attempts

    def synchronize(self) -> SyncReport:
        _logger.info("Searching for leader...")
        carrier = self._find_carrier()
        _logger.debug(f"Carrier at sample {carrier}")

        skipped = self._align()
        _logger.debug(f"Byte aligned after {skipped} bytes at sample {self.classifier.position}")

        leader = 1
        preamble_count = self.protocol.preamble_count
        try:
            value = self.byte_decoder.next_byte()
            while value == LEADER_BYTE:
                leader += 1
                if leader % 50 == 0:
                    _logger.debug(f"  Found {leader} leader bytes")
                value = self.byte_decoder.next_byte()

            if value != PREAMBLE_BYTE:
                raise SyncError(
                    f"Lost sync after {leader} leader bytes (got 0x{value:02X})",
                    phase="leader",
                    leader_bytes=leader,
                    position=self.classifier.position,
                    got=value,
                )
            _logger.info(f"Leader found ({leader} bytes)")

            for i in range(1, preamble_count):
                value = self.byte_decoder.next_byte()
                if value != PREAMBLE_BYTE:
                    raise SyncError(
                        f"Preamble byte {i} = 0x{value:02X} after {leader} leader bytes",
                        phase="preamble",
                        leader_bytes=leader,
                        position=self.classifier.position,
                        got=value,
                    )
        except StreamExhausted as e:
            raise SyncError(
                f"Audio ended after {leader} leader bytes",
                phase="leader",
                leader_bytes=leader,
                position=e.position,
            ) from e

        _logger.info("Preamble OK")
        return SyncReport(
            carrier_position=carrier,
            alignment_bytes=skipped,
            leader_bytes=leader,
            data_position=self.classifier.position,
        )


@dataclass(frozen=True)
class DecodeResult:
    """
    A decoded tape image plus integrity information.

    The image is returned even when the checksum does not match; callers
    decide whether to keep it.
    """

    image: TapeImage
    transmitted_checksum: int
    computed_checksum: int
    error_bits: int
    sync: SyncReport

    @property
    def checksum_ok(self) -> bool:
        return self.transmitted_checksum == self.computed_checksum


class VZDecoder:
    """
    Decodes a complete recording held in memory.
    """

    def __init__(
        self,
        protocol: Optional[TapeProtocol] = None,
        magic: bytes = VZ_MAGIC,
        max_alignment_bytes: int = DEFAULT_MAX_ALIGNMENT_BYTES,
    ):
        """
        Initialize decoder.

        Args:
            protocol: Timing and level parameters (default: VZ200 at 22050 Hz)
            magic: Magic written into the decoded header; it is not on tape
            max_alignment_bytes: Byte reads allowed while looking for the leader
        """
        self.protocol = protocol or DEFAULT_PROTOCOL
        self.magic = magic
        self.max_alignment_bytes = max_alignment_bytes

    def decode(self, samples: Union[np.ndarray, bytes]) -> DecodeResult:
        """
        Decode a tape image from audio samples.

        Args:
            samples: uint8 amplitudes

        Returns:
            DecodeResult

        Raises:
            SyncError: Leader or preamble not found
            StreamExhausted: Audio ended inside the image
            TapeFormatError: Addresses describe a payload the audio cannot hold
        """
        classifier = CycleClassifier(SampleCursor(samples), self.protocol)
        byte_decoder = ByteDecoder(BitDecoder(classifier))
        sync = SyncEngine(
            classifier, byte_decoder, self.protocol, self.max_alignment_bytes
        ).synchronize()

        next_byte = byte_decoder.next_byte
        byte_decoder.error_bits = 0

        file_type = next_byte()
        _logger.info(f"File type: 0x{file_type:02X}")

        raw_name = bytearray()
        for _ in range(VZ_FILENAME_SIZE):
            ch = next_byte()
            if ch == 0:
                break
            raw_name.append(ch)
        filename = filename_from_field(bytes(raw_name))
        _logger.info(f"Filename: {filename}")

        start_lo, start_hi, end_lo, end_hi = (next_byte() for _ in range(4))
        start = start_lo | (start_hi << 8)
        end = end_lo | (end_hi << 8)
        length = (end - start) & 0xFFFF
        _logger.info(f"Start address: 0x{start:04X}, end address: 0x{end:04X}, {length} bytes")

        # payload + 2 checksum bytes must fit in what is left
        capacity = classifier.remaining // self.protocol.min_samples_per_byte
        if length + 2 > capacity:
            raise TapeFormatError(
                f"Addresses 0x{start:04X}-0x{end:04X} describe {length} bytes, "
                f"but the remaining audio holds at most {max(capacity - 2, 0)}"
            )

        payload = bytearray()
        for i in range(length):
            payload.append(next_byte())
            if (i + 1) % 1000 == 0:
                _logger.debug(f"  {i + 1}/{length}")

        transmitted = next_byte() | (next_byte() << 8)
        computed = compute_checksum(start, end, payload)
        _logger.info(f"Checksum: 0x{computed:04X} (tape: 0x{transmitted:04X})")

        if computed != transmitted:
            _logger.warning(
                f"Checksum mismatch: computed 0x{computed:04X}, tape has 0x{transmitted:04X}"
            )
        if byte_decoder.error_bits:
            _logger.debug(f"{byte_decoder.error_bits} bit error(s) absorbed after sync")

        header = TapeHeader(self.magic, filename, file_type, start)
        return DecodeResult(
            image=TapeImage(header, bytes(payload)),
            transmitted_checksum=transmitted,
            computed_checksum=computed,
            error_bits=byte_decoder.error_bits,
            sync=sync,
        )


def decode_file(
    file_path: Union[str, Path],
    protocol: Optional[TapeProtocol] = None,
    magic: bytes = VZ_MAGIC,
) -> DecodeResult:
    """
    Decode a tape image from a WAV file.

    Args:
        file_path: Path to WAV file (mono, 8-bit, protocol sample rate)
        protocol: Timing and level parameters
        magic: Magic for the decoded header

    Returns:
        DecodeResult
    """
    decoder = VZDecoder(protocol, magic=magic)
    samples = read_wav(file_path, decoder.protocol.sample_rate)
    return decoder.decode(samples)
