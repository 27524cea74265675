"""
VZ Encoder - Generates cassette audio from a tape image.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from . import LEADER_BYTE, PREAMBLE_BYTE, LEAD_OUT_BYTE
from .protocol import TapeProtocol, DEFAULT_PROTOCOL
from .tape import TapeImage
from .wavio import write_wav

_logger = logging.getLogger(__name__)

Segment = Tuple[str, np.ndarray]


class VZEncoder:
    """
    Encoder for VZ cassette audio.

    Every bit occupies six equal half-cycle slots:

        slot  0     1    2     3          4          5
        bit 1 HIGH  LOW  HIGH  LOW        HIGH       LOW
        bit 0 HIGH  LOW  HIGH  HIGH       LOW        LOW

    so a 1 bit is three short cycles and a 0 bit one short cycle followed
    by one long cycle. Bytes are sent MSB first.
    """

    def __init__(self, protocol: Optional[TapeProtocol] = None):
        """
        Initialize encoder.

        Args:
            protocol: Timing and level parameters (default: VZ200 at 22050 Hz)
        """
        self.protocol = protocol or DEFAULT_PROTOCOL
        self.sample_rate = self.protocol.sample_rate
        self.samples_per_half_cycle = self.protocol.samples_per_half_cycle
        self.samples_per_bit = self.protocol.samples_per_bit

        self._bit_waveforms = [
            np.array(
                [self.sample_for(bit, offset) for offset in range(self.samples_per_bit)],
                dtype=np.uint8,
            )
            for bit in (0, 1)
        ]
        self._byte_cache: dict[int, np.ndarray] = {}

    def sample_for(self, bit: int, offset: int) -> int:
        """
        Amplitude of ``bit`` at ``offset`` samples into its bit period.

        Args:
            bit: 0 or 1
            offset: Sample index within the bit (0 .. samples_per_bit - 1)

        Returns:
            8-bit unsigned amplitude
        """
        if not 0 <= offset < self.samples_per_bit:
            raise ValueError(f"offset {offset} outside bit period of {self.samples_per_bit}")

        high = self.protocol.high
        low = self.protocol.low
        slot = offset // self.samples_per_half_cycle

        if slot == 0:
            return high
        elif slot == 1:
            return low
        elif slot == 2:
            return high
        elif slot == 3:
            return low if bit == 1 else high
        elif slot == 4:
            return high if bit == 1 else low
        return low

    def encode_byte(self, value: int) -> np.ndarray:
        """
        Encode one byte as eight bit periods, MSB first.

        Args:
            value: Byte value 0-255

        Returns:
            Read-only array of uint8 samples, 8 * samples_per_bit long
        """
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value must be 0-255, got {value}")

        samples = self._byte_cache.get(value)
        if samples is None:
            samples = np.concatenate([
                self._bit_waveforms[(value >> i) & 1] for i in range(7, -1, -1)
            ])
            # shared between callers
            samples.setflags(write=False)
            self._byte_cache[value] = samples
        return samples

    def encode_bytes(self, data: bytes) -> np.ndarray:
        """Encode a run of bytes back to back."""
        if not data:
            return np.zeros(0, dtype=np.uint8)
        return np.concatenate([self.encode_byte(b) for b in data])

    def _level(self, level: int, count: int) -> np.ndarray:
        return np.full(count, level, dtype=np.uint8)

    def segments(self, image: TapeImage) -> List[Segment]:
        """
        Lay out the full recording for an image.

        Returns:
            Ordered list of (label, samples):
            silence, leader, preamble, file type, filename, gap, null gap,
            addresses, data, checksum, lead-out, tail silence
        """
        p = self.protocol
        header = image.header
        end = image.end_address
        checksum = image.checksum

        addresses = bytes([
            header.start_address & 0xFF,
            (header.start_address >> 8) & 0xFF,
            end & 0xFF,
            (end >> 8) & 0xFF,
        ])

        return [
            ("silence", self._level(p.silence, p.initial_silence_samples)),
            ("leader", self.encode_bytes(bytes([LEADER_BYTE]) * p.leader_count)),
            ("preamble", self.encode_bytes(bytes([PREAMBLE_BYTE]) * p.preamble_count)),
            ("file type", self.encode_byte(header.file_type)),
            ("filename", self.encode_bytes(header.filename_bytes)),
            ("gap", self._level(p.silence, p.gap_silence_samples)),
            ("null gap", self._level(p.null, p.null_gap_samples)),
            ("addresses", self.encode_bytes(addresses)),
            ("data", self.encode_bytes(image.payload)),
            ("checksum", self.encode_bytes(bytes([checksum & 0xFF, (checksum >> 8) & 0xFF]))),
            ("lead-out", self.encode_bytes(bytes([LEAD_OUT_BYTE]) * p.lead_out_count)),
            ("tail silence", self._level(p.silence, p.tail_silence_samples)),
        ]

    def total_samples(self, image: TapeImage) -> int:
        """
        Number of samples ``encode`` will produce, computed from the layout alone.
        """
        p = self.protocol
        byte_count = (
            p.leader_count
            + p.preamble_count
            + 1  # file type
            + len(image.header.filename_bytes)
            + 4  # start and end address
            + len(image.payload)
            + 2  # checksum
            + p.lead_out_count
        )
        return (
            p.initial_silence_samples
            + byte_count * p.samples_per_byte
            + p.gap_samples
            + p.tail_silence_samples
        )

    def encode(self, image: TapeImage) -> np.ndarray:
        """
        Encode a tape image to audio samples.

        Args:
            image: Tape image to encode

        Returns:
            Array of uint8 samples at protocol.sample_rate
        """
        expected = self.total_samples(image)
        _logger.info(
            f"Encoding {image!r}: checksum 0x{image.checksum:04X}, "
            f"{expected} samples ({expected / self.sample_rate:.2f}s)"
        )

        parts = []
        for label, samples in self.segments(image):
            _logger.debug(f"  - {label}: {len(samples)} samples")
            parts.append(samples)

        result = np.concatenate(parts)
        if len(result) != expected:
            raise RuntimeError(
                f"segment layout produced {len(result)} samples, expected {expected}"
            )
        return result

    def encode_to_file(self, output_path: Union[str, Path], image: TapeImage):
        """
        Encode a tape image and save it as a WAV file.

        Args:
            output_path: Output WAV file path
            image: Tape image to encode
        """
        samples = self.encode(image)
        write_wav(output_path, samples, self.sample_rate)
