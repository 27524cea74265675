"""
VZ tape image structure and serialization.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from . import (
    VZ_MAGIC,
    VZ_MAGIC_SIZE,
    VZ_FILENAME_SIZE,
    VZ_HEADER_SIZE,
    LEADER_BYTE,
    PREAMBLE_BYTE,
    PREAMBLE_COUNT,
)
from .errors import TapeFormatError

_logger = logging.getLogger(__name__)

# magic (4), filename (17), type (1), start address (2, little-endian)
HEADER_FORMAT = f"<{VZ_MAGIC_SIZE}s{VZ_FILENAME_SIZE}sBH"

MAX_FILENAME_LENGTH = VZ_FILENAME_SIZE - 1
MAX_PAYLOAD_LENGTH = 0xFFFF

# vz2cas writes a shorter leader than the audio encoder
CAS_LEADER_COUNT = 128


def compute_checksum(start_address: int, end_address: int, payload: bytes) -> int:
    """
    Compute the tape checksum.

    16-bit sum of the start and end address bytes (low, high, low, high)
    followed by every payload byte.
    """
    checksum = start_address & 0xFF
    checksum += (start_address >> 8) & 0xFF
    checksum += end_address & 0xFF
    checksum += (end_address >> 8) & 0xFF
    checksum += sum(payload)
    return checksum & 0xFFFF


@dataclass(frozen=True)
class TapeHeader:
    """
    Fixed header fields of a .vz image.

    Layout (24 bytes):
    - Magic: 4 bytes
    - Filename: 17 bytes, NUL terminated, zero padded
    - File type: 1 byte (0xF0 BASIC, 0xF1 machine code)
    - Start address: 2 bytes, little-endian
    """

    magic: bytes
    filename: str
    file_type: int
    start_address: int

    def __post_init__(self):
        if len(self.magic) != VZ_MAGIC_SIZE:
            raise ValueError(f"magic must be {VZ_MAGIC_SIZE} bytes")
        if len(self.filename) > MAX_FILENAME_LENGTH:
            raise ValueError(f"filename must be at most {MAX_FILENAME_LENGTH} characters")
        if "\x00" in self.filename:
            raise ValueError("filename must not contain NUL")
        try:
            self.filename.encode("latin-1")
        except UnicodeEncodeError:
            raise ValueError("filename must be latin-1 encodable") from None
        if not 0 <= self.file_type <= 0xFF:
            raise ValueError("file_type must be 8-bit unsigned")
        if not 0 <= self.start_address <= 0xFFFF:
            raise ValueError("start_address must be 16-bit unsigned")

    @property
    def filename_bytes(self) -> bytes:
        """Filename as it goes on tape: name plus terminating zero."""
        return self.filename.encode("latin-1") + b"\x00"

    def encode(self) -> bytes:
        """Encode the 24-byte .vz header."""
        return struct.pack(
            HEADER_FORMAT,
            self.magic,
            self.filename.encode("latin-1"),  # struct pads with zeros
            self.file_type,
            self.start_address,
        )

    @classmethod
    def decode(cls, data: bytes) -> "TapeHeader":
        """Decode a 24-byte .vz header."""
        if len(data) < VZ_HEADER_SIZE:
            raise TapeFormatError(
                f"header needs {VZ_HEADER_SIZE} bytes, got {len(data)}"
            )

        magic, raw_name, file_type, start = struct.unpack(
            HEADER_FORMAT, data[:VZ_HEADER_SIZE]
        )
        return cls(magic, filename_from_field(raw_name), file_type, start)


def filename_from_field(raw: bytes) -> str:
    """
    Extract the filename from a NUL-terminated field.

    Stops at the first zero byte. A field with no terminator in its first
    16 bytes is cut to 16 characters so the name always fits back into
    the 17-byte field with its NUL.
    """
    name = raw.split(b"\x00", 1)[0]
    if len(name) > MAX_FILENAME_LENGTH:
        _logger.warning(
            f"Filename {name!r} has no terminator, truncating to "
            f"{MAX_FILENAME_LENGTH} characters"
        )
        name = name[:MAX_FILENAME_LENGTH]
    return name.decode("latin-1")


@dataclass(frozen=True)
class TapeImage:
    """
    A complete tape image: header plus payload.

    The end address is never stored in the .vz file; it is derived from
    the payload length and only transmitted on tape.
    """

    header: TapeHeader
    payload: bytes = b""

    def __post_init__(self):
        if len(self.payload) > MAX_PAYLOAD_LENGTH:
            raise TapeFormatError(
                f"payload of {len(self.payload)} bytes exceeds the 16-bit "
                f"address range ({MAX_PAYLOAD_LENGTH} bytes)"
            )
        # Normalise bytearray/list payloads
        object.__setattr__(self, "payload", bytes(self.payload))

    @property
    def end_address(self) -> int:
        return (self.header.start_address + len(self.payload)) & 0xFFFF

    @property
    def checksum(self) -> int:
        return compute_checksum(self.header.start_address, self.end_address, self.payload)

    def to_bytes(self) -> bytes:
        """Serialize as a .vz file."""
        return self.header.encode() + self.payload

    @classmethod
    def from_bytes(cls, data: bytes) -> "TapeImage":
        """Parse a .vz file."""
        header = TapeHeader.decode(data)
        return cls(header, data[VZ_HEADER_SIZE:])

    @classmethod
    def create(
        cls,
        filename: str,
        file_type: int,
        start_address: int,
        payload: bytes = b"",
        magic: bytes = VZ_MAGIC,
    ) -> "TapeImage":
        """Convenience constructor building the header in place."""
        return cls(TapeHeader(magic, filename, file_type, start_address), payload)

    def __repr__(self) -> str:
        return (
            f"TapeImage(name={self.header.filename!r}, "
            f"type=0x{self.header.file_type:02X}, "
            f"start=0x{self.header.start_address:04X}, "
            f"end=0x{self.end_address:04X}, length={len(self.payload)})"
        )


def tape_bytes(
    image: TapeImage,
    leader_count: int = CAS_LEADER_COUNT,
    preamble_count: int = PREAMBLE_COUNT,
) -> bytes:
    """
    Byte sequence written to tape for an image, without audio framing.

    leader, preamble, file type, filename + NUL, start address, end address,
    payload, checksum. Addresses and checksum are little-endian.
    """
    header = image.header
    return b"".join([
        bytes([LEADER_BYTE]) * leader_count,
        bytes([PREAMBLE_BYTE]) * preamble_count,
        bytes([header.file_type]),
        header.filename_bytes,
        struct.pack("<HH", header.start_address, image.end_address),
        image.payload,
        struct.pack("<H", image.checksum),
    ])


def read_vz(path: Union[str, Path]) -> TapeImage:
    """Read a .vz file from disk."""
    data = Path(path).read_bytes()
    image = TapeImage.from_bytes(data)
    _logger.debug(f"Read {path}: {image!r}")
    return image


def write_vz(path: Union[str, Path], image: TapeImage):
    """Write a .vz file to disk."""
    Path(path).write_bytes(image.to_bytes())
    _logger.debug(f"Wrote {path}: {image!r}")


def write_cas(path: Union[str, Path], image: TapeImage):
    """Write the raw tape byte image (.cas) for an image."""
    Path(path).write_bytes(tape_bytes(image))
    _logger.debug(f"Wrote {path}: {image!r}")
