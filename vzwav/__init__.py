"""
VZWAV - VZ200/VZ300 cassette audio modem.
Encodes .vz tape images to 8-bit PCM audio and decodes them back.
"""

__version__ = "0.1.0"

# Audio format
SAMPLE_RATE = 22050  # Hz
HALF_CYCLE_NS = 287103  # duration of one short half-cycle

# Amplitude levels (8-bit unsigned)
VALUE_HIGH = 195
VALUE_LOW = 61
VALUE_SILENCE = 127
VALUE_NULL = 0

# Decoder thresholds
THRESHOLD = 128  # sample > THRESHOLD is high
LEADER_THRESHOLD = 160  # carrier search, must clear silence comfortably

# Cycle classification windows (lower exclusive, upper inclusive)
SHORT_CYCLE_BOUNDS = (9, 14)
LONG_CYCLE_BOUNDS = (17, 29)

# Tape layout
LEADER_BYTE = 0x80
LEADER_COUNT = 255
PREAMBLE_BYTE = 0xFE
PREAMBLE_COUNT = 5
LEAD_OUT_BYTE = 0x00
LEAD_OUT_COUNT = 20
INITIAL_SILENCE_SEC = 1
TAIL_SILENCE_SEC = 1

# Gap between filename and addresses: 3.065 ms of silence, the last
# NULL_GAP_SAMPLES of which are written at VALUE_NULL
GAP_TIME_NS = 3065000
NULL_GAP_SAMPLES = 10

# .vz container
VZ_MAGIC_SIZE = 4
VZ_FILENAME_SIZE = 17  # includes the terminator
VZ_HEADER_SIZE = 24
VZ_MAGIC = b"VZF0"
FILE_TYPE_BASIC = 0xF0
FILE_TYPE_BINARY = 0xF1

from .errors import (
    VZTapeError,
    StreamExhausted,
    SyncError,
    TapeFormatError,
    WavFormatError,
)
from .protocol import TapeProtocol, DEFAULT_PROTOCOL
from .tape import TapeHeader, TapeImage, compute_checksum, read_vz, write_vz, write_cas
from .encoder import VZEncoder
from .decoder import Cycle, VZDecoder, DecodeResult, decode_file

__all__ = [
    "VZTapeError",
    "StreamExhausted",
    "SyncError",
    "TapeFormatError",
    "WavFormatError",
    "TapeProtocol",
    "DEFAULT_PROTOCOL",
    "TapeHeader",
    "TapeImage",
    "compute_checksum",
    "read_vz",
    "write_vz",
    "write_cas",
    "VZEncoder",
    "Cycle",
    "VZDecoder",
    "DecodeResult",
    "decode_file",
]
