"""
Tests for the tape image model and .vz/.cas serialization.
"""

import random

import pytest

from vzwav import (
    TapeHeader,
    TapeImage,
    TapeFormatError,
    compute_checksum,
    read_vz,
    write_vz,
    write_cas,
    FILE_TYPE_BASIC,
    FILE_TYPE_BINARY,
)
from vzwav.tape import tape_bytes, filename_from_field


class TestChecksum:
    """Test checksum computation."""

    def test_hello_checksum(self, hello_image):
        expected = (0xE9 + 0x7A + 0xEC + 0x7A + 1 + 2 + 3) % 65536
        assert hello_image.end_address == 0x7AEC
        assert hello_image.checksum == expected == 0x02CF

    def test_checksum_wraps(self):
        payload = b"\xFF" * 300
        checksum = compute_checksum(0xFFFF, 0x012B, payload)
        assert checksum == (0xFF + 0xFF + 0x2B + 0x01 + 0xFF * 300) & 0xFFFF

    def test_checksum_deterministic(self, hello_image):
        assert hello_image.checksum == hello_image.checksum
        assert compute_checksum(0x7AE9, 0x7AEC, b"\x01\x02\x03") == hello_image.checksum

    def test_single_payload_byte_changes_checksum(self):
        rng = random.Random(1234)
        payload = bytes(rng.randrange(256) for _ in range(512))
        base = compute_checksum(0x8000, 0x8200, payload)

        for _ in range(500):
            index = rng.randrange(len(payload))
            value = rng.randrange(256)
            if value == payload[index]:
                continue
            mutated = bytearray(payload)
            mutated[index] = value
            assert compute_checksum(0x8000, 0x8200, bytes(mutated)) != base

    def test_single_address_byte_changes_checksum(self):
        base = compute_checksum(0x7AE9, 0x7AEC, b"\x01\x02\x03")
        for shift in (0, 8):
            for delta in range(1, 256):
                start = 0x7AE9 ^ (delta << shift)
                end = 0x7AEC ^ (delta << shift)
                assert compute_checksum(start, 0x7AEC, b"\x01\x02\x03") != base
                assert compute_checksum(0x7AE9, end, b"\x01\x02\x03") != base


class TestTapeHeader:
    """Test header validation and layout."""

    def test_encode_layout(self):
        header = TapeHeader(b"VZF0", "HELLO", FILE_TYPE_BASIC, 0x7AE9)
        data = header.encode()

        assert len(data) == 24
        assert data[0:4] == b"VZF0"
        assert data[4:21] == b"HELLO" + b"\x00" * 12
        assert data[21] == 0xF0
        assert data[22:24] == b"\xE9\x7A"

    def test_decode(self):
        data = b"VZF0" + b"GAME" + b"\x00" * 13 + b"\xF1" + b"\x00\x80"
        header = TapeHeader.decode(data)

        assert header.magic == b"VZF0"
        assert header.filename == "GAME"
        assert header.file_type == FILE_TYPE_BINARY
        assert header.start_address == 0x8000

    def test_decode_short(self):
        with pytest.raises(TapeFormatError):
            TapeHeader.decode(b"VZF0HELLO")

    def test_filename_limits(self):
        TapeHeader(b"VZF0", "A" * 16, FILE_TYPE_BASIC, 0)

        with pytest.raises(ValueError):
            TapeHeader(b"VZF0", "A" * 17, FILE_TYPE_BASIC, 0)
        with pytest.raises(ValueError):
            TapeHeader(b"VZF0", "AB\x00C", FILE_TYPE_BASIC, 0)

    def test_field_limits(self):
        with pytest.raises(ValueError):
            TapeHeader(b"VZF", "X", FILE_TYPE_BASIC, 0)
        with pytest.raises(ValueError):
            TapeHeader(b"VZF0", "X", 0x100, 0)
        with pytest.raises(ValueError):
            TapeHeader(b"VZF0", "X", FILE_TYPE_BASIC, 0x10000)
        with pytest.raises(ValueError):
            TapeHeader(b"VZF0", "X", FILE_TYPE_BASIC, -1)

    def test_filename_bytes(self):
        header = TapeHeader(b"VZF0", "HELLO", FILE_TYPE_BASIC, 0)
        assert header.filename_bytes == b"HELLO\x00"


class TestFilenameField:
    """Test extraction of names from the 17-byte field."""

    def test_stops_at_nul(self):
        assert filename_from_field(b"ABC\x00DEF") == "ABC"

    def test_unterminated_field_truncated(self):
        assert filename_from_field(b"ABCDEFGHIJKLMNOPQ") == "ABCDEFGHIJKLMNOP"

    def test_empty(self):
        assert filename_from_field(b"\x00" * 17) == ""


class TestTapeImage:
    """Test tape image construction and serialization."""

    def test_end_address_wraps(self):
        image = TapeImage.create("WRAP", FILE_TYPE_BINARY, 0xFFF0, bytes(0x20))
        assert image.end_address == 0x0010

    def test_empty_payload(self):
        image = TapeImage.create("EMPTY", FILE_TYPE_BASIC, 0x7AE9)
        assert image.end_address == 0x7AE9
        assert image.checksum == (0xE9 + 0x7A) * 2

    def test_payload_limit(self):
        TapeImage.create("BIG", FILE_TYPE_BINARY, 0, bytes(0xFFFF))
        with pytest.raises(TapeFormatError):
            TapeImage.create("BIG", FILE_TYPE_BINARY, 0, bytes(0x10000))

    def test_bytes_round_trip(self, hello_image):
        data = hello_image.to_bytes()
        assert len(data) == 24 + 3
        assert TapeImage.from_bytes(data) == hello_image

    def test_payload_normalised(self):
        image = TapeImage.create("LIST", FILE_TYPE_BASIC, 0, bytearray([1, 2]))
        assert image.payload == b"\x01\x02"
        assert isinstance(image.payload, bytes)

    def test_file_round_trip(self, tmp_path, hello_image):
        path = tmp_path / "hello.vz"
        write_vz(path, hello_image)
        assert read_vz(path) == hello_image

    def test_legacy_magic_kept(self):
        data = b"  \x00\x00" + b"OLD".ljust(17, b"\x00") + b"\xF0" + b"\xE9\x7A" + b"\x10"
        image = TapeImage.from_bytes(data)
        assert image.header.magic == b"  \x00\x00"
        assert image.to_bytes() == data


class TestCasImage:
    """Test the raw tape byte image."""

    def test_layout(self, hello_image):
        data = tape_bytes(hello_image)

        assert len(data) == 128 + 5 + 1 + 6 + 4 + 3 + 2
        assert data[:128] == b"\x80" * 128
        assert data[128:133] == b"\xFE" * 5
        assert data[133] == 0xF0
        assert data[134:140] == b"HELLO\x00"
        assert data[140:144] == b"\xE9\x7A\xEC\x7A"
        assert data[144:147] == b"\x01\x02\x03"
        assert data[147:149] == b"\xCF\x02"

    def test_custom_leader(self, hello_image):
        data = tape_bytes(hello_image, leader_count=255)
        assert data[:255] == b"\x80" * 255
        assert data[255] == 0xFE

    def test_write_cas(self, tmp_path, hello_image):
        path = tmp_path / "hello.cas"
        write_cas(path, hello_image)
        assert path.read_bytes() == tape_bytes(hello_image)
