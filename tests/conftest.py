import importlib.util
import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    if importlib.util.find_spec("vzwav") is None:
        sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


_ensure_repo_on_path()

from vzwav import TapeImage, TapeProtocol, VZEncoder, VZDecoder, FILE_TYPE_BASIC  # noqa: E402


@pytest.fixture
def hello_image() -> TapeImage:
    return TapeImage.create("HELLO", FILE_TYPE_BASIC, 0x7AE9, b"\x01\x02\x03")


@pytest.fixture
def short_protocol() -> TapeProtocol:
    """Default timing with a short leader and little silence, for quick round trips."""
    return TapeProtocol(leader_count=16, initial_silence_sec=0.05, tail_silence_sec=0.05)


@pytest.fixture
def encoder() -> VZEncoder:
    return VZEncoder()


@pytest.fixture
def decoder() -> VZDecoder:
    return VZDecoder()
