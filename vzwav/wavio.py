"""
WAV container I/O for tape audio.

Tape audio is mono 8-bit unsigned PCM. soundfile works in signed integers,
so samples are shifted into the int16 range on the way out and back on the
way in; libsndfile maps PCM_U8 <-> int16 with a plain 8-bit shift, which
keeps the amplitudes exact.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import soundfile as sf

from . import SAMPLE_RATE
from .errors import WavFormatError

_logger = logging.getLogger(__name__)


def to_int16(samples: np.ndarray) -> np.ndarray:
    """Unsigned 8-bit amplitudes -> int16 for soundfile."""
    return ((samples.astype(np.int16) - 128) << 8).astype(np.int16)


def from_int16(samples: np.ndarray) -> np.ndarray:
    """int16 from soundfile -> unsigned 8-bit amplitudes."""
    return ((samples.astype(np.int32) >> 8) + 128).astype(np.uint8)


def write_wav(
    output_path: Union[str, Path],
    samples: np.ndarray,
    sample_rate: int = SAMPLE_RATE,
):
    """
    Write unsigned 8-bit samples as a mono PCM_U8 WAV file.

    Args:
        output_path: Output WAV file path
        samples: Array of uint8 amplitudes
        sample_rate: Sample rate (Hz)
    """
    samples = np.asarray(samples, dtype=np.uint8)
    sf.write(
        str(output_path),
        to_int16(samples),
        sample_rate,
        format="WAV",
        subtype="PCM_U8",
    )
    _logger.debug(
        f"Wrote {len(samples)} samples ({len(samples) / sample_rate:.2f}s) to {output_path}"
    )


def read_wav(
    input_path: Union[str, Path],
    expected_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """
    Read a mono WAV file as unsigned 8-bit amplitudes.

    Args:
        input_path: Path to WAV file
        expected_rate: Required sample rate (Hz)

    Returns:
        Array of uint8 samples

    Raises:
        WavFormatError: Wrong sample rate, more than one channel, or not
            readable as audio
    """
    try:
        info = sf.info(str(input_path))
    except RuntimeError as e:
        raise WavFormatError(f"Cannot read {input_path}: {e}") from e

    _logger.info(
        f"WAV: {info.samplerate} Hz, {info.channels} channel(s), "
        f"{info.subtype}, {info.frames} frames"
    )

    if info.channels != 1:
        raise WavFormatError(f"Expected mono audio, got {info.channels} channels")
    if info.samplerate != expected_rate:
        raise WavFormatError(
            f"Expected {expected_rate} Hz audio, got {info.samplerate} Hz"
        )
    if info.subtype != "PCM_U8":
        _logger.warning(f"Expected 8-bit unsigned PCM, got {info.subtype}; reducing to 8 bits")

    samples, _ = sf.read(str(input_path), dtype="int16")
    return from_int16(samples)
