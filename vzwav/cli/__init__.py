"""
Command line tools: vzwav-encode, vzwav-decode, vzwav-cas.
"""

import logging
from pathlib import Path


def setup_logging(verbose: bool):
    """Route library logging to stderr; DEBUG with --verbose, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def default_output(input_path: str, suffix: str) -> str:
    """input.vz -> input.wav (same directory)."""
    return str(Path(input_path).with_suffix(suffix))
