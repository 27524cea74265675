#!/usr/bin/env python3
"""
VZ Decoder CLI - Recover a .vz tape image from cassette audio.
"""

import sys

import click

from vzwav import VZ_MAGIC, SyncError, VZTapeError, decode_file, write_vz
from vzwav.cli import setup_logging, default_output


@click.command()
@click.argument(
    "input",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output .vz file path (default: input name with .vz)",
)
@click.option(
    "-m", "--magic",
    type=str,
    default=VZ_MAGIC.decode("latin-1"),
    show_default=True,
    help="4-character magic for the .vz header (not stored on tape)",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 2 on checksum mismatch (file is still written)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def main(input: str, output: str | None, magic: str, strict: bool, verbose: bool):
    """
    Decode a VZ200 cassette WAV file to a .vz image.

    Input must be 22050 Hz, 8-bit, mono.

    Examples:

        vzwav-decode tape.wav

        vzwav-decode tape.wav -o game.vz --strict
    """
    setup_logging(verbose)
    output = output or default_output(input, ".vz")

    try:
        magic_bytes = magic.encode("latin-1")
    except UnicodeEncodeError:
        magic_bytes = b""
    if len(magic_bytes) != 4:
        click.echo(f"Error: magic must be 4 characters, got {magic!r}", err=True)
        sys.exit(1)

    try:
        result = decode_file(input, magic=magic_bytes)
    except SyncError as e:
        click.echo(f"Sync failed ({e.phase}): {e}", err=True)
        sys.exit(1)
    except VZTapeError as e:
        click.echo(f"Error decoding {input}: {e}", err=True)
        sys.exit(1)

    image = result.image
    header = image.header
    click.echo(f"Filename: {header.filename}")
    click.echo(f"File Type: 0x{header.file_type:02X}")
    click.echo(f"Start Address: 0x{header.start_address:04X}")
    click.echo(f"End Address: 0x{image.end_address:04X}")
    click.echo(f"Data Length: {len(image.payload)} bytes")
    click.echo(
        f"Checksum: 0x{result.computed_checksum:04X} "
        f"(tape: 0x{result.transmitted_checksum:04X})"
    )

    try:
        write_vz(output, image)
    except OSError as e:
        click.echo(f"Error writing {output}: {e}", err=True)
        sys.exit(1)

    if not result.checksum_ok:
        click.echo("Warning: Checksum mismatch, data may be corrupt", err=True)
        click.echo(f"Wrote {output}")
        if strict:
            sys.exit(2)
        return

    click.echo(f"✓ Wrote {output}")


if __name__ == "__main__":
    main()
