#!/usr/bin/env python3
"""
VZ Encoder CLI - Convert a .vz tape image to cassette audio.
"""

import sys

import click

from vzwav import VZEncoder, VZTapeError, read_vz
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
    help="Output WAV file path (default: input name with .wav)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def main(input: str, output: str | None, verbose: bool):
    """
    Generate a VZ200 cassette WAV file from a .vz image.

    Output is 22050 Hz, 8-bit unsigned PCM, mono.

    Examples:

        vzwav-encode game.vz

        vzwav-encode game.vz -o tape/game.wav
    """
    setup_logging(verbose)
    output = output or default_output(input, ".wav")

    try:
        image = read_vz(input)
    except (OSError, VZTapeError, ValueError) as e:
        click.echo(f"Error reading {input}: {e}", err=True)
        sys.exit(1)

    header = image.header
    click.echo("VZ File Information:")
    click.echo(f"  Filename: {header.filename}")
    click.echo(f"  Type: 0x{header.file_type:02X}")
    click.echo(f"  Start Address: 0x{header.start_address:04X}")
    click.echo(f"  End Address: 0x{image.end_address:04X}")
    click.echo(f"  Data Length: {len(image.payload)} bytes")
    click.echo(f"  Checksum: 0x{image.checksum:04X}")

    encoder = VZEncoder()

    try:
        encoder.encode_to_file(output, image)
        total = encoder.total_samples(image)
        click.echo(f"✓ Generated {output} ({total / encoder.sample_rate:.2f}s)")
    except Exception as e:
        click.echo(f"Error generating file: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
