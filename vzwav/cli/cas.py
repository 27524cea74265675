#!/usr/bin/env python3
"""
VZ CAS CLI - Write the raw tape byte image of a .vz file.
"""

import sys

import click

from vzwav import VZTapeError, read_vz, write_cas
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
    help="Output .cas file path (default: input name with .cas)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def main(input: str, output: str | None, verbose: bool):
    """
    Convert a .vz image to the byte sequence the machine writes to tape.

    The .cas image holds leader, preamble, header, addresses, data and
    checksum as plain bytes, without any audio encoding.
    """
    setup_logging(verbose)
    output = output or default_output(input, ".cas")

    try:
        image = read_vz(input)
        write_cas(output, image)
    except (OSError, VZTapeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    header = image.header
    click.echo(f"Filetype     : {header.file_type:02X}")
    click.echo(f"Filename     : {header.filename}")
    click.echo(f"Startaddress : {header.start_address:04X}")
    click.echo(f"Endaddress   : {image.end_address:04X}")
    click.echo(f"Checksum     : {image.checksum:04X}")


if __name__ == "__main__":
    main()
