"""
n8asm - Nano8 Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the Nano8 assembler.

Usage Examples
--------------
Basic assembly (writes counter.bin):
    $ n8asm counter.prog

With output file:
    $ n8asm counter.prog -o out.bin

Generate all output files:
    $ n8asm counter.prog -o counter.bin -l counter.lst -s counter.sym

Verbose mode:
    $ n8asm -v counter.prog
"""

import sys
from pathlib import Path
from typing import Optional

import click

from nano8 import __version__
from nano8.assembler import Assembler
from nano8.cli import setup_logging
from nano8.cli.errors import ExitCode, handle_cli_exception


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output program image (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="n8asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble Nano8 source code into a program image.

    INPUT_FILE is the assembly source file (.prog) to assemble. Constant
    range problems are reported as warnings; the value is stored mod 256.

    \b
    Examples:
        n8asm counter.prog              # Outputs counter.bin
        n8asm counter.prog -o out.bin   # Specify output file
        n8asm counter.prog -l out.lst   # Also write a listing
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(".bin")

    asm = Assembler(verbose=verbose)

    try:
        code = asm.assemble_file(input_file)

        if not code:
            click.echo("Error: No code to assemble", err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        asm.write_binary(output_file)

        if listing:
            asm.write_listing(listing)
        if symbols:
            asm.write_symbols(symbols)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")

    if verbose:
        click.echo(f"Wrote {len(code)} bytes to {output_file}")
        click.echo(f"Defined {len(asm.get_symbols())} symbols")
        if asm.warnings:
            click.echo(f"{len(asm.warnings)} warning(s)")

    click.echo("Assembled Program")


if __name__ == "__main__":
    main()
