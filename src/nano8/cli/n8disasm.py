"""
n8disasm - Nano8 Disassembler Command-Line Interface
====================================================

This module implements the command-line interface for the Nano8
disassembler.

Usage Examples
--------------
Disassemble a program image:
    $ n8disasm counter.bin

With base address:
    $ n8disasm fragment.bin --address 0x100

Limit number of instructions:
    $ n8disasm counter.bin --count 20

Output to file:
    $ n8disasm counter.bin -o counter.lst

Hex dump with disassembly:
    $ n8disasm counter.bin --hex
"""

import sys
from pathlib import Path
from typing import Optional

import click

from nano8 import __version__
from nano8.cpu import PROGRAM_SIZE
from nano8.disassembler import Nano8Disassembler


def parse_address(text: str) -> int:
    """Parse 0x/$ hex or decimal; raises ValueError."""
    if text.lower().startswith("0x"):
        return int(text, 16)
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text)


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
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Base address for disassembly (hex with 0x or $ prefix, or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="n8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a Nano8 program image.

    INPUT_FILE is the raw image to disassemble (.bin, address 0 first
    unless --address says otherwise).

    Examples:

        # Disassemble the first 20 instructions
        n8disasm counter.bin --count 20 -o counter.lst

        # Fragment loaded at $100
        n8disasm fragment.bin --address 0x100
    """
    try:
        base_address = parse_address(address)
    except ValueError:
        click.echo(f"Error: Invalid address '{address}'", err=True)
        sys.exit(2)

    if not 0 <= base_address < PROGRAM_SIZE:
        click.echo(f"Error: Address must be 0-{PROGRAM_SIZE - 1} (0x000-0x{PROGRAM_SIZE - 1:03X})", err=True)
        sys.exit(2)

    try:
        data = input_file.read_bytes()
    except IOError as e:
        click.echo(f"Error reading {input_file}: {e}", err=True)
        sys.exit(1)

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(1)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:03X}", err=True)

    output_lines = []

    # Header
    output_lines.append(f"; Disassembly of {input_file.name}")
    output_lines.append(f"; Size: {len(data)} bytes")
    output_lines.append(f"; Base address: ${base_address:03X}")
    output_lines.append("")

    if show_hex:
        output_lines.append("; Hex dump:")
        output_lines.append("; " + "-" * 60)
        for i in range(0, len(data), 16):
            addr = base_address + i
            chunk = data[i:i+16]
            hex_str = " ".join(f"{b:02X}" for b in chunk)
            ascii_str = "".join(
                chr(b) if 0x20 <= b < 0x7F else "."
                for b in chunk
            )
            output_lines.append(f"; ${addr:03X}: {hex_str:<48} {ascii_str}")
        output_lines.append("; " + "-" * 60)
        output_lines.append("")

    disasm = Nano8Disassembler()
    instructions = disasm.disassemble(data, start_address=base_address, count=count)

    for instr in instructions:
        if no_bytes:
            line = f"${instr.address:03X}: {instr.source}"
            if instr.comment:
                line += f"  ; {instr.comment}"
            output_lines.append(line)
        else:
            output_lines.append(str(instr))

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding='utf-8')
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        except IOError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(1)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
