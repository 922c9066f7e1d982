"""
n8run - Nano8 Emulator Command-Line Interface
=============================================

Loads a program into the emulator, runs it until HLT, a breakpoint or the
tick budget, then prints the display, the LEDs and the registers.

Usage Examples
--------------
Run an image or a source file (sources are assembled first):
    $ n8run counter.bin
    $ n8run counter.prog

Fast WAITs for quick checks:
    $ n8run counter.bin --ticks-per-ms 10

Hold the button down for the whole run:
    $ n8run counter.bin --button

Stop at an address, tracing every instruction:
    $ n8run counter.bin --break 0x010 --trace

Environment
-----------
NANO8_TICKS_PER_MS  Default for --ticks-per-ms (board clock: 27000)
"""

from pathlib import Path
from typing import Optional

import click

from nano8 import __version__
from nano8.cpu import DEFAULT_TICKS_PER_MS, DecodedInstruction
from nano8.cli import setup_logging
from nano8.cli.errors import handle_cli_exception
from nano8.cli.n8disasm import parse_address
from nano8.emulator import Emulator, EmulatorConfig


def format_display(lines: list[str]) -> list[str]:
    """Frame the display rows in a box."""
    width = len(lines[0]) if lines else 0
    border = "+" + "-" * width + "+"
    return [border] + [f"|{line}|" for line in lines] + [border]


def format_registers(registers: dict) -> str:
    return (
        f"AC=${registers['ac']:02X} A=${registers['a']:02X} "
        f"B=${registers['b']:02X} C=${registers['c']:02X} "
        f"PC=${registers['pc']:03X} phase={registers['phase']}"
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--max-ticks",
    type=click.IntRange(min=1),
    default=100_000_000,
    show_default=True,
    help="Clock tick budget",
)
@click.option(
    "--ticks-per-ms",
    type=click.IntRange(min=1),
    default=DEFAULT_TICKS_PER_MS,
    show_default=True,
    envvar="NANO8_TICKS_PER_MS",
    help="Clock ticks per WAIT millisecond",
)
@click.option(
    "--latency",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Program store read latency in ticks",
)
@click.option(
    "--button",
    is_flag=True,
    help="Hold the button down for the whole run",
)
@click.option(
    "-b", "--break", "breaks",
    multiple=True,
    help="Stop before the instruction at ADDR (0x/$ hex or decimal, repeatable)",
)
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Save board state to this file when execution stops",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Print each instruction as it executes",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="n8run")
def main(
    input_file: Path,
    max_ticks: int,
    ticks_per_ms: int,
    latency: int,
    button: bool,
    breaks: tuple[str, ...],
    snapshot: Optional[Path],
    trace: bool,
    verbose: bool,
) -> None:
    """
    Run a Nano8 program in the emulator.

    INPUT_FILE is a program image (.bin) or an assembly source (.prog).

    \b
    Examples:
        n8run counter.bin
        n8run counter.prog --ticks-per-ms 10
        n8run counter.bin --break 0x010 --trace
    """
    setup_logging(verbose)

    try:
        addresses = [parse_address(text) for text in breaks]
    except ValueError as e:
        handle_cli_exception(click.BadParameter(f"invalid breakpoint address ({e})"), verbose)

    try:
        emu = Emulator(EmulatorConfig(ticks_per_ms=ticks_per_ms, memory_latency=latency))
        emu.load_file(input_file)

        for address in addresses:
            emu.add_breakpoint(address)
        if button:
            emu.press_button()

        if trace:
            def show(pc: int, decoded: DecodedInstruction, operand: int) -> None:
                click.echo(f"${pc:03X}  {decoded.raw:02X}  {str(decoded):<10} operand=${operand:02X}")
            emu.on_trace = show

        event = emu.run(max_ticks)

        if snapshot:
            emu.save_snapshot(snapshot)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Run")

    for line in format_display(emu.display_lines):
        click.echo(line)
    click.echo(f"LEDs: {emu.leds.as_string()}")
    click.echo(f"Registers: {format_registers(emu.registers)}")
    click.echo(f"Stopped: {event} after {emu.total_ticks} ticks")


if __name__ == "__main__":
    main()
