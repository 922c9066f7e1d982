"""
Nano8 SDK - Toolchain and Emulator for the Nano8 8-bit Core
===========================================================

This package provides an assembler, a disassembler and a tick-accurate
emulator for Nano8, a small accumulator machine with four 8-bit registers,
a 2048-byte program store, a 64-character display, six LEDs and a push
button.

Main Components
---------------
- **cpu**: Instruction set definitions, decoder and encoder
- **assembler**: Nano8 assembler (n8asm)
    Converts assembly source files (.prog) to program images (.bin)
- **disassembler**: Program image disassembler (n8disasm)
- **emulator**: Pipeline-accurate core plus board peripherals (n8run)

Quick Start
-----------
Assemble a program:
    >>> from nano8.assembler import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("hello.prog")
    >>> asm.write_binary("hello.bin")

Run it:
    >>> from nano8.emulator import Emulator
    >>> emu = Emulator()
    >>> emu.load_program(code)
    >>> emu.run_until_halt()
    True
    >>> print(emu.display_text)

Or use the command-line tools:
    $ n8asm hello.prog
    $ n8disasm hello.bin
    $ n8run hello.bin
"""

__version__ = "1.0.0"
__author__ = "The Nano8 SDK Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from nano8.assembler import Assembler, assemble
from nano8.disassembler import Nano8Disassembler
from nano8.emulator import Emulator, EmulatorConfig
from nano8.errors import (
    Nano8Error,
    AssemblerError,
    AssemblySyntaxError,
    UnknownInstructionError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    JumpRangeError,
    DirectiveError,
    EmulatorError,
    ProgramLoadError,
    SnapshotError,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Tools
    "Assembler",
    "assemble",
    "Nano8Disassembler",
    "Emulator",
    "EmulatorConfig",
    # Exception hierarchy
    "Nano8Error",
    "AssemblerError",
    "AssemblySyntaxError",
    "UnknownInstructionError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "JumpRangeError",
    "DirectiveError",
    "EmulatorError",
    "ProgramLoadError",
    "SnapshotError",
]
