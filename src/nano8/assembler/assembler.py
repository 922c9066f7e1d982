"""
Nano8 Assembler - Main Interface
================================

This module provides the main Assembler class, the primary interface for
assembling Nano8 source code. It coordinates the lexer, parser and code
generator to produce a program image for the 2048-byte program store.

Example Usage
-------------
>>> from nano8.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
...     CLR AC
...     ADD 5
...     STA A
...     HLT
... ''')
>>> code.hex()
'0191052870'
>>>
>>> asm.write_binary("add.bin")

Command-Line Usage
------------------
The assembler can also be invoked from the command line:

    $ n8asm counter.prog -o counter.bin -l counter.lst -s counter.sym

Options:
    -o, --output FILE      Output image (default: input with .bin suffix)
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate symbol file
    -v, --verbose          Verbose output
"""

import logging
from pathlib import Path

from nano8.assembler.parser import parse_source
from nano8.assembler.codegen import CodeGenerator

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main Nano8 assembler class.

    The assembler supports:
    - The full 29-instruction Nano8 set
    - Decimal, hex, binary and character constants
    - Labels as JMPZ (or any constant) operands
    - `.org` and `.byte` directives
    - Listing and symbol table output

    Attributes:
        verbose: If True, log progress at INFO level
    """

    def __init__(self, verbose: bool = False):
        self._verbose = verbose
        self._codegen = CodeGenerator()
        self._source_file: Path | None = None

    def _log(self, message: str) -> None:
        if self._verbose:
            logger.info(message)
        else:
            logger.debug(message)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            Program image as bytes

        Raises:
            AssemblerError: If assembly fails
        """
        statements = parse_source(source, filename)
        self._log(f"Parsed {len(statements)} statements from {filename}")

        code = self._codegen.generate(statements, source.splitlines())
        self._log(f"Generated {len(code)} bytes")

        return code

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath

        self._log(f"Assembling {filepath}")
        source = filepath.read_text()

        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        """Program image from the last assembly."""
        return self._codegen.get_code()

    def get_symbols(self) -> dict[str, int]:
        """Symbol table from the last assembly (name -> address)."""
        return self._codegen.get_symbols()

    def get_listing(self) -> str:
        return self._codegen.get_listing()

    @property
    def warnings(self) -> list[str]:
        """Warnings from the last assembly."""
        return self._codegen.warnings

    def write_binary(self, filepath: str | Path) -> None:
        """Write the program image (raw bytes, address 0 first)."""
        code = self.get_code()
        Path(filepath).write_bytes(code)
        self._log(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        self._codegen.write_listing(filepath)
        self._log(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        self._codegen.write_symbols(filepath)
        self._log(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_string(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble_file(filepath)
