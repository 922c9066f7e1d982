"""
Nano8 SDK Command-Line Interface
================================

This package provides command-line tools for the Nano8 SDK:

- **n8asm**: Nano8 assembler
- **n8disasm**: Program image disassembler
- **n8run**: Emulator runner

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

import logging

__all__ = ["n8asm", "n8disasm", "n8run", "setup_logging"]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )
