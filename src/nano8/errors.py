"""
Nano8 SDK Error Hierarchy
=========================

This module defines the exception hierarchy for the whole SDK. All
exceptions inherit from Nano8Error, so callers can catch every SDK-related
error with a single except clause.

Exception Hierarchy
-------------------
Nano8Error (base)
├── AssemblerError (assembler-related)
│   ├── AssemblySyntaxError - syntax errors in source
│   ├── UnknownInstructionError - mnemonic/operand pair not in the ISA
│   ├── UndefinedSymbolError - reference to undefined label
│   ├── DuplicateSymbolError - label defined multiple times
│   ├── JumpRangeError - label address does not fit an 8-bit operand
│   ├── DirectiveError - error in assembler directive
│   └── TooManyErrors - error collector limit reached
└── EmulatorError (emulator-related)
    ├── ProgramLoadError - program image does not fit the program store
    └── SnapshotError - snapshot file is malformed

The CPU core itself never raises: malformed bytecode is executed according
to the decoder's priority rule.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Nano8Error(Exception):
    """
    Base exception for all Nano8 SDK errors.

        try:
            assembler.assemble_file("counter.prog")
        except Nano8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Nano8Error):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            counter.prog:3:6: error: unknown operand 'D' for ADD
                ADD D
                    ^
            hint: ADD supports: A, B, C, <constant>
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - Invalid character in source
        - Malformed number ("12G")
        - Unterminated character literal
        - Trailing tokens after an operand
    """
    pass


class UnknownInstructionError(AssemblerError):
    """
    Mnemonic or mnemonic/operand combination not in the instruction set.

    Example:
        STA 5     ; Error: STA has no constant variant
    """

    def __init__(
        self,
        mnemonic: str,
        operand: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_operands: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.operand = operand
        self.valid_operands = valid_operands or []

        hint = None
        if self.valid_operands:
            hint = f"{mnemonic} supports: {', '.join(self.valid_operands)}"

        if operand is None:
            message = f"unknown instruction '{mnemonic}'"
        else:
            message = f"'{mnemonic}' does not accept operand '{operand}'"

        super().__init__(message, location=location, hint=hint, source_line=source_line)


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised during the second pass when a label reference cannot be resolved.
    Similarly-named labels are offered as a hint to catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """Label defined more than once."""

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class JumpRangeError(AssemblerError):
    """
    Label address does not fit in an 8-bit operand.

    Operands are a single byte, so JMPZ can only reach addresses
    $000-$0FF even though the program counter is 11 bits wide. Code that
    is jumped to must live in the first 256 bytes of the program store;
    use `.org` to place jump targets there.
    """

    def __init__(
        self,
        target: str,
        address: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.address = address

        super().__init__(
            f"label '{target}' at ${address:03X} is out of operand range",
            location=location,
            hint="jump targets must be in $000-$0FF; move the label with .org",
            source_line=source_line,
        )


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive.

    Examples:
        - .org with an address outside 0-2047
        - .org with a missing or non-constant argument
        - unknown directive name
    """
    pass


# =============================================================================
# Emulator Exceptions
# =============================================================================

class EmulatorError(Nano8Error):
    """Base exception for emulator errors."""
    pass


class ProgramLoadError(EmulatorError):
    """
    Program image does not fit in the program store.

    The store holds 2048 bytes (11-bit addresses).
    """
    pass


class SnapshotError(EmulatorError):
    """Snapshot file has a bad header or is truncated."""
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The code generator uses this to keep going after an error, so that
    one assembly run reports every problem in the source.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(UndefinedSymbolError("loop"))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        self.errors: list[AssemblerError] = []
        self.warnings: list[str] = []
        self.max_errors = max_errors

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def report(self) -> str:
        """Format all errors and warnings for display."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")

        error_word = "error" if len(self.errors) == 1 else "errors"
        warning_word = "warning" if len(self.warnings) == 1 else "warnings"
        lines.append(
            f"\n{len(self.errors)} {error_word}, {len(self.warnings)} {warning_word}"
        )

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()


class TooManyErrors(AssemblerError):
    """Raised when the error collector reaches its limit."""

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)
