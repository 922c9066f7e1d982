"""
Nano8 Code Generator
====================

This module turns parsed statements into a Nano8 program image. It
implements a two-pass assembly process:

Pass 1 (Symbol Collection)
--------------------------
- Walk statements in order, tracking the location counter
- Apply `.org` to move the counter
- Record label addresses in the symbol table
- Size every instruction (1 byte, or 2 with a constant)

Pass 2 (Code Generation)
------------------------
- Look each mnemonic/operand pair up in the instruction table
- Resolve label operands through the symbol table
- Place bytes in a sparse memory map, keyed by address

Output
------
The image runs from address 0 to the highest address written. Addresses
skipped by `.org` are filled with zero, so a byte's offset in the image is
its address in the program store.

Constants outside 0-255 are not errors: a warning is recorded and the value
is stored modulo 256. A label used as an operand must lie in $000-$0FF
because operands are a single byte.
"""

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nano8.errors import (
    AssemblerError,
    AssemblySyntaxError,
    DirectiveError,
    DuplicateSymbolError,
    JumpRangeError,
    SourceLocation,
    UndefinedSymbolError,
    UnknownInstructionError,
    ErrorCollector,
)
from nano8.assembler.parser import (
    Statement,
    LabelDef,
    Instruction,
    Directive,
    Operand,
    OperandKind,
)
from nano8.cpu import (
    BYTE_MASK,
    PROGRAM_SIZE,
    OperandRole,
    REGISTER_OPERANDS,
    get_instruction_info,
    get_valid_operands,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Symbol name (uppercase)
        value: Address the label marks
        location: Where the symbol was defined
    """
    name: str
    value: int
    location: SourceLocation


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates a Nano8 program image from parsed statements.

    The code generator maintains:
    - Symbol table with all labels
    - Location counter
    - Sparse memory map of emitted bytes
    - Error collection for batch reporting

    Usage:
        codegen = CodeGenerator()
        image = codegen.generate(statements, source_lines)
        codegen.write_listing("counter.lst")
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self._memory: dict[int, int] = {}
        self._pc = 0
        self._errors = ErrorCollector()
        self._listing_lines: list[str] = []
        self._source_lines: list[str] = []

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self, statements: list[Statement], source_lines: Optional[list[str]] = None) -> bytes:
        """
        Generate a program image from parsed statements.

        Args:
            statements: List of parsed statements
            source_lines: Source text split into lines, quoted in errors
                          and in the listing

        Returns:
            Program image as bytes

        Raises:
            AssemblerError: If assembly fails. A single problem is raised
                            as its own exception type; several are combined
                            into one report.
        """
        self._symbols.clear()
        self._memory.clear()
        self._errors.clear()
        self._listing_lines.clear()
        self._source_lines = source_lines or []

        self._pass1(statements)
        self._raise_errors()

        self._pass2(statements)
        self._raise_errors()

        code = self.get_code()
        logger.debug(
            f"Generated {len(code)}-byte image, {len(self._memory)} bytes written, "
            f"{len(self._symbols)} symbols"
        )
        return code

    def get_code(self) -> bytes:
        """
        Return the program image.

        Bytes from address 0 to the highest address written, gaps zeroed.
        """
        if not self._memory:
            return b""
        image = bytearray(max(self._memory) + 1)
        for address, value in self._memory.items():
            image[address] = value
        return bytes(image)

    def get_symbols(self) -> dict[str, int]:
        """Return a dictionary of symbol names to addresses."""
        return {name: sym.value for name, sym in self._symbols.items()}

    @property
    def warnings(self) -> list[str]:
        """Warnings from the last generate() call."""
        return list(self._errors.warnings)

    def has_errors(self) -> bool:
        return self._errors.has_errors()

    def get_error_report(self) -> str:
        return self._errors.report()

    def _raise_errors(self) -> None:
        if not self._errors.has_errors():
            return
        if self._errors.error_count() == 1:
            raise self._errors.errors[0]
        raise AssemblerError(
            f"Assembly failed with {self._errors.error_count()} errors:\n\n"
            f"{self._errors.report()}"
        )

    # =========================================================================
    # Output File Writing
    # =========================================================================

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes, and source lines,
            followed by the symbol table.
        """
        lines = []
        lines.append("Nano8 Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code   Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for name, sym in sorted(self._symbols.items()):
            lines.append(f"{name:20s} = ${sym.value:03X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        with open(filepath, "w") as f:
            f.write(self.get_listing())

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name address (one per line)
        """
        with open(filepath, "w") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by n8asm\n")
            for name, sym in sorted(self._symbols.items()):
                f.write(f"{name} ${sym.value:03X}\n")

    # =========================================================================
    # Pass 1
    # =========================================================================

    def _pass1(self, statements: list[Statement]) -> None:
        """First pass: collect labels and calculate addresses."""
        self._pc = 0

        for stmt in statements:
            try:
                if isinstance(stmt, LabelDef):
                    self._define_label(stmt)
                elif isinstance(stmt, Instruction):
                    self._pc += self._instruction_size(stmt)
                elif isinstance(stmt, Directive):
                    self._apply_directive(stmt, emit=False)
            except AssemblerError as e:
                self._errors.add(e)

    def _define_label(self, label: LabelDef) -> None:
        if label.name in self._symbols:
            existing = self._symbols[label.name]
            raise DuplicateSymbolError(
                label.name,
                location=label.location,
                original_location=existing.location,
                source_line=self._source_line(label.location),
            )
        self._symbols[label.name] = Symbol(label.name, self._pc, label.location)

    def _instruction_size(self, inst: Instruction) -> int:
        if inst.operand is None or inst.operand.kind is OperandKind.REGISTER:
            return 1
        return 2

    # =========================================================================
    # Pass 2
    # =========================================================================

    def _pass2(self, statements: list[Statement]) -> None:
        """Second pass: emit bytes."""
        self._pc = 0

        for stmt in statements:
            start_pc = self._pc
            try:
                if isinstance(stmt, Instruction):
                    code = self._generate_instruction(stmt)
                    self._add_listing_line(start_pc, code, stmt.location)
                elif isinstance(stmt, Directive):
                    code = self._apply_directive(stmt, emit=True)
                    self._add_listing_line(start_pc if code else None, code, stmt.location)
            except AssemblerError as e:
                self._errors.add(e)

    def _generate_instruction(self, inst: Instruction) -> list[int]:
        """Emit one instruction and return its bytes."""
        mnemonic = inst.mnemonic
        operand = inst.operand

        if operand is None:
            role = OperandRole.NONE
        elif operand.kind is OperandKind.REGISTER:
            role = REGISTER_OPERANDS[operand.value]
        else:
            role = OperandRole.CONSTANT

        info = get_instruction_info(mnemonic, role)
        if info is None:
            valid = [str(r) for r in get_valid_operands(mnemonic) if r is not OperandRole.NONE]
            if operand is None:
                raise AssemblySyntaxError(
                    f"'{mnemonic}' requires an operand",
                    inst.location,
                    hint=f"{mnemonic} supports: {', '.join(valid)}",
                    source_line=self._source_line(inst.location),
                )
            raise UnknownInstructionError(
                mnemonic,
                operand.text or str(operand.value),
                location=operand.location,
                source_line=self._source_line(operand.location),
                valid_operands=valid or ["no operand"],
            )

        code = [info.byte]
        if info.has_constant:
            code.append(self._resolve_constant(operand))

        for value in code:
            self._emit_byte(value, inst.location)
        return code

    def _resolve_constant(self, operand: Operand) -> int:
        """Value of a NUMBER or SYMBOL operand as a single byte."""
        if operand.kind is OperandKind.NUMBER:
            value = operand.value
            if not 0 <= value <= BYTE_MASK:
                sized = value % (BYTE_MASK + 1)
                message = (
                    f"{operand.location}: constant {operand.text or value} is out of "
                    f"range, stored as {sized}"
                )
                self._errors.add_warning(message)
                logger.warning(message)
                value = sized
            return value

        sym = self._symbols.get(operand.value)
        if sym is None:
            raise UndefinedSymbolError(
                operand.text or operand.value,
                location=operand.location,
                source_line=self._source_line(operand.location),
                similar_symbols=difflib.get_close_matches(operand.value, list(self._symbols)),
            )
        if sym.value > BYTE_MASK:
            raise JumpRangeError(
                sym.name,
                sym.value,
                location=operand.location,
                source_line=self._source_line(operand.location),
            )
        return sym.value

    # =========================================================================
    # Directives
    # =========================================================================

    def _apply_directive(self, directive: Directive, emit: bool) -> list[int]:
        """
        Process `.org` or `.byte`.

        Args:
            directive: The directive statement
            emit: False in pass 1 (only move the counter), True in pass 2

        Returns:
            Bytes emitted (pass 2 `.byte` only)
        """
        args = directive.arguments

        if directive.name == ".ORG":
            if len(args) != 1:
                raise DirectiveError(
                    ".org takes exactly one address",
                    directive.location,
                    source_line=self._source_line(directive.location),
                )
            arg = args[0]
            if arg.kind is not OperandKind.NUMBER:
                raise DirectiveError(
                    f".org address must be a number, got '{arg.text}'",
                    arg.location,
                    source_line=self._source_line(arg.location),
                )
            if not 0 <= arg.value < PROGRAM_SIZE:
                raise DirectiveError(
                    f".org address {arg.text} is outside the program store",
                    arg.location,
                    hint=f"addresses run from 0 to {PROGRAM_SIZE - 1} ({PROGRAM_SIZE - 1:X}H)",
                    source_line=self._source_line(arg.location),
                )
            self._pc = arg.value
            return []

        # .BYTE
        if not args:
            raise DirectiveError(
                ".byte needs at least one value",
                directive.location,
                source_line=self._source_line(directive.location),
            )
        if not emit:
            self._pc += len(args)
            return []

        code = []
        for arg in args:
            if arg.kind is OperandKind.REGISTER:
                raise DirectiveError(
                    f".byte value must be a constant, got register '{arg.text}'",
                    arg.location,
                    source_line=self._source_line(arg.location),
                )
            value = self._resolve_constant(arg)
            self._emit_byte(value, directive.location)
            code.append(value)
        return code

    # =========================================================================
    # Helpers
    # =========================================================================

    def _emit_byte(self, value: int, location: SourceLocation) -> None:
        if self._pc >= PROGRAM_SIZE:
            raise AssemblerError(
                f"code at ${self._pc:03X} does not fit the {PROGRAM_SIZE}-byte program store",
                location,
                source_line=self._source_line(location),
            )
        if self._pc in self._memory:
            message = f"{location}: overwrites byte at ${self._pc:03X}"
            self._errors.add_warning(message)
            logger.warning(message)
        self._memory[self._pc] = value & BYTE_MASK
        self._pc += 1

    def _source_line(self, location: SourceLocation) -> Optional[str]:
        if 1 <= location.line <= len(self._source_lines):
            return self._source_lines[location.line - 1]
        return None

    def _add_listing_line(self, address: Optional[int], code: list[int], location: SourceLocation) -> None:
        source = (self._source_line(location) or "").rstrip()
        addr_str = f"${address:03X}" if address is not None else "    "
        hex_str = " ".join(f"{b:02X}" for b in code)
        self._listing_lines.append(f"{addr_str}  {hex_str:5s}  {location.line:4d}  {source}")
