"""
Nano8 Disassembler
==================

Disassembles Nano8 program images into assembly language that n8asm
accepts. This is the inverse of the assembler's code generation.

Every byte decodes to something (the decoder is total), so the only bytes
shown as `.BYTE` are a constant-carrying instruction cut off by the end of
the data.

Non-canonical Encodings
-----------------------
Bytes the assembler never produces (several selector bits set, the
immediate flag on CLR/STA/INV/HLT, ADD AC...) are shown as the instruction
the core actually executes, with a `non-canonical encoding` comment. They
do not reassemble to the same bytes.

Usage:
    disasm = Nano8Disassembler()

    # Disassemble a whole image
    instructions = disasm.disassemble(image, start_address=0)

    # Disassemble single instruction
    instr = disasm.disassemble_one(image, address=0x010, offset=0x010)
    print(f"{instr.address:03X}: {instr.mnemonic} {instr.operand_str}")

Copyright (c) 2025-2026 The Nano8 SDK Contributors
"""

from dataclasses import dataclass
from typing import List, Optional, Dict, Tuple

from nano8.cpu import (
    PC_MASK,
    DecodedInstruction,
    Opcode,
    OperandRole,
    VALUE_OPCODES,
    decode,
)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single disassembled Nano8 instruction.

    Attributes:
        address: Program address of the instruction
        byte: The instruction byte
        mnemonic: The instruction mnemonic (e.g., "ADD", "JMPZ")
        operand_str: Formatted operand (register name or $xx), or ""
        size: Total instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (jump targets, characters, warnings)
    """
    address: int
    byte: int
    mnemonic: str
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: BYTES  MNEMONIC OPERAND ; COMMENT"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(5)

        if self.operand_str:
            asm = f"{self.mnemonic} {self.operand_str}"
        else:
            asm = self.mnemonic

        if self.comment:
            return f"${self.address:03X}: {hex_bytes}  {asm:<12} ; {self.comment}"
        return f"${self.address:03X}: {hex_bytes}  {asm}"

    @property
    def source(self) -> str:
        """Assembly text without address and bytes."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:03X}",
            "address_int": self.address,
            "byte": f"${self.byte:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# Nano8 Disassembler
# =============================================================================

class Nano8Disassembler:
    """
    Disassembler for Nano8 program images.

    Attributes:
        _symbol_table: Optional address -> name map used to annotate
                       jump targets
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        self._symbol_table = symbol_table or {}

    def disassemble_one(
        self,
        data: bytes,
        address: int = 0,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Program address of the instruction (for display)
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        byte = data[offset]
        decoded = decode(byte)

        if offset + decoded.size > len(data):
            return DisassembledInstruction(
                address=address,
                byte=byte,
                mnemonic=".BYTE",
                operand_str=f"${byte:02X}",
                size=1,
                raw_bytes=bytes([byte]),
                comment=f"incomplete {decoded.opcode.name}"
            )

        raw_bytes = bytes(data[offset:offset + decoded.size])
        constant = raw_bytes[1] if decoded.has_immediate else None

        operand_str, comment = self._format_operand(decoded, constant)

        if not decoded.is_canonical:
            note = "non-canonical encoding"
            if constant is not None and decoded.opcode not in VALUE_OPCODES:
                note += f", ${constant:02X} skipped"
            comment = f"{note}; {comment}" if comment else note

        return DisassembledInstruction(
            address=address,
            byte=byte,
            mnemonic=decoded.opcode.name,
            operand_str=operand_str,
            size=decoded.size,
            raw_bytes=raw_bytes,
            comment=comment
        )

    def _format_operand(
        self,
        decoded: DecodedInstruction,
        constant: Optional[int]
    ) -> Tuple[str, str]:
        """
        Format the operand and pick a comment.

        Value instructions carrying a constant byte use it regardless of the
        selector bits, so the constant is what gets shown.

        Returns:
            Tuple of (operand_string, comment_string)
        """
        if decoded.opcode in VALUE_OPCODES and constant is not None:
            operand_str = f"${constant:02X}"
            comment = ""
            if decoded.opcode is Opcode.JMPZ:
                name = self._symbol_table.get(constant)
                comment = f"-> {name}" if name else f"-> ${constant:03X}"
            elif decoded.opcode is Opcode.PRNT and 0x20 <= constant < 0x7F:
                comment = f"'{chr(constant)}'"
            return operand_str, comment

        if decoded.role is OperandRole.NONE:
            return "", ""

        return str(decoded.role), ""

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None
    ) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing program bytes
            start_address: Program address of first byte
            count: Maximum number of instructions (None = all)
            max_bytes: Maximum number of bytes to process (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            if max_bytes is not None and offset >= max_bytes:
                break

            instr = self.disassemble_one(data, address & PC_MASK, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None
    ) -> str:
        """Disassemble and return a multi-line listing."""
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)

    def add_symbol(self, address: int, name: str) -> None:
        self._symbol_table[address] = name

    def add_symbols(self, symbols: Dict[int, str]) -> None:
        self._symbol_table.update(symbols)
