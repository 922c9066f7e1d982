"""
Nano8 CPU Package
=================

Instruction-set definitions shared by the assembler, the disassembler and
the emulator. Both the encoder and the decoder live here so the tools can
never disagree about the bytecode format.

Usage:
    from nano8.cpu import Opcode, OperandRole, decode, encode

    >>> decode(0x28).role
    <OperandRole.A: 'A'>
    >>> hex(encode(Opcode.ADD, OperandRole.CONSTANT))
    '0x91'
"""

from nano8.cpu.isa import (
    # Core types
    Opcode,
    OperandRole,
    DecodedInstruction,
    InstructionInfo,
    # Decoder / encoder
    decode,
    encode,
    # Instruction database
    INSTRUCTION_TABLE,
    MNEMONICS,
    REGISTER_OPERANDS,
    VALUE_OPCODES,
    get_instruction_info,
    get_valid_operands,
    is_valid_instruction,
    # Architectural constants
    IMMEDIATE_BIT,
    BYTE_MASK,
    PROGRAM_SIZE,
    PC_MASK,
    JUMP_TARGET_MASK,
    DISPLAY_SLOTS,
    DISPLAY_INDEX_MASK,
    LED_COUNT,
    LED_MASK,
    DEFAULT_TICKS_PER_MS,
)

__all__ = [
    "Opcode",
    "OperandRole",
    "DecodedInstruction",
    "InstructionInfo",
    "decode",
    "encode",
    "INSTRUCTION_TABLE",
    "MNEMONICS",
    "REGISTER_OPERANDS",
    "VALUE_OPCODES",
    "get_instruction_info",
    "get_valid_operands",
    "is_valid_instruction",
    "IMMEDIATE_BIT",
    "BYTE_MASK",
    "PROGRAM_SIZE",
    "PC_MASK",
    "JUMP_TARGET_MASK",
    "DISPLAY_SLOTS",
    "DISPLAY_INDEX_MASK",
    "LED_COUNT",
    "LED_MASK",
    "DEFAULT_TICKS_PER_MS",
]
