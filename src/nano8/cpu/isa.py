"""
Nano8 Instruction Set Definition
================================

This module defines the Nano8 instruction set: the opcode and operand-role
enumerations, the instruction decoder, and the canonical instruction table
shared by the assembler, disassembler and emulator.

Instruction Encoding
--------------------
Every instruction is one byte, optionally followed by a constant byte::

    7   6 5 4   3 2 1 0
    I   O O O   S S S S
    |   |       |
    |   |       +-- one-hot operand selector
    |   +---------- opcode (CLR, ADD, STA, INV, PRNT, JMPZ, WAIT, HLT)
    +-------------- has-immediate: a constant byte follows

Operand Selector
----------------
The meaning of the selector bits depends on the opcode:

| Bit | CLR  | STA  | INV  | ADD/PRNT/JMPZ/WAIT              |
|-----|------|------|------|---------------------------------|
| 3   | A    | A    | A    | A                               |
| 2   | B    | B    | B    | B                               |
| 1   | BTN  | C    | C    | C                               |
| 0   | AC   | LED  | AC   | constant (when bit 7 is set)    |

The selector is expected to be one-hot but this is never checked. When
several bits are set the highest one wins (A > B > C/BTN > bit 0), and an
immediate flag on an opcode without a constant variant still consumes the
constant byte. Malformed bytecode therefore always decodes to *something*.

Addresses
---------
The program counter is 11 bits (2048 bytes of program store) but operands
are 8 bits, so JMPZ can only reach $000-$0FF.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


# =============================================================================
# Architectural Constants
# =============================================================================

IMMEDIATE_BIT = 0x80
OPCODE_SHIFT = 4
OPCODE_MASK = 0x07
SELECTOR_MASK = 0x0F

BYTE_MASK = 0xFF
PROGRAM_SIZE = 2048
PC_MASK = PROGRAM_SIZE - 1
JUMP_TARGET_MASK = 0xFF

DISPLAY_SLOTS = 64
DISPLAY_INDEX_MASK = DISPLAY_SLOTS - 1

LED_COUNT = 6
LED_MASK = (1 << LED_COUNT) - 1

# The reference board runs the core from a 27 MHz clock.
DEFAULT_TICKS_PER_MS = 27_000


# =============================================================================
# Opcodes and Operand Roles
# =============================================================================

class Opcode(IntEnum):
    """3-bit operation selector (instruction bits 6-4)."""
    CLR = 0
    ADD = 1
    STA = 2
    INV = 3
    PRNT = 4
    JMPZ = 5
    WAIT = 6
    HLT = 7


class OperandRole(Enum):
    """
    What an instruction acts on, after selector resolution.

    Register roles name a slot in the register file. BTN and LED are the
    button input (CLR) and LED output (STA). CONSTANT means the operand is
    the second instruction byte.
    """
    A = "A"
    B = "B"
    C = "C"
    AC = "AC"
    BTN = "BTN"
    LED = "LED"
    CONSTANT = "#"
    NONE = ""

    def __str__(self) -> str:
        if self is OperandRole.CONSTANT:
            return "<constant>"
        return self.value


# Opcodes whose effect consumes an operand *value*
VALUE_OPCODES = frozenset({Opcode.ADD, Opcode.PRNT, Opcode.JMPZ, Opcode.WAIT})


# =============================================================================
# Decoder
# =============================================================================

@dataclass(frozen=True)
class DecodedInstruction:
    """
    Result of decoding one instruction byte.

    Attributes:
        opcode: The operation
        has_immediate: True if a constant byte follows the instruction
        role: Operand role resolved by the fixed priority rule
        raw: The instruction byte as read from the program store
    """
    opcode: Opcode
    has_immediate: bool
    role: OperandRole
    raw: int

    @property
    def size(self) -> int:
        """Instruction length in bytes (1 or 2)."""
        return 2 if self.has_immediate else 1

    @property
    def is_canonical(self) -> bool:
        """True if the byte is one the assembler would produce."""
        info = INSTRUCTION_TABLE.get((self.opcode.name, self.role))
        return info is not None and info.byte == self.raw

    def __str__(self) -> str:
        if self.role is OperandRole.NONE:
            return self.opcode.name
        return f"{self.opcode.name} {self.role}"


def _resolve_role(opcode: Opcode, selector: int, has_immediate: bool) -> OperandRole:
    if opcode is Opcode.HLT:
        return OperandRole.NONE
    if selector & 0x08:
        return OperandRole.A
    if selector & 0x04:
        return OperandRole.B
    if selector & 0x02:
        return OperandRole.BTN if opcode is Opcode.CLR else OperandRole.C
    if opcode is Opcode.STA:
        return OperandRole.LED
    if opcode in VALUE_OPCODES and has_immediate:
        return OperandRole.CONSTANT
    return OperandRole.AC


def decode(byte: int) -> DecodedInstruction:
    """
    Decode an instruction byte.

    Total over 0-255 and never raises; see the module docstring for how
    non-one-hot selectors resolve.

    Example:
        >>> decode(0x91)
        DecodedInstruction(opcode=<Opcode.ADD: 1>, has_immediate=True, role=<OperandRole.CONSTANT: '#'>, raw=145)
    """
    byte &= BYTE_MASK
    has_immediate = bool(byte & IMMEDIATE_BIT)
    opcode = Opcode((byte >> OPCODE_SHIFT) & OPCODE_MASK)
    role = _resolve_role(opcode, byte & SELECTOR_MASK, has_immediate)
    return DecodedInstruction(opcode, has_immediate, role, byte)


# =============================================================================
# Encoder
# =============================================================================

_SELECTOR_BITS: dict[Opcode, dict[OperandRole, int]] = {
    Opcode.CLR: {
        OperandRole.A: 0x08, OperandRole.B: 0x04,
        OperandRole.BTN: 0x02, OperandRole.AC: 0x01,
    },
    Opcode.STA: {
        OperandRole.A: 0x08, OperandRole.B: 0x04,
        OperandRole.C: 0x02, OperandRole.LED: 0x01,
    },
    Opcode.INV: {
        OperandRole.A: 0x08, OperandRole.B: 0x04,
        OperandRole.C: 0x02, OperandRole.AC: 0x01,
    },
    Opcode.HLT: {OperandRole.NONE: 0x00},
}

for _op in VALUE_OPCODES:
    _SELECTOR_BITS[_op] = {
        OperandRole.A: 0x08, OperandRole.B: 0x04,
        OperandRole.C: 0x02, OperandRole.CONSTANT: IMMEDIATE_BIT | 0x01,
    }


def encode(opcode: Opcode, role: OperandRole) -> int:
    """
    Encode a canonical instruction byte.

    Args:
        opcode: The operation
        role: Operand role; CONSTANT sets the immediate bit

    Returns:
        Instruction byte (the constant byte, if any, is not included)

    Raises:
        ValueError: If the opcode has no variant for the role
    """
    try:
        selector = _SELECTOR_BITS[opcode][role]
    except KeyError:
        raise ValueError(f"{opcode.name} has no {role} variant") from None
    return selector | (int(opcode) << OPCODE_SHIFT)


# =============================================================================
# Instruction Table
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding of one canonical instruction.

    Attributes:
        byte: Instruction byte
        size: Total size in bytes (including constant)
        has_constant: True if a constant byte follows
    """
    byte: int
    size: int
    has_constant: bool

    def __repr__(self) -> str:
        return f"InstructionInfo(byte=${self.byte:02X}, size={self.size})"


# Master table. Key: (mnemonic, role). HLT uses OperandRole.NONE.
INSTRUCTION_TABLE: dict[tuple[str, OperandRole], InstructionInfo] = {}

for _op, _roles in _SELECTOR_BITS.items():
    for _role in _roles:
        _byte = encode(_op, _role)
        _const = _role is OperandRole.CONSTANT
        INSTRUCTION_TABLE[(_op.name, _role)] = InstructionInfo(_byte, 2 if _const else 1, _const)

MNEMONICS = frozenset(op.name for op in Opcode)

# Operand keywords accepted in assembly source
REGISTER_OPERANDS = {
    "A": OperandRole.A,
    "B": OperandRole.B,
    "C": OperandRole.C,
    "AC": OperandRole.AC,
    "BTN": OperandRole.BTN,
    "LED": OperandRole.LED,
}


def get_instruction_info(mnemonic: str, role: OperandRole) -> Optional[InstructionInfo]:
    """Look up a canonical instruction, or None if it does not exist."""
    return INSTRUCTION_TABLE.get((mnemonic.upper(), role))


def get_valid_operands(mnemonic: str) -> list[OperandRole]:
    """Roles a mnemonic accepts, in selector-bit order."""
    mnemonic = mnemonic.upper()
    return [role for (mnem, role) in INSTRUCTION_TABLE if mnem == mnemonic]


def is_valid_instruction(mnemonic: str, role: OperandRole) -> bool:
    return (mnemonic.upper(), role) in INSTRUCTION_TABLE
