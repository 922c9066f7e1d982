"""
Nano8 Disassembler Module
=========================

Turns Nano8 program images back into assembly source, for debugging and
for checking assembler output.

Usage:
    from nano8.disassembler import Nano8Disassembler

    disasm = Nano8Disassembler()
    for instr in disasm.disassemble(image):
        print(instr)
"""

from .nano8 import Nano8Disassembler, DisassembledInstruction

__all__ = [
    "Nano8Disassembler",
    "DisassembledInstruction",
]
