"""
Nano8 Assembler
===============

This package converts Nano8 assembly source (`.prog`) into program images
(`.bin`) for the core's 2048-byte program store.

Main Components
---------------
- **Assembler**: Main class that runs the whole process
- **Lexer**: Tokenizes source into tokens
- **Parser**: Parses tokens into statements (instructions, directives, labels)
- **CodeGenerator**: Two-pass generation of the program image

Assembly Process
----------------
1. **Parsing (Lexer + Parser)**:
   - Tokenize source, one statement per line
   - Classify each line as label, instruction or directive

2. **Code Generation (CodeGenerator)**:
   - Pass 1: Label collection and address calculation
   - Pass 2: Instruction table lookup, label resolution, byte placement

Example Usage
-------------
>>> from nano8.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
... loop:
...     CLR AC
...     PRNT 'X'
...     JMPZ loop
... ''')
b'\\x01\\xc1X\\xd1\\x00'

Supported Features
------------------
- All 29 Nano8 instructions
- Constants: decimal, `H`/`B`/`D` suffixes, `0x`/`$` hex, `'c'` characters
- Labels (usable wherever a constant is)
- Directives: `.org`, `.byte`
- Listing file generation
- Symbol table output
"""

from nano8.assembler.assembler import Assembler, assemble, assemble_file
from nano8.assembler.lexer import Lexer, Token, TokenType
from nano8.assembler.parser import (
    Parser,
    Statement,
    Instruction,
    Directive,
    LabelDef,
    Operand,
    OperandKind,
    parse_source,
)
from nano8.assembler.codegen import CodeGenerator
from nano8.cpu import (
    InstructionInfo,
    INSTRUCTION_TABLE,
    MNEMONICS,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "Statement",
    "Instruction",
    "Directive",
    "LabelDef",
    "Operand",
    "OperandKind",
    "parse_source",
    # Code generator
    "CodeGenerator",
    # Instruction set
    "InstructionInfo",
    "INSTRUCTION_TABLE",
    "MNEMONICS",
]
