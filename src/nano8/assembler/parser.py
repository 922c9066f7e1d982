"""
Nano8 Assembly Language Parser
==============================

This module implements a parser for Nano8 assembly language. It converts
a stream of tokens from the lexer into a list of statements that the code
generator can process.

Statement Types
---------------
1. **LabelDef**: Label definition
   ```asm
   loop:           ; names the address of the next statement
   ```

2. **Instruction**: Machine instruction with at most one operand
   ```asm
   CLR AC          ; register operand
   ADD 0AH         ; constant operand
   JMPZ loop       ; label operand (resolved to a constant)
   HLT             ; no operand
   ```

3. **Directive**: Assembler directive
   ```asm
   .org 10H        ; move the location counter
   .byte 41H, 'B'  ; emit raw bytes
   ```

Operand Kinds
-------------
| Syntax                 | Kind     |
|------------------------|----------|
| A, B, C, AC, BTN, LED  | REGISTER |
| 10, 0AH, 'X', $0A      | NUMBER   |
| any other identifier   | SYMBOL   |

Whether a mnemonic accepts a given operand is checked during code
generation, where the instruction table lives.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from nano8.errors import (
    AssemblySyntaxError,
    DirectiveError,
    SourceLocation,
    UnknownInstructionError,
)
from nano8.assembler.lexer import Token, TokenType, Lexer
from nano8.cpu import MNEMONICS, REGISTER_OPERANDS


DIRECTIVES = frozenset({".ORG", ".BYTE"})


# =============================================================================
# Statement Data Classes
# =============================================================================

class OperandKind(Enum):
    REGISTER = auto()
    NUMBER = auto()
    SYMBOL = auto()


@dataclass
class Operand:
    """
    Instruction or directive operand.

    Attributes:
        kind: REGISTER, NUMBER or SYMBOL
        value: Register name / symbol name (uppercase) or numeric value
        location: Where the operand starts
        text: Source spelling
    """
    kind: OperandKind
    value: str | int
    location: SourceLocation
    text: str = ""


@dataclass
class Statement:
    """
    Base class for all parsed statements.

    Every statement has a source location for error reporting.
    """
    location: SourceLocation


@dataclass
class LabelDef(Statement):
    """Label definition; name is stored uppercase."""
    name: str


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        mnemonic: The instruction mnemonic (uppercase)
        operand: The operand, or None for HLT
    """
    mnemonic: str
    operand: Optional[Operand] = None


@dataclass
class Directive(Statement):
    """
    Assembler directive statement.

    Attributes:
        name: Directive name (uppercase, with leading dot)
        arguments: Operand list
    """
    name: str
    arguments: list[Operand] = field(default_factory=list)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses Nano8 assembly tokens into statements.

    Usage:
        lexer = Lexer(source, filename)
        parser = Parser(list(lexer.tokenize()), filename, source)
        statements = parser.parse()
    """

    def __init__(self, tokens: list[Token], filename: str = "<input>", source: str = ""):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from lexer
            filename: Source filename for error reporting
            source: Source text, used to quote lines in error messages
        """
        self._tokens = tokens
        self._filename = filename
        self._lines = source.splitlines()
        self._pos = 0

    def parse(self) -> list[Statement]:
        """
        Parse all tokens into statements.

        Raises:
            AssemblySyntaxError: If a syntax error is encountered
            UnknownInstructionError: If a line starts with an unknown word
        """
        statements: list[Statement] = []

        while not self._at_end():
            if self._match(TokenType.NEWLINE):
                continue
            statements.extend(self._parse_line())

        return statements

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens) or self._current().type == TokenType.EOF

    def _current(self) -> Token:
        if self._pos >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        pos = self._pos + offset
        if pos >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, message: str, token: Token) -> AssemblySyntaxError:
        return AssemblySyntaxError(
            message, token.location, source_line=self._source_line(token.line)
        )

    def _expect_end_of_line(self) -> None:
        if self._check(TokenType.NEWLINE, TokenType.EOF):
            self._match(TokenType.NEWLINE)
            return
        token = self._current()
        raise self._error(f"unexpected '{token.text or token.type.name}' at end of statement", token)

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self) -> list[Statement]:
        """Parse one line: [label:] [instruction | directive]"""
        statements: list[Statement] = []

        if self._check(TokenType.IDENTIFIER) and self._peek(1).type == TokenType.COLON:
            statements.append(self._parse_label())

        if self._check(TokenType.NEWLINE, TokenType.EOF):
            self._match(TokenType.NEWLINE)
            return statements

        token = self._current()
        if token.type != TokenType.IDENTIFIER:
            raise self._error(f"expected instruction, found '{token.text}'", token)

        name = token.value.upper()
        if name.startswith("."):
            statements.append(self._parse_directive())
        elif name in MNEMONICS:
            statements.append(self._parse_instruction())
        else:
            raise UnknownInstructionError(
                token.value,
                location=token.location,
                source_line=self._source_line(token.line),
            )

        self._expect_end_of_line()
        return statements

    def _parse_label(self) -> LabelDef:
        name_token = self._advance()
        self._advance()  # colon

        name = name_token.value.upper()
        if name in REGISTER_OPERANDS or name in MNEMONICS:
            raise self._error(f"'{name_token.value}' is reserved and cannot be a label", name_token)

        return LabelDef(location=name_token.location, name=name)

    # =========================================================================
    # Instruction and Directive Parsing
    # =========================================================================

    def _parse_instruction(self) -> Instruction:
        mnemonic_token = self._advance()
        mnemonic = mnemonic_token.value.upper()

        operand = None
        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            operand = self._parse_operand()

        return Instruction(location=mnemonic_token.location, mnemonic=mnemonic, operand=operand)

    def _parse_operand(self) -> Operand:
        token = self._current()

        if token.type == TokenType.NUMBER:
            self._advance()
            return Operand(OperandKind.NUMBER, token.value, token.location, token.text)

        if token.type == TokenType.IDENTIFIER and not token.value.startswith("."):
            self._advance()
            name = token.value.upper()
            kind = OperandKind.REGISTER if name in REGISTER_OPERANDS else OperandKind.SYMBOL
            return Operand(kind, name, token.location, token.text)

        raise self._error(f"expected operand, found '{token.text or token.type.name}'", token)

    def _parse_directive(self) -> Directive:
        directive_token = self._advance()
        name = directive_token.value.upper()

        if name not in DIRECTIVES:
            raise DirectiveError(
                f"unknown directive '{directive_token.value}'",
                directive_token.location,
                hint=f"supported directives: {', '.join(sorted(d.lower() for d in DIRECTIVES))}",
                source_line=self._source_line(directive_token.line),
            )

        arguments = []
        if not self._check(TokenType.NEWLINE, TokenType.EOF):
            arguments.append(self._parse_operand())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_operand())

        return Directive(location=directive_token.location, name=name, arguments=arguments)


def parse_source(source: str, filename: str = "<input>") -> list[Statement]:
    """
    Convenience function to parse assembly source.

    Args:
        source: Assembly source text
        filename: Source filename for error messages

    Returns:
        List of parsed statements
    """
    lexer = Lexer(source, filename)
    tokens = list(lexer.tokenize())
    return Parser(tokens, filename, source).parse()
