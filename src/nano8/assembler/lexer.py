"""
Nano8 Assembly Language Lexer
=============================

This module implements a lexer (tokenizer) for Nano8 assembly language.
It converts source text into a stream of tokens that the parser can process.

Token Types
-----------
- IDENTIFIER: Mnemonics, register names, labels, directives (`.org`)
- NUMBER: Numeric and character literals
- COLON: Label terminator
- COMMA: Argument separator (for `.byte`)
- NEWLINE: End of line
- EOF: End of file

Number Formats
--------------
Numbers must start with a digit (write `0FFH`, not `FFH`), so they never
collide with register names or labels.

| Format      | Form              | Example       | Value |
|-------------|-------------------|---------------|-------|
| Decimal     | digits, opt. `D`  | 65, 65D       | 65    |
| Hexadecimal | `H` suffix        | 41H, 0FFH     | 65    |
| Hexadecimal | `0x` or `$`       | 0x41, $41     | 65    |
| Binary      | `B` suffix        | 1000001B      | 65    |
| Character   | `'`               | 'A'           | 65    |

Comments
--------
A semicolon starts a comment that runs to the end of the line.

Example
-------
>>> from nano8.assembler.lexer import Lexer
>>> lexer = Lexer("loop: ADD 0AH ; step", "example.prog")
>>> for token in lexer.tokenize():
...     print(token)
Token(IDENTIFIER, 'loop', 1:1)
Token(COLON, 1:5)
Token(IDENTIFIER, 'ADD', 1:7)
Token(NUMBER, $A, 1:11)
Token(EOF, 1:21)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from nano8.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for Nano8 assembly language."""

    # Structural tokens
    NEWLINE = auto()    # End of line (significant for statement boundaries)
    EOF = auto()        # End of file

    # Values
    IDENTIFIER = auto()  # Mnemonics, registers, labels, directives
    NUMBER = auto()      # Numeric literals (all formats, and 'X')

    # Delimiters
    COLON = auto()       # :
    COMMA = auto()       # ,


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: String for identifiers, int for numbers, None otherwise
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
        text: Source spelling of the token (for error messages)
    """
    type: TokenType
    value: str | int | None
    line: int
    column: int
    filename: str
    text: str = ""

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, ${self.value:X}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Nano8 assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    SINGLE_CHAR_TOKENS = {
        ":": TokenType.COLON,
        ",": TokenType.COMMA,
    }

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
        "\\": "\\",
        "'": "'",
        "0": "\0",
    }

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects representing each lexical element

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue

            if self._skip_comment():
                continue

            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line and column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | int | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
        text: str = "",
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
            text=text,
        )

    def _error(self, message: str, column: Optional[int] = None) -> AssemblySyntaxError:
        """Create a syntax error at the current line."""
        location = SourceLocation(self.filename, self._line, column or self._column)
        return AssemblySyntaxError(message, location, source_line=self.get_current_line())

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """Skip spaces, tabs and carriage returns but not newlines."""
        skipped = False
        # '' is in every string, so check for end of input first
        while self._peek() and self._peek() in " \t\r":
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """Skip a ';' comment to end of line."""
        if self._peek() == ";":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return True
        return False

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, None, start_line, start_column)

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        # Directives: .org, .byte
        if char == "." and self._peek(1) and self._peek(1) in self.IDENT_START:
            self._advance()
            token = self._scan_identifier(start_line, start_column)
            return self._make_token(
                TokenType.IDENTIFIER, "." + token.value, start_line, start_column,
                text="." + token.text,
            )

        if char.isdigit():
            return self._scan_number(start_line, start_column)

        if char == "$":
            self._advance()
            return self._scan_hex_digits(start_line, start_column, "$")

        if char == "'":
            return self._scan_char(start_line, start_column)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(
                self.SINGLE_CHAR_TOKENS[char], None, start_line, start_column, text=char
            )

        self._advance()
        raise self._error(f"unexpected character '{char}'", start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        return self._make_token(TokenType.IDENTIFIER, name, start_line, start_column, text=name)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan a number that starts with a digit.

        Handles the 0x prefix and the H/B/D radix suffixes.
        """
        if self._peek() == "0" and self._peek(1).lower() == "x":
            self._advance()
            self._advance()
            return self._scan_hex_digits(start_line, start_column, "0x")

        chars = []
        while self._peek() and self._peek() in string.ascii_letters + string.digits:
            chars.append(self._advance())

        text = "".join(chars)
        upper = text.upper()
        digits, suffix = upper[:-1], upper[-1]

        try:
            if suffix == "H":
                value = int(digits, 16)
            elif suffix == "B" and digits and set(digits) <= set("01"):
                value = int(digits, 2)
            elif suffix == "D":
                value = int(digits, 10)
            else:
                value = int(upper, 10)
        except ValueError:
            raise self._error(f"invalid number '{text}'", start_column) from None

        return self._make_token(TokenType.NUMBER, value, start_line, start_column, text=text)

    def _scan_hex_digits(self, start_line: int, start_column: int, prefix: str) -> Token:
        chars = []
        while self._peek() and self._peek() in string.hexdigits:
            chars.append(self._advance())

        if not chars:
            raise self._error("expected hexadecimal digits", start_column)

        text = "".join(chars)
        return self._make_token(
            TokenType.NUMBER, int(text, 16), start_line, start_column, text=prefix + text
        )

    def _scan_char(self, start_line: int, start_column: int) -> Token:
        """
        Scan a single-quoted character literal.

        Returns the character code as a NUMBER token.
        """
        self._advance()  # opening '

        if self._at_end() or self._peek() == "\n":
            raise self._error("unterminated character literal", start_column)

        if self._peek() == "\\":
            self._advance()
            char = self._scan_escape_sequence()
        else:
            char = self._advance()

        if self._peek() != "'":
            raise self._error("expected closing quote for character literal", start_column)
        self._advance()  # closing '

        return self._make_token(
            TokenType.NUMBER, ord(char), start_line, start_column, text=repr(char)
        )

    def _scan_escape_sequence(self) -> str:
        if self._at_end():
            raise self._error("unexpected end of input in escape sequence")

        char = self._advance()

        if char in self.ESCAPE_SEQUENCES:
            return self.ESCAPE_SEQUENCES[char]

        # \xNN
        if char == "x":
            hex_chars = []
            for _ in range(2):
                if self._peek() and self._peek() in string.hexdigits:
                    hex_chars.append(self._advance())
                else:
                    break
            if not hex_chars:
                raise self._error("expected hexadecimal digits after \\x")
            return chr(int("".join(hex_chars), 16))

        # Unknown escape - treat as literal
        return char

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_current_line(self) -> str:
        """The current line of source text, for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end].rstrip("\r")
