# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for .proto files.

Converts raw source text into a sequence of tokens for subsequent parsing.
"""

import enum
from dataclasses import dataclass

from protowire.model.location import Location

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the proto lexer."""

    # Keywords
    SYNTAX = "syntax"
    PACKAGE = "package"
    IMPORT = "import"
    PUBLIC = "public"
    WEAK = "weak"
    OPTION = "option"
    MESSAGE = "message"
    ENUM = "enum"
    SERVICE = "service"
    RPC = "rpc"
    RETURNS = "returns"
    STREAM = "stream"
    ONEOF = "oneof"
    MAP = "map"
    REPEATED = "repeated"
    OPTIONAL = "optional"
    REQUIRED = "required"
    RESERVED = "reserved"
    EXTENSIONS = "extensions"
    EXTEND = "extend"
    TO = "to"
    MAX = "max"
    TRUE = "true"
    FALSE = "false"

    # Symbols and operators
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    LPAREN = "("
    RPAREN = ")"
    LANGLE = "<"
    RANGLE = ">"
    SEMICOLON = ";"
    COMMA = ","
    DOT = "."
    COLON = ":"
    EQUALS = "="
    MINUS = "-"
    PLUS = "+"

    # Literals
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"

    # Identifiers
    IDENTIFIER = "IDENTIFIER"

    # End of file
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source position.

    Attributes:
        type: The kind of token.
        value: The raw text of the token (or decoded string content for STRING tokens).
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
    """

    type: TokenType
    value: str
    line: int
    column: int


class LexerError(Exception):
    """Raised when the scanner encounters an invalid character or unterminated literal.

    Attributes:
        location: Where in which file the error occurred.
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, location: Location) -> None:
        super().__init__(f"{location}: {message}")
        self.message = message
        self.location = location
        self.line = location.line
        self.column = location.column


def tokenize(source: str, location: Location | None = None) -> list[Token]:
    """Tokenize proto source text into a sequence of tokens.

    Comments and whitespace are consumed and not included in the output.

    Args:
        source: The full text of a .proto file.
        location: The file being scanned, used in error messages.

    Returns:
        A list of Token objects ending with a single EOF token.

    Raises:
        LexerError: On unexpected characters, unterminated string literals,
            or unterminated block comments.
    """
    return _Lexer(source, location or Location(path="<string>")).tokenize()


# ################
# Implementation
# ################

KEYWORDS: dict[str, TokenType] = {
    t.value: t
    for t in TokenType
    if t.value.isalpha() and t.value.islower()
}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "=": TokenType.EQUALS,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
}

_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "?": "?",
}

_HEX_DIGITS = "0123456789abcdefABCDEF"
_OCTAL_DIGITS = "01234567"


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str, location: Location) -> None:
        self._source = source
        self._location = location
        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Run the scanner and return all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            self._skip_whitespace_and_comments()
            if self._pos >= len(self._source):
                break
            self._scan_token()
        self._tokens.append(Token(TokenType.EOF, "", self._line, self._column))
        return self._tokens

    def _error(self, message: str, line: int, column: int) -> LexerError:
        return LexerError(message, self._location.at(line, column))

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    # ------------------------------------------------------------------
    # Whitespace and comment skipping
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace and comment runs at the current position."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch in " \t\r\n\f\v":
                self._advance()
            elif ch == "/" and self._peek() == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek() == "*":
                self._skip_block_comment()
            else:
                break

    def _skip_line_comment(self) -> None:
        """Consume from '//' through end-of-line (exclusive of the newline itself)."""
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        """Consume from '/*' through the matching '*/'."""
        start_line = self._line
        start_col = self._column
        self._advance()  # /
        self._advance()  # *
        while self._pos < len(self._source):
            if self._current() == "*" and self._peek() == "/":
                self._advance()  # *
                self._advance()  # /
                return
            self._advance()
        raise self._error("Unterminated block comment", start_line, start_col)

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        line = self._line
        col = self._column

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            self._tokens.append(Token(_SINGLE_CHAR_TOKENS[ch], ch, line, col))
        elif ch == ".":
            if self._peek().isdigit():
                self._scan_number(line, col)
            else:
                self._advance()
                self._tokens.append(Token(TokenType.DOT, ".", line, col))
        elif ch in "\"'":
            self._scan_string(line, col)
        elif ch.isdigit():
            self._scan_number(line, col)
        elif ch.isalpha() or ch == "_":
            self._scan_identifier_or_keyword(line, col)
        else:
            raise self._error(f"Unexpected character: {ch!r}", line, col)

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _scan_string(self, line: int, col: int) -> None:
        """Scan a single- or double-quoted string literal with escape sequences."""
        quote = self._advance()
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == quote:
                self._advance()  # closing quote
                self._tokens.append(Token(TokenType.STRING, "".join(chars), line, col))
                return
            if ch == "\n":
                raise self._error("Unterminated string literal", line, col)
            if ch == "\\":
                self._advance()
                if self._pos >= len(self._source):
                    raise self._error("Unterminated string literal", line, col)
                chars.append(self._scan_escape())
            else:
                chars.append(ch)
                self._advance()
        raise self._error("Unterminated string literal", line, col)

    def _scan_escape(self) -> str:
        """Decode the escape sequence following a backslash."""
        esc = self._current()
        if esc in _SIMPLE_ESCAPES:
            self._advance()
            return _SIMPLE_ESCAPES[esc]
        if esc in "xX":
            self._advance()
            digits = ""
            while len(digits) < 2 and self._current() and self._current() in _HEX_DIGITS:
                digits += self._advance()
            if not digits:
                raise self._error("Invalid hex escape sequence", self._line, self._column)
            return chr(int(digits, 16))
        if esc in _OCTAL_DIGITS:
            digits = ""
            while len(digits) < 3 and self._current() and self._current() in _OCTAL_DIGITS:
                digits += self._advance()
            return chr(int(digits, 8))
        raise self._error(f"Invalid escape sequence: '\\{esc}'", self._line, self._column)

    def _scan_number(self, line: int, col: int) -> None:
        """Scan an integer (decimal, hex, or octal) or floating-point literal."""
        start = self._pos
        if self._current() == "0" and self._peek() in ("x", "X"):
            self._advance()
            self._advance()
            while self._current() and self._current() in _HEX_DIGITS:
                self._advance()
            value = self._source[start : self._pos]
            if len(value) == 2:
                raise self._error(f"Invalid hex literal: {value!r}", line, col)
            self._tokens.append(Token(TokenType.INTEGER, value, line, col))
            return

        is_float = False
        while self._current().isdigit():
            self._advance()
        if self._current() == ".":
            is_float = True
            self._advance()
            while self._current().isdigit():
                self._advance()
        if self._current() in ("e", "E"):
            is_float = True
            self._advance()
            if self._current() in ("+", "-"):
                self._advance()
            if not self._current().isdigit():
                raise self._error("Invalid exponent in float literal", line, col)
            while self._current().isdigit():
                self._advance()
        if self._current() in ("f", "F") and is_float:
            self._advance()
        if self._current().isalpha() or self._current() == "_":
            raise self._error(f"Invalid number literal near {self._current()!r}", line, col)
        value = self._source[start : self._pos]
        self._tokens.append(Token(TokenType.FLOAT if is_float else TokenType.INTEGER, value, line, col))

    def _scan_identifier_or_keyword(self, line: int, col: int) -> None:
        """Scan an identifier and map it to a keyword token type if applicable."""
        start = self._pos
        while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
            self._advance()
        value = self._source[start : self._pos]
        token_type = KEYWORDS.get(value, TokenType.IDENTIFIER)
        self._tokens.append(Token(token_type, value, line, col))
