# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and parser for .proto files."""

from protowire.parser.lexer import LexerError, Token, TokenType, tokenize
from protowire.parser.parser import ParseError, parse

__all__ = [
    "parse",
    "ParseError",
    "tokenize",
    "Token",
    "TokenType",
    "LexerError",
]
