# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for .proto files.

Converts a token stream produced by the lexer into a ProtoFile model. The
parser is pure: it resolves nothing across files and never consults other
sources, so each file can be parsed independently.
"""

from __future__ import annotations

import math
from typing import Any

from protowire.model.entities import (
    MAX_FIELD_NUMBER,
    EnumConstant,
    EnumType,
    Extend,
    MessageType,
    Oneof,
    ProtoFile,
    Rpc,
    Service,
)
from protowire.model.location import Location
from protowire.model.types import (
    SCALAR_TYPES,
    Field,
    FieldLabel,
    MapTypeRef,
    NamedTypeRef,
    OptionElement,
    ScalarTypeRef,
    TypeRef,
)
from protowire.parser.lexer import KEYWORDS, LexerError, Token, TokenType, tokenize

# ###############
# Public Interface
# ###############


class ParseError(Exception):
    """Raised when the parser encounters a syntactically invalid construct.

    Attributes:
        location: The file and position of the error.
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, location: Location) -> None:
        super().__init__(f"{location}: {message}")
        self.message = message
        self.location = location
        self.line = location.line
        self.column = location.column


def parse(source: str, location: Location | None = None) -> ProtoFile:
    """Parse proto source text into a ProtoFile model.

    Args:
        source: The full text of a .proto file.
        location: Where the text was loaded from. Defaults to ``<string>``.

    Returns:
        A ProtoFile whose type references are still unresolved text.

    Raises:
        ParseError: If the source is lexically or syntactically invalid.
    """
    location = location or Location(path="<string>")
    try:
        tokens = tokenize(source, location)
    except LexerError as exc:
        raise ParseError(exc.message, exc.location) from exc
    return _Parser(tokens, location).parse()


# ################
# Implementation
# ################

_KEYWORD_TYPES: frozenset[TokenType] = frozenset(KEYWORDS.values())

_LABELS: dict[TokenType, FieldLabel] = {
    TokenType.OPTIONAL: FieldLabel.OPTIONAL,
    TokenType.REQUIRED: FieldLabel.REQUIRED,
    TokenType.REPEATED: FieldLabel.REPEATED,
}

_MAX_ENUM_VALUE = 2**31 - 1


def _int_value(text: str) -> int:
    """Convert a decimal, hex, or octal integer literal to an int."""
    if text.lower().startswith("0x"):
        return int(text, 16)
    if len(text) > 1 and text.startswith("0"):
        return int(text, 8)
    return int(text)


class _Parser:
    """Recursive-descent parser for proto token streams."""

    def __init__(self, tokens: list[Token], location: Location) -> None:
        self._tokens = tokens
        self._pos = 0
        self._location = location
        self._syntax = "proto2"

    def parse(self) -> ProtoFile:
        """Parse the full token stream and return a ProtoFile."""
        result = ProtoFile(location=self._location)
        while not self._at_end():
            self._parse_top_level(result)
        result.syntax = self._syntax  # type: ignore[assignment]
        return result

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        """Return the current (un-consumed) token."""
        return self._tokens[self._pos]

    def _peek_type(self, offset: int = 0) -> TokenType:
        """Return the token type *offset* tokens ahead of the current one."""
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index].type

    def _names_nested_type(self) -> bool:
        """Return True if the current keyword is the first part of a dotted type name.

        ``optional.Inner`` names a type inside a message called ``optional``;
        ``optional .pkg.Inner`` is a label followed by a fully qualified type.
        """
        if self._peek_type(1) != TokenType.DOT:
            return False
        tok = self._current()
        dot = self._tokens[self._pos + 1]
        return dot.line == tok.line and dot.column == tok.column + len(tok.value)

    def _at_end(self) -> bool:
        """Return True if the current token is the EOF token."""
        return self._peek_type() == TokenType.EOF

    def _advance(self) -> Token:
        """Consume and return the current token, stopping at EOF."""
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _loc(self, tok: Token) -> Location:
        return self._location.at(tok.line, tok.column)

    def _error(self, message: str, tok: Token | None = None) -> ParseError:
        return ParseError(message, self._loc(tok or self._current()))

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ParseError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = ", ".join(repr(t.value) for t in types)
            got = tok.value if tok.type != TokenType.EOF else "end of file"
            raise self._error(f"Expected {expected}, got {got!r}", tok)
        return self._advance()

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types (without consuming)."""
        return self._peek_type() in types

    def _accept(self, token_type: TokenType) -> bool:
        """Consume the current token if it has *token_type* and report whether it did."""
        if self._check(token_type):
            self._advance()
            return True
        return False

    def _expect_name_token(self) -> Token:
        """Consume the current token as a name.

        Accepts identifiers and keywords used in name positions (e.g. a field
        named 'message').  Raises ParseError for structural tokens and EOF.
        """
        tok = self._current()
        if tok.type != TokenType.IDENTIFIER and tok.type not in _KEYWORD_TYPES:
            raise self._error(f"Expected identifier, got {tok.value!r}", tok)
        return self._advance()

    def _parse_full_ident(self) -> str:
        """Parse: ident ('.' ident)*"""
        parts = [self._expect_name_token().value]
        while self._check(TokenType.DOT):
            self._advance()
            parts.append(self._expect_name_token().value)
        return ".".join(parts)

    def _parse_type_name(self) -> str:
        """Parse a possibly fully-qualified type name such as '.pkg.Message'."""
        prefix = "." if self._accept(TokenType.DOT) else ""
        return prefix + self._parse_full_ident()

    # ------------------------------------------------------------------
    # Top-level declarations
    # ------------------------------------------------------------------

    def _parse_top_level(self, result: ProtoFile) -> None:
        """Parse one top-level declaration and add it to the ProtoFile."""
        tok = self._current()
        if tok.type == TokenType.SYNTAX:
            self._parse_syntax()
        elif tok.type == TokenType.PACKAGE:
            self._advance()
            if result.package is not None:
                raise self._error("Duplicate package declaration", tok)
            result.package = self._parse_full_ident()
            self._expect(TokenType.SEMICOLON)
        elif tok.type == TokenType.IMPORT:
            self._parse_import(result)
        elif tok.type == TokenType.OPTION:
            result.options.append(self._parse_option_statement())
        elif tok.type == TokenType.MESSAGE:
            result.types.append(self._parse_message())
        elif tok.type == TokenType.ENUM:
            result.types.append(self._parse_enum())
        elif tok.type == TokenType.SERVICE:
            result.services.append(self._parse_service())
        elif tok.type == TokenType.EXTEND:
            result.extends.append(self._parse_extend())
        elif tok.type == TokenType.SEMICOLON:
            self._advance()
        else:
            raise self._error(f"Unexpected token {tok.value!r} at top level", tok)

    def _parse_syntax(self) -> None:
        """Parse: syntax = "proto2" | "proto3";"""
        self._expect(TokenType.SYNTAX)
        self._expect(TokenType.EQUALS)
        value_tok = self._expect(TokenType.STRING)
        if value_tok.value not in ("proto2", "proto3"):
            raise self._error(f"Unsupported syntax {value_tok.value!r}", value_tok)
        self._syntax = value_tok.value
        self._expect(TokenType.SEMICOLON)

    def _parse_import(self, result: ProtoFile) -> None:
        """Parse: import [public | weak] "path";"""
        self._expect(TokenType.IMPORT)
        if self._accept(TokenType.PUBLIC):
            target = result.public_imports
        elif self._accept(TokenType.WEAK):
            target = result.weak_imports
        else:
            target = result.imports
        path_tok = self._expect(TokenType.STRING)
        target.append(path_tok.value)
        self._expect(TokenType.SEMICOLON)

    # ------------------------------------------------------------------
    # Message declarations
    # ------------------------------------------------------------------

    def _parse_message(self) -> MessageType:
        """Parse: message <Name> { body }"""
        self._expect(TokenType.MESSAGE)
        name_tok = self._expect_name_token()
        message = MessageType(name=name_tok.value, location=self._loc(name_tok))
        self._expect(TokenType.LBRACE)
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            self._parse_message_element(message)
        self._expect(TokenType.RBRACE)
        return message

    def _parse_message_element(self, message: MessageType) -> None:
        """Parse one declaration inside a message body."""
        tok = self._current()
        # A keyword followed by a name is a nested declaration; otherwise the
        # keyword is a type name (e.g. a message literally named 'option').
        if tok.type == TokenType.MESSAGE and self._peek_type(1) != TokenType.DOT:
            message.nested_types.append(self._parse_message())
        elif tok.type == TokenType.ENUM and self._peek_type(1) != TokenType.DOT:
            message.nested_types.append(self._parse_enum())
        elif tok.type == TokenType.EXTEND and self._peek_type(1) != TokenType.EQUALS:
            message.extends.append(self._parse_extend())
        elif tok.type == TokenType.OPTION and self._peek_type(1) != TokenType.DOT:
            message.options.append(self._parse_option_statement())
        elif tok.type == TokenType.ONEOF:
            self._parse_oneof(message)
        elif tok.type == TokenType.MAP and self._peek_type(1) == TokenType.LANGLE:
            message.fields.append(self._parse_map_field())
        elif tok.type == TokenType.RESERVED:
            self._parse_reserved(message.reserved_numbers, message.reserved_names, MAX_FIELD_NUMBER)
        elif tok.type == TokenType.EXTENSIONS:
            self._parse_extensions(message)
        elif tok.type == TokenType.SEMICOLON:
            self._advance()
        else:
            message.fields.append(self._parse_field(allow_label=True))

    def _parse_field(self, *, allow_label: bool, oneof: str | None = None) -> Field:
        """Parse: [label] <type> <name> = <number> [options];"""
        start = self._current()
        label: FieldLabel | None = None
        if self._current().type in _LABELS and not self._names_nested_type():
            label_tok = self._advance()
            if not allow_label:
                raise self._error(f"Fields in oneofs must not have labels ({label_tok.value!r})", label_tok)
            label = _LABELS[label_tok.type]
            if label == FieldLabel.REQUIRED and self._syntax == "proto3":
                raise self._error("Required fields are not allowed in proto3", label_tok)
        if self._check(TokenType.IDENTIFIER) and self._current().value == "group":
            raise self._error("Groups are not supported")
        type_ref = self._parse_type_ref()
        name_tok = self._expect_name_token()
        self._expect(TokenType.EQUALS)
        number = self._parse_field_number()
        field = Field(
            name=name_tok.value,
            number=number,
            type=type_ref,
            label=label,
            oneof=oneof,
            location=self._loc(start),
        )
        if self._check(TokenType.LBRACKET):
            self._apply_field_options(field, self._parse_option_list())
        self._expect(TokenType.SEMICOLON)
        return field

    def _parse_map_field(self) -> Field:
        """Parse: map<K, V> <name> = <number> [options];"""
        start = self._expect(TokenType.MAP)
        self._expect(TokenType.LANGLE)
        key_tok = self._expect_name_token()
        if key_tok.value not in SCALAR_TYPES:
            raise self._error(f"Map key type must be a scalar type, got {key_tok.value!r}", key_tok)
        key_type = ScalarTypeRef(scalar=SCALAR_TYPES[key_tok.value])
        self._expect(TokenType.COMMA)
        value_type = self._parse_type_ref()
        if isinstance(value_type, MapTypeRef):
            raise self._error("Map values must not be maps", start)
        self._expect(TokenType.RANGLE)
        name_tok = self._expect_name_token()
        self._expect(TokenType.EQUALS)
        number = self._parse_field_number()
        field = Field(
            name=name_tok.value,
            number=number,
            type=MapTypeRef(key_type=key_type, value_type=value_type),
            location=self._loc(start),
        )
        if self._check(TokenType.LBRACKET):
            self._apply_field_options(field, self._parse_option_list())
        self._expect(TokenType.SEMICOLON)
        return field

    def _parse_field_number(self) -> int:
        tok = self._expect(TokenType.INTEGER)
        return _int_value(tok.value)

    def _parse_type_ref(self) -> TypeRef:
        """Parse a scalar kind or a (possibly qualified) message/enum name."""
        name = self._parse_type_name()
        if name in SCALAR_TYPES:
            return ScalarTypeRef(scalar=SCALAR_TYPES[name])
        return NamedTypeRef(name=name)

    def _apply_field_options(self, field: Field, options: list[OptionElement]) -> None:
        """Lift ``default`` and ``json_name`` onto the field; keep the rest as options."""
        for option in options:
            if option.name == "default":
                field.default = _render_default(option)
            elif option.name == "json_name":
                field.json_name = str(option.value)
            else:
                field.options.append(option)

    def _parse_oneof(self, message: MessageType) -> None:
        """Parse: oneof <name> { [option ...;] field* }"""
        self._expect(TokenType.ONEOF)
        name_tok = self._expect_name_token()
        oneof = Oneof(name=name_tok.value, location=self._loc(name_tok))
        self._expect(TokenType.LBRACE)
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(TokenType.OPTION) and self._peek_type(1) != TokenType.DOT:
                oneof.options.append(self._parse_option_statement())
            elif self._accept(TokenType.SEMICOLON):
                continue
            else:
                field = self._parse_field(allow_label=False, oneof=oneof.name)
                oneof.field_names.append(field.name)
                message.fields.append(field)
        self._expect(TokenType.RBRACE)
        message.oneofs.append(oneof)

    def _parse_reserved(
        self,
        numbers: list[tuple[int, int]],
        names: list[str],
        max_value: int,
    ) -> None:
        """Parse: reserved (ranges | "name", ...);"""
        self._expect(TokenType.RESERVED)
        if self._check(TokenType.STRING):
            names.append(self._advance().value)
            while self._accept(TokenType.COMMA):
                names.append(self._expect(TokenType.STRING).value)
        else:
            numbers.extend(self._parse_ranges(max_value))
        self._expect(TokenType.SEMICOLON)

    def _parse_extensions(self, message: MessageType) -> None:
        """Parse: extensions <ranges> [options];"""
        self._expect(TokenType.EXTENSIONS)
        message.extension_ranges.extend(self._parse_ranges(MAX_FIELD_NUMBER))
        if self._check(TokenType.LBRACKET):
            self._parse_option_list()
        self._expect(TokenType.SEMICOLON)

    def _parse_ranges(self, max_value: int) -> list[tuple[int, int]]:
        """Parse: range (',' range)* where range is N | N to M | N to max"""
        ranges: list[tuple[int, int]] = []
        while True:
            start = self._parse_signed_int()
            end = start
            if self._accept(TokenType.TO):
                end = max_value if self._accept(TokenType.MAX) else self._parse_signed_int()
            if end < start:
                raise self._error(f"Invalid range {start} to {end}")
            ranges.append((start, end))
            if not self._accept(TokenType.COMMA):
                return ranges

    def _parse_signed_int(self) -> int:
        negative = self._accept(TokenType.MINUS)
        value = _int_value(self._expect(TokenType.INTEGER).value)
        return -value if negative else value

    # ------------------------------------------------------------------
    # Enum declarations
    # ------------------------------------------------------------------

    def _parse_enum(self) -> EnumType:
        """Parse: enum <Name> { [option ...;] constant* }"""
        self._expect(TokenType.ENUM)
        name_tok = self._expect_name_token()
        enum_type = EnumType(name=name_tok.value, location=self._loc(name_tok))
        self._expect(TokenType.LBRACE)
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(TokenType.OPTION) and self._peek_type(1) != TokenType.EQUALS:
                enum_type.options.append(self._parse_option_statement())
            elif self._check(TokenType.RESERVED) and self._peek_type(1) != TokenType.EQUALS:
                self._parse_reserved(enum_type.reserved_numbers, enum_type.reserved_names, _MAX_ENUM_VALUE)
            elif self._accept(TokenType.SEMICOLON):
                continue
            else:
                enum_type.constants.append(self._parse_enum_constant())
        self._expect(TokenType.RBRACE)
        return enum_type

    def _parse_enum_constant(self) -> EnumConstant:
        """Parse: NAME = [-]value [options];"""
        name_tok = self._expect_name_token()
        self._expect(TokenType.EQUALS)
        value = self._parse_signed_int()
        constant = EnumConstant(name=name_tok.value, value=value, location=self._loc(name_tok))
        if self._check(TokenType.LBRACKET):
            constant.options.extend(self._parse_option_list())
        self._expect(TokenType.SEMICOLON)
        return constant

    # ------------------------------------------------------------------
    # Service declarations
    # ------------------------------------------------------------------

    def _parse_service(self) -> Service:
        """Parse: service <Name> { (option | rpc)* }"""
        self._expect(TokenType.SERVICE)
        name_tok = self._expect_name_token()
        service = Service(name=name_tok.value, location=self._loc(name_tok))
        self._expect(TokenType.LBRACE)
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._check(TokenType.OPTION):
                service.options.append(self._parse_option_statement())
            elif self._check(TokenType.RPC):
                service.rpcs.append(self._parse_rpc())
            elif self._accept(TokenType.SEMICOLON):
                continue
            else:
                tok = self._current()
                raise self._error(f"Unexpected token {tok.value!r} in service body", tok)
        self._expect(TokenType.RBRACE)
        return service

    def _parse_rpc(self) -> Rpc:
        """Parse: rpc Name ([stream] Req) returns ([stream] Resp) (; | { option* })"""
        self._expect(TokenType.RPC)
        name_tok = self._expect_name_token()
        request_streaming, request_type = self._parse_rpc_type()
        self._expect(TokenType.RETURNS)
        response_streaming, response_type = self._parse_rpc_type()
        rpc = Rpc(
            name=name_tok.value,
            request_type=request_type,
            response_type=response_type,
            request_streaming=request_streaming,
            response_streaming=response_streaming,
            location=self._loc(name_tok),
        )
        if self._accept(TokenType.LBRACE):
            while not self._check(TokenType.RBRACE, TokenType.EOF):
                if self._accept(TokenType.SEMICOLON):
                    continue
                rpc.options.append(self._parse_option_statement())
            self._expect(TokenType.RBRACE)
            self._accept(TokenType.SEMICOLON)
        else:
            self._expect(TokenType.SEMICOLON)
        return rpc

    def _parse_rpc_type(self) -> tuple[bool, str]:
        self._expect(TokenType.LPAREN)
        streaming = False
        # 'stream' is only a modifier when a type name follows it.
        if self._check(TokenType.STREAM) and self._peek_type(1) != TokenType.RPAREN:
            self._advance()
            streaming = True
        name = self._parse_type_name()
        self._expect(TokenType.RPAREN)
        return streaming, name

    # ------------------------------------------------------------------
    # Extend declarations
    # ------------------------------------------------------------------

    def _parse_extend(self) -> Extend:
        """Parse: extend <Type> { field* }"""
        start = self._expect(TokenType.EXTEND)
        extend = Extend(name=self._parse_type_name(), location=self._loc(start))
        self._expect(TokenType.LBRACE)
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._accept(TokenType.SEMICOLON):
                continue
            extend.fields.append(self._parse_field(allow_label=True))
        self._expect(TokenType.RBRACE)
        return extend

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def _parse_option_statement(self) -> OptionElement:
        """Parse: option <name> = <constant>;"""
        start = self._expect(TokenType.OPTION)
        option = self._parse_option_assignment(start)
        self._expect(TokenType.SEMICOLON)
        return option

    def _parse_option_list(self) -> list[OptionElement]:
        """Parse: [ name = constant (, name = constant)* ]"""
        self._expect(TokenType.LBRACKET)
        options = [self._parse_option_assignment(self._current())]
        while self._accept(TokenType.COMMA):
            options.append(self._parse_option_assignment(self._current()))
        self._expect(TokenType.RBRACKET)
        return options

    def _parse_option_assignment(self, start: Token) -> OptionElement:
        name = self._parse_option_name()
        self._expect(TokenType.EQUALS)
        value, kind = self._parse_constant()
        return OptionElement(name=name, value=value, kind=kind, location=self._loc(start))

    def _parse_option_name(self) -> str:
        """Parse an option name such as 'deprecated' or '(my.ext).field'."""
        if self._accept(TokenType.LPAREN):
            name = "(" + self._parse_type_name() + ")"
            self._expect(TokenType.RPAREN)
        else:
            name = self._expect_name_token().value
        while self._accept(TokenType.DOT):
            if self._accept(TokenType.LPAREN):
                name += ".(" + self._parse_type_name() + ")"
                self._expect(TokenType.RPAREN)
            else:
                name += "." + self._expect_name_token().value
        return name

    def _parse_constant(self) -> tuple[Any, str]:
        """Parse an option value and return it with its kind."""
        tok = self._current()
        if tok.type == TokenType.STRING:
            parts = [self._advance().value]
            while self._check(TokenType.STRING):
                parts.append(self._advance().value)
            return "".join(parts), "string"
        if tok.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return tok.type == TokenType.TRUE, "boolean"
        if tok.type in (TokenType.MINUS, TokenType.PLUS, TokenType.INTEGER, TokenType.FLOAT):
            return self._parse_number(), "number"
        if tok.type == TokenType.IDENTIFIER and tok.value in ("inf", "nan"):
            return self._parse_number(), "number"
        if tok.type == TokenType.LBRACE:
            return self._parse_aggregate(), "aggregate"
        if tok.type == TokenType.LBRACKET:
            return self._parse_list_constant(), "list"
        if tok.type == TokenType.IDENTIFIER or tok.type in _KEYWORD_TYPES:
            return self._parse_full_ident(), "enum"
        raise self._error(f"Expected option value, got {tok.value!r}", tok)

    def _parse_number(self) -> int | float:
        negative = False
        if self._accept(TokenType.MINUS):
            negative = True
        else:
            self._accept(TokenType.PLUS)
        tok = self._current()
        value: int | float
        if tok.type == TokenType.INTEGER:
            value = _int_value(self._advance().value)
        elif tok.type == TokenType.FLOAT:
            value = float(self._advance().value.rstrip("fF"))
        elif tok.type == TokenType.IDENTIFIER and tok.value == "inf":
            self._advance()
            value = math.inf
        elif tok.type == TokenType.IDENTIFIER and tok.value == "nan":
            self._advance()
            value = math.nan
        else:
            raise self._error(f"Expected number, got {tok.value!r}", tok)
        return -value if negative else value

    def _parse_aggregate(self) -> dict[str, Any]:
        """Parse a text-format aggregate such as ``{ a: 1 b { c: "x" } }``."""
        self._expect(TokenType.LBRACE)
        result: dict[str, Any] = {}
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if self._accept(TokenType.LBRACKET):
                key = "[" + self._parse_type_name() + "]"
                self._expect(TokenType.RBRACKET)
            else:
                key = self._expect_name_token().value
            has_colon = self._accept(TokenType.COLON)
            if not has_colon and not self._check(TokenType.LBRACE):
                raise self._error(f"Expected ':' after {key!r}")
            value, _ = self._parse_constant()
            if key in result:
                existing = result[key]
                result[key] = (existing if isinstance(existing, list) else [existing]) + [value]
            else:
                result[key] = value
            if not self._accept(TokenType.COMMA):
                self._accept(TokenType.SEMICOLON)
        self._expect(TokenType.RBRACE)
        return result

    def _parse_list_constant(self) -> list[Any]:
        self._expect(TokenType.LBRACKET)
        values: list[Any] = []
        if not self._check(TokenType.RBRACKET):
            values.append(self._parse_constant()[0])
            while self._accept(TokenType.COMMA):
                values.append(self._parse_constant()[0])
        self._expect(TokenType.RBRACKET)
        return values


def _render_default(option: OptionElement) -> str:
    """Render a ``default`` option value in its source form."""
    if option.kind == "boolean":
        return "true" if option.value else "false"
    if isinstance(option.value, float) and not math.isfinite(option.value):
        if math.isnan(option.value):
            return "nan"
        return "inf" if option.value > 0 else "-inf"
    return str(option.value)
