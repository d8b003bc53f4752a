# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the proto recursive-descent parser."""

import math

import pytest

from protowire.model import (
    EnumType,
    FieldLabel,
    Location,
    MapTypeRef,
    MessageType,
    NamedTypeRef,
    ProtoFile,
    ScalarType,
    ScalarTypeRef,
)
from protowire.parser import ParseError, parse

# ###############
# Test Helpers
# ###############


def _parse(source: str) -> ProtoFile:
    """Parse a source string and return the ProtoFile model."""
    return parse(source)


def _message(source: str) -> MessageType:
    """Parse *source* and return its single top-level message."""
    result = _parse(source)
    assert len(result.types) == 1
    message = result.types[0]
    assert isinstance(message, MessageType)
    return message


def _enum(source: str) -> EnumType:
    result = _parse(source)
    enum = result.types[0]
    assert isinstance(enum, EnumType)
    return enum


# ###############
# Empty Input
# ###############


class TestEmptyInput:
    def test_empty_string_returns_empty_file(self) -> None:
        result = _parse("")
        assert isinstance(result, ProtoFile)
        assert result.syntax == "proto2"
        assert result.package is None
        assert result.types == []
        assert result.services == []
        assert result.location.path == "<string>"

    def test_comment_only(self) -> None:
        assert _parse("// nothing here\n/* or here */").types == []

    def test_stray_semicolons(self) -> None:
        assert _parse(";;").types == []

    def test_location_is_attached(self) -> None:
        result = parse("", Location.get("/src", "a.proto"))
        assert result.location.base == "/src"
        assert result.location.path == "a.proto"


# ###############
# File Header
# ###############


class TestFileHeader:
    def test_syntax(self) -> None:
        assert _parse('syntax = "proto3";').syntax == "proto3"
        assert _parse('syntax = "proto2";').syntax == "proto2"

    def test_unsupported_syntax(self) -> None:
        with pytest.raises(ParseError, match="Unsupported syntax"):
            _parse('syntax = "proto4";')

    def test_package(self) -> None:
        assert _parse("package acme.orders.v1;").package == "acme.orders.v1"

    def test_duplicate_package(self) -> None:
        with pytest.raises(ParseError, match="Duplicate package"):
            _parse("package a; package b;")

    def test_imports(self) -> None:
        result = _parse('import "a.proto"; import public "b.proto"; import weak "c.proto";')
        assert result.imports == ["a.proto"]
        assert result.public_imports == ["b.proto"]
        assert result.weak_imports == ["c.proto"]

    def test_file_options(self) -> None:
        result = _parse('option java_package = "com.acme"; option (acme.level).max = 5;')
        assert [(o.name, o.value, o.kind) for o in result.options] == [
            ("java_package", "com.acme", "string"),
            ("(acme.level).max", 5, "number"),
        ]

    def test_adjacent_strings_are_concatenated(self) -> None:
        assert _parse('option go_package = "a" "b";').options[0].value == "ab"


# ###############
# Messages
# ###############


class TestMessages:
    def test_empty_message(self) -> None:
        message = _message("message Empty {}")
        assert message.name == "Empty"
        assert message.fields == []
        assert message.qualified_name == ""

    def test_scalar_fields(self) -> None:
        message = _message(
            """
            message Order {
              required string id = 1;
              optional int64 amount = 2;
              repeated bytes blobs = 3;
            }
            """
        )
        assert [(f.name, f.number, f.label) for f in message.fields] == [
            ("id", 1, FieldLabel.REQUIRED),
            ("amount", 2, FieldLabel.OPTIONAL),
            ("blobs", 3, FieldLabel.REPEATED),
        ]
        assert message.fields[1].type == ScalarTypeRef(scalar=ScalarType.INT64)

    def test_proto3_field_without_label(self) -> None:
        message = _message('syntax = "proto3"; message M { string name = 1; }')
        assert message.fields[0].label is None

    def test_named_and_qualified_types(self) -> None:
        message = _message("message M { optional Other a = 1; optional .pkg.Other b = 2; optional x.Y c = 3; }")
        assert [f.type for f in message.fields] == [
            NamedTypeRef(name="Other"),
            NamedTypeRef(name=".pkg.Other"),
            NamedTypeRef(name="x.Y"),
        ]

    def test_label_before_fully_qualified_type(self) -> None:
        message = _message("message M {\n  optional .pkg.Other a = 1;\n  repeated\n.pkg.Other b = 2;\n}")
        assert [(f.label, f.type) for f in message.fields] == [
            (FieldLabel.OPTIONAL, NamedTypeRef(name=".pkg.Other")),
            (FieldLabel.REPEATED, NamedTypeRef(name=".pkg.Other")),
        ]

    def test_type_named_like_label(self) -> None:
        message = _message('syntax = "proto3"; message M { optional.Inner a = 1; repeated optional.Inner b = 2; }')
        assert [(f.label, f.type) for f in message.fields] == [
            (None, NamedTypeRef(name="optional.Inner")),
            (FieldLabel.REPEATED, NamedTypeRef(name="optional.Inner")),
        ]

    def test_hex_and_octal_field_numbers(self) -> None:
        message = _message("message M { optional int32 a = 0x10; optional int32 b = 010; }")
        assert [f.number for f in message.fields] == [16, 8]

    def test_keyword_as_field_name(self) -> None:
        message = _message("message M { optional string message = 1; optional int32 option = 2; }")
        assert [f.name for f in message.fields] == ["message", "option"]

    def test_nested_declarations(self) -> None:
        message = _message(
            """
            message Outer {
              message Inner { optional int32 x = 1; }
              enum Kind { A = 0; }
              optional Inner inner = 1;
            }
            """
        )
        assert [t.name for t in message.nested_types] == ["Inner", "Kind"]
        assert message.nested_types[1].kind == "enum"

    def test_message_option(self) -> None:
        message = _message("message M { option deprecated = true; }")
        assert message.options[0].name == "deprecated"
        assert message.options[0].value is True

    def test_field_location(self) -> None:
        message = _message("message M {\n  optional int32 a = 1;\n}")
        assert message.location.line == 1
        assert (message.fields[0].location.line, message.fields[0].location.column) == (2, 3)


# ###############
# Field Options
# ###############


class TestFieldOptions:
    def test_packed_and_deprecated(self) -> None:
        message = _message("message M { repeated int32 v = 1 [packed = false, deprecated = true]; }")
        field = message.fields[0]
        assert field.packed_option is False
        assert [o.name for o in field.options] == ["packed", "deprecated"]

    def test_default_and_json_name_are_lifted(self) -> None:
        message = _message('message M { optional string s = 1 [default = "hi", json_name = "S"]; }')
        field = message.fields[0]
        assert field.default == "hi"
        assert field.json_name == "S"
        assert field.options == []

    @pytest.mark.parametrize(
        ("literal", "expected"),
        [
            ("true", "true"),
            ("-5", "-5"),
            ("1.5", "1.5"),
            ("-inf", "-inf"),
            ("nan", "nan"),
            ("RED", "RED"),
        ],
    )
    def test_default_values_are_rendered(self, literal: str, expected: str) -> None:
        message = _message(f"message M {{ optional int32 v = 1 [default = {literal}]; }}")
        assert message.fields[0].default == expected

    def test_custom_option_name(self) -> None:
        message = _message("message M { optional int32 v = 1 [(acme.rules).min = 3]; }")
        assert message.fields[0].options[0].name == "(acme.rules).min"

    def test_aggregate_option(self) -> None:
        result = _parse('option (acme.meta) = { name: "x" tags: "a" tags: "b" nested { depth: 2 } };')
        option = result.options[0]
        assert option.kind == "aggregate"
        assert option.value == {"name": "x", "tags": ["a", "b"], "nested": {"depth": 2}}

    def test_float_option_values(self) -> None:
        result = _parse("option a = -2.5; option b = inf; option c = +3;")
        assert [o.value for o in result.options[:1]] == [-2.5]
        assert math.isinf(result.options[1].value)
        assert result.options[2].value == 3

    def test_enum_option_value(self) -> None:
        result = _parse("option optimize_for = SPEED;")
        assert (result.options[0].value, result.options[0].kind) == ("SPEED", "enum")


# ###############
# Oneofs and Maps
# ###############


class TestOneofsAndMaps:
    def test_oneof_members(self) -> None:
        message = _message("message M { oneof choice { string a = 1; int32 b = 2; } optional int32 c = 3; }")
        assert [(f.name, f.oneof) for f in message.fields] == [("a", "choice"), ("b", "choice"), ("c", None)]
        assert message.oneofs[0].name == "choice"
        assert message.oneofs[0].field_names == ["a", "b"]

    def test_oneof_member_with_label(self) -> None:
        with pytest.raises(ParseError, match="must not have labels"):
            _parse("message M { oneof choice { optional string a = 1; } }")

    def test_map_field(self) -> None:
        message = _message("message M { map<string, Item> items = 1; }")
        field = message.fields[0]
        assert isinstance(field.type, MapTypeRef)
        assert field.type.key_type.scalar == ScalarType.STRING
        assert field.type.value_type == NamedTypeRef(name="Item")
        assert field.is_map

    def test_map_key_must_be_scalar(self) -> None:
        with pytest.raises(ParseError, match="Map key type must be a scalar"):
            _parse("message M { map<Item, int32> items = 1; }")

    def test_field_named_map(self) -> None:
        message = _message("message M { optional int32 map = 1; }")
        assert message.fields[0].name == "map"


# ###############
# Reserved and Extensions
# ###############


class TestReservedAndExtensions:
    def test_reserved_numbers_and_names(self) -> None:
        message = _message('message M { reserved 2, 15, 9 to 11, 40 to max; reserved "foo", "bar"; }')
        assert message.reserved_numbers == [(2, 2), (15, 15), (9, 11), (40, 536_870_911)]
        assert message.reserved_names == ["foo", "bar"]

    def test_invalid_range(self) -> None:
        with pytest.raises(ParseError, match="Invalid range 5 to 3"):
            _parse("message M { reserved 5 to 3; }")

    def test_extension_ranges(self) -> None:
        message = _message("message M { extensions 100 to 199, 500; }")
        assert message.extension_ranges == [(100, 199), (500, 500)]

    def test_top_level_extend(self) -> None:
        result = _parse("extend Base { optional int32 extra = 100; }")
        assert result.extends[0].name == "Base"
        assert result.extends[0].fields[0].name == "extra"

    def test_nested_extend(self) -> None:
        message = _message("message M { extend .pkg.Base { repeated string notes = 101; } }")
        assert message.extends[0].name == ".pkg.Base"
        assert message.extends[0].fields[0].is_repeated


# ###############
# Enums
# ###############


class TestEnums:
    def test_constants(self) -> None:
        enum = _enum("enum Color { RED = 0; GREEN = 1; NEG = -1; HEX = 0x10; }")
        assert [(c.name, c.value) for c in enum.constants] == [("RED", 0), ("GREEN", 1), ("NEG", -1), ("HEX", 16)]

    def test_options_and_reserved(self) -> None:
        enum = _enum(
            'enum E { option allow_alias = true; A = 0; B = 0 [deprecated = true]; reserved 5; reserved "C"; }'
        )
        assert enum.options[0].name == "allow_alias"
        assert enum.constants[1].options[0].name == "deprecated"
        assert enum.reserved_numbers == [(5, 5)]
        assert enum.reserved_names == ["C"]

    def test_constant_named_like_keyword(self) -> None:
        enum = _enum("enum E { option = 0; reserved = 1; }")
        assert [c.name for c in enum.constants] == ["option", "reserved"]


# ###############
# Services
# ###############


class TestServices:
    def test_rpcs(self) -> None:
        result = _parse(
            """
            service Orders {
              option deprecated = true;
              rpc Get (GetRequest) returns (Order);
              rpc Watch (stream .pkg.Filter) returns (stream Order) {
                option idempotency_level = NO_SIDE_EFFECTS;
              }
            }
            """
        )
        service = result.services[0]
        assert service.name == "Orders"
        assert service.options[0].name == "deprecated"
        get, watch = service.rpcs
        assert (get.request_type, get.response_type) == ("GetRequest", "Order")
        assert not get.request_streaming
        assert (watch.request_type, watch.request_streaming, watch.response_streaming) == (".pkg.Filter", True, True)
        assert watch.options[0].value == "NO_SIDE_EFFECTS"

    def test_type_named_stream(self) -> None:
        rpc = _parse("service S { rpc A (stream) returns (B); }").services[0].rpcs[0]
        assert rpc.request_type == "stream"
        assert not rpc.request_streaming

    def test_unexpected_service_member(self) -> None:
        with pytest.raises(ParseError, match="in service body"):
            _parse("service S { message M {} }")


# ###############
# Error Handling
# ###############


class TestParseErrors:
    def test_missing_semicolon_reports_position(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            _parse("message M {\n  optional int32 a = 1\n}")
        assert exc_info.value.line == 3
        assert exc_info.value.column == 1
        assert "Expected ';'" in exc_info.value.message

    def test_unexpected_top_level_token(self) -> None:
        with pytest.raises(ParseError, match="at top level"):
            _parse("rpc X")

    def test_unclosed_message(self) -> None:
        with pytest.raises(ParseError, match="end of file"):
            _parse("message M { optional int32 a = 1;")

    def test_groups_are_rejected(self) -> None:
        with pytest.raises(ParseError, match="Groups are not supported"):
            _parse("message M { optional group G = 1 { } }")

    def test_required_in_proto3(self) -> None:
        with pytest.raises(ParseError, match="not allowed in proto3"):
            _parse('syntax = "proto3"; message M { required int32 a = 1; }')

    def test_lexer_errors_become_parse_errors(self) -> None:
        with pytest.raises(ParseError, match="Unterminated string literal") as exc_info:
            parse('import "a.proto', Location.get("/src", "x.proto"))
        assert exc_info.value.location.path == "x.proto"
        assert str(exc_info.value).startswith("/src/x.proto:1:8: ")
