# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the low-level wire reader and writer."""

import pytest

from protowire.wire import (
    CodecError,
    InvalidTag,
    ProtoReader,
    ProtoWriter,
    TruncatedMessage,
    UnexpectedTrailingBytes,
    UnknownField,
    UnknownFieldSet,
    WireType,
)

# ###############
# Test Helpers
# ###############


def _read_all_unknown(data: bytes) -> UnknownFieldSet:
    """Read every record of *data* as an unknown field."""
    reader = ProtoReader(data)
    token = reader.begin_message()
    while reader.next_tag(token) is not None:
        reader.read_unknown_field(token)
    return reader.end_message(token)


# ###############
# Writer
# ###############


class TestProtoWriter:
    def test_varint_record(self) -> None:
        writer = ProtoWriter()
        writer.write_tag(1, WireType.VARINT)
        writer.write_varint(150)
        assert writer.to_bytes() == b"\x08\x96\x01"
        assert len(writer) == 3

    def test_length_delimited_record(self) -> None:
        writer = ProtoWriter()
        writer.write_tag(2, WireType.LENGTH_DELIMITED)
        writer.write_bytes(b"testing")
        assert writer.to_bytes() == b"\x12\x07testing"

    def test_fixed_width_values_are_little_endian(self) -> None:
        writer = ProtoWriter()
        writer.write_fixed32(1)
        writer.write_fixed64(2)
        assert writer.to_bytes() == b"\x01\x00\x00\x00" + b"\x02" + b"\x00" * 7

    def test_float_and_double(self) -> None:
        writer = ProtoWriter()
        writer.write_float(1.0)
        writer.write_double(0.5)
        assert writer.to_bytes() == b"\x00\x00\x80\x3f" + b"\x00" * 6 + b"\xe0\x3f"

    def test_write_raw_has_no_framing(self) -> None:
        writer = ProtoWriter()
        writer.write_raw(b"\x01\x02")
        assert writer.to_bytes() == b"\x01\x02"

    def test_unknown_fields_are_written_verbatim(self) -> None:
        # A non-canonical (padded) varint must survive untouched.
        unknown = UnknownFieldSet([UnknownField(field_number=1, wire_type=WireType.VARINT, raw=b"\x08\x81\x00")])
        writer = ProtoWriter()
        writer.write_unknown_fields(unknown)
        assert writer.to_bytes() == b"\x08\x81\x00"


# ###############
# Reader Basics
# ###############


class TestProtoReader:
    def test_reads_single_varint_field(self) -> None:
        reader = ProtoReader(b"\x08\x96\x01")
        token = reader.begin_message()
        assert reader.next_tag(token) == 1
        assert reader.wire_type == WireType.VARINT
        assert reader.read_varint() == 150
        assert reader.next_tag(token) is None
        assert not reader.end_message(token)
        assert reader.position == 3

    def test_empty_message(self) -> None:
        reader = ProtoReader(b"")
        token = reader.begin_message()
        assert reader.next_tag(token) is None
        assert len(reader.end_message(token)) == 0

    def test_reads_fixed_width_fields(self) -> None:
        data = b"\x0d\x01\x00\x00\x00" + b"\x11" + b"\x00" * 6 + b"\xe0\x3f"
        reader = ProtoReader(data)
        token = reader.begin_message()
        assert reader.next_tag(token) == 1
        assert reader.wire_type == WireType.FIXED32
        assert reader.read_fixed32() == 1
        assert reader.next_tag(token) == 2
        assert reader.wire_type == WireType.FIXED64
        assert reader.read_double() == 0.5
        assert reader.next_tag(token) is None

    def test_reads_bytes(self) -> None:
        reader = ProtoReader(b"\x12\x07testing")
        token = reader.begin_message()
        assert reader.next_tag(token) == 2
        assert reader.read_bytes() == b"testing"

    def test_reads_nested_message(self) -> None:
        reader = ProtoReader(b"\x1a\x03\x08\x96\x01\x20\x01")
        outer = reader.begin_message()
        assert reader.next_tag(outer) == 3
        inner = reader.begin_message()
        assert reader.next_tag(inner) == 1
        assert reader.read_varint() == 150
        assert reader.next_tag(inner) is None
        reader.end_message(inner)
        assert reader.next_tag(outer) == 4
        assert reader.read_varint() == 1
        assert reader.next_tag(outer) is None
        reader.end_message(outer)

    def test_reads_packed_values(self) -> None:
        reader = ProtoReader(b"\x0a\x04\x01\x02\x96\x01")
        token = reader.begin_message()
        assert reader.next_tag(token) == 1
        assert reader.read_packed(reader.read_varint) == [1, 2, 150]
        assert reader.next_tag(token) is None

    def test_nested_message_with_multi_byte_length(self) -> None:
        reader = ProtoReader(b"\x0a\x80\x01" + b"\x12\x7e" + b"x" * 126 + b"\x18\x01")
        outer = reader.begin_message()
        assert reader.next_tag(outer) == 1
        inner = reader.begin_message()
        assert reader.next_tag(inner) == 2
        assert reader.read_bytes() == b"x" * 126
        assert reader.next_tag(inner) is None
        reader.end_message(inner)
        assert reader.next_tag(outer) == 3
        assert reader.read_varint() == 1
        assert reader.next_tag(outer) is None

    def test_packed_values_with_multi_byte_length(self) -> None:
        reader = ProtoReader(b"\x0a\x80\x01" + b"\x01" * 128 + b"\x10\x02")
        token = reader.begin_message()
        assert reader.next_tag(token) == 1
        assert reader.read_packed(reader.read_varint) == [1] * 128
        assert reader.next_tag(token) == 2
        assert reader.read_varint() == 2

    def test_wire_type_before_first_tag_is_an_error(self) -> None:
        with pytest.raises(CodecError):
            ProtoReader(b"\x08\x01").wire_type  # noqa: B018


# ###############
# Framing Errors
# ###############


class TestFramingErrors:
    def test_unread_bytes_in_message_raise(self) -> None:
        reader = ProtoReader(b"\x1a\x02\x08\x01")
        outer = reader.begin_message()
        reader.next_tag(outer)
        inner = reader.begin_message()
        with pytest.raises(UnexpectedTrailingBytes):
            reader.end_message(inner)

    def test_length_beyond_enclosing_bound_raises(self) -> None:
        reader = ProtoReader(b"\x1a\x05\x08\x96")
        token = reader.begin_message()
        reader.next_tag(token)
        with pytest.raises(TruncatedMessage):
            reader.begin_message()

    def test_nested_length_beyond_outer_bound_raises(self) -> None:
        # The inner record claims 3 bytes but its enclosing message has only 2 left.
        reader = ProtoReader(b"\x1a\x04\x12\x03ab" + b"xyz")
        outer = reader.begin_message()
        reader.next_tag(outer)
        inner = reader.begin_message()
        reader.next_tag(inner)
        with pytest.raises(TruncatedMessage):
            reader.read_bytes()

    def test_truncated_fixed32(self) -> None:
        reader = ProtoReader(b"\x0d\x01\x00")
        token = reader.begin_message()
        reader.next_tag(token)
        with pytest.raises(TruncatedMessage):
            reader.read_fixed32()

    def test_truncated_tag(self) -> None:
        reader = ProtoReader(b"\x80")
        token = reader.begin_message()
        with pytest.raises(TruncatedMessage):
            reader.next_tag(token)

    def test_field_number_zero_is_invalid(self) -> None:
        reader = ProtoReader(b"\x00\x01")
        token = reader.begin_message()
        with pytest.raises(InvalidTag):
            reader.next_tag(token)

    @pytest.mark.parametrize("tag", [b"\x0c", b"\x0e", b"\x0f"])
    def test_wire_types_that_cannot_start_a_record(self, tag: bytes) -> None:
        reader = ProtoReader(tag)
        token = reader.begin_message()
        with pytest.raises(InvalidTag):
            reader.next_tag(token)


# ###############
# Protocol Misuse
# ###############


class TestProtocolMisuse:
    def test_next_tag_for_outer_token_while_inner_is_open(self) -> None:
        reader = ProtoReader(b"\x1a\x02\x08\x01")
        outer = reader.begin_message()
        reader.next_tag(outer)
        reader.begin_message()
        with pytest.raises(CodecError):
            reader.next_tag(outer)

    def test_next_tag_with_unconsumed_payload(self) -> None:
        reader = ProtoReader(b"\x08\x01\x08\x02")
        token = reader.begin_message()
        reader.next_tag(token)
        with pytest.raises(CodecError):
            reader.next_tag(token)

    def test_payload_cannot_be_read_twice(self) -> None:
        reader = ProtoReader(b"\x08\x01")
        token = reader.begin_message()
        reader.next_tag(token)
        reader.read_varint()
        with pytest.raises(CodecError):
            reader.read_varint()

    def test_begin_message_after_varint_tag(self) -> None:
        reader = ProtoReader(b"\x08\x01")
        token = reader.begin_message()
        reader.next_tag(token)
        with pytest.raises(CodecError):
            reader.begin_message()

    def test_begin_message_without_tag_inside_open_message(self) -> None:
        reader = ProtoReader(b"\x08\x01")
        reader.begin_message()
        with pytest.raises(CodecError):
            reader.begin_message()

    def test_end_message_out_of_order(self) -> None:
        reader = ProtoReader(b"\x1a\x00")
        outer = reader.begin_message()
        reader.next_tag(outer)
        reader.begin_message()
        with pytest.raises(CodecError):
            reader.end_message(outer)


# ###############
# Unknown Records
# ###############


class TestUnknownRecords:
    def test_every_wire_type_is_captured_verbatim(self) -> None:
        data = (
            b"\x08\x96\x01"  # 1: varint
            b"\x11\x01\x02\x03\x04\x05\x06\x07\x08"  # 2: fixed64
            b"\x1a\x02hi"  # 3: length-delimited
            b"\x25\x01\x02\x03\x04"  # 4: fixed32
        )
        unknown = _read_all_unknown(data)
        assert [f.field_number for f in unknown] == [1, 2, 3, 4]
        assert [f.wire_type for f in unknown] == [
            WireType.VARINT,
            WireType.FIXED64,
            WireType.LENGTH_DELIMITED,
            WireType.FIXED32,
        ]
        assert unknown.to_bytes() == data

    def test_group_is_captured_with_its_end_tag(self) -> None:
        data = b"\x0b\x08\x01\x0c\x10\x02"
        unknown = _read_all_unknown(data)
        assert [f.raw for f in unknown] == [b"\x0b\x08\x01\x0c", b"\x10\x02"]
        assert unknown.numbered(1)[0].wire_type == WireType.START_GROUP

    def test_nested_groups(self) -> None:
        data = b"\x0b\x13\x08\x01\x14\x0c"
        assert _read_all_unknown(data).to_bytes() == data

    def test_group_closed_by_wrong_end_tag(self) -> None:
        with pytest.raises(InvalidTag):
            _read_all_unknown(b"\x0b\x14")

    def test_unterminated_group(self) -> None:
        with pytest.raises(TruncatedMessage):
            _read_all_unknown(b"\x0b\x08\x01")

    def test_non_canonical_varint_is_kept_as_written(self) -> None:
        assert _read_all_unknown(b"\x08\x81\x80\x00").to_bytes() == b"\x08\x81\x80\x00"

    def test_skip_field_discards_record(self) -> None:
        reader = ProtoReader(b"\x12\x02hi\x08\x01")
        token = reader.begin_message()
        reader.next_tag(token)
        reader.skip_field()
        assert reader.next_tag(token) == 1
        reader.read_unknown_field(token)
        assert reader.end_message(token).to_bytes() == b"\x08\x01"
