# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Cursor over wire bytes with nested message bounds.

Decoding a message follows a fixed sequence::

    token = reader.begin_message()
    while (number := reader.next_tag(token)) is not None:
        ...  # read a known field, or
        reader.read_unknown_field(token)
    unknown_fields = reader.end_message(token)

``begin_message`` called right after a length-delimited tag opens an
embedded message bounded by that record's length; called on a fresh reader
it opens the top-level message bounded by the end of the input.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from protowire.wire.encoding import WireType, decode_varint
from protowire.wire.errors import (
    CodecError,
    InvalidTag,
    TruncatedMessage,
    UnexpectedTrailingBytes,
)
from protowire.wire.unknown import UnknownField, UnknownFieldSet

# ###############
# Public Interface
# ###############


@dataclass
class MessageToken:
    """Handle for an open message, returned by :meth:`ProtoReader.begin_message`."""

    end: int
    outer_limit: int
    unknown_fields: UnknownFieldSet = field(default_factory=UnknownFieldSet)


class ProtoReader:
    """Reads tags and payloads from an immutable byte buffer."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._limit = len(self._data)
        self._open: list[MessageToken] = []
        self._tag_start = 0
        self._field_number = 0
        self._wire_type: WireType | None = None
        self._payload_pending = False

    @property
    def position(self) -> int:
        return self._pos

    @property
    def wire_type(self) -> WireType:
        """Wire type of the tag most recently returned by :meth:`next_tag`."""
        if self._wire_type is None:
            raise CodecError("No tag has been read")
        return self._wire_type

    def begin_message(self) -> MessageToken:
        """Open a message and bound reads to its extent."""
        if self._payload_pending:
            if self._wire_type != WireType.LENGTH_DELIMITED:
                raise CodecError(f"Cannot read a message from a {self._wire_type.name} record")
            self._payload_pending = False
            length = self._read_length()
            end = self._pos + length
        elif not self._open:
            end = self._limit
        else:
            raise CodecError("begin_message() must follow a length-delimited tag")
        token = MessageToken(end=end, outer_limit=self._limit)
        self._limit = end
        self._open.append(token)
        return token

    def next_tag(self, token: MessageToken) -> int | None:
        """Read the next tag of the open message.

        Returns:
            The field number, or ``None`` when the message's bound is reached.

        Raises:
            InvalidTag: For field number 0 or a wire type that cannot start a record.
        """
        if not self._open or self._open[-1] is not token:
            raise CodecError("next_tag() called for a message that is not innermost")
        if self._payload_pending:
            raise CodecError(f"Payload of field {self._field_number} was not consumed")
        if self._pos == self._limit:
            return None
        self._tag_start = self._pos
        tag = self._read_varint()
        field_number = tag >> 3
        wire_bits = tag & 0x7
        if field_number == 0:
            raise InvalidTag(f"Tag at offset {self._tag_start} has field number 0")
        if wire_bits not in _RECORD_START_TYPES:
            raise InvalidTag(f"Tag at offset {self._tag_start} has invalid wire type {wire_bits}")
        self._field_number = field_number
        self._wire_type = WireType(wire_bits)
        self._payload_pending = True
        return field_number

    def read_varint(self) -> int:
        self._consume_payload()
        return self._read_varint()

    def read_fixed32(self) -> int:
        self._consume_payload()
        return _UINT32.unpack(self._take(4))[0]

    def read_fixed64(self) -> int:
        self._consume_payload()
        return _UINT64.unpack(self._take(8))[0]

    def read_float(self) -> float:
        self._consume_payload()
        return _FLOAT.unpack(self._take(4))[0]

    def read_double(self) -> float:
        self._consume_payload()
        return _DOUBLE.unpack(self._take(8))[0]

    def read_bytes(self) -> bytes:
        """Read a length-delimited payload."""
        self._consume_payload()
        return self._take(self._read_length())

    def read_packed(self, read_element) -> list:
        """Read a packed repeated payload by calling *read_element* until it is exhausted.

        *read_element* is called with no arguments while the reader is bound
        to the packed region; it should call one of the ``read_*`` methods.
        """
        self._consume_payload()
        length = self._read_length()
        end = self._pos + length
        outer_limit = self._limit
        self._limit = end
        values = []
        try:
            while self._pos < end:
                self._payload_pending = True
                values.append(read_element())
        finally:
            self._payload_pending = False
            self._limit = outer_limit
        return values

    def read_unknown_field(self, token: MessageToken) -> None:
        """Capture the current record verbatim into *token*'s unknown fields."""
        wire_type = self.wire_type
        self._consume_payload()
        self._skip_payload(self._field_number, wire_type)
        raw = self._data[self._tag_start : self._pos]
        token.unknown_fields.append(UnknownField(field_number=self._field_number, wire_type=wire_type, raw=raw))

    def skip_field(self) -> None:
        """Discard the current record."""
        wire_type = self.wire_type
        self._consume_payload()
        self._skip_payload(self._field_number, wire_type)

    def end_message(self, token: MessageToken) -> UnknownFieldSet:
        """Close the innermost open message and return its unknown fields.

        Raises:
            UnexpectedTrailingBytes: If the message's bytes were not all consumed.
        """
        if not self._open or self._open[-1] is not token:
            raise CodecError("end_message() called out of order")
        if self._payload_pending:
            raise CodecError(f"Payload of field {self._field_number} was not consumed")
        if self._pos < token.end:
            raise UnexpectedTrailingBytes(f"{token.end - self._pos} unread bytes at offset {self._pos}")
        if self._pos > token.end:
            raise TruncatedMessage(f"Message overran its bound at offset {token.end}")
        self._open.pop()
        self._limit = token.outer_limit
        return token.unknown_fields

    # ------------------------------------------------------------------
    # Raw cursor operations
    # ------------------------------------------------------------------

    def _consume_payload(self) -> None:
        if not self._payload_pending:
            raise CodecError("No record payload to read")
        self._payload_pending = False

    def _read_varint(self) -> int:
        value, self._pos = decode_varint(self._data, self._pos, self._limit)
        return value

    def _read_length(self) -> int:
        length = self._read_varint()
        if self._pos + length > self._limit:
            raise TruncatedMessage(
                f"Length-delimited record of {length} bytes at offset {self._pos} exceeds its enclosing bound"
            )
        return length

    def _take(self, size: int) -> bytes:
        end = self._pos + size
        if end > self._limit:
            raise TruncatedMessage(f"Expected {size} bytes at offset {self._pos}")
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def _skip_payload(self, field_number: int, wire_type: WireType) -> None:
        if wire_type == WireType.VARINT:
            self._read_varint()
        elif wire_type == WireType.FIXED64:
            self._take(8)
        elif wire_type == WireType.FIXED32:
            self._take(4)
        elif wire_type == WireType.LENGTH_DELIMITED:
            self._take(self._read_length())
        elif wire_type == WireType.START_GROUP:
            self._skip_group(field_number)
        else:
            raise InvalidTag(f"Unexpected {wire_type.name} for field {field_number}")

    def _skip_group(self, field_number: int) -> None:
        while True:
            if self._pos >= self._limit:
                raise TruncatedMessage(f"Group {field_number} is not terminated")
            tag = self._read_varint()
            number = tag >> 3
            wire_bits = tag & 0x7
            if number == 0 or wire_bits > WireType.FIXED32:
                raise InvalidTag(f"Invalid tag inside group {field_number}")
            if wire_bits == WireType.END_GROUP:
                if number != field_number:
                    raise InvalidTag(f"Group {field_number} closed by end tag for {number}")
                return
            self._skip_payload(number, WireType(wire_bits))


# ################
# Implementation
# ################

_RECORD_START_TYPES = frozenset(
    {WireType.VARINT, WireType.FIXED64, WireType.LENGTH_DELIMITED, WireType.START_GROUP, WireType.FIXED32}
)

_UINT32 = struct.Struct("<I")
_UINT64 = struct.Struct("<Q")
_FLOAT = struct.Struct("<f")
_DOUBLE = struct.Struct("<d")


