# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Append-only builder for wire bytes."""

from __future__ import annotations

import struct

from protowire.wire.encoding import WireType, encode_varint, make_tag
from protowire.wire.unknown import UnknownFieldSet

# ###############
# Public Interface
# ###############


class ProtoWriter:
    """Accumulates encoded records into a byte buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_tag(self, field_number: int, wire_type: WireType) -> None:
        self._buffer += encode_varint(make_tag(field_number, wire_type))

    def write_varint(self, value: int) -> None:
        self._buffer += encode_varint(value)

    def write_fixed32(self, value: int) -> None:
        self._buffer += _UINT32.pack(value)

    def write_fixed64(self, value: int) -> None:
        self._buffer += _UINT64.pack(value)

    def write_float(self, value: float) -> None:
        self._buffer += _FLOAT.pack(value)

    def write_double(self, value: float) -> None:
        self._buffer += _DOUBLE.pack(value)

    def write_raw(self, data: bytes) -> None:
        """Append *data* with no framing."""
        self._buffer += data

    def write_bytes(self, data: bytes) -> None:
        """Append *data* as a length-delimited payload."""
        self._buffer += encode_varint(len(data))
        self._buffer += data

    def write_unknown_fields(self, unknown_fields: UnknownFieldSet) -> None:
        """Re-emit captured records exactly as they were read."""
        self._buffer += unknown_fields.to_bytes()

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


# ################
# Implementation
# ################

_UINT32 = struct.Struct("<I")
_UINT64 = struct.Struct("<Q")
_FLOAT = struct.Struct("<f")
_DOUBLE = struct.Struct("<d")
