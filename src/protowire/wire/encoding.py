# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Primitive wire encodings: tags, varints, and zigzag."""

from __future__ import annotations

import enum

from protowire.wire.errors import MalformedVarint, TruncatedMessage

# ###############
# Public Interface
# ###############

MAX_VARINT_BYTES = 10

_UINT64_MASK = (1 << 64) - 1


class WireType(enum.IntEnum):
    """The 3-bit payload shape suffix of every tag."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


def make_tag(field_number: int, wire_type: WireType) -> int:
    """Return the tag value ``(field_number << 3) | wire_type``."""
    return (field_number << 3) | int(wire_type)


def encode_varint(value: int) -> bytes:
    """Encode *value* as a base-128 varint.

    Negative values are encoded as their 64-bit two's complement and always
    take ten bytes.

    Raises:
        ValueError: If *value* does not fit in 64 bits.
    """
    if value < -(1 << 63) or value > _UINT64_MASK:
        raise ValueError(f"Value {value} does not fit in 64 bits")
    value &= _UINT64_MASK
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, pos: int = 0, limit: int | None = None) -> tuple[int, int]:
    """Decode a varint from *data* starting at *pos*.

    Args:
        data: The buffer to read from.
        pos: Index of the first byte of the varint.
        limit: Index one past the last readable byte (defaults to ``len(data)``).

    Returns:
        A ``(value, new_pos)`` pair; *value* is unsigned and at most 64 bits.

    Raises:
        TruncatedMessage: If *limit* is reached before the varint terminates.
        MalformedVarint: If ten bytes are consumed without a terminating byte.
    """
    end = len(data) if limit is None else limit
    result = 0
    shift = 0
    for _ in range(MAX_VARINT_BYTES):
        if pos >= end:
            raise TruncatedMessage("Input ended inside a varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _UINT64_MASK, pos
        shift += 7
    raise MalformedVarint(f"Varint longer than {MAX_VARINT_BYTES} bytes")


def encode_zigzag(value: int) -> int:
    """Map a signed integer onto an unsigned one so small magnitudes stay small."""
    return ((value << 1) ^ (value >> 63)) & _UINT64_MASK


def decode_zigzag(value: int) -> int:
    """Invert :func:`encode_zigzag`."""
    return (value >> 1) ^ -(value & 1)


def to_signed(value: int, bits: int) -> int:
    """Interpret the low *bits* bits of *value* as a two's complement integer."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value
