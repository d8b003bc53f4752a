# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Verbatim storage for records the current schema does not declare."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from protowire.wire.encoding import WireType, encode_varint, make_tag

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class UnknownField:
    """One record kept exactly as it appeared on the wire.

    Attributes:
        field_number: The field number from the record's tag.
        wire_type: The wire type from the record's tag.
        raw: The complete record: tag bytes followed by the payload bytes
            (including the length prefix of length-delimited records).
    """

    field_number: int
    wire_type: WireType
    raw: bytes

    @classmethod
    def of(cls, field_number: int, wire_type: WireType, payload: bytes) -> UnknownField:
        """Build a canonically encoded record from its parts.

        *payload* is the varint bytes, fixed-width bytes, or (for
        length-delimited records) the content without its length prefix.
        """
        raw = encode_varint(make_tag(field_number, wire_type))
        if wire_type == WireType.LENGTH_DELIMITED:
            raw += encode_varint(len(payload))
        return cls(field_number=field_number, wire_type=wire_type, raw=raw + payload)


class UnknownFieldSet:
    """An ordered sequence of unknown records attached to a decoded message."""

    def __init__(self, fields: Iterable[UnknownField] = ()) -> None:
        self._fields: list[UnknownField] = list(fields)

    def append(self, field: UnknownField) -> None:
        self._fields.append(field)

    def numbered(self, field_number: int) -> list[UnknownField]:
        """Return the records for *field_number*, in encounter order."""
        return [f for f in self._fields if f.field_number == field_number]

    def to_bytes(self) -> bytes:
        """Concatenate every record, in encounter order."""
        return b"".join(f.raw for f in self._fields)

    def __iter__(self) -> Iterator[UnknownField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnknownFieldSet):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"UnknownFieldSet({self._fields!r})"
