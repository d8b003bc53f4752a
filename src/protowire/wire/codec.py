# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema-driven encoding and decoding of messages.

Every message type of a linked schema gets one :class:`MessageAdapter`.
Adapters are created on demand by an :class:`AdapterRegistry` and find the
adapters of embedded message types by qualified name at the moment they
need them, so self-referential and mutually recursive types need no special
handling.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from protowire.model import (
    EnumType,
    Field,
    MapTypeRef,
    MessageType,
    NamedTypeRef,
    ScalarType,
    ScalarTypeRef,
    Schema,
)
from protowire.wire.encoding import WireType, decode_zigzag, encode_zigzag, to_signed
from protowire.wire.errors import CodecError, RequiredFieldMissing, UnexpectedWireType
from protowire.wire.message import Message
from protowire.wire.reader import ProtoReader
from protowire.wire.writer import ProtoWriter

# ###############
# Public Interface
# ###############


class MessageAdapter:
    """Encodes and decodes the instances of one message type."""

    def __init__(self, registry: AdapterRegistry, message_type: MessageType) -> None:
        self.registry = registry
        self.message_type = message_type
        self._fields_by_number = {f.number: f for f in message_type.fields}

    @property
    def type_name(self) -> str:
        return self.message_type.qualified_name

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, reader: ProtoReader, *, strict: bool = False) -> Message:
        """Read one message from *reader*.

        Records for undeclared field numbers are kept as unknown fields. A
        declared field arriving with an incompatible wire type is kept as an
        unknown field too, unless *strict* is set.

        Raises:
            CodecError: On malformed input or a missing required field.
        """
        token = reader.begin_message()
        message = Message(self.type_name)
        while (number := reader.next_tag(token)) is not None:
            field = self._fields_by_number.get(number)
            if field is None or not self.decode_known_field(reader, field, message, strict=strict):
                reader.read_unknown_field(token)
        message.unknown_fields = reader.end_message(token)
        missing = [f.name for f in self.message_type.fields if f.is_required and f.name not in message]
        if missing:
            raise RequiredFieldMissing(self.type_name, missing)
        return message

    def decode_known_field(self, reader: ProtoReader, field: Field, message: Message, *, strict: bool = False) -> bool:
        """Read the payload of the current record into *message*.

        Returns:
            False, without consuming anything, when the record's wire type
            does not fit *field* and *strict* is not set.
        """
        wire_type = reader.wire_type
        if not self._accepts(field, wire_type):
            if strict:
                raise UnexpectedWireType(
                    f"Field {self.type_name}.{field.name} ({field.number}) cannot be read"
                    f" from a {wire_type.name} record"
                )
            return False

        if isinstance(field.type, MapTypeRef):
            key, value = self._decode_map_entry(reader, field.type, strict)
            entries = message.get(field.name)
            if entries is None:
                entries = message[field.name] = {}
            entries[key] = value
        elif field.is_repeated:
            values = message.get(field.name)
            if values is None:
                values = message[field.name] = []
            if wire_type == WireType.LENGTH_DELIMITED and self._is_packable(field.type):
                values.extend(reader.read_packed(lambda: self._read_value(reader, field.type, strict)))
            else:
                values.append(self._read_value(reader, field.type, strict))
        else:
            value = self._read_value(reader, field.type, strict)
            self.set_field(message, field.name, value)
        return True

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, writer: ProtoWriter, message: Message) -> None:
        """Write the records of *message*: known fields in declaration order, then unknown fields."""
        if message.type_name != self.type_name:
            raise ValueError(f"Cannot encode a {message.type_name} message as {self.type_name}")
        undeclared = [name for name in message if self.message_type.field_by_name(name) is None]
        if undeclared:
            raise ValueError(f"{self.type_name} has no field named {', '.join(undeclared)}")

        for field in self.message_type.fields:
            if field.name not in message:
                continue
            value = message[field.name]
            if isinstance(field.type, MapTypeRef):
                for key, entry_value in value.items():
                    entry = ProtoWriter()
                    self._write_tagged(entry, 1, field.type.key_type, key)
                    self._write_tagged(entry, 2, field.type.value_type, entry_value)
                    writer.write_tag(field.number, WireType.LENGTH_DELIMITED)
                    writer.write_bytes(entry.to_bytes())
            elif field.is_repeated:
                if not value:
                    continue
                if self._is_packed(field):
                    packed = ProtoWriter()
                    for element in value:
                        self._write_value(packed, field.type, element)
                    writer.write_tag(field.number, WireType.LENGTH_DELIMITED)
                    writer.write_bytes(packed.to_bytes())
                else:
                    for element in value:
                        self._write_tagged(writer, field.number, field.type, element)
            else:
                self._write_tagged(writer, field.number, field.type, value)
        writer.write_unknown_fields(message.unknown_fields)

    def encode_to_bytes(self, message: Message) -> bytes:
        writer = ProtoWriter()
        self.encode(writer, message)
        return writer.to_bytes()

    # ------------------------------------------------------------------
    # Oneofs
    # ------------------------------------------------------------------

    def which_oneof(self, message: Message, oneof_name: str) -> str | None:
        """Return the name of the member of *oneof_name* set in *message*, if any."""
        oneof = self.message_type.oneof_named(oneof_name)
        if oneof is None:
            raise KeyError(f"{self.type_name} has no oneof named '{oneof_name}'")
        for name in oneof.field_names:
            if name in message:
                return name
        return None

    def set_field(self, message: Message, name: str, value: Any) -> None:
        """Set *name* on *message*, clearing the other members of its oneof."""
        field = self.message_type.field_by_name(name)
        if field is None:
            raise KeyError(f"{self.type_name} has no field named '{name}'")
        oneof = self.message_type.oneof_of(field)
        if oneof is not None:
            for other in oneof.field_names:
                if other != name and other in message:
                    del message[other]
        message[name] = value

    # ------------------------------------------------------------------
    # Value dispatch
    # ------------------------------------------------------------------

    def _read_value(self, reader: ProtoReader, type_ref: ScalarTypeRef | NamedTypeRef, strict: bool) -> Any:
        if isinstance(type_ref, ScalarTypeRef):
            return _SCALAR_CODECS[type_ref.scalar].read(reader)
        element = self.registry.schema.get_type(type_ref.name)
        if isinstance(element, EnumType):
            return _ENUM_CODEC.read(reader)
        return self.registry.adapter(type_ref.name).decode(reader, strict=strict)

    def _write_value(self, writer: ProtoWriter, type_ref: ScalarTypeRef | NamedTypeRef, value: Any) -> None:
        if isinstance(type_ref, ScalarTypeRef):
            _SCALAR_CODECS[type_ref.scalar].write(writer, value)
            return
        element = self.registry.schema.get_type(type_ref.name)
        if isinstance(element, EnumType):
            _ENUM_CODEC.write(writer, value)
            return
        writer.write_bytes(self.registry.adapter(type_ref.name).encode_to_bytes(value))

    def _write_tagged(
        self, writer: ProtoWriter, number: int, type_ref: ScalarTypeRef | NamedTypeRef, value: Any
    ) -> None:
        writer.write_tag(number, self._element_wire_type(type_ref))
        self._write_value(writer, type_ref, value)

    def _decode_map_entry(self, reader: ProtoReader, map_type: MapTypeRef, strict: bool) -> tuple[Any, Any]:
        """Read one map entry and return its ``(key, value)`` pair.

        Entries are not preserved as messages, so records other than the key
        (field 1) and value (field 2), or with an unexpected wire type, are
        skipped rather than kept as unknown fields. A missing key or value
        takes its type's default.
        """
        token = reader.begin_message()
        key = value = _MISSING
        while (number := reader.next_tag(token)) is not None:
            if number == 1 and reader.wire_type == self._element_wire_type(map_type.key_type):
                key = self._read_value(reader, map_type.key_type, strict)
            elif number == 2 and reader.wire_type == self._element_wire_type(map_type.value_type):
                value = self._read_value(reader, map_type.value_type, strict)
            else:
                reader.skip_field()
        reader.end_message(token)
        if key is _MISSING:
            key = self._default_value(map_type.key_type)
        if value is _MISSING:
            value = self._default_value(map_type.value_type)
        return key, value

    # ------------------------------------------------------------------
    # Type classification
    # ------------------------------------------------------------------

    def _element_wire_type(self, type_ref: ScalarTypeRef | NamedTypeRef | MapTypeRef) -> WireType:
        if isinstance(type_ref, ScalarTypeRef):
            return _SCALAR_CODECS[type_ref.scalar].wire_type
        if isinstance(type_ref, NamedTypeRef) and isinstance(self.registry.schema.get_type(type_ref.name), EnumType):
            return WireType.VARINT
        return WireType.LENGTH_DELIMITED

    def _is_packable(self, type_ref: ScalarTypeRef | NamedTypeRef | MapTypeRef) -> bool:
        if isinstance(type_ref, ScalarTypeRef):
            return type_ref.scalar.is_packable
        return isinstance(type_ref, NamedTypeRef) and isinstance(
            self.registry.schema.get_type(type_ref.name), EnumType
        )

    def _is_packed(self, field: Field) -> bool:
        packed = field.packed_option
        return self._is_packable(field.type) and packed is not False

    def _accepts(self, field: Field, wire_type: WireType) -> bool:
        expected = self._element_wire_type(field.type)
        if field.is_repeated and self._is_packable(field.type):
            return wire_type in (expected, WireType.LENGTH_DELIMITED)
        return wire_type == expected

    def _default_value(self, type_ref: ScalarTypeRef | NamedTypeRef) -> Any:
        if isinstance(type_ref, ScalarTypeRef):
            return _SCALAR_CODECS[type_ref.scalar].default
        element = self.registry.schema.get_type(type_ref.name)
        if isinstance(element, EnumType):
            return element.constants[0].value if element.constants else 0
        return Message(type_ref.name)


class AdapterRegistry:
    """Lazily built adapters for every message type of a schema."""

    def __init__(self, schema: Schema) -> None:
        self.schema = schema
        self._adapters: dict[str, MessageAdapter] = {}

    def adapter(self, type_name: str) -> MessageAdapter:
        """Return the adapter for the message named *type_name*.

        Raises:
            KeyError: If the schema has no such message.
        """
        name = type_name.lstrip(".")
        adapter = self._adapters.get(name)
        if adapter is None:
            adapter = self._adapters[name] = MessageAdapter(self, self.schema.get_message(name))
        return adapter


class Codec:
    """Encoder and decoder for all messages of one schema."""

    def __init__(self, schema: Schema) -> None:
        self.registry = AdapterRegistry(schema)

    def encode(self, message: Message) -> bytes:
        return self.registry.adapter(message.type_name).encode_to_bytes(message)

    def decode(self, type_name: str, data: bytes, *, strict: bool = False) -> Message:
        reader = ProtoReader(data)
        return self.registry.adapter(type_name).decode(reader, strict=strict)


def encode(schema: Schema, message: Message) -> bytes:
    """Serialize *message* using the declarations of *schema*."""
    return Codec(schema).encode(message)


def decode(schema: Schema, type_name: str, data: bytes, *, strict: bool = False) -> Message:
    """Parse *data* as a message of type *type_name*.

    Raises:
        KeyError: If *type_name* is not a message of *schema*.
        CodecError: If *data* is not a valid encoding.
    """
    return Codec(schema).decode(type_name, data, strict=strict)


# ################
# Implementation
# ################

_MISSING = object()


@dataclass(frozen=True)
class _ScalarCodec:
    wire_type: WireType
    write: Callable[[ProtoWriter, Any], None]
    read: Callable[[ProtoReader], Any]
    default: Any


def _ranged(kind: str, low: int, high: int, write: Callable[[ProtoWriter, int], None]):
    def checked(writer: ProtoWriter, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected an integer for {kind}, got {type(value).__name__}")
        if not low <= value <= high:
            raise ValueError(f"Value {value} is out of range for {kind}")
        write(writer, value)

    return checked


def _read_string(reader: ProtoReader) -> str:
    data = reader.read_bytes()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"String field is not valid UTF-8: {exc.reason}") from exc


_INT32 = (-(1 << 31), (1 << 31) - 1)
_INT64 = (-(1 << 63), (1 << 63) - 1)
_UINT32 = (0, (1 << 32) - 1)
_UINT64 = (0, (1 << 64) - 1)

_ENUM_CODEC = _ScalarCodec(
    WireType.VARINT,
    _ranged("enum", *_INT32, lambda w, v: w.write_varint(v)),
    lambda r: to_signed(r.read_varint(), 32),
    0,
)

_SCALAR_CODECS: dict[ScalarType, _ScalarCodec] = {
    ScalarType.INT32: _ScalarCodec(
        WireType.VARINT,
        _ranged("int32", *_INT32, lambda w, v: w.write_varint(v)),
        lambda r: to_signed(r.read_varint(), 32),
        0,
    ),
    ScalarType.INT64: _ScalarCodec(
        WireType.VARINT,
        _ranged("int64", *_INT64, lambda w, v: w.write_varint(v)),
        lambda r: to_signed(r.read_varint(), 64),
        0,
    ),
    ScalarType.UINT32: _ScalarCodec(
        WireType.VARINT,
        _ranged("uint32", *_UINT32, lambda w, v: w.write_varint(v)),
        lambda r: r.read_varint() & _UINT32[1],
        0,
    ),
    ScalarType.UINT64: _ScalarCodec(
        WireType.VARINT,
        _ranged("uint64", *_UINT64, lambda w, v: w.write_varint(v)),
        lambda r: r.read_varint(),
        0,
    ),
    ScalarType.SINT32: _ScalarCodec(
        WireType.VARINT,
        _ranged("sint32", *_INT32, lambda w, v: w.write_varint(encode_zigzag(v))),
        lambda r: decode_zigzag(r.read_varint() & _UINT32[1]),
        0,
    ),
    ScalarType.SINT64: _ScalarCodec(
        WireType.VARINT,
        _ranged("sint64", *_INT64, lambda w, v: w.write_varint(encode_zigzag(v))),
        lambda r: decode_zigzag(r.read_varint()),
        0,
    ),
    ScalarType.BOOL: _ScalarCodec(
        WireType.VARINT,
        lambda w, v: w.write_varint(1 if v else 0),
        lambda r: r.read_varint() != 0,
        False,
    ),
    ScalarType.FIXED32: _ScalarCodec(
        WireType.FIXED32,
        _ranged("fixed32", *_UINT32, lambda w, v: w.write_fixed32(v)),
        lambda r: r.read_fixed32(),
        0,
    ),
    ScalarType.SFIXED32: _ScalarCodec(
        WireType.FIXED32,
        _ranged("sfixed32", *_INT32, lambda w, v: w.write_fixed32(v & _UINT32[1])),
        lambda r: to_signed(r.read_fixed32(), 32),
        0,
    ),
    ScalarType.FIXED64: _ScalarCodec(
        WireType.FIXED64,
        _ranged("fixed64", *_UINT64, lambda w, v: w.write_fixed64(v)),
        lambda r: r.read_fixed64(),
        0,
    ),
    ScalarType.SFIXED64: _ScalarCodec(
        WireType.FIXED64,
        _ranged("sfixed64", *_INT64, lambda w, v: w.write_fixed64(v & _UINT64[1])),
        lambda r: to_signed(r.read_fixed64(), 64),
        0,
    ),
    ScalarType.FLOAT: _ScalarCodec(
        WireType.FIXED32,
        lambda w, v: w.write_float(v),
        lambda r: r.read_float(),
        0.0,
    ),
    ScalarType.DOUBLE: _ScalarCodec(
        WireType.FIXED64,
        lambda w, v: w.write_double(v),
        lambda r: r.read_double(),
        0.0,
    ),
    ScalarType.STRING: _ScalarCodec(
        WireType.LENGTH_DELIMITED,
        lambda w, v: w.write_bytes(v.encode("utf-8")),
        _read_string,
        "",
    ),
    ScalarType.BYTES: _ScalarCodec(
        WireType.LENGTH_DELIMITED,
        lambda w, v: w.write_bytes(bytes(v)),
        lambda r: r.read_bytes(),
        b"",
    ),
}
