# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Binary wire format: primitives, framing, unknown fields, and the message codec."""

from protowire.wire.codec import AdapterRegistry, Codec, MessageAdapter, decode, encode
from protowire.wire.encoding import (
    MAX_VARINT_BYTES,
    WireType,
    decode_varint,
    decode_zigzag,
    encode_varint,
    encode_zigzag,
    make_tag,
)
from protowire.wire.errors import (
    CodecError,
    InvalidTag,
    MalformedVarint,
    RequiredFieldMissing,
    TruncatedMessage,
    UnexpectedTrailingBytes,
    UnexpectedWireType,
)
from protowire.wire.message import Message
from protowire.wire.reader import MessageToken, ProtoReader
from protowire.wire.unknown import UnknownField, UnknownFieldSet
from protowire.wire.writer import ProtoWriter

__all__ = [
    "MAX_VARINT_BYTES",
    "AdapterRegistry",
    "Codec",
    "CodecError",
    "InvalidTag",
    "MalformedVarint",
    "Message",
    "MessageAdapter",
    "MessageToken",
    "ProtoReader",
    "ProtoWriter",
    "RequiredFieldMissing",
    "TruncatedMessage",
    "UnexpectedTrailingBytes",
    "UnexpectedWireType",
    "UnknownField",
    "UnknownFieldSet",
    "WireType",
    "decode",
    "decode_varint",
    "decode_zigzag",
    "encode",
    "encode_varint",
    "encode_zigzag",
    "make_tag",
]
