# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Errors raised while encoding or decoding wire bytes."""

# ###############
# Public Interface
# ###############


class CodecError(Exception):
    """Base class for failures of a single encode or decode call."""


class MalformedVarint(CodecError):
    """A varint did not terminate within ten bytes."""


class TruncatedMessage(CodecError):
    """The input ended before a record or length-delimited payload was complete."""


class UnexpectedTrailingBytes(CodecError):
    """A message ended before consuming all of the bytes in its bound."""


class UnexpectedWireType(CodecError):
    """A known field arrived with a wire type incompatible with its declared kind.

    Only raised by strict decoding; lenient decoding keeps such records as
    unknown fields.
    """


class RequiredFieldMissing(CodecError):
    """A decoded proto2 message lacks one or more of its required fields."""

    def __init__(self, type_name: str, missing: list[str]) -> None:
        names = ", ".join(missing)
        super().__init__(f"Required field{'s' if len(missing) > 1 else ''} not set in {type_name}: {names}")
        self.type_name = type_name
        self.missing = missing


class InvalidTag(CodecError):
    """A tag had field number 0 or a wire type that cannot start a record."""
