# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type system representations for the ProtoWire schema model."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

from protowire.model.location import Location

# ###############
# Public Interface
# ###############


class ScalarType(Enum):
    """Scalar kinds supported by the wire format."""

    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"

    @property
    def is_packable(self) -> bool:
        """Return True if repeated values of this kind may be packed."""
        return self not in (ScalarType.STRING, ScalarType.BYTES)

    @property
    def is_valid_map_key(self) -> bool:
        """Return True if this kind may be used as a map key."""
        return self not in (ScalarType.DOUBLE, ScalarType.FLOAT, ScalarType.BYTES)


SCALAR_TYPES: dict[str, ScalarType] = {s.value: s for s in ScalarType}


class FieldLabel(Enum):
    """Field cardinality labels."""

    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


class OptionElement(BaseModel):
    """An option applied to a file, type, field, constant, service, or rpc."""

    name: str
    value: Any = None
    kind: Literal["string", "number", "boolean", "enum", "aggregate", "list"] = "string"
    location: Location | None = None


class ScalarTypeRef(BaseModel):
    """Reference to a scalar type."""

    kind: Literal["scalar"] = "scalar"
    scalar: ScalarType


class NamedTypeRef(BaseModel):
    """Reference to a message or enum by name.

    Before linking, *name* is the text as written in the source. After
    linking, it is the fully qualified name without a leading dot.
    """

    kind: Literal["named"] = "named"
    name: str


class MapTypeRef(BaseModel):
    """Reference to a ``map<K, V>`` type."""

    kind: Literal["map"] = "map"
    key_type: ScalarTypeRef
    value_type: Annotated[ScalarTypeRef | NamedTypeRef, _Field(discriminator="kind")]


# A field type reference. The `kind` discriminator keeps every consumer exhaustive.
TypeRef = Annotated[
    ScalarTypeRef | NamedTypeRef | MapTypeRef,
    _Field(discriminator="kind"),
]


class Field(BaseModel):
    """A numbered, typed member of a message."""

    name: str
    number: int
    type: TypeRef
    label: FieldLabel | None = None
    default: str | None = None
    json_name: str | None = None
    options: list[OptionElement] = _Field(default_factory=list)
    oneof: str | None = None
    extension_scope: str | None = None
    location: Location | None = None

    @property
    def is_repeated(self) -> bool:
        return self.label == FieldLabel.REPEATED

    @property
    def is_required(self) -> bool:
        return self.label == FieldLabel.REQUIRED

    @property
    def is_map(self) -> bool:
        return isinstance(self.type, MapTypeRef)

    @property
    def is_extension(self) -> bool:
        return self.extension_scope is not None

    @property
    def packed_option(self) -> bool | None:
        """Return the explicit ``[packed = ...]`` setting, or None if absent."""
        value = option_value(self.options, "packed")
        if isinstance(value, bool):
            return value
        return None


def option_value(options: list[OptionElement], name: str) -> Any:
    """Return the value of the last option named *name*, or None."""
    for option in reversed(options):
        if option.name == name:
            return option.value
    return None


def named_refs(type_ref: TypeRef) -> list[str]:
    """Collect all named type references from a type reference tree."""
    if isinstance(type_ref, NamedTypeRef):
        return [type_ref.name]
    if isinstance(type_ref, MapTypeRef):
        return named_refs(type_ref.value_type)
    return []


# Resolve forward references for models that use TypeRef.
MapTypeRef.model_rebuild()
Field.model_rebuild()
