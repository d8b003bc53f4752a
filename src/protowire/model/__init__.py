# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema model for ProtoWire (files, messages, enums, services, fields)."""

from protowire.model.entities import (
    EnumConstant,
    EnumType,
    Extend,
    MessageType,
    Oneof,
    ProtoFile,
    Rpc,
    Service,
    TypeElement,
    qualify,
)
from protowire.model.location import Location
from protowire.model.schema import Schema, walk_types
from protowire.model.types import (
    Field,
    FieldLabel,
    MapTypeRef,
    NamedTypeRef,
    OptionElement,
    ScalarType,
    ScalarTypeRef,
    TypeRef,
    named_refs,
    option_value,
)

__all__ = [
    # Locations
    "Location",
    # Type system
    "ScalarType",
    "ScalarTypeRef",
    "NamedTypeRef",
    "MapTypeRef",
    "TypeRef",
    "FieldLabel",
    "Field",
    "OptionElement",
    "named_refs",
    "option_value",
    # Declarations
    "EnumConstant",
    "EnumType",
    "Oneof",
    "Extend",
    "MessageType",
    "TypeElement",
    "Rpc",
    "Service",
    "ProtoFile",
    "qualify",
    # Linked graph
    "Schema",
    "walk_types",
]
