# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema declarations: messages, enums, services, and files."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel
from pydantic import Field as _Field

from protowire.model.location import Location
from protowire.model.types import Field, OptionElement

# ###############
# Public Interface
# ###############

MAX_FIELD_NUMBER = 536_870_911
RESERVED_NUMBER_RANGE = (19_000, 19_999)


class EnumConstant(BaseModel):
    """A named value of an enum."""

    name: str
    value: int
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None


class EnumType(BaseModel):
    """An enum declaration."""

    kind: Literal["enum"] = "enum"
    name: str
    qualified_name: str = ""
    constants: list[EnumConstant] = _Field(default_factory=list)
    reserved_numbers: list[tuple[int, int]] = _Field(default_factory=list)
    reserved_names: list[str] = _Field(default_factory=list)
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None

    def constant(self, name: str) -> EnumConstant | None:
        for constant in self.constants:
            if constant.name == name:
                return constant
        return None


class Oneof(BaseModel):
    """A set of fields of which at most one holds a value."""

    name: str
    field_names: list[str] = _Field(default_factory=list)
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None


class Extend(BaseModel):
    """An ``extend Target { ... }`` block adding fields to another message."""

    name: str
    fields: list[Field] = _Field(default_factory=list)
    location: Location | None = None


class MessageType(BaseModel):
    """A message declaration.

    ``fields`` holds every field in declaration order, oneof members
    included; each member names its oneof through ``Field.oneof``.
    """

    kind: Literal["message"] = "message"
    name: str
    qualified_name: str = ""
    fields: list[Field] = _Field(default_factory=list)
    oneofs: list[Oneof] = _Field(default_factory=list)
    nested_types: list[TypeElement] = _Field(default_factory=list)
    extends: list[Extend] = _Field(default_factory=list)
    reserved_numbers: list[tuple[int, int]] = _Field(default_factory=list)
    reserved_names: list[str] = _Field(default_factory=list)
    extension_ranges: list[tuple[int, int]] = _Field(default_factory=list)
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None

    def field_by_number(self, number: int) -> Field | None:
        for f in self.fields:
            if f.number == number:
                return f
        return None

    def field_by_name(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def oneof_named(self, name: str) -> Oneof | None:
        for oneof in self.oneofs:
            if oneof.name == name:
                return oneof
        return None

    def oneof_of(self, field: Field) -> Oneof | None:
        """Return the oneof declaring *field*, if any."""
        return self.oneof_named(field.oneof) if field.oneof else None


# A schema type: message or enum, discriminated on `kind`.
TypeElement = Annotated[MessageType | EnumType, _Field(discriminator="kind")]


class Rpc(BaseModel):
    """A method of a service."""

    name: str
    request_type: str
    response_type: str
    request_streaming: bool = False
    response_streaming: bool = False
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None


class Service(BaseModel):
    """A named set of rpcs."""

    name: str
    qualified_name: str = ""
    rpcs: list[Rpc] = _Field(default_factory=list)
    options: list[OptionElement] = _Field(default_factory=list)
    location: Location | None = None

    def rpc(self, name: str) -> Rpc | None:
        for rpc in self.rpcs:
            if rpc.name == name:
                return rpc
        return None


class ProtoFile(BaseModel):
    """Top-level model representing the parsed contents of one ``.proto`` file."""

    location: Location
    syntax: Literal["proto2", "proto3"] = "proto2"
    package: str | None = None
    imports: list[str] = _Field(default_factory=list)
    public_imports: list[str] = _Field(default_factory=list)
    weak_imports: list[str] = _Field(default_factory=list)
    types: list[TypeElement] = _Field(default_factory=list)
    services: list[Service] = _Field(default_factory=list)
    extends: list[Extend] = _Field(default_factory=list)
    options: list[OptionElement] = _Field(default_factory=list)

    @property
    def all_imports(self) -> list[str]:
        """Every import path, in the order regular, public, weak."""
        return self.imports + self.public_imports + self.weak_imports


def qualify(scope: str | None, name: str) -> str:
    """Join a scope and a simple name into a qualified name."""
    return f"{scope}.{name}" if scope else name


# Resolve forward references in self-referential models.
MessageType.model_rebuild()
ProtoFile.model_rebuild()
