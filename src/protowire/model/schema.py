# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""The linked schema graph."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, PrivateAttr
from pydantic import Field as _Field

from protowire.model.entities import EnumType, MessageType, ProtoFile, Service, TypeElement

# ###############
# Public Interface
# ###############


class Schema(BaseModel):
    """A set of linked files with a qualified-name index over their declarations.

    Relationships between types are kept as qualified names, never object
    references, so recursive and mutually recursive messages are plain data.
    The index is derived on first use and is not part of the serialized form.
    """

    files: list[ProtoFile] = _Field(default_factory=list)

    _types: dict[str, TypeElement] | None = PrivateAttr(default=None)
    _services: dict[str, Service] | None = PrivateAttr(default=None)
    _declaring_files: dict[str, ProtoFile] | None = PrivateAttr(default=None)

    @property
    def types(self) -> dict[str, TypeElement]:
        """Mapping from qualified name to every (nested) message and enum."""
        if self._types is None:
            self._build_index()
        assert self._types is not None
        return self._types

    @property
    def services(self) -> dict[str, Service]:
        """Mapping from qualified name to every service."""
        if self._services is None:
            self._build_index()
        assert self._services is not None
        return self._services

    def get_type(self, name: str) -> TypeElement | None:
        return self.types.get(name.lstrip("."))

    def get_message(self, name: str) -> MessageType:
        """Return the message named *name*, raising KeyError if there is none."""
        element = self.get_type(name)
        if not isinstance(element, MessageType):
            raise KeyError(f"No message type named '{name}'")
        return element

    def get_enum(self, name: str) -> EnumType:
        """Return the enum named *name*, raising KeyError if there is none."""
        element = self.get_type(name)
        if not isinstance(element, EnumType):
            raise KeyError(f"No enum type named '{name}'")
        return element

    def get_service(self, name: str) -> Service | None:
        return self.services.get(name.lstrip("."))

    def file_of(self, name: str) -> ProtoFile | None:
        """Return the file declaring the type or service *name*."""
        if self._declaring_files is None:
            self._build_index()
        assert self._declaring_files is not None
        return self._declaring_files.get(name)

    def file_at(self, path: str) -> ProtoFile | None:
        """Return the file whose relative path is *path*."""
        for proto_file in self.files:
            if proto_file.location.path == path:
                return proto_file
        return None

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------

    def _build_index(self) -> None:
        types: dict[str, TypeElement] = {}
        services: dict[str, Service] = {}
        declaring: dict[str, ProtoFile] = {}
        for proto_file in self.files:
            for element in walk_types(proto_file.types):
                types[element.qualified_name] = element
                declaring[element.qualified_name] = proto_file
            for service in proto_file.services:
                services[service.qualified_name] = service
                declaring[service.qualified_name] = proto_file
        self._types = types
        self._services = services
        self._declaring_files = declaring


def walk_types(elements: list[TypeElement]) -> Iterator[TypeElement]:
    """Yield every element of *elements* and, depth first, their nested types."""
    for element in elements:
        yield element
        if isinstance(element, MessageType):
            yield from walk_types(element.nested_types)
