# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Code generation targets.

A target turns a pruned schema into output files. It is a pure function of
the schema and its :class:`TargetConfig`; the driver decides which types each
target sees and writes the returned files.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Protocol

from protowire.compiler.artifact import serialize
from protowire.model import EnumType, MessageType, ProtoFile, Schema, walk_types

# ###############
# Public Interface
# ###############

JSON_TARGET = "json"
CUSTOM_TARGET = "custom"


class TargetError(Exception):
    """Raised when a target cannot be created or fails to generate."""


@dataclass
class TargetConfig:
    """Settings of one configured target.

    Attributes:
        type: ``json`` or ``custom``.
        out: Output directory, relative to the run's base directory.
        includes: Patterns of the qualified type names this target handles.
        excludes: Patterns of type names this target must skip.
        exclusive: Whether handled types are withheld from later targets.
        emit_declared_options: Keep ``extend google.protobuf.*Options`` declarations.
        emit_applied_options: Keep options applied to declarations.
        name_suffix: Appended to the stem of every generated file name.
        factory: For custom targets, a ``module:attribute`` reference to a
            callable returning a :class:`Target`.
    """

    type: str
    out: str
    includes: list[str] = field(default_factory=lambda: ["*"])
    excludes: list[str] = field(default_factory=list)
    exclusive: bool = True
    emit_declared_options: bool = True
    emit_applied_options: bool = True
    name_suffix: str = ""
    factory: str | None = None

    def handles(self, type_name: str) -> bool:
        """Return True if *type_name* is included and not excluded."""
        return any(fnmatchcase(type_name, p) for p in self.includes) and not any(
            fnmatchcase(type_name, p) for p in self.excludes
        )


class Target(Protocol):
    """A code generation target."""

    def generate(self, schema: Schema, config: TargetConfig) -> dict[str, str]:
        """Return the generated files as a mapping of relative path to text."""


class JsonTarget:
    """Emits one JSON schema artifact per proto file."""

    def generate(self, schema: Schema, config: TargetConfig) -> dict[str, str]:
        outputs: dict[str, str] = {}
        for proto_file in schema.files:
            emitted = _prepare(proto_file, config)
            if not (emitted.types or emitted.services):
                continue
            stem = proto_file.location.path.removesuffix(".proto")
            outputs[f"{stem}{config.name_suffix}.json"] = serialize(emitted)
        return outputs


def create_target(config: TargetConfig) -> Target:
    """Instantiate the target described by *config*.

    Raises:
        TargetError: For an unknown target type or an unusable factory.
    """
    if config.type == JSON_TARGET:
        return JsonTarget()
    if config.type == CUSTOM_TARGET:
        if not config.factory:
            raise TargetError("Custom target requires a 'factory' of the form 'module:attribute'")
        factory = load_factory(config.factory)
        target = factory()
        if not callable(getattr(target, "generate", None)):
            raise TargetError(f"Factory '{config.factory}' did not return a target")
        return target
    raise TargetError(f"Unknown target type '{config.type}'")


def load_factory(reference: str):
    """Import the callable named by a ``module:attribute`` reference."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise TargetError(f"Invalid factory reference '{reference}': expected 'module:attribute'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetError(f"Cannot import target module '{module_name}': {exc}") from exc
    factory = module
    for part in attribute.split("."):
        try:
            factory = getattr(factory, part)
        except AttributeError:
            raise TargetError(f"Module '{module_name}' has no attribute '{attribute}'") from None
    if not callable(factory):
        raise TargetError(f"Factory '{reference}' is not callable")
    return factory


def handled_types(schema: Schema, config: TargetConfig) -> set[str]:
    """Return the qualified names of the types in *schema* that *config* handles."""
    return {
        element.qualified_name
        for proto_file in schema.files
        for element in walk_types(proto_file.types)
        if config.handles(element.qualified_name)
    }


def without_types(schema: Schema, names: set[str]) -> Schema:
    """Return a copy of *schema* without the declarations of *names*.

    References to the removed types are left in place: the result describes
    what a target should emit, not a closed schema.
    """
    if not names:
        return schema
    stripped = schema.model_copy(deep=True)
    for proto_file in stripped.files:
        proto_file.types = _strip(proto_file.types, names)
    return Schema(files=stripped.files)


# ################
# Implementation
# ################

_OPTIONS_PREFIX = "google.protobuf."


def _strip(elements, names: set[str]):
    kept = []
    for element in elements:
        if element.qualified_name in names:
            continue
        if isinstance(element, MessageType):
            element.nested_types = _strip(element.nested_types, names)
        kept.append(element)
    return kept


def _prepare(proto_file: ProtoFile, config: TargetConfig) -> ProtoFile:
    """Apply the target's type filter and option settings to a copy of *proto_file*."""
    emitted = proto_file.model_copy(deep=True)
    emitted.types = _filter_types(emitted.types, config)
    if not config.emit_declared_options:
        emitted.extends = [e for e in emitted.extends if not e.name.startswith(_OPTIONS_PREFIX)]
        for element in walk_types(emitted.types):
            if isinstance(element, MessageType):
                element.extends = [e for e in element.extends if not e.name.startswith(_OPTIONS_PREFIX)]
    if not config.emit_applied_options:
        _clear_options(emitted)
    return emitted


def _filter_types(elements, config: TargetConfig):
    kept = []
    for element in elements:
        if isinstance(element, MessageType):
            element.nested_types = _filter_types(element.nested_types, config)
            if config.handles(element.qualified_name) or element.nested_types:
                kept.append(element)
        elif config.handles(element.qualified_name):
            kept.append(element)
    return kept


def _clear_options(proto_file: ProtoFile) -> None:
    proto_file.options = []
    for element in walk_types(proto_file.types):
        element.options = []
        if isinstance(element, EnumType):
            for constant in element.constants:
                constant.options = []
        else:
            for f in element.fields:
                f.options = []
            for oneof in element.oneofs:
                oneof.options = []
    for service in proto_file.services:
        service.options = []
        for rpc in service.rpcs:
            rpc.options = []

