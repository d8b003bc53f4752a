# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Links parsed proto files into a closed, name-resolved schema.

Linking assigns every declaration its qualified name, resolves every type
reference against the declarations visible from the referencing file, merges
extension fields into the messages they extend, and checks the structural
rules of the format (unique names and field numbers, valid number ranges,
enum and map constraints, package dependency cycles).
"""

from __future__ import annotations

from dataclasses import dataclass

from protowire.model import (
    EnumType,
    Extend,
    Field,
    Location,
    MapTypeRef,
    MessageType,
    NamedTypeRef,
    ProtoFile,
    ScalarType,
    Schema,
    Service,
    TypeElement,
    option_value,
    qualify,
    walk_types,
)
from protowire.model.entities import MAX_FIELD_NUMBER, RESERVED_NUMBER_RANGE

# ###############
# Public Interface
# ###############


class LinkError(Exception):
    """Raised when a set of files cannot be linked.

    Attributes:
        errors: Every problem found, in processing order.
    """

    def __init__(self, errors: list[str]) -> None:
        super().__init__("\n".join(errors))
        self.errors = errors


def link(files: list[ProtoFile], *, permit_package_cycles: bool = False) -> Schema:
    """Link *files* into a schema.

    The input files are not modified; the returned schema holds linked copies
    sorted by location.

    Args:
        files: Parsed files, including every file they import.
        permit_package_cycles: Accept import cycles between packages.

    Returns:
        The linked :class:`Schema`.

    Raises:
        LinkError: If any reference, name, or number is invalid. All problems
            found are reported together.
    """
    return _Linker(files, permit_package_cycles).link()


# ################
# Implementation
# ################

_MAP_KEY_SCALARS = frozenset(s for s in ScalarType if s.is_valid_map_key)


@dataclass(frozen=True)
class _Declaration:
    """A named declaration registered in the global symbol table."""

    kind: str  # "message", "enum", "service" or "package"
    location: Location | None
    file_path: str


class _Linker:
    """Holds the state of one link run."""

    def __init__(self, files: list[ProtoFile], permit_package_cycles: bool) -> None:
        ordered = sorted(files, key=lambda f: f.location.sort_key())
        self._files = [f.model_copy(deep=True) for f in ordered]
        self._permit_package_cycles = permit_package_cycles
        self._by_path: dict[str, ProtoFile] = {}
        self._symbols: dict[str, _Declaration] = {}
        self._errors: list[str] = []

    def link(self) -> Schema:
        for proto_file in self._files:
            path = proto_file.location.path
            if path in self._by_path:
                self._error(proto_file.location, f"File '{path}' is present in more than one source root")
                continue
            self._by_path[path] = proto_file

        for proto_file in self._files:
            self._check_imports(proto_file)
            self._register_file(proto_file)

        visibility = {f.location.path: self._visible_files(f) for f in self._files}
        for proto_file in self._files:
            visible = visibility[proto_file.location.path]
            for element in proto_file.types:
                self._link_type(element, proto_file, visible)
            for service in proto_file.services:
                self._link_service(service, proto_file, visible)

        # Extension fields are merged only once every message has been checked.
        for proto_file in self._files:
            visible = visibility[proto_file.location.path]
            self._link_extends(proto_file.extends, proto_file.package, proto_file, visible)
            for element in walk_types(proto_file.types):
                if isinstance(element, MessageType):
                    self._link_extends(element.extends, element.qualified_name, proto_file, visible)

        self._check_package_cycles()

        if self._errors:
            raise LinkError(self._errors)
        return Schema(files=self._files)

    def _error(self, location: Location | None, message: str) -> None:
        self._errors.append(f"{location}: {message}" if location is not None else message)

    # ------------------------------------------------------------------
    # Imports and visibility
    # ------------------------------------------------------------------

    def _check_imports(self, proto_file: ProtoFile) -> None:
        seen: set[str] = set()
        for path in proto_file.all_imports:
            if path in seen:
                self._error(proto_file.location, f"Import '{path}' is listed more than once")
            seen.add(path)
            if path not in self._by_path:
                self._error(proto_file.location, f"Import '{path}' not found")

    def _visible_files(self, proto_file: ProtoFile) -> set[str]:
        """Return the paths of the files whose declarations *proto_file* may use.

        A file sees itself, the files it imports, and whatever those files
        re-export through ``import public``, transitively.
        """
        visible = {proto_file.location.path}
        pending = [path for path in proto_file.all_imports if path in self._by_path]
        while pending:
            path = pending.pop()
            if path in visible:
                continue
            visible.add(path)
            pending.extend(p for p in self._by_path[path].public_imports if p in self._by_path)
        return visible

    # ------------------------------------------------------------------
    # Symbol registration
    # ------------------------------------------------------------------

    def _register_file(self, proto_file: ProtoFile) -> None:
        path = proto_file.location.path
        if proto_file.package:
            parts = proto_file.package.split(".")
            for i in range(1, len(parts) + 1):
                self._register(".".join(parts[:i]), _Declaration("package", proto_file.location, path))
        for element in proto_file.types:
            self._register_type(element, proto_file.package, path)
        for service in proto_file.services:
            service.qualified_name = qualify(proto_file.package, service.name)
            self._register(service.qualified_name, _Declaration("service", service.location, path))

    def _register_type(self, element: TypeElement, scope: str | None, path: str) -> None:
        element.qualified_name = qualify(scope, element.name)
        self._register(element.qualified_name, _Declaration(element.kind, element.location, path))
        if isinstance(element, MessageType):
            for nested in element.nested_types:
                self._register_type(nested, element.qualified_name, path)

    def _register(self, name: str, declaration: _Declaration) -> None:
        existing = self._symbols.get(name)
        if existing is None:
            self._symbols[name] = declaration
            return
        if existing.kind == "package" and declaration.kind == "package":
            return
        self._error(
            declaration.location,
            f"'{name}' is already defined at {existing.location}",
        )

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def _resolve(
        self,
        name: str,
        scope: str | None,
        proto_file: ProtoFile,
        visible: set[str],
        location: Location | None,
    ) -> str | None:
        """Resolve a type reference written as *name* inside *scope*.

        Returns the qualified name of a visible message or enum, or None after
        recording an error.
        """
        hidden: str | None = None

        def accept(candidate: str) -> str | None:
            nonlocal hidden
            declaration = self._symbols.get(candidate)
            if declaration is None or declaration.kind == "package":
                return None
            if declaration.file_path not in visible:
                hidden = hidden or candidate
                return None
            return candidate

        if name.startswith("."):
            found = accept(name[1:])
        else:
            found = self._resolve_in_scopes(name, scope, accept)
            if found is None:
                found = self._resolve_in_imports(name, proto_file, visible, accept, location)
            if found is None:
                found = accept(name)

        if found is None:
            if hidden is not None:
                declaring = self._symbols[hidden].file_path
                self._error(
                    location,
                    f"'{name}' resolves to '{hidden}' declared in '{declaring}',"
                    f" which is not imported by '{proto_file.location.path}'",
                )
            else:
                self._error(location, f"Unknown type '{name}'")
            return None
        if self._symbols[found].kind == "service":
            self._error(location, f"'{name}' is a service, not a message or enum")
            return None
        return found

    def _resolve_in_scopes(self, name: str, scope: str | None, accept) -> str | None:
        # The first component binds to the innermost scope declaring it; the
        # remainder must then exist inside that declaration.
        first = name.split(".", 1)[0]
        parts = scope.split(".") if scope else []
        for i in range(len(parts), 0, -1):
            prefix = ".".join(parts[:i])
            if qualify(prefix, first) in self._symbols:
                found = accept(qualify(prefix, name))
                if found is not None:
                    return found
        return None

    def _resolve_in_imports(
        self,
        name: str,
        proto_file: ProtoFile,
        visible: set[str],
        accept,
        location: Location | None,
    ) -> str | None:
        matches: dict[str, str] = {}
        for path in sorted(visible):
            package = self._by_path[path].package
            if not package or package == proto_file.package:
                continue
            found = accept(qualify(package, name))
            if found is not None:
                matches.setdefault(found, path)
        if len(matches) > 1:
            candidates = ", ".join(f"'{n}' ({p})" for n, p in matches.items())
            self._error(location, f"Ambiguous type '{name}': matches {candidates}")
        return next(iter(matches), None)

    # ------------------------------------------------------------------
    # Linking declarations
    # ------------------------------------------------------------------

    def _link_type(self, element: TypeElement, proto_file: ProtoFile, visible: set[str]) -> None:
        if isinstance(element, EnumType):
            self._check_enum(element, proto_file)
            return
        scope = element.qualified_name
        for field in element.fields:
            self._link_field(field, scope, proto_file, visible)
        self._check_message(element)
        for nested in element.nested_types:
            self._link_type(nested, proto_file, visible)

    def _link_field(self, field: Field, scope: str, proto_file: ProtoFile, visible: set[str]) -> None:
        type_ref = field.type
        if isinstance(type_ref, NamedTypeRef):
            resolved = self._resolve(type_ref.name, scope, proto_file, visible, field.location)
            if resolved is not None:
                field.type = NamedTypeRef(name=resolved)
        elif isinstance(type_ref, MapTypeRef):
            if type_ref.key_type.scalar not in _MAP_KEY_SCALARS:
                self._error(
                    field.location,
                    f"Map field '{field.name}' has invalid key type '{type_ref.key_type.scalar.value}'",
                )
            if isinstance(type_ref.value_type, NamedTypeRef):
                resolved = self._resolve(type_ref.value_type.name, scope, proto_file, visible, field.location)
                if resolved is not None:
                    field.type = type_ref.model_copy(update={"value_type": NamedTypeRef(name=resolved)})

    def _link_service(self, service: Service, proto_file: ProtoFile, visible: set[str]) -> None:
        names: dict[str, Location | None] = {}
        for rpc in service.rpcs:
            if rpc.name in names:
                self._error(rpc.location, f"Duplicate rpc '{rpc.name}' in service '{service.qualified_name}'")
            names.setdefault(rpc.name, rpc.location)
            request = self._resolve(rpc.request_type, proto_file.package, proto_file, visible, rpc.location)
            response = self._resolve(rpc.response_type, proto_file.package, proto_file, visible, rpc.location)
            for role, resolved in (("request", request), ("response", response)):
                if resolved is not None and self._symbols[resolved].kind != "message":
                    self._error(rpc.location, f"rpc '{rpc.name}' {role} type '{resolved}' is not a message")
            if request is not None:
                rpc.request_type = request
            if response is not None:
                rpc.response_type = response

    def _link_extends(
        self,
        extends: list[Extend],
        scope: str | None,
        proto_file: ProtoFile,
        visible: set[str],
    ) -> None:
        scope_name = scope or ""
        for extend in extends:
            target_name = self._resolve(extend.name, scope, proto_file, visible, extend.location)
            if target_name is None:
                continue
            if self._symbols[target_name].kind != "message":
                self._error(extend.location, f"Extend target '{target_name}' is not a message")
                continue
            target = self._find_message(target_name)
            extend.name = target_name
            for field in extend.fields:
                self._link_field(field, scope_name or None, proto_file, visible)
                if not any(low <= field.number <= high for low, high in target.extension_ranges):
                    self._error(
                        field.location,
                        f"Extension field '{field.name}' number {field.number} is not in an extension"
                        f" range of '{target_name}'",
                    )
                merged = field.model_copy(update={"extension_scope": scope_name})
                self._check_duplicate_number(target, merged)
                self._check_duplicate_name(target, merged)
                target.fields.append(merged)

    def _find_message(self, qualified_name: str) -> MessageType:
        for proto_file in self._files:
            found = _find_in(proto_file.types, qualified_name)
            if found is not None:
                return found
        raise KeyError(qualified_name)

    # ------------------------------------------------------------------
    # Structural checks
    # ------------------------------------------------------------------

    def _check_message(self, message: MessageType) -> None:
        names: dict[str, Field] = {}
        numbers: dict[int, Field] = {}
        for field in message.fields:
            if field.name in names:
                self._error(
                    field.location,
                    f"Duplicate field name '{field.name}' in message '{message.qualified_name}'"
                    f" (first declared at {names[field.name].location})",
                )
            names.setdefault(field.name, field)
            previous = numbers.get(field.number)
            if previous is not None:
                self._report_duplicate_number(message, previous, field)
            numbers.setdefault(field.number, field)
            self._check_field_number(message, field)
            if field.name in message.reserved_names:
                self._error(
                    field.location,
                    f"Field name '{field.name}' is reserved in message '{message.qualified_name}'",
                )
        for oneof in message.oneofs:
            if not oneof.field_names:
                self._error(oneof.location, f"Oneof '{oneof.name}' in '{message.qualified_name}' has no fields")

    def _check_duplicate_number(self, message: MessageType, field: Field) -> None:
        previous = message.field_by_number(field.number)
        if previous is not None:
            self._report_duplicate_number(message, previous, field)

    def _check_duplicate_name(self, message: MessageType, field: Field) -> None:
        # Extension fields share the target's name space.
        previous = message.field_by_name(field.name)
        if previous is not None:
            self._error(
                field.location,
                f"Duplicate field name '{field.name}' in message '{message.qualified_name}'"
                f" (first declared at {previous.location})",
            )

    def _report_duplicate_number(self, message: MessageType, first: Field, second: Field) -> None:
        self._error(
            second.location,
            f"Duplicate field number {second.number} in message '{message.qualified_name}':"
            f" '{first.name}' at {first.location} and '{second.name}' at {second.location}",
        )

    def _check_field_number(self, message: MessageType, field: Field) -> None:
        number = field.number
        if not 1 <= number <= MAX_FIELD_NUMBER:
            self._error(field.location, f"Field number {number} of '{field.name}' is out of range")
            return
        low, high = RESERVED_NUMBER_RANGE
        if low <= number <= high:
            self._error(
                field.location,
                f"Field number {number} of '{field.name}' is in the implementation-reserved range {low} to {high}",
            )
        for start, end in message.reserved_numbers:
            if start <= number <= end:
                self._error(
                    field.location,
                    f"Field number {number} of '{field.name}' is reserved in message '{message.qualified_name}'",
                )
        for start, end in message.extension_ranges:
            if start <= number <= end:
                self._error(
                    field.location,
                    f"Field number {number} of '{field.name}' overlaps an extension range"
                    f" of '{message.qualified_name}'",
                )

    def _check_enum(self, enum: EnumType, proto_file: ProtoFile) -> None:
        if not enum.constants:
            self._error(enum.location, f"Enum '{enum.qualified_name}' has no constants")
            return
        if proto_file.syntax == "proto3" and enum.constants[0].value != 0:
            self._error(
                enum.constants[0].location,
                f"The first constant of proto3 enum '{enum.qualified_name}' must be zero",
            )
        allow_alias = option_value(enum.options, "allow_alias") is True
        names: set[str] = set()
        values: dict[int, str] = {}
        for constant in enum.constants:
            if constant.name in names:
                self._error(constant.location, f"Duplicate constant '{constant.name}' in enum '{enum.qualified_name}'")
            names.add(constant.name)
            if constant.value in values and not allow_alias:
                self._error(
                    constant.location,
                    f"'{constant.name}' reuses value {constant.value} of '{values[constant.value]}'"
                    f" in enum '{enum.qualified_name}' (set option allow_alias = true to permit)",
                )
            values.setdefault(constant.value, constant.name)
            if constant.name in enum.reserved_names or any(
                start <= constant.value <= end for start, end in enum.reserved_numbers
            ):
                self._error(constant.location, f"Constant '{constant.name}' uses a reserved name or value")

    def _check_package_cycles(self) -> None:
        if self._permit_package_cycles:
            return
        graph: dict[str, list[str]] = {}
        for proto_file in self._files:
            package = proto_file.package or ""
            edges = graph.setdefault(package, [])
            for path in proto_file.all_imports:
                imported = self._by_path.get(path)
                if imported is None:
                    continue
                target = imported.package or ""
                if target != package and target not in edges:
                    edges.append(target)
        cycle = _detect_cycle(graph)
        if cycle is not None:
            cycle_str = " -> ".join(name or "<default>" for name in cycle)
            self._error(None, f"Package cycle detected: {cycle_str}")


def _find_in(elements: list[TypeElement], qualified_name: str) -> MessageType | None:
    for element in elements:
        if isinstance(element, MessageType):
            if element.qualified_name == qualified_name:
                return element
            if qualified_name.startswith(element.qualified_name + "."):
                found = _find_in(element.nested_types, qualified_name)
                if found is not None:
                    return found
    return None


def _detect_cycle(graph: dict[str, list[str]]) -> list[str] | None:
    """Return the first import cycle in *graph* as a closed path, or ``None``.

    The path starts and ends with the same package, e.g. ``["a", "b", "a"]``.
    """
    UNSEEN, ACTIVE, DONE = 0, 1, 2
    state_of: dict[str, int] = {}
    path: list[str] = []

    def _dfs(node: str) -> list[str] | None:
        state_of[node] = ACTIVE
        path.append(node)
        for neighbor in graph.get(node, []):
            state = state_of.get(neighbor, UNSEEN)
            if state == ACTIVE:
                return path[path.index(neighbor) :] + [neighbor]
            if state == UNSEEN:
                result = _dfs(neighbor)
                if result is not None:
                    return result
        path.pop()
        state_of[node] = DONE
        return None

    for node in graph:
        if state_of.get(node, UNSEEN) == UNSEEN:
            result = _dfs(node)
            if result is not None:
                return result
    return None
