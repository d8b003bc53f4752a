# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tree shaking of linked schemas.

The pruner keeps everything reachable from a set of *root* patterns and
nothing that matches a *rubbish* pattern. Node identifiers are qualified type
and service names, plus ``Type#member`` for fields, enum constants and rpcs.
Patterns use shell-style wildcards, so ``*`` matches every node,
``pkg.*`` matches everything inside ``pkg`` and ``pkg.Msg#field`` matches a
single member.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from fnmatch import fnmatchcase

from protowire.model import (
    EnumType,
    MessageType,
    ProtoFile,
    Schema,
    Service,
    TypeElement,
    named_refs,
    walk_types,
)

# ###############
# Public Interface
# ###############


class PruningError(Exception):
    """Raised by strict pruning when a root or rubbish pattern matches nothing."""


class Pruner:
    """Removes unreachable declarations from a schema.

    Attributes:
        roots: Patterns naming the declarations to keep.
        rubbish: Patterns naming declarations to drop even when reachable.
        unused_roots: After :meth:`prune`, the root patterns that matched nothing.
        unused_rubbish: After :meth:`prune`, the rubbish patterns that matched nothing.
    """

    def __init__(self, roots: Iterable[str] = ("*",), rubbish: Iterable[str] = ()) -> None:
        self.roots = list(roots) or ["*"]
        self.rubbish = list(rubbish)
        self.unused_roots: list[str] = []
        self.unused_rubbish: list[str] = []

    def prune(self, schema: Schema, *, strict: bool = False) -> Schema:
        """Return a copy of *schema* holding only the reachable declarations.

        Raises:
            PruningError: With *strict*, if a pattern matched no node.
        """
        graph = _Graph(schema)
        self.unused_roots = [p for p in self.roots if not any(fnmatchcase(n, p) for n in graph.nodes)]
        self.unused_rubbish = [p for p in self.rubbish if not any(fnmatchcase(n, p) for n in graph.nodes)]
        if strict and (self.unused_roots or self.unused_rubbish):
            parts = []
            if self.unused_roots:
                parts.append(f"roots {', '.join(self.unused_roots)}")
            if self.unused_rubbish:
                parts.append(f"prunes {', '.join(self.unused_rubbish)}")
            raise PruningError(f"Unused pruning patterns: {'; '.join(parts)}")

        reached, shells = self._traverse(graph)
        return _retain(schema, reached, shells)

    def is_root(self, node: str) -> bool:
        return any(fnmatchcase(node, pattern) for pattern in self.roots)

    def is_rubbish(self, node: str) -> bool:
        return any(fnmatchcase(node, pattern) for pattern in self.rubbish)

    def _traverse(self, graph: _Graph) -> tuple[set[str], set[str]]:
        """Return the nodes reached through edges and the containers kept as shells.

        A rubbish node is neither retained nor expanded. A container is kept
        as a shell holding only its reached members.
        """
        reached: set[str] = set()
        shells: set[str] = set()
        queue: deque[str] = deque()

        def visit(node: str) -> None:
            if node in reached or self.is_rubbish(node):
                return
            reached.add(node)
            queue.append(node)

        for node in graph.nodes:
            if self.is_root(node):
                visit(node)
        while queue:
            node = queue.popleft()
            for target in graph.edges.get(node, []):
                visit(target)
            container = graph.containers.get(node)
            while container is not None and container not in shells and not self.is_rubbish(container):
                shells.add(container)
                container = graph.containers.get(container)
        return reached, shells


def prune(
    schema: Schema,
    roots: Iterable[str] = ("*",),
    rubbish: Iterable[str] = (),
    *,
    strict: bool = False,
) -> Schema:
    """Prune *schema* to what is reachable from *roots*, excluding *rubbish*.

    See :class:`Pruner` for the pattern syntax.
    """
    return Pruner(roots, rubbish).prune(schema, strict=strict)


# ################
# Implementation
# ################


def member_id(owner: str, member: str) -> str:
    return f"{owner}#{member}"


class _Graph:
    """Reachability graph of a schema.

    ``edges`` are the links followed during traversal; ``containers`` maps a
    member or nested type to the declaration that must hold it.
    """

    def __init__(self, schema: Schema) -> None:
        self.nodes: list[str] = []
        self.edges: dict[str, list[str]] = {}
        self.containers: dict[str, str] = {}
        for proto_file in schema.files:
            for element in walk_types(proto_file.types):
                self._add_type(element)
            for service in proto_file.services:
                self._add_service(service)

    def _add_node(self, node: str, edges: list[str], container: str | None = None) -> None:
        self.nodes.append(node)
        self.edges[node] = edges
        if container is not None:
            self.containers[node] = container

    def _add_type(self, element: TypeElement) -> None:
        name = element.qualified_name
        if isinstance(element, MessageType):
            members = [member_id(name, f.name) for f in element.fields]
            self._add_node(name, members)
            for field, member in zip(element.fields, members, strict=True):
                self._add_node(member, named_refs(field.type), container=name)
            for child in element.nested_types:
                self.containers[child.qualified_name] = name
        else:
            members = [member_id(name, c.name) for c in element.constants]
            self._add_node(name, members)
            for member in members:
                self._add_node(member, [], container=name)

    def _add_service(self, service: Service) -> None:
        name = service.qualified_name
        members = [member_id(name, rpc.name) for rpc in service.rpcs]
        self._add_node(name, members)
        for rpc, member in zip(service.rpcs, members, strict=True):
            self._add_node(member, [rpc.request_type, rpc.response_type], container=name)


def _retain(schema: Schema, reached: set[str], shells: set[str]) -> Schema:
    kept = reached | shells
    pruned = schema.model_copy(deep=True)

    surviving_types = {
        element.qualified_name
        for proto_file in pruned.files
        for element in _kept_elements(proto_file.types, kept)
    }

    files: list[ProtoFile] = []
    for proto_file in pruned.files:
        proto_file.types = _retain_types(proto_file.types, kept, surviving_types)
        proto_file.services = [
            s for s in (_retain_service(s, kept, surviving_types) for s in proto_file.services) if s is not None
        ]
        if proto_file.types or proto_file.services:
            files.append(proto_file)

    surviving_paths = {f.location.path for f in files}
    for proto_file in files:
        proto_file.imports = [p for p in proto_file.imports if p in surviving_paths]
        proto_file.public_imports = [p for p in proto_file.public_imports if p in surviving_paths]
        proto_file.weak_imports = [p for p in proto_file.weak_imports if p in surviving_paths]
        proto_file.extends = _retain_extends(proto_file.extends, proto_file.package, files)
        for element in walk_types(proto_file.types):
            if isinstance(element, MessageType):
                element.extends = _retain_extends(element.extends, element.qualified_name, files)
    return Schema(files=files)


def _kept_elements(elements: list[TypeElement], kept: set[str]):
    """Yield kept elements whose enclosing types are all kept."""
    for element in elements:
        if element.qualified_name not in kept:
            continue
        yield element
        if isinstance(element, MessageType):
            yield from _kept_elements(element.nested_types, kept)


def _retain_types(elements: list[TypeElement], kept: set[str], surviving: set[str]) -> list[TypeElement]:
    result: list[TypeElement] = []
    for element in elements:
        if element.qualified_name not in surviving:
            continue
        name = element.qualified_name
        if isinstance(element, EnumType):
            element.constants = [c for c in element.constants if member_id(name, c.name) in kept]
        else:
            element.fields = [
                f
                for f in element.fields
                if member_id(name, f.name) in kept and all(ref in surviving for ref in named_refs(f.type))
            ]
            field_names = {f.name for f in element.fields}
            for oneof in element.oneofs:
                oneof.field_names = [n for n in oneof.field_names if n in field_names]
            element.oneofs = [o for o in element.oneofs if o.field_names]
            element.nested_types = _retain_types(element.nested_types, kept, surviving)
        result.append(element)
    return result


def _retain_service(service: Service, kept: set[str], surviving: set[str]) -> Service | None:
    name = service.qualified_name
    if name not in kept:
        return None
    service.rpcs = [
        rpc
        for rpc in service.rpcs
        if member_id(name, rpc.name) in kept and rpc.request_type in surviving and rpc.response_type in surviving
    ]
    return service


def _retain_extends(extends, scope: str | None, files: list[ProtoFile]):
    """Keep the extension fields whose merged copies survived in their target."""
    targets = {
        element.qualified_name: element
        for proto_file in files
        for element in walk_types(proto_file.types)
        if isinstance(element, MessageType)
    }
    result = []
    for extend in extends:
        target = targets.get(extend.name)
        if target is None:
            continue
        extend.fields = [
            f
            for f in extend.fields
            if any(t.number == f.number and t.extension_scope == (scope or "") for t in target.fields)
        ]
        if extend.fields:
            result.append(extend)
    return result
