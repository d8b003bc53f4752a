# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Module manifests: partitioning one schema into dependent generation units.

A manifest looks like::

    modules:
      common:
        roots: [acme.common.*]
      orders:
        dependencies: [common]
        roots: [acme.orders.*]
        prunes: [acme.orders.Legacy*]

Each module is pruned with its own roots and prunes. Types already emitted by
one of a module's transitive dependencies are not emitted again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############


class ManifestError(Exception):
    """Raised when a module manifest is invalid or cannot be loaded."""


@dataclass
class Module:
    """One generation unit of a manifest."""

    name: str
    dependencies: list[str] = field(default_factory=list)
    roots: list[str] = field(default_factory=lambda: ["*"])
    prunes: list[str] = field(default_factory=list)


@dataclass
class Manifest:
    """The modules of a manifest, in declaration order."""

    modules: list[Module] = field(default_factory=list)

    def module(self, name: str) -> Module | None:
        for module in self.modules:
            if module.name == name:
                return module
        return None

    def ordered(self) -> list[Module]:
        """Return the modules so that every module follows its dependencies.

        Raises:
            ManifestError: On an unknown dependency or a dependency cycle.
        """
        by_name = {m.name: m for m in self.modules}
        for module in self.modules:
            for dependency in module.dependencies:
                if dependency not in by_name:
                    raise ManifestError(f"Module '{module.name}' depends on unknown module '{dependency}'")

        result: list[Module] = []
        done: set[str] = set()
        visiting: list[str] = []

        def visit(module: Module) -> None:
            if module.name in done:
                return
            if module.name in visiting:
                cycle = visiting[visiting.index(module.name) :] + [module.name]
                raise ManifestError(f"Module dependency cycle detected: {' -> '.join(cycle)}")
            visiting.append(module.name)
            for dependency in module.dependencies:
                visit(by_name[dependency])
            visiting.pop()
            done.add(module.name)
            result.append(module)

        for module in self.modules:
            visit(module)
        return result

    def upstream(self, name: str) -> list[str]:
        """Return the names of every transitive dependency of module *name*."""
        by_name = {m.name: m for m in self.modules}
        seen: list[str] = []
        pending = list(by_name[name].dependencies)
        while pending:
            dependency = pending.pop(0)
            if dependency in seen:
                continue
            seen.append(dependency)
            pending.extend(by_name[dependency].dependencies)
        return seen


def load_manifest(path: Path) -> Manifest:
    """Load and parse a module manifest file.

    Raises:
        ManifestError: If the file cannot be read or the manifest is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestError(f"Manifest file not found: {path}") from None
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest file: {exc}") from exc

    return _parse_manifest(text, source_label=str(path))


# ################
# Implementation
# ################


def _parse_manifest(text: str, source_label: str = "<string>") -> Manifest:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid YAML in {source_label}: {exc}") from exc

    if not isinstance(data, dict) or "modules" not in data:
        raise ManifestError(f"{source_label}: manifest must be a YAML mapping with a 'modules' field")
    raw_modules = data["modules"]
    if not isinstance(raw_modules, dict) or not raw_modules:
        raise ManifestError(f"{source_label}: 'modules' must be a non-empty mapping")

    manifest = Manifest()
    for name, body in raw_modules.items():
        manifest.modules.append(_parse_module(str(name), body, source_label))
    manifest.ordered()
    return manifest


def _parse_module(name: str, body: object, source_label: str) -> Module:
    location = f"{source_label}: modules.{name}"
    if body is None:
        return Module(name=name)
    if not isinstance(body, dict):
        raise ManifestError(f"{location} must be a YAML mapping")
    unknown = sorted(str(k) for k in body if k not in ("dependencies", "roots", "prunes"))
    if unknown:
        raise ManifestError(f"{location}: unknown field(s) {', '.join(unknown)}")

    module = Module(name=name)
    if "dependencies" in body:
        module.dependencies = _string_list(body["dependencies"], "dependencies", location)
    if "roots" in body:
        module.roots = _string_list(body["roots"], "roots", location)
    if "prunes" in body:
        module.prunes = _string_list(body["prunes"], "prunes", location)
    return module


def _string_list(value: object, key: str, location: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"{location}: '{key}' must be a list of strings")
    return list(value)
