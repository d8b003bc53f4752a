# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler workflow for .proto files.

A run loads sources, links them into a schema, prunes the schema, and hands
it to each configured target:

* **Loading.** Every ``.proto`` file under the *source path* roots is parsed
  (or only the listed *source files*, when given). Imports are then looked up
  in the source roots followed by the *proto path* roots, transitively.
  Roots are directories or ``.zip`` archives. Only files found under the
  source path are generated.

* **Linking and pruning.** Link errors abort the run before any target
  runs, so a failed run never writes partial output.

* **Generation.** Targets run in configuration order. An exclusive target
  claims the types it handles, and later targets no longer see them. With a
  module manifest, each module is pruned separately and types claimed by a
  module's dependencies are withheld from it.

Run-scoped state (the parsed file cache, opened archives, cancellation) lives
in a :class:`RunContext` that is closed when the run ends.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from protowire.compiler.events import EventListener
from protowire.compiler.linker import LinkError, link
from protowire.compiler.pruner import Pruner, PruningError
from protowire.compiler.targets import TargetError, create_target, handled_types, without_types
from protowire.model import Location, ProtoFile, Schema, walk_types
from protowire.parser.parser import ParseError, parse
from protowire.workspace.manifest import ManifestError, load_manifest

if TYPE_CHECKING:
    from protowire.workspace.config import RunConfig

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when the compiler encounters any unrecoverable error.

    Covers unreadable sources, parse errors, link errors, pruning errors,
    and target failures.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class RunCancelledError(CompilerError):
    """Raised when a listener cancelled the run."""


class RunContext:
    """State owned by a single compiler run."""

    def __init__(self, listener: EventListener | None = None) -> None:
        self.listener = listener or EventListener()
        self._cancelled = False
        self._archives: dict[Path, zipfile.ZipFile] = {}
        self._parsed: dict[tuple[str, str], ProtoFile] = {}

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request that the run stop before its next phase."""
        self._cancelled = True

    def check_cancelled(self, phase: str) -> None:
        if self._cancelled:
            raise RunCancelledError(f"Run cancelled before {phase}")

    def open_root(self, path: Path) -> SourceRoot:
        """Return a reader for the directory or ``.zip`` archive at *path*.

        Raises:
            CompilerError: If *path* is neither.
        """
        if path.is_dir():
            return DirectoryRoot(path)
        if path.suffix == ".zip" and path.is_file():
            archive = self._archives.get(path)
            if archive is None:
                try:
                    archive = zipfile.ZipFile(path)
                except (zipfile.BadZipFile, OSError) as exc:
                    raise CompilerError(f"Cannot open source archive '{path}': {exc}") from exc
                self._archives[path] = archive
            return ArchiveRoot(path, archive)
        raise CompilerError(f"Source root '{path}' is neither a directory nor a .zip archive")

    def parse_file(self, root: SourceRoot, relative_path: str) -> ProtoFile:
        """Parse *relative_path* from *root*, at most once per run."""
        key = (root.base, relative_path)
        cached = self._parsed.get(key)
        if cached is not None:
            return cached
        text = root.read(relative_path)
        try:
            proto_file = parse(text, Location.get(root.base, relative_path))
        except ParseError as exc:
            raise CompilerError(f"Parse error: {exc}") from exc
        self._parsed[key] = proto_file
        return proto_file

    def close(self) -> None:
        for archive in self._archives.values():
            archive.close()
        self._archives.clear()

    def __enter__(self) -> RunContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SourceRoot(Protocol):
    """A directory or archive that .proto files are read from."""

    base: str

    def list_protos(self) -> list[str]: ...

    def contains(self, relative_path: str) -> bool: ...

    def read(self, relative_path: str) -> str: ...


class DirectoryRoot:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.base = str(path)

    def list_protos(self) -> list[str]:
        return sorted(p.relative_to(self.path).as_posix() for p in self.path.rglob("*.proto") if p.is_file())

    def contains(self, relative_path: str) -> bool:
        return (self.path / relative_path).is_file()

    def read(self, relative_path: str) -> str:
        try:
            return (self.path / relative_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise CompilerError(f"Cannot read source file '{self.path / relative_path}': {exc}") from exc


class ArchiveRoot:
    def __init__(self, path: Path, archive: zipfile.ZipFile) -> None:
        self.path = path
        self.base = str(path)
        self._archive = archive
        self._names = {name for name in archive.namelist() if not name.endswith("/")}

    def list_protos(self) -> list[str]:
        return sorted(name for name in self._names if name.endswith(".proto"))

    def contains(self, relative_path: str) -> bool:
        return relative_path in self._names

    def read(self, relative_path: str) -> str:
        try:
            return self._archive.read(relative_path).decode("utf-8")
        except (KeyError, UnicodeDecodeError) as exc:
            raise CompilerError(f"Cannot read '{relative_path}' from archive '{self.path}': {exc}") from exc


@dataclass
class CompileResult:
    """The outcome of a compiler run.

    Attributes:
        schema: The linked and pruned schema.
        source_paths: Relative paths of the files found under the source path.
        outputs: Generated files per output directory.
        written: Files written to disk (empty for a dry run).
    """

    schema: Schema
    source_paths: list[str]
    outputs: dict[Path, dict[str, str]] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)


def load_sources(
    context: RunContext,
    source_path: list[Path],
    proto_path: list[Path],
    source_files: list[str] | None = None,
) -> tuple[list[ProtoFile], list[str]]:
    """Parse the source files and, transitively, every file they import.

    Imports that cannot be found are left for the linker to report.

    Returns:
        All parsed files and the relative paths of the source files among them.

    Raises:
        CompilerError: On unreadable roots or files, parse errors, or listed
            source files that do not exist.
    """
    source_roots = [context.open_root(p) for p in source_path]
    proto_roots = [context.open_root(p) for p in proto_path]
    wanted = set(source_files or [])

    loaded: dict[str, ProtoFile] = {}
    sources: list[str] = []
    for root in source_roots:
        for relative_path in root.list_protos():
            if wanted and relative_path not in wanted:
                continue
            if relative_path in loaded:
                raise CompilerError(
                    f"'{relative_path}' is found in both '{loaded[relative_path].location.base}' and '{root.base}'"
                )
            loaded[relative_path] = context.parse_file(root, relative_path)
            sources.append(relative_path)

    missing = sorted(wanted - set(loaded))
    if missing:
        raise CompilerError(f"Source file(s) not found: {', '.join(missing)}")

    pending = [path for f in loaded.values() for path in f.all_imports]
    while pending:
        path = pending.pop(0)
        if path in loaded:
            continue
        for root in source_roots + proto_roots:
            if root.contains(path):
                loaded[path] = context.parse_file(root, path)
                pending.extend(loaded[path].all_imports)
                break
    return list(loaded.values()), sources


def load_schema(proto_path: list[Path], *, permit_package_cycles: bool = False) -> Schema:
    """Load and link every .proto file under *proto_path*, without pruning."""
    with RunContext() as context:
        files, _ = load_sources(context, proto_path, [])
        return _link(files, permit_package_cycles)


def run_compiler(
    config: RunConfig,
    base_dir: Path,
    *,
    listener: EventListener | None = None,
    generate: bool = True,
    dry_run: bool = False,
) -> CompileResult:
    """Run the compiler as configured by *config*.

    Args:
        config: The run configuration.
        base_dir: Directory that relative paths in *config* are resolved against.
        listener: Receives phase notifications; it may cancel the run.
        generate: Run the configured targets.
        dry_run: Run targets but write nothing.

    Raises:
        CompilerError: On any failure, including cancellation.
    """
    with RunContext(listener) as context:
        context.listener.run_start(context)
        try:
            result = _run(context, config, base_dir, generate=generate, dry_run=dry_run)
        except CompilerError as exc:
            context.listener.run_failed(context, exc)
            raise
        context.listener.run_complete(context)
        return result


# ################
# Implementation
# ################


def _link(files: list[ProtoFile], permit_package_cycles: bool) -> Schema:
    try:
        return link(files, permit_package_cycles=permit_package_cycles)
    except LinkError as exc:
        error_lines = "\n".join(f"  {e}" for e in exc.errors)
        raise CompilerError(f"Link errors:\n{error_lines}") from exc


def _prune(schema: Schema, pruner: Pruner, strict: bool) -> Schema:
    try:
        return pruner.prune(schema, strict=strict)
    except PruningError as exc:
        raise CompilerError(str(exc)) from exc


def _run(context: RunContext, config: RunConfig, base_dir: Path, *, generate: bool, dry_run: bool) -> CompileResult:
    listener = context.listener
    files, sources = load_sources(
        context,
        [base_dir / p for p in config.source_path],
        [base_dir / p for p in config.proto_path],
        config.source_files,
    )
    listener.schema_loaded(context, len(files))

    context.check_cancelled("linking")
    schema = _link(files, config.permit_package_cycles)
    listener.schema_linked(context, schema)

    context.check_cancelled("pruning")
    pruner = Pruner(config.roots, config.prunes)
    pruned = _prune(schema, pruner, config.strict_pruning)
    listener.schema_pruned(context, pruned, pruner)

    result = CompileResult(schema=pruned, source_paths=sources)
    if not generate:
        return result

    source_set = set(sources)
    for module_name, module_schema, claimed in _generation_units(config, base_dir, pruned):
        emitted = Schema(files=[f for f in module_schema.files if f.location.path in source_set])
        out_suffix = Path(module_name) if module_name else Path()
        for target_config in config.targets:
            context.check_cancelled(f"{target_config.type} target")
            listener.target_start(context, target_config)
            view = without_types(emitted, claimed)
            try:
                outputs = create_target(target_config).generate(view, target_config)
            except TargetError as exc:
                raise CompilerError(f"Target '{target_config.type}' failed: {exc}") from exc
            if target_config.exclusive:
                claimed |= handled_types(view, target_config)

            out_dir = base_dir / target_config.out / out_suffix
            result.outputs.setdefault(out_dir, {}).update(outputs)
            if not dry_run:
                result.written.extend(_write_outputs(out_dir, outputs))
            listener.target_complete(context, target_config, outputs)
    return result


def _generation_units(config: RunConfig, base_dir: Path, pruned: Schema) -> list[tuple[str | None, Schema, set[str]]]:
    """Return ``(module name, module schema, claimed types)`` for each unit to generate."""
    if config.manifest is None:
        return [(None, pruned, set())]
    try:
        manifest = load_manifest(base_dir / config.manifest)
        modules = manifest.ordered()
    except ManifestError as exc:
        raise CompilerError(str(exc)) from exc

    module_types: dict[str, set[str]] = {}
    units: list[tuple[str | None, Schema, set[str]]] = []
    for module in modules:
        module_schema = _prune(pruned, Pruner(module.roots, module.prunes), config.strict_pruning)
        claimed: set[str] = set()
        for dependency in manifest.upstream(module.name):
            claimed |= module_types[dependency]
        module_types[module.name] = {
            element.qualified_name for f in module_schema.files for element in walk_types(f.types)
        } | claimed
        units.append((module.name, module_schema, claimed))
    return units


def _write_outputs(out_dir: Path, outputs: dict[str, str]) -> list[Path]:
    written: list[Path] = []
    for relative_path, text in sorted(outputs.items()):
        path = out_dir / relative_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise CompilerError(f"Cannot write '{path}': {exc}") from exc
        written.append(path)
    return written
