# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for .proto files: linking, pruning, and code generation."""

from protowire.compiler.artifact import (
    ARTIFACT_FORMAT_VERSION,
    ArtifactError,
    deserialize,
    deserialize_schema,
    read_artifact,
    serialize,
    serialize_schema,
    write_artifact,
)
from protowire.compiler.build import (
    CompileResult,
    CompilerError,
    RunCancelledError,
    RunContext,
    load_schema,
    load_sources,
    run_compiler,
)
from protowire.compiler.events import ConsoleEventListener, EventListener
from protowire.compiler.linker import LinkError, link
from protowire.compiler.pruner import Pruner, PruningError, prune
from protowire.compiler.targets import JsonTarget, Target, TargetConfig, TargetError, create_target

__all__ = [
    "link",
    "LinkError",
    "prune",
    "Pruner",
    "PruningError",
    "serialize",
    "deserialize",
    "serialize_schema",
    "deserialize_schema",
    "write_artifact",
    "read_artifact",
    "ARTIFACT_FORMAT_VERSION",
    "ArtifactError",
    "EventListener",
    "ConsoleEventListener",
    "Target",
    "TargetConfig",
    "TargetError",
    "JsonTarget",
    "create_target",
    "RunContext",
    "CompileResult",
    "CompilerError",
    "RunCancelledError",
    "load_sources",
    "load_schema",
    "run_compiler",
]
