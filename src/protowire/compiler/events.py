# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Observers of compiler phase boundaries."""

from __future__ import annotations

import sys
import time
from typing import TYPE_CHECKING, TextIO

from yachalk import chalk

if TYPE_CHECKING:
    from protowire.compiler.build import RunContext
    from protowire.compiler.pruner import Pruner
    from protowire.compiler.targets import TargetConfig
    from protowire.model import Schema

# ###############
# Public Interface
# ###############


class EventListener:
    """Receives notifications as a compiler run progresses.

    Every hook is a no-op; subclasses override the ones they need. A listener
    may call ``context.cancel()`` from any hook to stop the run before its
    next phase.
    """

    def run_start(self, context: RunContext) -> None:
        pass

    def schema_loaded(self, context: RunContext, file_count: int) -> None:
        pass

    def schema_linked(self, context: RunContext, schema: Schema) -> None:
        pass

    def schema_pruned(self, context: RunContext, schema: Schema, pruner: Pruner) -> None:
        pass

    def target_start(self, context: RunContext, target: TargetConfig) -> None:
        pass

    def target_complete(self, context: RunContext, target: TargetConfig, outputs: dict[str, str]) -> None:
        pass

    def run_complete(self, context: RunContext) -> None:
        pass

    def run_failed(self, context: RunContext, error: Exception) -> None:
        pass


class ConsoleEventListener(EventListener):
    """Prints phase progress to a stream (stderr by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._started = 0.0

    def run_start(self, context: RunContext) -> None:
        self._started = time.monotonic()
        self._print(chalk.blue("Compiling schema..."))

    def schema_loaded(self, context: RunContext, file_count: int) -> None:
        self._print(f"  Loaded {file_count} proto file(s)")

    def schema_linked(self, context: RunContext, schema: Schema) -> None:
        self._print(f"  Linked {len(schema.types)} type(s) and {len(schema.services)} service(s)")

    def schema_pruned(self, context: RunContext, schema: Schema, pruner: Pruner) -> None:
        self._print(f"  Pruned to {len(schema.types)} type(s) and {len(schema.services)} service(s)")
        for pattern in pruner.unused_roots:
            self._print(chalk.yellow(f"  Warning: root '{pattern}' matched nothing"))
        for pattern in pruner.unused_rubbish:
            self._print(chalk.yellow(f"  Warning: prune '{pattern}' matched nothing"))

    def target_start(self, context: RunContext, target: TargetConfig) -> None:
        self._print(f"  Running {target.type} target -> {target.out}")

    def target_complete(self, context: RunContext, target: TargetConfig, outputs: dict[str, str]) -> None:
        self._print(chalk.green(f"  Generated {len(outputs)} file(s) for {target.type} target"))

    def run_complete(self, context: RunContext) -> None:
        elapsed = time.monotonic() - self._started
        self._print(chalk.green(f"Done ({elapsed:.1f}s)"))

    def run_failed(self, context: RunContext, error: Exception) -> None:
        self._print(chalk.red("Compilation failed"))

    def _print(self, text: str) -> None:
        print(text, file=self._stream or sys.stderr)
