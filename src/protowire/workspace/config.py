# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the ProtoWire run configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from protowire.compiler.targets import CUSTOM_TARGET, JSON_TARGET, TargetConfig

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = "protowire.yaml"


class RunConfigError(Exception):
    """Raised when a run configuration file is invalid or cannot be loaded."""


@dataclass
class RunConfig:
    """The parsed configuration of a compiler run.

    Attributes:
        source_path: Source roots (directories or ``.zip`` archives) whose
            files are generated.
        proto_path: Roots that only supply imported files.
        source_files: Relative paths of the files to generate; empty means
            every file under the source roots.
        roots: Pruning root patterns.
        prunes: Pruning rubbish patterns.
        permit_package_cycles: Accept import cycles between packages.
        strict_pruning: Fail when a root or prune pattern matches nothing.
        manifest: Path of an optional module manifest.
        targets: Configured code generation targets, in run order.
    """

    source_path: list[str] = field(default_factory=lambda: ["."])
    proto_path: list[str] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)
    roots: list[str] = field(default_factory=lambda: ["*"])
    prunes: list[str] = field(default_factory=list)
    permit_package_cycles: bool = False
    strict_pruning: bool = False
    manifest: str | None = None
    targets: list[TargetConfig] = field(default_factory=list)


def load_run_config(path: Path) -> RunConfig:
    """Load and parse a run configuration file.

    Args:
        path: Path to the ``protowire.yaml`` file.

    Returns:
        A RunConfig instance populated from the file.

    Raises:
        RunConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise RunConfigError(f"Run config file not found: {path}") from None
    except OSError as exc:
        raise RunConfigError(f"Cannot read run config file: {exc}") from exc

    return _parse_run_config(text, source_label=str(path))


# ################
# Implementation
# ################

_TOP_LEVEL_KEYS = frozenset(
    {
        "source-path",
        "proto-path",
        "source-files",
        "roots",
        "prunes",
        "permit-package-cycles",
        "strict-pruning",
        "manifest",
        "targets",
    }
)

_TARGET_KEYS = frozenset(
    {
        "type",
        "out",
        "includes",
        "excludes",
        "exclusive",
        "emit-declared-options",
        "emit-applied-options",
        "name-suffix",
        "factory",
    }
)


def _parse_run_config(text: str, source_label: str = "<string>") -> RunConfig:
    """Parse run config YAML text into a RunConfig.

    An empty document yields the default configuration.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RunConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return RunConfig()
    if not isinstance(data, dict):
        raise RunConfigError(f"{source_label}: run config must be a YAML mapping")

    unknown = sorted(str(k) for k in data if k not in _TOP_LEVEL_KEYS)
    if unknown:
        raise RunConfigError(f"{source_label}: unknown field(s) {', '.join(unknown)}")

    config = RunConfig()
    if "source-path" in data:
        config.source_path = _string_list(data, "source-path", source_label)
    if "proto-path" in data:
        config.proto_path = _string_list(data, "proto-path", source_label)
    if "source-files" in data:
        config.source_files = _string_list(data, "source-files", source_label)
    if "roots" in data:
        config.roots = _string_list(data, "roots", source_label)
    if "prunes" in data:
        config.prunes = _string_list(data, "prunes", source_label)
    config.permit_package_cycles = _optional_bool(data, "permit-package-cycles", False, source_label)
    config.strict_pruning = _optional_bool(data, "strict-pruning", False, source_label)
    if "manifest" in data:
        config.manifest = _require_string(data, "manifest", source_label)

    if "targets" in data:
        raw_targets = data["targets"]
        if not isinstance(raw_targets, list):
            raise RunConfigError(f"{source_label}: 'targets' must be a list")
        config.targets = [_parse_target(entry, index, source_label) for index, entry in enumerate(raw_targets)]
    return config


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a required string field from a mapping, raising RunConfigError if missing."""
    if key not in mapping:
        raise RunConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, str):
        raise RunConfigError(f"{source_label}: '{key}' must be a string")
    return value


def _string_list(mapping: dict[str, object], key: str, source_label: str) -> list[str]:
    value = mapping[key]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RunConfigError(f"{source_label}: '{key}' must be a list of strings")
    return list(value)


def _optional_bool(mapping: dict[str, object], key: str, default: bool, source_label: str) -> bool:
    if key not in mapping:
        return default
    value = mapping[key]
    if not isinstance(value, bool):
        raise RunConfigError(f"{source_label}: '{key}' must be true or false")
    return value


def _parse_target(entry: object, index: int, source_label: str) -> TargetConfig:
    """Parse a single target entry from the YAML list."""
    location = f"{source_label}: targets[{index}]"

    if not isinstance(entry, dict):
        raise RunConfigError(f"{location} must be a YAML mapping")

    unknown = sorted(str(k) for k in entry if k not in _TARGET_KEYS)
    if unknown:
        raise RunConfigError(f"{location}: unknown field(s) {', '.join(unknown)}")

    target_type = _require_string(entry, "type", location)
    if target_type not in (JSON_TARGET, CUSTOM_TARGET):
        raise RunConfigError(f"{location}: unknown target type '{target_type}'")

    factory = None
    if target_type == CUSTOM_TARGET:
        factory = _require_string(entry, "factory", location)
    elif "factory" in entry:
        raise RunConfigError(f"{location}: 'factory' is only valid for custom targets")

    target = TargetConfig(type=target_type, out=_require_string(entry, "out", location), factory=factory)
    if "includes" in entry:
        target.includes = _string_list(entry, "includes", location)
    if "excludes" in entry:
        target.excludes = _string_list(entry, "excludes", location)
    target.exclusive = _optional_bool(entry, "exclusive", True, location)
    target.emit_declared_options = _optional_bool(entry, "emit-declared-options", True, location)
    target.emit_applied_options = _optional_bool(entry, "emit-applied-options", True, location)
    if "name-suffix" in entry:
        target.name_suffix = _require_string(entry, "name-suffix", location)
    return target
