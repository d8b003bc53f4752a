# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run configuration and module manifests."""

from protowire.workspace.config import CONFIG_FILE_NAME, RunConfig, RunConfigError, load_run_config
from protowire.workspace.manifest import Manifest, ManifestError, Module, load_manifest

__all__ = [
    "CONFIG_FILE_NAME",
    "Manifest",
    "ManifestError",
    "Module",
    "RunConfig",
    "RunConfigError",
    "load_manifest",
    "load_run_config",
]
