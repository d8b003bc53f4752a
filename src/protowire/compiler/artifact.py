# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of linked schema artifacts.

Artifacts are stored as compact JSON files for portability and human-readability.
The format is versioned so future model changes can be detected.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from protowire.model import ProtoFile, Schema

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"


class ArtifactError(ValueError):
    """Raised when an artifact cannot be decoded."""


def serialize(proto_file: ProtoFile) -> str:
    """Serialize a linked ProtoFile to a compact JSON string."""
    return json.dumps({"v": ARTIFACT_FORMAT_VERSION, "file": _dump(proto_file)}, separators=(",", ":"))


def deserialize(data: str) -> ProtoFile:
    """Deserialize a ProtoFile from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`ProtoFile` model.

    Raises:
        ArtifactError: If the data is not an artifact or its format version is
            not recognised.
    """
    obj = _load(data)
    return _validate(ProtoFile, obj.get("file"))


def serialize_schema(schema: Schema) -> str:
    """Serialize every file of *schema* into one JSON document."""
    return json.dumps(
        {"v": ARTIFACT_FORMAT_VERSION, "files": [_dump(f) for f in schema.files]},
        separators=(",", ":"),
    )


def deserialize_schema(data: str) -> Schema:
    """Inverse of :func:`serialize_schema`."""
    obj = _load(data)
    files = obj.get("files")
    if not isinstance(files, list):
        raise ArtifactError("Schema artifact has no 'files' list")
    return Schema(files=[_validate(ProtoFile, f) for f in files])


def write_artifact(proto_file: ProtoFile, path: Path) -> None:
    """Write a compiled artifact to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(proto_file), encoding="utf-8")


def read_artifact(path: Path) -> ProtoFile:
    """Read and deserialize a compiled artifact from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _dump(proto_file: ProtoFile) -> dict[str, Any]:
    return proto_file.model_dump(mode="json", exclude_none=True)


def _load(data: str) -> dict[str, Any]:
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ArtifactError(f"Artifact is not valid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ArtifactError("Artifact must be a JSON object")
    version = obj.get("v")
    if version != ARTIFACT_FORMAT_VERSION:
        raise ArtifactError(f"Unsupported artifact format version: {version!r}")
    return obj


def _validate(model: type[ProtoFile], obj: Any) -> ProtoFile:
    try:
        return model.model_validate(obj)
    except ValidationError as exc:
        raise ArtifactError(f"Malformed artifact: {exc}") from exc
