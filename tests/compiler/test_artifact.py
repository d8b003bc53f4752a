# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the ProtoWire schema artifact serialization."""

import json
from pathlib import Path

import pytest

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
from protowire.compiler.linker import link
from protowire.model import Location, MapTypeRef, NamedTypeRef, ProtoFile, Schema
from protowire.parser import parse

# ###############
# Helpers
# ###############

ORDERS_PROTO = """
syntax = "proto3";
package acme.orders;

option java_package = "com.acme.orders";

message Order {
  string id = 1;
  repeated Line lines = 2 [packed = false];
  map<string, Line> by_sku = 3;
  oneof payment {
    string card = 4;
    bytes token = 5;
  }
  Status status = 6;

  message Line {
    string sku = 1;
    uint32 quantity = 2;
  }
}

enum Status {
  STATUS_UNKNOWN = 0;
  STATUS_PAID = 1 [deprecated = true];
}

service Orders {
  rpc Get (Order) returns (Order) { option (acme.auth) = { role: "reader" }; }
}
"""


def _linked() -> Schema:
    return link([parse(ORDERS_PROTO, Location.get("/protos", "acme/orders.proto"))])


def _roundtrip(proto_file: ProtoFile) -> ProtoFile:
    """Serialize and deserialize a ProtoFile."""
    return deserialize(serialize(proto_file))


# ###############
# Serialize / Deserialize
# ###############


class TestFileArtifacts:
    def test_empty_file_roundtrip(self) -> None:
        proto_file = ProtoFile(location=Location(path="empty.proto"))
        assert _roundtrip(proto_file) == proto_file

    def test_linked_file_roundtrip(self) -> None:
        proto_file = _linked().files[0]
        assert _roundtrip(proto_file) == proto_file

    def test_type_refs_keep_their_kind(self) -> None:
        restored = _roundtrip(_linked().files[0])
        order = restored.types[0]
        lines = order.field_by_name("lines")
        by_sku = order.field_by_name("by_sku")
        assert isinstance(lines.type, NamedTypeRef)
        assert lines.type.name == "acme.orders.Order.Line"
        assert isinstance(by_sku.type, MapTypeRef)
        assert lines.packed_option is False

    def test_aggregate_options_survive(self) -> None:
        restored = _roundtrip(_linked().files[0])
        rpc = restored.services[0].rpcs[0]
        assert rpc.options[0].value == {"role": "reader"}

    def test_output_is_compact_and_versioned(self) -> None:
        text = serialize(_linked().files[0])
        assert "\n" not in text
        assert ": " not in text
        obj = json.loads(text)
        assert obj["v"] == ARTIFACT_FORMAT_VERSION
        assert obj["file"]["package"] == "acme.orders"

    def test_none_values_are_omitted(self) -> None:
        obj = json.loads(serialize(ProtoFile(location=Location(path="a.proto"))))
        assert "package" not in obj["file"]


class TestSchemaArtifacts:
    def test_schema_roundtrip(self) -> None:
        schema = _linked()
        restored = deserialize_schema(serialize_schema(schema))
        assert restored.files == schema.files
        assert set(restored.types) == set(schema.types)

    def test_missing_files_list(self) -> None:
        with pytest.raises(ArtifactError, match="no 'files' list"):
            deserialize_schema(json.dumps({"v": ARTIFACT_FORMAT_VERSION}))


# ###############
# Errors
# ###############


class TestArtifactErrors:
    def test_invalid_json(self) -> None:
        with pytest.raises(ArtifactError, match="not valid JSON"):
            deserialize("{not json")

    def test_non_object(self) -> None:
        with pytest.raises(ArtifactError, match="must be a JSON object"):
            deserialize("[]")

    def test_unknown_version(self) -> None:
        with pytest.raises(ArtifactError, match="Unsupported artifact format version: '99'"):
            deserialize(json.dumps({"v": "99", "file": {}}))

    def test_missing_version(self) -> None:
        with pytest.raises(ArtifactError, match="version: None"):
            deserialize(json.dumps({"file": {}}))

    def test_malformed_file(self) -> None:
        with pytest.raises(ArtifactError, match="Malformed artifact"):
            deserialize(json.dumps({"v": ARTIFACT_FORMAT_VERSION, "file": {"types": "nope"}}))


# ###############
# Files on Disk
# ###############


def test_write_and_read_artifact(tmp_path: Path) -> None:
    proto_file = _linked().files[0]
    path = tmp_path / "nested" / "dir" / "orders.pw.json"
    write_artifact(proto_file, path)
    assert path.is_file()
    assert read_artifact(path) == proto_file
