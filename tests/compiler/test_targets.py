# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for code generation targets."""

import json

import pytest

from protowire.compiler.artifact import deserialize
from protowire.compiler.linker import link
from protowire.compiler.targets import (
    JsonTarget,
    Target,
    TargetConfig,
    TargetError,
    create_target,
    handled_types,
    load_factory,
    without_types,
)
from protowire.model import Location, Schema
from protowire.parser import parse

# ###############
# Test Helpers
# ###############

ORDERS_PROTO = """
syntax = "proto3";
package acme.orders;

option java_package = "com.acme.orders";

message Order {
  string id = 1 [deprecated = true];
  repeated Line lines = 2;
  Status status = 3;

  message Line {
    string sku = 1;
  }
}

enum Status {
  STATUS_UNKNOWN = 0;
  STATUS_PAID = 1 [deprecated = true];
}

service Orders {
  option deprecated = true;
  rpc Get (Order) returns (Order) { option deprecated = true; }
}
"""

DESCRIPTOR_PROTO = """
package google.protobuf;
message FieldOptions { extensions 1000 to max; }
"""

CUSTOM_OPTIONS_PROTO = """
package acme.meta;
import "google/protobuf/descriptor.proto";
extend google.protobuf.FieldOptions { optional string label = 50000; }
message Tagged { optional int32 x = 1; }
"""


def _schema(*sources: tuple[str, str]) -> Schema:
    return link([parse(source, Location.get("/protos", path)) for path, source in sources])


def _orders() -> Schema:
    return _schema(("acme/orders.proto", ORDERS_PROTO))


def _config(**kwargs) -> TargetConfig:
    return TargetConfig(type="json", out="gen", **kwargs)


def _emitted_types(outputs: dict[str, str], path: str) -> list[str]:
    return [t.name for t in deserialize(outputs[path]).types]


# ###############
# Target Configuration
# ###############


class TestTargetConfig:
    def test_defaults(self) -> None:
        config = _config()
        assert config.includes == ["*"]
        assert config.excludes == []
        assert config.exclusive is True
        assert config.emit_declared_options is True
        assert config.emit_applied_options is True

    def test_handles(self) -> None:
        config = _config(includes=["acme.*"], excludes=["acme.internal.*"])
        assert config.handles("acme.orders.Order")
        assert not config.handles("acme.internal.Secret")
        assert not config.handles("other.Thing")


# ###############
# JSON Target
# ###############


class TestJsonTarget:
    def test_one_artifact_per_file(self) -> None:
        schema = _orders()
        outputs = JsonTarget().generate(schema, _config())
        assert list(outputs) == ["acme/orders.json"]
        assert deserialize(outputs["acme/orders.json"]) == schema.files[0]

    def test_name_suffix(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config(name_suffix="_schema"))
        assert list(outputs) == ["acme/orders_schema.json"]

    def test_includes_filter_types(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config(includes=["acme.orders.Status"]))
        assert _emitted_types(outputs, "acme/orders.json") == ["Status"]

    def test_container_of_included_nested_type_is_kept(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config(includes=["acme.orders.Order.Line"]))
        order = deserialize(outputs["acme/orders.json"]).types[0]
        assert order.name == "Order"
        assert [t.name for t in order.nested_types] == ["Line"]

    def test_excluded_types_are_skipped(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config(excludes=["acme.orders.Order*"]))
        assert _emitted_types(outputs, "acme/orders.json") == ["Status"]

    def test_file_with_nothing_to_emit_is_skipped(self) -> None:
        schema = _schema(("a.proto", "package a; message A {}"), ("b.proto", "package b; message B {}"))
        outputs = JsonTarget().generate(schema, _config(includes=["a.*"]))
        assert list(outputs) == ["a.json"]

    def test_applied_options_can_be_dropped(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config(emit_applied_options=False))
        proto_file = deserialize(outputs["acme/orders.json"])
        assert proto_file.options == []
        order, status = proto_file.types
        assert order.field_by_name("id").options == []
        assert status.constant("STATUS_PAID").options == []
        assert proto_file.services[0].options == []
        assert proto_file.services[0].rpcs[0].options == []

    def test_applied_options_are_kept_by_default(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config())
        proto_file = deserialize(outputs["acme/orders.json"])
        assert proto_file.options[0].name == "java_package"
        assert proto_file.types[0].field_by_name("id").options[0].value is True

    def test_declared_options_can_be_dropped(self) -> None:
        schema = _schema(
            ("google/protobuf/descriptor.proto", DESCRIPTOR_PROTO),
            ("acme/meta.proto", CUSTOM_OPTIONS_PROTO),
        )
        kept = JsonTarget().generate(schema, _config())
        dropped = JsonTarget().generate(schema, _config(emit_declared_options=False))
        assert deserialize(kept["acme/meta.json"]).extends[0].name == "google.protobuf.FieldOptions"
        assert deserialize(dropped["acme/meta.json"]).extends == []

    def test_output_is_json(self) -> None:
        outputs = JsonTarget().generate(_orders(), _config())
        assert json.loads(outputs["acme/orders.json"])["file"]["package"] == "acme.orders"


def test_target_is_an_interface() -> None:
    with pytest.raises(TypeError):
        Target()
    target: Target = JsonTarget()
    assert "acme/orders.json" in target.generate(_orders(), _config())


# ###############
# Target Creation
# ###############


class TestCreateTarget:
    def test_json_target(self) -> None:
        assert isinstance(create_target(_config()), JsonTarget)

    def test_custom_target_from_factory(self) -> None:
        config = TargetConfig(type="custom", out="gen", factory="protowire.compiler.targets:JsonTarget")
        assert isinstance(create_target(config), JsonTarget)

    def test_custom_target_requires_factory(self) -> None:
        with pytest.raises(TargetError, match="requires a 'factory'"):
            create_target(TargetConfig(type="custom", out="gen"))

    def test_unknown_target_type(self) -> None:
        with pytest.raises(TargetError, match="Unknown target type 'cobol'"):
            create_target(TargetConfig(type="cobol", out="gen"))

    def test_factory_must_return_a_target(self) -> None:
        config = TargetConfig(type="custom", out="gen", factory="builtins:object")
        with pytest.raises(TargetError, match="did not return a target"):
            create_target(config)


class TestLoadFactory:
    def test_dotted_attribute(self) -> None:
        assert load_factory("protowire.compiler.targets:JsonTarget.generate") is JsonTarget.generate

    @pytest.mark.parametrize("reference", ["no_colon", ":attr", "module:"])
    def test_invalid_reference(self, reference: str) -> None:
        with pytest.raises(TargetError, match="Invalid factory reference"):
            load_factory(reference)

    def test_missing_module(self) -> None:
        with pytest.raises(TargetError, match="Cannot import target module 'protowire_no_such_module'"):
            load_factory("protowire_no_such_module:make")

    def test_missing_attribute(self) -> None:
        with pytest.raises(TargetError, match="has no attribute 'Nope'"):
            load_factory("protowire.compiler.targets:Nope")

    def test_not_callable(self) -> None:
        with pytest.raises(TargetError, match="is not callable"):
            load_factory("protowire.compiler.targets:JSON_TARGET")


# ###############
# Exclusive Claiming Helpers
# ###############


def test_handled_types() -> None:
    config = _config(includes=["acme.orders.Order*"])
    assert handled_types(_orders(), config) == {"acme.orders.Order", "acme.orders.Order.Line"}


def test_without_types_removes_declarations_only() -> None:
    schema = _orders()
    stripped = without_types(schema, {"acme.orders.Order.Line"})
    assert set(stripped.types) == {"acme.orders.Order", "acme.orders.Status"}
    assert stripped.get_message("acme.orders.Order").field_by_name("lines") is not None
    assert "acme.orders.Order.Line" in schema.types


def test_without_types_with_nothing_to_remove() -> None:
    schema = _orders()
    assert without_types(schema, set()) is schema
