# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema-agnostic runtime value of a message."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from protowire.wire.unknown import UnknownFieldSet

# ###############
# Public Interface
# ###############


class Message:
    """Field values of one message instance, keyed by field name.

    Fields that were never set are absent. Repeated fields hold lists and map
    fields hold dicts; embedded messages are nested :class:`Message` values.
    """

    __slots__ = ("type_name", "_values", "unknown_fields")

    def __init__(self, type_name: str, unknown_fields: UnknownFieldSet | None = None, **values: Any) -> None:
        self.type_name = type_name
        self._values: dict[str, Any] = dict(values)
        self.unknown_fields = unknown_fields if unknown_fields is not None else UnknownFieldSet()

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(self._values.items())

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return (
            self.type_name == other.type_name
            and self._values == other._values
            and self.unknown_fields == other.unknown_fields
        )

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
        extra = f", unknown_fields={len(self.unknown_fields)}" if self.unknown_fields else ""
        return f"Message({self.type_name!r}{', ' if fields else ''}{fields}{extra})"

    def to_dict(self) -> dict[str, Any]:
        """Return the field values as plain data, nested messages included."""
        return {name: _plain(value) for name, value in self._values.items()}


# ################
# Implementation
# ################


def _plain(value: Any) -> Any:
    if isinstance(value, Message):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value
