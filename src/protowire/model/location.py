# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Source locations for schema declarations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############


class Location(BaseModel):
    """Identifies a position inside a schema source unit.

    Attributes:
        base: The source root the file was found under (a directory or archive).
        path: The path of the file relative to *base*, using ``/`` separators.
        line: 1-based line number, or 0 when the location names a whole file.
        column: 1-based column number, or 0 when unknown.
    """

    model_config = ConfigDict(frozen=True)

    base: str = ""
    path: str
    line: int = 0
    column: int = 0

    @classmethod
    def get(cls, base: str, path: str | None = None) -> Location:
        """Return the location of *path* under *base* (or of *base* alone)."""
        if path is None:
            return cls(path=base)
        return cls(base=base.rstrip("/"), path=path.lstrip("/"))

    def at(self, line: int, column: int) -> Location:
        """Return a location at *line*/*column* within the same file."""
        return Location(base=self.base, path=self.path, line=line, column=column)

    def without_position(self) -> Location:
        """Return the file-level location (line and column cleared)."""
        return Location(base=self.base, path=self.path)

    def sort_key(self) -> tuple[str, str, int, int]:
        """Key used to process files in a stable order."""
        return (self.base, self.path, self.line, self.column)

    def __str__(self) -> str:
        text = f"{self.base}/{self.path}" if self.base else self.path
        if self.line:
            text += f":{self.line}"
            if self.column:
                text += f":{self.column}"
        return text
