"""JSON value aliases for payloads leaving the engine.

The result projection emits only these shapes so the reporting layer can
serialise it without importing the engine's dataclasses.
"""

from __future__ import annotations

from typing import TypeAlias

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
