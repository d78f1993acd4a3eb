"""JSON shapes accepted and produced by the converters.

Anything :func:`json.loads` can return fits :data:`JsonValue`. Objects
(:data:`JsonObject`) are the form documents and entries take on the human
side; tagged strings such as ``"$fog-Hash:..."`` are ordinary ``str`` leaves.
"""

from __future__ import annotations

__all__ = ["JsonObject", "JsonPrimitive", "JsonValue"]

type JsonPrimitive = str | int | float | bool | None

type JsonValue = JsonPrimitive | list[JsonValue] | dict[str, JsonValue]

type JsonObject = dict[str, JsonValue]
