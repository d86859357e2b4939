"""Derive an OpenAPI v3 schema from Helm chart values."""

from __future__ import annotations

from typing import Any

__all__ = ["UnsupportedValueError", "helm_values_to_schema"]

PRESERVE_UNKNOWN = "x-kubernetes-preserve-unknown-fields"
INT_OR_STRING = "x-kubernetes-int-or-string"


class UnsupportedValueError(TypeError):
    """Raised when a chart value has a type that has no schema equivalent."""


def helm_values_to_schema(values: dict[str, Any]) -> dict[str, Any]:
    """Return an object schema describing every top-level key of ``values``."""
    return {
        "type": "object",
        "properties": {key: _schema_for(value) for key, value in values.items()},
    }


def _schema_for(value: Any) -> dict[str, Any]:
    # bool must be tested before int: True and False are ints in Python.
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {key: _schema_for(item) for key, item in value.items()},
            PRESERVE_UNKNOWN: True,
        }
    if isinstance(value, list):
        items = _schema_for(value[0]) if value else {INT_OR_STRING: True}
        return {"type": "array", "items": items}
    if value is None:
        return {"type": "object", "properties": {}, PRESERVE_UNKNOWN: True}
    raise UnsupportedValueError(
        f"unsupported type {type(value).__name__} found in helm chart values for {value!r}"
    )