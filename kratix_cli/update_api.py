"""Update the API (CRD) of a Promise: its group, version, kind and properties."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from .layout import write_file

__all__ = [
    "API_FILE_NAME",
    "PROMISE_FILE_NAME",
    "RESOURCE_FILE_NAME",
    "SUPPORTED_PROPERTY_TYPES",
    "GVKChange",
    "update_crd",
    "update_example_resource",
    "update_api",
]

API_FILE_NAME = "api.yaml"
PROMISE_FILE_NAME = "promise.yaml"
RESOURCE_FILE_NAME = "example-resource.yaml"

SUPPORTED_PROPERTY_TYPES = ("string", "number", "integer", "object", "boolean")


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False, allow_unicode=True)


def _load_mapping(path: str | os.PathLike[str]) -> dict[str, Any]:
    loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path} does not hold a YAML mapping")
    return loaded


def _first_version(crd: dict[str, Any]) -> dict[str, Any]:
    versions = crd.setdefault("spec", {}).setdefault("versions", [])
    if not versions:
        versions.append({})
    return versions[0]


def _schema_properties(crd: dict[str, Any]) -> dict[str, Any]:
    schema = _first_version(crd).setdefault("schema", {})
    if schema.get("openAPIV3Schema") is None:
        schema["openAPIV3Schema"] = {}
    root = schema["openAPIV3Schema"]
    if root.get("properties") is None:
        root["properties"] = {}
    return root["properties"]


@dataclass
class GVKChange:
    """Requested changes to a CRD's group, version, kind and plural name."""

    group: str = ""
    kind: str = ""
    version: str = ""
    plural: str = ""

    def needs_update(self) -> bool:
        """Return True if any part of the GVK is to change."""
        return bool(self.version or self.kind or self.group or self.plural)

    def apply(self, crd: dict[str, Any]) -> None:
        """Apply the requested changes to ``crd`` in place."""
        spec = crd.setdefault("spec", {})
        names = spec.get("names")
        if names is None:
            names = spec["names"] = {}

        if self.kind:
            names["kind"] = self.kind
            names["singular"] = self.kind.lower()
        if self.version:
            _first_version(crd)["name"] = self.version
        if self.group:
            spec["group"] = self.group
        if self.plural:
            names["plural"] = self.plural

        metadata = crd.get("metadata")
        if metadata is None:
            metadata = crd["metadata"] = {}
        metadata["name"] = f"{names.get('plural', '')}.{spec.get('group', '')}"


def _remove_property(spec_properties: dict[str, Any], path: str) -> None:
    *parents, last = path.split(".")
    current: dict[str, Any] | None = spec_properties
    for name in parents:
        nested = (current.get(name) or {}).get("properties")
        if nested is None:
            current = None
            break
        current = nested
    if current is not None:
        current.pop(last, None)


def _add_property(spec_properties: dict[str, Any], path: str, prop_type: str) -> None:
    if prop_type not in SUPPORTED_PROPERTY_TYPES:
        raise ValueError(f"unsupported property type: {prop_type}")

    *parents, last = path.split(".")
    current = spec_properties
    for name in parents:
        if (current.get(name) or {}).get("properties") is None:
            current[name] = {"type": "object", "properties": {}}
        if current[name].get("type") != "object":
            raise ValueError(f"nested field {name} is not an object")
        current = current[name]["properties"]
    current[last] = {"type": prop_type}


def update_crd(
    crd: dict[str, Any],
    change: GVKChange | None,
    properties: Iterable[str],
    directory: str | os.PathLike[str],
) -> dict[str, Any]:
    """Apply ``change`` and the property edits to ``crd``; return it.

    Each property is ``NAME:TYPE`` to add or replace it, or ``NAME-`` to remove
    it; names may be nested with ``.``. A GVK change also rewrites the example
    resource in ``directory``.
    """
    if change is not None and change.needs_update():
        change.apply(crd)
        update_example_resource(crd, directory)

    top = _schema_properties(crd)
    if (top.get("spec") or {}).get("properties") is None:
        top["spec"] = {"type": "object", "properties": {}}
    spec_properties = top["spec"]["properties"]

    for prop in properties:
        parsed = prop.split(":")
        if len(parsed) != 2:
            if not prop.endswith("-"):
                raise ValueError(f"invalid property format: {prop}")
            _remove_property(spec_properties, prop.rstrip("-"))
            continue
        name, prop_type = parsed
        _add_property(spec_properties, name, prop_type)

    return crd


def update_example_resource(crd: dict[str, Any], directory: str | os.PathLike[str]) -> None:
    """Point the example resource in ``directory`` at the CRD's group, version and kind."""
    path = Path(directory) / RESOURCE_FILE_NAME
    resource = _load_mapping(path)
    spec = crd.get("spec") or {}
    version = _first_version(crd).get("name", "")
    resource["apiVersion"] = f"{spec.get('group', '')}/{version}"
    resource["kind"] = (spec.get("names") or {}).get("kind", "")
    write_file(path, _dump(resource))
    print("Example resource updated")


def update_api(
    directory: str | os.PathLike[str] = ".",
    change: GVKChange | None = None,
    properties: Iterable[str] = (),
) -> None:
    """Update the Promise API stored in ``api.yaml`` or ``promise.yaml`` in ``directory``."""
    api_path = Path(directory) / API_FILE_NAME
    promise_path = Path(directory) / PROMISE_FILE_NAME

    if api_path.exists():
        crd = _load_mapping(api_path)
        update_crd(crd, change, properties, directory)
        write_file(api_path, _dump(crd))
    else:
        try:
            promise = _load_mapping(promise_path)
        except OSError as exc:
            raise FileNotFoundError(
                f"failed to find {API_FILE_NAME} or {PROMISE_FILE_NAME} in directory. "
                f"Please run 'kratix init promise' first: {exc}"
            ) from exc
        spec = promise.get("spec")
        if spec is None:
            spec = promise["spec"] = {}
        crd = spec.get("api")
        if not isinstance(crd, dict):
            crd = {}
        spec["api"] = update_crd(crd, change, properties, directory)
        write_file(promise_path, _dump(promise))

    print("Promise api updated")