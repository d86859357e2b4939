"""Pipeline stage that writes a Terraform module call for a Kratix request."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml

__all__ = ["get_env", "must_have_env", "build_module_config", "main"]

_HTML_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def get_env(key: str, default: str) -> str:
    """Return the environment variable ``key``, or ``default`` if it is not set."""
    return os.environ.get(key, default)


def must_have_env(key: str) -> str:
    """Return the environment variable ``key``; raise RuntimeError if it is not set."""
    try:
        return os.environ[key]
    except KeyError:
        raise RuntimeError(f"Error: {key} environment variable is not set") from None


def build_module_config(
    data: dict[str, Any], module_source: str, module_version: str
) -> tuple[str, dict[str, Any]]:
    """Return the module's unique name and its Terraform JSON configuration."""
    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        raise ValueError("Error: metadata section not found in YAML file")

    namespace, name, kind = (
        value if isinstance(value, str) else ""
        for value in (metadata.get("namespace"), metadata.get("name"), data.get("kind"))
    )
    if not (namespace and name and kind):
        raise ValueError("Error: metadata.namespace, metadata.name, or kind is missing")

    unique_name = f"{kind}_{namespace}_{name}".lower()
    module: dict[str, Any] = {"source": f"git::{module_source}?ref={module_version}"}
    spec = data.get("spec")
    if isinstance(spec, dict):
        # Skip nulls and empty lists so the module gets no empty arguments.
        module.update((k, v) for k, v in spec.items() if v is not None and v != [])
    return unique_name, {"module": {unique_name: module}}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the stage; return the exit status."""
    yaml_file = get_env("KRATIX_INPUT_FILE", "/kratix/input/object.yaml")
    output_dir = get_env("KRATIX_OUTPUT_DIR", "/kratix/output")
    try:
        module_source = must_have_env("MODULE_SOURCE")
        module_version = must_have_env("MODULE_VERSION")
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 2

    try:
        try:
            contents = Path(yaml_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Error reading YAML file {yaml_file}: {exc}") from exc
        try:
            data = yaml.safe_load(contents) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Error parsing YAML file: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("Error parsing YAML file: document is not a mapping")

        unique_name, config = build_module_config(data, module_source, module_version)
        rendered = json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False, default=str)
        for char, escape in _HTML_ESCAPES.items():
            rendered = rendered.replace(char, escape)

        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as exc:
            raise ValueError(f"Error creating output directory: {exc}") from exc
        path = os.path.join(output_dir, unique_name + ".tf.json")
        try:
            Path(path).write_text(rendered, encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Error writing Terraform JSON file: {exc}") from exc
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    print(f"Terraform JSON configuration written to {path}")
    return 0