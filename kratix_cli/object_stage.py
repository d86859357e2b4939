"""Pipeline stage that turns a Kratix request into an object of another kind."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Sequence

import yaml

__all__ = [
    "StageError",
    "transform_input_to_output",
    "get_env_or_die",
    "operator_main",
    "crossplane_main",
]

DEFAULT_INPUT_FILE = "/kratix/input/object.yaml"
DEFAULT_OUTPUT_FILE = "/kratix/output/object.yaml"

OPERATOR_ENV_VARS = ("OPERATOR_GROUP", "OPERATOR_VERSION", "OPERATOR_KIND")
XRD_ENV_VARS = ("XRD_GROUP", "XRD_VERSION", "XRD_KIND")


class StageError(Exception):
    """Raised when the stage cannot produce its output object."""


def _string_map(value: Any) -> dict[str, str] | None:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
        return None
    return dict(value)


def transform_input_to_output(group: str, version: str, kind: str) -> None:
    """Read the request object and write it back as ``group/version`` ``kind``."""
    input_file = os.environ.get("KRATIX_INPUT_FILE") or DEFAULT_INPUT_FILE
    output_file = os.environ.get("KRATIX_OUTPUT_FILE") or DEFAULT_OUTPUT_FILE

    try:
        contents = Path(input_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise StageError(f"Failed to read object file from {input_file}: {exc}") from exc

    try:
        request = yaml.safe_load(contents)
    except yaml.YAMLError as exc:
        raise StageError(f"Failed to unmarshal object file: {exc}") from exc
    if not isinstance(request, dict):
        raise StageError("Failed to unmarshal object file: object is not a mapping")
    if not request.get("kind"):
        raise StageError("Failed to unmarshal object file: Object 'Kind' is missing")

    request_meta = request.get("metadata")
    if not isinstance(request_meta, dict):
        request_meta = {}

    metadata: dict[str, Any] = {"namespace": "default"}
    name = request_meta.get("name")
    if isinstance(name, str) and name:
        metadata["name"] = name
    labels = _string_map(request_meta.get("labels"))
    if labels is not None:
        metadata["labels"] = labels
    annotations = _string_map(request_meta.get("annotations"))
    if annotations is not None:
        metadata["annotations"] = annotations

    spec = request.get("spec")
    if spec is None:
        spec = {}

    output = {
        "apiVersion": f"{group}/{version}",
        "kind": kind,
        "metadata": metadata,
        "spec": spec,
    }
    rendered = yaml.safe_dump(
        output, sort_keys=True, default_flow_style=False, allow_unicode=True, width=2**31
    )
    try:
        Path(output_file).write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise StageError(f"Failed to write object file to {output_file}: {exc}") from exc


def get_env_or_die(env_var: str) -> str:
    """Return the value of ``env_var``; raise StageError if it is unset or empty."""
    value = os.environ.get(env_var, "")
    if not value:
        raise StageError(f"Expected {env_var} to be set")
    return value


def _run(env_vars: Sequence[str]) -> int:
    try:
        group, version, kind = [get_env_or_die(name) for name in env_vars]
        transform_input_to_output(group, version, kind)
    except StageError as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


def operator_main(argv: Sequence[str] | None = None) -> int:
    """Run the operator-promise stage; return the exit status."""
    return _run(OPERATOR_ENV_VARS)


def crossplane_main(argv: Sequence[str] | None = None) -> int:
    """Run the crossplane-promise stage; return the exit status."""
    return _run(XRD_ENV_VARS)