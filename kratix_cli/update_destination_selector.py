"""Update the destination selectors of a Promise."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .layout import write_file

__all__ = ["get_promise", "update_selector"]

PROMISE_FILE_NAME = "promise.yaml"


def get_promise(file_path: str | os.PathLike[str]) -> dict[str, Any]:
    """Read and return the Promise stored at ``file_path``."""
    loaded = yaml.safe_load(Path(file_path).read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{file_path} does not hold a YAML mapping")
    return loaded


def update_selector(directory: str | os.PathLike[str], selector: str) -> None:
    """Set ``KEY=VALUE`` or remove ``KEY-`` in the Promise's first destination selector."""
    path = Path(directory) / PROMISE_FILE_NAME
    try:
        promise = get_promise(path)
    except OSError as exc:
        raise FileNotFoundError(f"failed to find promise.yaml in directory: {exc}") from exc

    spec = promise.get("spec")
    if spec is None:
        spec = promise["spec"] = {}
    selectors = spec.get("destinationSelectors") or []

    parsed = selector.split("=")
    if len(parsed) == 2:
        key, value = parsed
        if not selectors:
            selectors = [{"matchLabels": {}}]
        labels = selectors[0].get("matchLabels")
        if labels is None:
            labels = selectors[0]["matchLabels"] = {}
        labels[key] = value
        spec["destinationSelectors"] = selectors
    else:
        if not selector.endswith("-"):
            raise ValueError(f"invalid destination key: {selector}")
        key = selector.rstrip("-")
        if selectors:
            (selectors[0].get("matchLabels") or {}).pop(key, None)

    write_file(
        path,
        yaml.safe_dump(promise, sort_keys=True, default_flow_style=False, allow_unicode=True),
    )
    print("Promise destination selector updated")