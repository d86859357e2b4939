"""Update the dependencies of a Promise from YAML files on disk."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Any

import yaml

from .layout import write_file
from .update_destination_selector import get_promise

__all__ = [
    "DEPENDENCIES_FILE_NAME",
    "PROMISE_FILE_NAME",
    "promise_file_mode",
    "build_dependencies",
    "extract_dependencies_from_file",
    "update_promise_dependencies",
    "update_dependencies",
    "copy_files",
    "is_yaml",
]

DEPENDENCIES_FILE_NAME = "dependencies.yaml"
PROMISE_FILE_NAME = "promise.yaml"


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False, allow_unicode=True)


def promise_file_mode(directory: str | os.PathLike[str]) -> tuple[str, str]:
    """Return ``("flat", "promise.yaml")`` or ``("split", "dependencies.yaml")``.

    The Promise is flat when it has a ``promise.yaml`` and no separate
    dependencies file.
    """
    base = Path(directory)
    if not (base / DEPENDENCIES_FILE_NAME).exists() and (base / PROMISE_FILE_NAME).exists():
        return "flat", PROMISE_FILE_NAME
    return "split", DEPENDENCIES_FILE_NAME


def is_yaml(file_name: str | os.PathLike[str]) -> bool:
    """Return True if ``file_name`` has a ``.yaml`` or ``.yml`` extension."""
    return os.path.splitext(os.fspath(file_name))[1] in (".yaml", ".yml")


def extract_dependencies_from_file(file_name: str | os.PathLike[str]) -> list[dict[str, Any]]:
    """Return every object in the YAML or JSON file, defaulting namespaces to ``default``."""
    try:
        text = Path(file_name).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"failed to open dependency file {file_name}: {exc}") from exc

    dependencies = []
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise ValueError(f"failed to decode dependency file {file_name}: {exc}") from exc

    for document in documents:
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ValueError(
                f"failed to decode dependency file {file_name}: object is not a mapping"
            )
        if not document.get("kind"):
            raise ValueError(
                f"failed to decode dependency file {file_name}: Object 'Kind' is missing"
            )
        metadata = document.get("metadata")
        if not isinstance(metadata, dict):
            metadata = document["metadata"] = {}
        if not metadata.get("namespace"):
            metadata["namespace"] = "default"
        dependencies.append(document)
    return dependencies


def build_dependencies(dependencies_path: str | os.PathLike[str]) -> list[dict[str, Any]]:
    """Collect dependencies from a file, or recursively from the YAML files of a directory."""
    path = Path(dependencies_path)
    if not path.exists():
        raise FileNotFoundError(f"failed to stat dependency: {dependencies_path}")

    if not path.is_dir():
        dependencies = extract_dependencies_from_file(path)
        if not dependencies:
            raise ValueError(f"no valid dependencies found in directory: {dependencies_path}")
        return dependencies

    try:
        entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise OSError(f"failed to read dependency directory: {dependencies_path}") from exc
    if not entries:
        raise ValueError(f"no files found in directory: {dependencies_path}; nothing to update")

    dependencies: list[dict[str, Any]] = []
    for entry in entries:
        if entry.is_dir():
            dependencies.extend(build_dependencies(entry))
        elif is_yaml(entry.name):
            dependencies.extend(extract_dependencies_from_file(entry))

    if not dependencies:
        raise ValueError(f"no valid dependencies found in directory: {dependencies_path}")
    return dependencies


def update_promise_dependencies(
    directory: str | os.PathLike[str], dependencies: list[dict[str, Any]]
) -> None:
    """Replace ``spec.dependencies`` in the ``promise.yaml`` of ``directory``."""
    path = Path(directory) / PROMISE_FILE_NAME
    promise = get_promise(path)
    spec = promise.get("spec")
    if spec is None:
        spec = promise["spec"] = {}
    spec["dependencies"] = dependencies
    write_file(path, _dump(promise))


def update_dependencies(
    directory: str | os.PathLike[str], dependencies_path: str | os.PathLike[str]
) -> str:
    """Store the dependencies found at ``dependencies_path``; return the file updated."""
    mode, file_to_update = promise_file_mode(directory)
    dependencies = build_dependencies(dependencies_path)

    if mode == "split":
        write_file(Path(directory) / DEPENDENCIES_FILE_NAME, _dump(dependencies))
    else:
        update_promise_dependencies(directory, dependencies)

    print(f"Updated {file_to_update}")
    return file_to_update


def copy_files(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Copy the file ``src``, or the contents of the directory ``src``, into ``dest``."""
    source = Path(src)
    target = Path(dest)
    if source.is_dir():
        for entry in sorted(source.iterdir(), key=lambda item: item.name):
            if entry.is_dir():
                (target / entry.name).mkdir(mode=0o755)
                copy_files(entry, target / entry.name)
            else:
                shutil.copyfile(entry, target / entry.name)
    elif source.is_file():
        shutil.copyfile(source, target / source.name)
    elif not source.exists():
        raise FileNotFoundError(f"no such file or directory: {src}")
    else:
        raise ValueError("unsupported type for dependencies: must be file or directory")