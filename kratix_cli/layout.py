"""Helpers shared by commands that lay out Promise files on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = ["FILE_PERM", "ContainerCmdArgs", "parse_container_cmd_args", "write_file"]

FILE_PERM = 0o644


@dataclass(frozen=True)
class ContainerCmdArgs:
    """The parts of a LIFECYCLE/ACTION/PIPELINE-NAME container path."""

    lifecycle: str
    action: str
    pipeline: str


def parse_container_cmd_args(container_path: str) -> ContainerCmdArgs:
    """Split ``container_path`` into lifecycle, action and pipeline name."""
    parts = container_path.split("/")
    if len(parts) != 3:
        raise ValueError(
            f"invalid pipeline format: {container_path}, "
            "expected format: LIFECYCLE/ACTION/PIPELINE-NAME"
        )
    lifecycle, action, pipeline = parts
    return ContainerCmdArgs(lifecycle=lifecycle, action=action, pipeline=pipeline)


def write_file(path: str | os.PathLike[str], content: str | bytes) -> None:
    """Write ``content`` to ``path``, creating missing parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_PERM)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)