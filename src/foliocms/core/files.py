from __future__ import annotations

import os
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_bytes_atomic(dst: Path, data: bytes) -> None:
    ensure_directory(dst.parent)
    temp_path = dst.parent / f".{dst.name}.tmp"
    temp_path.write_bytes(data)
    os.replace(temp_path, dst)


def prune_empty_parents(path: Path, stop_at: Path) -> None:
    """Remove empty directories from ``path`` upwards, never touching ``stop_at`` itself."""
    current = path
    while current != stop_at and stop_at in current.parents:
        try:
            current.rmdir()
        except OSError:
            return
        current = current.parent
