from pathlib import Path
import posixpath
import re
from typing import Callable, Tuple

import fsspec


def create_storage(config: dict) -> Tuple[fsspec.AbstractFileSystem, Callable[[str], str]]:
    """Create filesystem and path resolver from the `storage` config block."""
    storage_type = config.get("type", "file")
    base_data_dir = config.get("base_data_dir")

    if base_data_dir is None:
        raise ValueError(f"Missing base_data_dir for storage environment: {storage_type}")

    fs = fsspec.filesystem(storage_type, **(config.get("fs_kwargs") or {}))

    if storage_type == "file":

        def resolve_path(relative_path: str) -> str:
            relative_path = _normalize_path(relative_path)
            return str(Path(base_data_dir) / relative_path)

    else:

        def resolve_path(relative_path: str) -> str:
            relative_path = _normalize_path(relative_path)
            return f"{storage_type}://{posixpath.join(base_data_dir, relative_path)}"

    return fs, resolve_path


def write_bytes(fs: fsspec.AbstractFileSystem, path: str, data: bytes) -> str:
    """Write a blob through the filesystem, creating the parent folder if needed."""
    parent = posixpath.dirname(str(path).replace("\\", "/"))
    if parent:
        fs.makedirs(parent, exist_ok=True)

    with fs.open(path, "wb") as f:
        f.write(data)

    return path


def _normalize_path(path: str) -> str:
    """Normalize path for cross-platform compatibility."""
    normalized = path.replace("\\", "/")
    normalized = normalized.strip("/")
    normalized = re.sub(r"/{2,}", "/", normalized)

    return normalized
