"""File I/O helpers for skillmeter.

Writes are atomic and strict: a failed write raises so that callers never
believe an export or report was persisted when it was not.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any


def ensure_parent_dir(path: Path | str) -> Path:
    """Ensure the parent directory of a path exists.

    Args:
        path: File path whose parent directory should be created.

    Returns:
        The path as a Path object.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_file(path: Path | str, content: str) -> Path:
    """Write content to a file atomically (temp file + rename).

    Args:
        path: Destination file path.
        content: String content to write.

    Returns:
        The destination path.

    Raises:
        OSError: If the file cannot be written.
    """
    path = ensure_parent_dir(path)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.name + ".", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
    return path


def write_json(path: Path | str, data: Any, indent: int = 2) -> Path:
    """Serialize data as JSON and write it atomically.

    Serialization happens before the file is touched, so a TypeError for
    unserializable data leaves any existing file intact.

    Args:
        path: Destination file path.
        data: JSON-serializable data.
        indent: JSON indentation level (default 2).

    Returns:
        The destination path.
    """
    content = json.dumps(data, indent=indent, ensure_ascii=False)
    if not content.endswith("\n"):
        content += "\n"
    return write_file(path, content)
