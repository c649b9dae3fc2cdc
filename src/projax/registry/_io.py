# pyright: reportAny=false
"""File I/O for the registry document.

The document is always rewritten in full. Writes go to a temporary file in
the destination directory and are then renamed over the target, so readers
only ever see the previous document or the new one.
"""

import tempfile
from pathlib import Path

import orjson

from projax.exceptions import RegistryIOError, RegistryParseError

__all__ = ["read_json", "write_json_atomic"]


def _atomic_write(path: Path, content: bytes) -> None:
    """Write bytes to a file atomically.

    Args:
        path: Destination file path.
        content: Content to write.

    Raises:
        RegistryIOError: If the write operation fails.
    """
    temp_path: Path | None = None
    try:
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = Path(f.name)
            _ = f.write(content)

        # Path.replace() is atomic on both POSIX and Windows
        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise RegistryIOError(msg, path=path, operation="write", cause=e) from e


def read_json(path: Path) -> object:
    """Read and decode a JSON file.

    The decoded value is returned as-is; shape checks belong to migration.

    Args:
        path: Path to the JSON file.

    Returns:
        The decoded JSON value.

    Raises:
        FileNotFoundError: If the file does not exist.
        RegistryIOError: If the file exists but cannot be read.
        RegistryParseError: If the content is not valid JSON.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise RegistryIOError(msg, path=path, operation="read", cause=e) from e

    try:
        return orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise RegistryParseError(msg, path=path, cause=e) from e


def write_json_atomic(
    path: Path,
    data: dict[str, object],
) -> None:
    """Write a dictionary as two-space indented JSON atomically.

    Args:
        path: Destination file path.
        data: Dictionary to serialize.

    Raises:
        RegistryIOError: If serialization or the write fails.
    """
    try:
        content = orjson.dumps(data, option=orjson.OPT_INDENT_2)
    except TypeError as e:
        msg = f"Failed to serialize JSON: {e}"
        raise RegistryIOError(msg, path=path, operation="write", cause=e) from e

    _atomic_write(path, content + b"\n")
