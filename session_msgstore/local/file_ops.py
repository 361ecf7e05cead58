"""
Low-level file operations for the file-backed store.

Every OS failure is re-raised as StorageIOError naming the operation
and path. "File absent" is the only condition tolerated here, and only
by remove_file.
"""

import os
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

from ..exceptions import StorageIOError

FILE_MODE = 0o660


def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating parents if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


def open_or_create(path: Path) -> BinaryIO:
    """Open a file for binary reading and writing, creating it if absent.

    Unlike mode "a+b", writes land at the current position, so
    fixed-width fields can be rewritten in place.

    Args:
        path: File to open

    Returns:
        Buffered binary handle positioned at offset 0
    """
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, FILE_MODE)
    except OSError as e:
        raise StorageIOError("open", str(path), e) from e
    try:
        return os.fdopen(fd, "r+b")
    except OSError as e:
        os.close(fd)
        raise StorageIOError("open", str(path), e) from e


def sync_file(f: BinaryIO, path: Path) -> None:
    """Flush Python buffers and fsync the handle to stable storage."""
    try:
        f.flush()
        os.fsync(f.fileno())
    except OSError as e:
        raise StorageIOError("flush", str(path), e) from e


def rewrite_file(f: BinaryIO, path: Path, data: bytes) -> None:
    """Overwrite a file from offset 0 with data and make it durable.

    Any bytes beyond len(data) left over from a longer previous value
    are truncated away.
    """
    try:
        f.seek(0)
        f.write(data)
        f.truncate()
    except OSError as e:
        raise StorageIOError("write", str(path), e) from e
    sync_file(f, path)


def read_bytes(path: Path) -> bytes | None:
    """Read a whole file.

    Returns:
        File content, or None if the file does not exist or cannot be read
    """
    try:
        return path.read_bytes()
    except OSError:
        return None


def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Args:
        path: Path to remove

    Returns:
        True if file was removed, False if it didn't exist
    """
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageIOError("remove", str(path), e) from e


def close_all(handles: Iterable[tuple[Path, BinaryIO | None]]) -> None:
    """Close every open handle, then raise the first failure if any.

    Args:
        handles: (path, handle) pairs; None handles are skipped
    """
    first_error: StorageIOError | None = None
    for path, f in handles:
        if f is None:
            continue
        try:
            f.close()
        except OSError as e:
            if first_error is None:
                first_error = StorageIOError("close", str(path), e)
                first_error.__cause__ = e
    if first_error is not None:
        raise first_error
