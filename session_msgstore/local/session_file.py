"""
Session creation-time file.

Holds the creation timestamp as ISO-8601 text with microseconds and a
UTC offset, e.g. ``2026-10-16T09:30:00.123456+00:00``. Written once when
a session is first seen and again after every reset.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from ..exceptions import StorageIOError
from .file_ops import close_all, open_or_create, read_bytes, remove_file, rewrite_file

logger = logging.getLogger(__name__)


def encode_timestamp(value: datetime) -> bytes:
    """Marshal a timestamp to its canonical text form (always UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds").encode("ascii")


def decode_timestamp(data: bytes) -> datetime | None:
    """Unmarshal a timestamp; None if the text is not a valid ISO-8601 time."""
    try:
        value = datetime.fromisoformat(data.decode("ascii"))
    except (UnicodeDecodeError, ValueError):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class SessionMetaFile:
    """Durable storage for the session creation time."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: BinaryIO | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def read(self) -> datetime | None:
        """Read the creation time.

        Returns:
            The timestamp, or None if the session has not been recorded yet
            (file absent, empty or unparseable)
        """
        data = read_bytes(self.path)
        if not data:
            return None
        value = decode_timestamp(data)
        if value is None:
            logger.warning("Ignoring unparseable session file", extra={"path": str(self.path)})
        return value

    def open(self) -> None:
        if self._file is None:
            self._file = open_or_create(self.path)

    def write(self, value: datetime) -> None:
        """Rewrite the creation time from offset 0 and sync it to disk."""
        if self._file is None:
            raise StorageIOError("write", str(self.path), ValueError("file is not open"))
        rewrite_file(self._file, self.path, encode_timestamp(value))

    def close(self) -> None:
        try:
            close_all([(self.path, self._file)])
        finally:
            self._file = None

    def remove(self) -> None:
        remove_file(self.path)
