"""
Fixed-width sequence number file.

The value is stored as a 19-digit zero-padded decimal with no
terminator, so every rewrite covers exactly the same bytes and the
file never changes length.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from ..exceptions import StorageIOError
from .file_ops import close_all, open_or_create, read_bytes, remove_file, rewrite_file

logger = logging.getLogger(__name__)

COUNTER_WIDTH = 19


def encode_counter(value: int) -> bytes:
    """Render a counter as its fixed-width on-disk form."""
    if value < 0:
        raise ValueError(f"counter must be non-negative: {value}")
    encoded = f"{value:0{COUNTER_WIDTH}d}"
    if len(encoded) != COUNTER_WIDTH:
        raise ValueError(f"counter does not fit in {COUNTER_WIDTH} digits: {value}")
    return encoded.encode("ascii")


def decode_counter(data: bytes) -> int | None:
    """Parse on-disk counter content.

    Returns None unless the content is exactly COUNTER_WIDTH ASCII digits,
    so every accepted value can be written back unchanged.
    """
    text = data.decode("ascii", errors="replace")
    if len(text) != COUNTER_WIDTH or not text.isdigit():
        return None
    return int(text)


class SeqCounterFile:
    """A single durable counter, rewritten in place on every update."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: BinaryIO | None = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def read(self) -> int | None:
        """Read the persisted value.

        Returns:
            The counter, or None if the file is absent or unparseable
        """
        data = read_bytes(self.path)
        if data is None:
            return None
        value = decode_counter(data)
        if value is None and data:
            logger.warning("Ignoring unparseable counter file", extra={"path": str(self.path)})
        return value

    def open(self) -> None:
        if self._file is None:
            self._file = open_or_create(self.path)

    def write(self, value: int) -> None:
        """Overwrite the counter in place and sync it to disk."""
        if self._file is None:
            raise StorageIOError("write", str(self.path), ValueError("file is not open"))
        rewrite_file(self._file, self.path, encode_counter(value))

    def close(self) -> None:
        try:
            close_all([(self.path, self._file)])
        finally:
            self._file = None

    def remove(self) -> None:
        remove_file(self.path)
