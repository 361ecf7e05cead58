"""
Append-only message log with a positional index.

Two files per session:
- body: raw message bytes concatenated with no delimiters
- header: one ASCII line "<seq_num>,<offset>,<size>\\n" per save

The in-memory index maps each sequence number to its (offset, size) in
the body file. It is rebuilt from the header on every open and extended
on every save. Saving a sequence number twice appends a second copy; the
index points at whichever entry was written (or scanned) last, and the
older bytes stay in the body file unreachable.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from ..exceptions import StorageIOError
from .file_ops import close_all, open_or_create, remove_file, sync_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexEntry:
    """Location of one message inside the body file."""

    seq_num: int
    offset: int
    size: int

    def to_header_line(self) -> bytes:
        return f"{self.seq_num},{self.offset},{self.size}\n".encode("ascii")


def parse_header_line(line: bytes) -> IndexEntry | None:
    """Parse one header line.

    Returns:
        The entry, or None if the line is incomplete or malformed
    """
    if not line.endswith(b"\n"):
        # No terminator: the append was interrupted mid-line
        return None
    fields = line[:-1].split(b",")
    if len(fields) != 3:
        return None
    try:
        seq_num, offset, size = (int(f) for f in fields)
    except ValueError:
        return None
    if offset < 0 or size < 0:
        return None
    return IndexEntry(seq_num=seq_num, offset=offset, size=size)


def iter_header_entries(path: Path) -> Iterator[tuple[IndexEntry, int]]:
    """Lazily yield index entries from a header file.

    The scan stops at the first malformed or partial line: everything
    from that point on is dropped rather than reported. A missing file
    yields nothing.

    Args:
        path: Path to the header file

    Yields:
        (entry, end_offset) in file order, where end_offset is the byte
        offset just past the entry's line
    """
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        return
    except OSError as e:
        raise StorageIOError("read_header", str(path), e) from e

    end_offset = 0
    with f:
        for line_no, line in enumerate(f, start=1):
            entry = parse_header_line(line)
            if entry is None:
                logger.warning(
                    "Header scan stopped at malformed entry",
                    extra={
                        "path": str(path),
                        "line": line_no,
                        "entries_kept": line_no - 1,
                        "valid_bytes": end_offset,
                    },
                )
                return
            end_offset += len(line)
            yield entry, end_offset


class FileLog:
    """
    Body/header file pair with an in-memory index.

    Usage:
        log = FileLog(body_path, header_path)
        log.rebuild_index()
        log.open()
        log.save(1, b"8=FIX.4.4|...")
        log.get_range(1, 10)
        log.close()
    """

    def __init__(self, body_path: Path, header_path: Path):
        self.body_path = Path(body_path)
        self.header_path = Path(header_path)
        self._body: BinaryIO | None = None
        self._header: BinaryIO | None = None
        self._index: dict[int, IndexEntry] = {}
        # Bytes of the header covered by the last rebuild; None until rebuilt
        self._valid_header_size: int | None = None

    def __len__(self) -> int:
        """Number of distinct sequence numbers in the index."""
        return len(self._index)

    @property
    def is_open(self) -> bool:
        return self._body is not None and self._header is not None

    def rebuild_index(self) -> int:
        """Replace the index with the entries scanned from the header file.

        Later entries for the same sequence number win.

        Returns:
            Number of distinct sequence numbers indexed
        """
        self._index = {}
        self._valid_header_size = 0
        for entry, end_offset in iter_header_entries(self.header_path):
            self._index[entry.seq_num] = entry
            self._valid_header_size = end_offset
        return len(self._index)

    def open(self) -> None:
        """Open both files for read/write, creating them if absent.

        If the last rebuild stopped short of the end of the header, the
        unreadable tail is cut off so new entries follow the valid prefix.
        """
        if self.is_open:
            return
        body = open_or_create(self.body_path)
        try:
            header = open_or_create(self.header_path)
        except StorageIOError:
            body.close()
            raise
        try:
            self._discard_header_tail(header)
        except StorageIOError:
            close_all([(self.body_path, body), (self.header_path, header)])
            raise
        self._body, self._header = body, header

    def _discard_header_tail(self, header: BinaryIO) -> None:
        if self._valid_header_size is None:
            return
        try:
            size = header.seek(0, os.SEEK_END)
            if size <= self._valid_header_size:
                return
            header.truncate(self._valid_header_size)
        except OSError as e:
            raise StorageIOError("truncate", str(self.header_path), e) from e
        sync_file(header, self.header_path)
        logger.warning(
            "Discarded unreadable header tail",
            extra={"path": str(self.header_path), "dropped_bytes": size - self._valid_header_size},
        )

    def close(self) -> None:
        """Close both files. Safe to call when already closed."""
        try:
            close_all([(self.body_path, self._body), (self.header_path, self._header)])
        finally:
            self._body = None
            self._header = None
            self._valid_header_size = None

    def remove(self) -> None:
        """Delete both files (if present) and empty the index."""
        remove_file(self.body_path)
        remove_file(self.header_path)
        self._index = {}
        self._valid_header_size = None

    def save(self, seq_num: int, message: bytes) -> None:
        """Append a message and its header entry, then make both durable.

        The index is updated only after both files have been synced.
        """
        body = self._require(self._body, self.body_path)
        header = self._require(self._header, self.header_path)

        try:
            offset = body.seek(0, os.SEEK_END)
            body.write(message)
        except OSError as e:
            raise StorageIOError("write", str(self.body_path), e) from e
        sync_file(body, self.body_path)

        entry = IndexEntry(seq_num=seq_num, offset=offset, size=len(message))
        try:
            header.seek(0, os.SEEK_END)
            header.write(entry.to_header_line())
        except OSError as e:
            raise StorageIOError("write", str(self.header_path), e) from e
        sync_file(header, self.header_path)

        self._index[seq_num] = entry

    def get(self, seq_num: int) -> bytes | None:
        """Read one message.

        Returns:
            The message bytes, or None if the sequence number is not indexed

        Raises:
            StorageIOError: If the body file cannot supply the indexed bytes
        """
        entry = self._index.get(seq_num)
        if entry is None:
            return None

        body = self._require(self._body, self.body_path)
        try:
            body.seek(entry.offset)
            data = body.read(entry.size)
        except OSError as e:
            raise StorageIOError("read_message", str(self.body_path), e) from e
        if len(data) != entry.size:
            raise StorageIOError(
                "read_message",
                str(self.body_path),
                EOFError(
                    f"seq_num {seq_num}: expected {entry.size} bytes at offset "
                    f"{entry.offset}, got {len(data)}"
                ),
            )
        return data

    def iter_range(self, begin_seq_num: int, end_seq_num: int) -> Iterator[tuple[int, bytes]]:
        """Yield (seq_num, message) for every indexed seq_num in [begin, end], ascending."""
        for seq_num in sorted(s for s in self._index if begin_seq_num <= s <= end_seq_num):
            data = self.get(seq_num)
            if data is not None:
                yield seq_num, data

    def get_range(self, begin_seq_num: int, end_seq_num: int) -> list[bytes]:
        """Read every indexed message in [begin, end], in ascending order.

        Missing sequence numbers are skipped. The first read failure aborts
        the whole call.
        """
        return [data for _, data in self.iter_range(begin_seq_num, end_seq_num)]

    @staticmethod
    def _require(f: BinaryIO | None, path: Path) -> BinaryIO:
        if f is None:
            raise StorageIOError("access", str(path), ValueError("file is not open"))
        return f
