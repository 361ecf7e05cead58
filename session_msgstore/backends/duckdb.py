"""
DuckDB message store backend.

Keeps session state in two tables so many sessions can share one
database file:

    <prefix>sessions  (session_id PK, creation_time, incoming_seqnum, outgoing_seqnum)
    <prefix>messages  (session_id, msgseqnum, message; PK on both)

Durability and indexing are delegated to DuckDB. Creation times are
stored as naive UTC TIMESTAMPs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import duckdb

from ..config import DuckDBStoreConfig
from ..exceptions import StorageConnectionError, StorageIOError, StoreClosedError, ValidationError
from ..logging_utils import get_store_logger
from ..sequence_cache import SequenceCache, check_seq_num

_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]*$")


class DuckDBStore:
    """
    Message store backed by a DuckDB database.

    The cache mirrors the session row; setters write the database
    first and only then update the cache.
    """

    def __init__(self, session_id: str, config: DuckDBStoreConfig):
        """
        Initialize DuckDB store.

        Args:
            session_id: Session this store is bound to
            config: DuckDB configuration
        """
        if not _PREFIX_RE.match(config.table_name_prefix):
            raise ValidationError(
                "table_name_prefix", "must contain only letters, digits and underscores",
                config.table_name_prefix,
            )
        self.session_id = session_id
        self.config = config
        self.cache = SequenceCache()
        self.conn: Any = None  # DuckDB connection
        self._sessions_table = f"{config.table_name_prefix}sessions"
        self._messages_table = f"{config.table_name_prefix}messages"
        self._log = get_store_logger(__name__, session_id)

    @classmethod
    def open(cls, session_id: str, config: DuckDBStoreConfig | None = None) -> DuckDBStore:
        """Connect, ensure the schema exists and load (or create) the session row."""
        if config is None:
            config = DuckDBStoreConfig.from_env()

        store = cls(session_id, config)
        store.refresh()
        return store

    def __enter__(self) -> DuckDBStore:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # =========================================================================
    # Connection and schema
    # =========================================================================

    def _connect(self) -> None:
        try:
            self.conn = duckdb.connect(str(self.config.db_path))
            self.conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._sessions_table} (
                    session_id VARCHAR NOT NULL PRIMARY KEY,
                    creation_time TIMESTAMP NOT NULL,
                    incoming_seqnum BIGINT NOT NULL,
                    outgoing_seqnum BIGINT NOT NULL
                )
            """)
            self.conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._messages_table} (
                    session_id VARCHAR NOT NULL,
                    msgseqnum BIGINT NOT NULL,
                    message BLOB NOT NULL,
                    PRIMARY KEY (session_id, msgseqnum)
                )
            """)
        except duckdb.Error as e:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
            raise StorageConnectionError(str(self.config.db_path), e) from e
        self._log.debug("DuckDB store connected", extra={"db_path": str(self.config.db_path)})

    def _execute(self, operation: str, sql: str, params: Sequence[Any] = ()) -> Any:
        if self.conn is None:
            raise StoreClosedError(self.session_id, operation)
        try:
            return self.conn.execute(sql, list(params))
        except duckdb.Error as e:
            raise StorageIOError(operation, str(self.config.db_path), e) from e

    def _session_row_values(self) -> list[Any]:
        return [
            _to_db_timestamp(self.cache.creation_time),
            self.cache.next_target_seq_num,
            self.cache.next_sender_seq_num,
            self.session_id,
        ]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def refresh(self) -> None:
        """Reload the cache from the session row, inserting it if absent."""
        self.cache.reset()
        if self.conn is None:
            self._connect()

        row = self._execute(
            "refresh",
            f"SELECT creation_time, incoming_seqnum, outgoing_seqnum "
            f"FROM {self._sessions_table} WHERE session_id = ?",
            [self.session_id],
        ).fetchone()

        if row is None:
            self._execute(
                "refresh",
                f"INSERT INTO {self._sessions_table} "
                f"(creation_time, incoming_seqnum, outgoing_seqnum, session_id) "
                f"VALUES (?, ?, ?, ?)",
                self._session_row_values(),
            )
            return

        creation_time, incoming, outgoing = row
        self.cache.creation_time = _from_db_timestamp(creation_time)
        self.cache.set_next_target_seq_num(incoming)
        self.cache.set_next_sender_seq_num(outgoing)

    def reset(self) -> None:
        """Delete the session's messages and rewrite its row from defaults."""
        self._execute(
            "reset",
            f"DELETE FROM {self._messages_table} WHERE session_id = ?",
            [self.session_id],
        )
        self.cache.reset()
        self._execute(
            "reset",
            f"UPDATE {self._sessions_table} "
            f"SET creation_time = ?, incoming_seqnum = ?, outgoing_seqnum = ? "
            f"WHERE session_id = ?",
            self._session_row_values(),
        )

    def close(self) -> None:
        """Close the database connection. Safe to call more than once."""
        if self.conn is None:
            return
        conn, self.conn = self.conn, None
        try:
            conn.close()
        except duckdb.Error as e:
            raise StorageConnectionError(str(self.config.db_path), e) from e
        self._log.debug("DuckDB store closed")

    # =========================================================================
    # Sequence numbers
    # =========================================================================

    def next_sender_seq_num(self) -> int:
        return self.cache.next_sender_seq_num

    def next_target_seq_num(self) -> int:
        return self.cache.next_target_seq_num

    def set_next_sender_seq_num(self, next_seq_num: int) -> None:
        check_seq_num("next_sender_seq_num", next_seq_num)
        self._execute(
            "set_next_sender_seq_num",
            f"UPDATE {self._sessions_table} SET outgoing_seqnum = ? WHERE session_id = ?",
            [next_seq_num, self.session_id],
        )
        self.cache.set_next_sender_seq_num(next_seq_num)

    def set_next_target_seq_num(self, next_seq_num: int) -> None:
        check_seq_num("next_target_seq_num", next_seq_num)
        self._execute(
            "set_next_target_seq_num",
            f"UPDATE {self._sessions_table} SET incoming_seqnum = ? WHERE session_id = ?",
            [next_seq_num, self.session_id],
        )
        self.cache.set_next_target_seq_num(next_seq_num)

    def incr_next_sender_seq_num(self) -> None:
        self.set_next_sender_seq_num(self.cache.next_sender_seq_num + 1)

    def incr_next_target_seq_num(self) -> None:
        self.set_next_target_seq_num(self.cache.next_target_seq_num + 1)

    def creation_time(self) -> datetime:
        return self.cache.creation_time

    # =========================================================================
    # Messages
    # =========================================================================

    def save_message(self, seq_num: int, message: bytes) -> None:
        """Store a message; saving an existing seq_num replaces it."""
        self._execute(
            "save_message",
            f"INSERT INTO {self._messages_table} (session_id, msgseqnum, message) "
            f"VALUES (?, ?, ?) "
            f"ON CONFLICT (session_id, msgseqnum) DO UPDATE SET message = EXCLUDED.message",
            [self.session_id, seq_num, bytes(message)],
        )

    def get_messages(self, begin_seq_num: int, end_seq_num: int) -> list[bytes]:
        rows = self._execute(
            "get_messages",
            f"SELECT message FROM {self._messages_table} "
            f"WHERE session_id = ? AND msgseqnum >= ? AND msgseqnum <= ? "
            f"ORDER BY msgseqnum",
            [self.session_id, begin_seq_num, end_seq_num],
        ).fetchall()
        return [bytes(row[0]) for row in rows]


class DuckDBStoreFactory:
    """Creates DuckDBStore instances from a settings map."""

    def create(self, session_id: str, settings: Mapping[str, str]) -> DuckDBStore:
        """
        Create and open a DuckDB store.

        Args:
            session_id: Session identifier
            settings: Must contain ``duckdb_path`` (":memory:" for a throwaway database)

        Raises:
            StoreConfigurationError: If duckdb_path is missing
            StorageConnectionError: If the database cannot be opened
        """
        return DuckDBStore.open(session_id, DuckDBStoreConfig.from_settings(session_id, settings))


def _to_db_timestamp(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_timestamp(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
