"""Persistence sinks that importers hand their records to.

Importers stage records one at a time with ``add`` and finish each batch with
a single ``commit``. A commit either stores the whole batch or raises
SinkCommitError and stores nothing.

Database Schema (SQLiteSink):
----------------------------
```
records (
    id          TEXT PRIMARY KEY,   -- Record UUID
    kind        TEXT NOT NULL,      -- EntityKind value (owner, pet, ...)
    payload     TEXT NOT NULL,      -- JSON of the pydantic model
    created_at  TEXT NOT NULL       -- ISO format timestamp of the commit
)
```
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import Protocol, runtime_checkable

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..models.entities import MODEL_BY_KIND, EntityBase, EntityKind
from ..utils.exceptions import SinkCommitError

logger = structlog.get_logger(__name__)


def _is_locked(error: BaseException) -> bool:
    """True for transient lock contention on the database file."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


def _log_retry(retry_state: RetryCallState) -> None:
    logger.debug(
        "SQLite database busy, retrying commit",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


@runtime_checkable
class PersistenceSink(Protocol):
    """Store that accepts staged records and commits them per batch."""

    def add(self, record: EntityBase) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class InMemorySink:
    """Sink that keeps committed records in a list. Used for dry runs and tests."""

    def __init__(self) -> None:
        self._staged: list[EntityBase] = []
        self.records: list[EntityBase] = []

    def add(self, record: EntityBase) -> None:
        self._staged.append(record)

    def commit(self) -> None:
        self.records.extend(self._staged)
        self._staged.clear()

    def rollback(self) -> None:
        self._staged.clear()

    def fetch(self, kind: EntityKind) -> list[EntityBase]:
        """Committed records of one kind, in commit order."""
        model = MODEL_BY_KIND[kind]
        return [record for record in self.records if isinstance(record, model)]


class SQLiteSink:
    """
    SQLite-backed sink.

    Features:
    - One transaction per batch commit
    - Records stored as JSON and loaded back into typed models
    - Staged records are discarded when a commit fails
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize SQLiteSink.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn: sqlite3.Connection = self._initialize_db()
        self._staged: list[EntityBase] = []

    def _initialize_db(self) -> sqlite3.Connection:
        """Initialize database schema."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                payload TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_records_kind
            ON records(kind)
        """
        )

        conn.commit()
        return conn

    def add(self, record: EntityBase) -> None:
        self._staged.append(record)

    def commit(self) -> None:
        """
        Write every staged record in one transaction.

        Raises:
            SinkCommitError: If SQLite rejects the batch; nothing is written
        """
        staged, self._staged = self._staged, []
        created_at = datetime.now(timezone.utc).isoformat()
        rows = [
            (
                str(record.id),
                record.kind,  # type: ignore[attr-defined]
                record.model_dump_json(),
                created_at,
            )
            for record in staged
        ]

        try:
            self._write_rows(rows)
        except sqlite3.Error as e:
            logger.error("SQLite commit failed", db_path=str(self.db_path), error=str(e))
            raise SinkCommitError(f"Failed to commit {len(rows)} records: {e}", e) from e

        logger.debug("SQLite commit complete", db_path=str(self.db_path), records=len(rows))

    @retry(
        retry=retry_if_exception(_is_locked),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        before_sleep=_log_retry,
        reraise=True,
    )
    def _write_rows(self, rows: list[tuple[str, str, str, str]]) -> None:
        with self.conn:
            self.conn.executemany(
                "INSERT INTO records (id, kind, payload, created_at) VALUES (?, ?, ?, ?)",
                rows,
            )

    def rollback(self) -> None:
        self._staged.clear()

    def fetch(self, kind: EntityKind) -> list[EntityBase]:
        """
        Load committed records of one kind.

        Args:
            kind: Entity kind to load

        Returns:
            Typed records in insertion order
        """
        model = MODEL_BY_KIND[kind]
        cursor = self.conn.execute(
            "SELECT payload FROM records WHERE kind = ? ORDER BY rowid ASC",
            (kind.value,),
        )
        return [model.model_validate_json(row["payload"]) for row in cursor.fetchall()]

    def count(self, kind: EntityKind | None = None) -> int:
        """Number of committed records, optionally of one kind."""
        if kind is None:
            cursor = self.conn.execute("SELECT COUNT(*) FROM records")
        else:
            cursor = self.conn.execute("SELECT COUNT(*) FROM records WHERE kind = ?", (kind.value,))
        return int(cursor.fetchone()[0])

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()

    def __enter__(self) -> "SQLiteSink":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
