"""Unit tests for persistence sinks."""

import sqlite3
from unittest.mock import patch

import pytest

from src.furfolio_io.models.entities import EntityKind, Owner, Pet
from src.furfolio_io.persistence.sink import InMemorySink, PersistenceSink, SQLiteSink
from src.furfolio_io.utils.exceptions import SinkCommitError


class FlakyConnection:
    """Connection wrapper whose first `failures` batch writes report a locked database."""

    def __init__(self, conn: sqlite3.Connection, failures: int) -> None:
        self.conn = conn
        self.failures = failures

    def __enter__(self):
        return self.conn.__enter__()

    def __exit__(self, *exc_info):
        return self.conn.__exit__(*exc_info)

    def executemany(self, sql, rows):
        if self.failures:
            self.failures -= 1
            raise sqlite3.OperationalError("database is locked")
        return self.conn.executemany(sql, rows)


class TestInMemorySink:
    """Test InMemorySink."""

    def test_satisfies_protocol(self):
        """Test the sink implements PersistenceSink."""
        assert isinstance(InMemorySink(), PersistenceSink)

    def test_records_visible_after_commit(self, owners):
        """Test staged records are committed together."""
        sink = InMemorySink()
        for owner in owners:
            sink.add(owner)

        assert sink.records == []
        sink.commit()
        assert sink.records == owners

    def test_rollback_discards_staged(self, owners):
        """Test rollback drops uncommitted records."""
        sink = InMemorySink()
        sink.add(owners[0])
        sink.rollback()
        sink.commit()

        assert sink.records == []

    def test_fetch_by_kind(self, owners, pets):
        """Test fetch filters committed records by kind."""
        sink = InMemorySink()
        for record in [*owners, *pets]:
            sink.add(record)
        sink.commit()

        assert sink.fetch(EntityKind.PET) == pets


class TestSQLiteSink:
    """Test SQLiteSink class."""

    @pytest.fixture(autouse=True)
    def setup_method(self, tmp_path):
        """Set up test fixtures."""
        self.db_path = tmp_path / "nested" / "furfolio.db"
        self.sink = SQLiteSink(self.db_path)

        yield

        self.sink.close()

    def test_init(self):
        """Test initialization creates the records table."""
        assert self.db_path.exists()

        conn = sqlite3.connect(str(self.db_path))
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='records'"
        )
        assert cursor.fetchone() is not None
        conn.close()

    def test_commit_and_fetch(self, owners, pets):
        """Test committed records load back as typed models."""
        for record in [*owners, *pets]:
            self.sink.add(record)
        self.sink.commit()

        loaded_owners = self.sink.fetch(EntityKind.OWNER)
        loaded_pets = self.sink.fetch(EntityKind.PET)

        assert [o.model_dump() for o in loaded_owners] == [o.model_dump() for o in owners]
        assert all(isinstance(p, Pet) for p in loaded_pets)
        assert [p.owner_id for p in loaded_pets] == [p.owner_id for p in pets]
        assert self.sink.count() == 4
        assert self.sink.count(EntityKind.OWNER) == 2

    def test_nothing_written_before_commit(self, owners):
        """Test added records are not persisted until commit."""
        self.sink.add(owners[0])
        assert self.sink.count() == 0

    def test_rollback(self, owners):
        """Test rollback discards staged records."""
        self.sink.add(owners[0])
        self.sink.rollback()
        self.sink.commit()

        assert self.sink.count() == 0

    def test_duplicate_id_fails_whole_batch(self):
        """Test a constraint violation raises SinkCommitError and writes nothing."""
        existing = Owner(name="Existing")
        self.sink.add(existing)
        self.sink.commit()

        self.sink.add(Owner(name="New"))
        self.sink.add(existing)

        with pytest.raises(SinkCommitError) as exc_info:
            self.sink.commit()

        assert isinstance(exc_info.value.original_error, sqlite3.IntegrityError)
        assert self.sink.count() == 1

    def test_staged_cleared_after_failure(self):
        """Test a failed batch does not leak into the next commit."""
        existing = Owner(name="Existing")
        self.sink.add(existing)
        self.sink.commit()
        self.sink.add(existing)
        with pytest.raises(SinkCommitError):
            self.sink.commit()

        self.sink.add(Owner(name="Later"))
        self.sink.commit()

        assert [o.name for o in self.sink.fetch(EntityKind.OWNER)] == ["Existing", "Later"]

    def test_locked_database_is_retried(self, owners):
        """Test transient lock errors are retried before succeeding."""
        real_conn = self.sink.conn
        self.sink.conn = FlakyConnection(real_conn, failures=2)

        with patch("tenacity.nap.time.sleep"):
            self.sink.add(owners[0])
            self.sink.commit()

        self.sink.conn = real_conn
        assert self.sink.count() == 1

    def test_persistent_lock_gives_commit_error(self, owners):
        """Test lock errors that outlast the retries become SinkCommitError."""
        real_conn = self.sink.conn
        self.sink.conn = FlakyConnection(real_conn, failures=10)

        with patch("tenacity.nap.time.sleep"):
            self.sink.add(owners[0])
            with pytest.raises(SinkCommitError, match="locked"):
                self.sink.commit()

        self.sink.conn = real_conn
        assert self.sink.count() == 0

    def test_context_manager(self, tmp_path, owners):
        """Test the sink closes its connection on exit."""
        with SQLiteSink(tmp_path / "ctx.db") as sink:
            sink.add(owners[0])
            sink.commit()

        with pytest.raises(sqlite3.ProgrammingError):
            sink.conn.execute("SELECT 1")
