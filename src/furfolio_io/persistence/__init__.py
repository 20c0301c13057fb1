"""Persistence layer: audit ledger and record sinks."""

from .ledger import AuditLedger, AuditSink
from .sink import InMemorySink, PersistenceSink, SQLiteSink

__all__ = ["AuditLedger", "AuditSink", "InMemorySink", "PersistenceSink", "SQLiteSink"]
