"""Bounded, thread-safe audit ledger.

Purpose:
-------
The AuditLedger records one AuditEvent for every import or export attempt
that reaches a terminal state, and exports them as pretty-printed JSON for
admin screens and support bundles.

Storage:
-------
A ``collections.deque`` with ``maxlen=capacity``. Appending past capacity
drops the oldest event, so the ledger never holds more than ``capacity``
events and insertion order is preserved.

Concurrency:
-----------
Every read and write takes the same ``threading.Lock``. Concurrent ``record``
calls from parallel import batches are therefore totally ordered, none is
lost, and ``fetch_all`` always sees every event recorded before it.

Usage:
-----
```python
ledger = AuditLedger(capacity=1000)
ledger.record(event)

ledger.fetch_last_as_json()   # None when empty
ledger.fetch_all_as_json()    # "[]" when empty
```
"""

import json
import threading
from collections import deque
from typing import Protocol, runtime_checkable

import structlog
from pydantic_core import PydanticSerializationError

from ..constants import DEFAULT_IMPORT_LEDGER_CAPACITY
from ..models.audit import AuditEvent

logger = structlog.get_logger(__name__)


@runtime_checkable
class AuditSink(Protocol):
    """What importers and exporters need from an audit trail."""

    def record(self, event: AuditEvent) -> None: ...

    def fetch_all(self) -> list[AuditEvent]: ...

    def fetch_last_as_json(self) -> str | None: ...

    def fetch_all_as_json(self) -> str | None: ...

    def clear(self) -> None: ...


class AuditLedger:
    """
    In-memory ring buffer of audit events.

    Features:
    - Bounded: FIFO eviction once capacity is exceeded
    - Append-only: events are immutable and never reordered
    - Thread-safe: a single lock serializes all access
    - Best-effort JSON export that never raises
    """

    def __init__(self, capacity: int = DEFAULT_IMPORT_LEDGER_CAPACITY, name: str = "audit") -> None:
        """
        Initialize AuditLedger.

        Args:
            capacity: Maximum number of events kept
            name: Label used in log lines (e.g. "import", "export")

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity < 1:
            raise ValueError(f"Ledger capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.name = name
        self._events: deque[AuditEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, event: AuditEvent) -> None:
        """
        Append an event, evicting the oldest one if the ledger is full.

        Args:
            event: Event to append
        """
        with self._lock:
            evicted = len(self._events) == self.capacity
            self._events.append(event)

        logger.debug(
            "Audit event recorded",
            ledger=self.name,
            operation=event.operation.value,
            entity_type=event.entity_type,
            status=event.status.value,
            count=event.count,
            evicted_oldest=evicted,
        )

    def fetch_all(self) -> list[AuditEvent]:
        """
        Snapshot of all events, oldest first.

        Returns:
            List of events
        """
        with self._lock:
            return list(self._events)

    def fetch_last(self) -> AuditEvent | None:
        """Most recent event, or None if the ledger is empty."""
        with self._lock:
            return self._events[-1] if self._events else None

    def fetch_last_as_json(self) -> str | None:
        """
        Pretty-printed JSON of the most recent event.

        Returns:
            JSON object string, or None if the ledger is empty or encoding fails
        """
        last = self.fetch_last()
        if last is None:
            return None
        return self._encode(last.to_json_dict, what="last event")

    def fetch_all_as_json(self) -> str | None:
        """
        Pretty-printed JSON array of every event, oldest first.

        Returns:
            JSON array string ("[]" when empty), or None if encoding fails
        """
        events = self.fetch_all()
        return self._encode(lambda: [event.to_json_dict() for event in events], what="ledger")

    def clear(self) -> None:
        """Remove every event."""
        with self._lock:
            self._events.clear()
        logger.info("Audit ledger cleared", ledger=self.name)

    def _encode(self, build, what: str) -> str | None:
        try:
            return json.dumps(build(), indent=2)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            logger.warning("Audit JSON export failed", ledger=self.name, what=what, error=str(e))
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
