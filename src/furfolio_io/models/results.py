"""Result types for import operations."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .audit import AuditEvent
from .entities import EntityKind

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class RowDiagnostic:
    """
    Diagnostic for one input row.

    Attributes:
        line_number: 1-based line number in the source text
        message: What was wrong with the row
        skipped: True if the row was dropped, False if it was imported with a warning
    """

    line_number: int
    message: str
    skipped: bool = True

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.message}"


@dataclass
class ImportResult(Generic[RecordT]):
    """
    Result of importing one batch of delimited text.

    Attributes:
        kind: Entity kind of the batch
        records: Records constructed and handed to the sink, in file order
        diagnostics: Skipped rows and warnings, in file order
        event: The single audit event recorded for the batch
        committed: Whether the sink accepted the batch commit
    """

    kind: EntityKind
    records: list[RecordT]
    event: AuditEvent
    committed: bool
    diagnostics: list[RowDiagnostic] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.records) if self.committed else 0

    @property
    def skipped_rows(self) -> list[RowDiagnostic]:
        return [d for d in self.diagnostics if d.skipped]

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_rows)
