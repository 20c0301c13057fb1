"""Audit event model."""

from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator


class OperationKind(str, Enum):
    """Kind of audited operation."""

    IMPORT = "import"
    EXPORT = "export"


class AuditStatus(str, Enum):
    """Terminal status of an audited operation."""

    SUCCESS = "success"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    Immutable record of one completed import or export attempt.

    Attributes:
        timestamp: When the operation reached its terminal state (UTC)
        operation: import or export
        entity_type: Entity type name ("Owner", "Pet", ...) or "Unknown"
        entity_counts: Per-type record counts for multi-entity bundles
        tags: Badge/tag labels for grouping in reports
        count: Records imported, attempted or exported
        status: success or error
        error_description: Failure detail when status is error
        source_filename: Name of the input file, if known
        file_url: Export file path; on a failed export, the path that could not be written
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    operation: OperationKind
    entity_type: str = Field(alias="entityType")
    entity_count_items: tuple[tuple[str, int], ...] | None = Field(
        default=None,
        validation_alias=AliasChoices("entity_counts", "entityCounts"),
        serialization_alias="entityCounts",
    )
    tags: tuple[str, ...] = ()
    count: int = 0
    status: AuditStatus
    error_description: str | None = Field(default=None, alias="errorDescription")
    source_filename: str | None = Field(default=None, alias="sourceFilename")
    file_url: str | None = Field(default=None, alias="fileURL")

    @field_validator("entity_count_items", mode="before")
    @classmethod
    def _freeze_counts(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return tuple(value.items())
        return value

    @field_serializer("entity_count_items")
    def _serialize_counts(
        self, items: tuple[tuple[str, int], ...] | None
    ) -> dict[str, int] | None:
        return None if items is None else dict(items)

    @property
    def entity_counts(self) -> Mapping[str, int] | None:
        """Read-only per-type record counts, or None for single-type events."""
        if self.entity_count_items is None:
            return None
        return MappingProxyType(dict(self.entity_count_items))

    @property
    def succeeded(self) -> bool:
        return self.status is AuditStatus.SUCCESS

    @property
    def accessibility_label(self) -> str:
        """
        Human-readable one-line summary.

        Returns:
            str: e.g. "Imported 3 Owner (success) at 2025-06-20 14:30".
        """
        verb = "Imported" if self.operation is OperationKind.IMPORT else "Exported"
        when = self.timestamp.strftime("%Y-%m-%d %H:%M")
        return f"{verb} {self.count} {self.entity_type} ({self.status.value}) at {when}"

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, ISO-8601 timestamp and no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
