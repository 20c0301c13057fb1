"""Data models for the Furfolio import/export pipeline."""

from .audit import AuditEvent, AuditStatus, OperationKind
from .bundle import DataBundle
from .entities import (
    MODEL_BY_KIND,
    Appointment,
    AppointmentStatus,
    Charge,
    ChargeType,
    EntityBase,
    EntityKind,
    Expense,
    ImportableEntity,
    Organization,
    Owner,
    Pet,
)
from .results import ImportResult, RowDiagnostic

__all__ = [
    # Entities
    "EntityBase",
    "EntityKind",
    "ImportableEntity",
    "MODEL_BY_KIND",
    "Owner",
    "Pet",
    "Appointment",
    "Charge",
    "Organization",
    "Expense",
    "ChargeType",
    "AppointmentStatus",
    "DataBundle",
    # Audit
    "AuditEvent",
    "AuditStatus",
    "OperationKind",
    # Results
    "ImportResult",
    "RowDiagnostic",
]
