"""Export typed records to delimited text and CSV files."""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path

import structlog

from ..config import ExportConfig
from ..constants import (
    CSV_EXTENSION,
    CSV_HEADERS,
    DELIMITER,
    EXPORT_TAGS,
    FILENAME_TIMESTAMP_FORMAT,
    GENERATED_COLUMNS,
)
from ..models.audit import AuditEvent, AuditStatus, OperationKind
from ..models.entities import (
    Appointment,
    Charge,
    EntityBase,
    EntityKind,
    Expense,
    Organization,
    Owner,
    Pet,
)
from ..persistence.ledger import AuditSink
from ..utils.exceptions import ExportWriteError
from ..utils.files import atomic_write_text, safe_filename
from .parser import escape_field, join_fields

logger = structlog.get_logger(__name__)


def _text(value: object | None) -> str:
    return "" if value is None else str(value)


def _owner_row(owner: Owner, config: ExportConfig) -> list[str]:
    return [owner.name, _text(owner.email), _text(owner.phone), _text(owner.address)]


def _pet_row(pet: Pet, config: ExportConfig) -> list[str]:
    birthdate = pet.birthdate.strftime(config.date_format) if pet.birthdate else ""
    return [pet.name, _text(pet.breed), pet.owner_name, birthdate, _text(pet.notes)]


def _appointment_row(appointment: Appointment, config: ExportConfig) -> list[str]:
    return [
        appointment.scheduled_at.strftime(config.date_format),
        appointment.scheduled_at.strftime(config.time_format),
        appointment.service_type.display_name,
        appointment.pet_name,
        appointment.owner_name,
        appointment.status.display_name,
        _text(appointment.notes),
    ]


def _charge_row(charge: Charge, config: ExportConfig) -> list[str]:
    return [
        charge.date.strftime(config.date_format),
        f"{charge.amount:.2f}",
        charge.type.display_name,
        _text(charge.owner_name),
        _text(charge.pet_name),
        _text(charge.notes),
    ]


def _organization_row(organization: Organization, config: ExportConfig) -> list[str]:
    return [
        organization.name,
        _text(organization.address),
        _text(organization.email),
        _text(organization.phone),
        _text(organization.notes),
    ]


def _expense_row(expense: Expense, config: ExportConfig) -> list[str]:
    return [
        expense.date.strftime(config.date_format),
        f"{expense.amount:.2f}",
        expense.category,
        _text(expense.description),
        _text(expense.organization_name),
        _text(expense.notes),
    ]


# Column order matches constants.CSV_HEADERS and the importer's contracts.
ROW_BUILDERS: dict[EntityKind, Callable[..., list[str]]] = {
    EntityKind.OWNER: _owner_row,
    EntityKind.PET: _pet_row,
    EntityKind.APPOINTMENT: _appointment_row,
    EntityKind.CHARGE: _charge_row,
    EntityKind.ORGANIZATION: _organization_row,
    EntityKind.EXPENSE: _expense_row,
}


def render_csv(
    kind: EntityKind,
    records: Iterable[EntityBase],
    config: ExportConfig | None = None,
) -> str:
    """
    Render records of one kind as delimited text.

    Args:
        kind: Entity kind of ``records``
        records: Records to render, in output order
        config: Date/time formats and formula sanitization. Sanitization only
            touches free-text columns; dates, times, amounts and enum labels
            are written as formatted so they re-import unchanged.

    Returns:
        Header line followed by one escaped line per record; every line ends
        with a newline. Zero records give the header line alone.
    """
    config = config or ExportConfig()
    build = ROW_BUILDERS[kind]
    headers = CSV_HEADERS[kind]
    sanitize = [
        config.sanitize_formulas and column not in GENERATED_COLUMNS for column in headers
    ]

    lines = [join_fields(headers)]
    for record in records:
        cells = build(record, config)
        lines.append(
            DELIMITER.join(escape_field(cell, flag) for cell, flag in zip(cells, sanitize))
        )
    return "".join(line + "\n" for line in lines)


def owners_csv(owners: Iterable[Owner], config: ExportConfig | None = None) -> str:
    return render_csv(EntityKind.OWNER, owners, config)


def pets_csv(pets: Iterable[Pet], config: ExportConfig | None = None) -> str:
    return render_csv(EntityKind.PET, pets, config)


def appointments_csv(
    appointments: Iterable[Appointment], config: ExportConfig | None = None
) -> str:
    return render_csv(EntityKind.APPOINTMENT, appointments, config)


def charges_csv(charges: Iterable[Charge], config: ExportConfig | None = None) -> str:
    return render_csv(EntityKind.CHARGE, charges, config)


def organizations_csv(
    organizations: Iterable[Organization], config: ExportConfig | None = None
) -> str:
    return render_csv(EntityKind.ORGANIZATION, organizations, config)


def expenses_csv(expenses: Iterable[Expense], config: ExportConfig | None = None) -> str:
    return render_csv(EntityKind.EXPENSE, expenses, config)


def default_filename(kind: EntityKind, now: datetime | None = None) -> str:
    """``<Kind>Export-YYYYMMDD-HHMMSS.csv`` for the given (or current) time."""
    stamp = (now or datetime.now()).strftime(FILENAME_TIMESTAMP_FORMAT)
    return f"{kind.type_name}Export-{stamp}{CSV_EXTENSION}"


class CSVExporter:
    """
    Write rendered CSV to the export directory and audit each write.

    Features:
    - Atomic writes (temp file + rename)
    - File names confined to the export directory
    - One audit event per write attempt
    """

    def __init__(self, ledger: AuditSink, config: ExportConfig | None = None) -> None:
        """
        Initialize exporter.

        Args:
            ledger: Audit trail for export events
            config: Export directory and formatting
        """
        self.ledger = ledger
        self.config = config or ExportConfig()

    def write_csv(
        self,
        text: str,
        filename: str,
        kind: EntityKind,
        count: int | None = None,
    ) -> Path:
        """
        Write CSV text to the export directory.

        Args:
            text: Rendered CSV text
            filename: Requested file name; ".csv" is appended if missing and
                directory components are ignored
            kind: Entity kind for the audit event
            count: Records in ``text`` (defaults to its non-header line count)

        Returns:
            Path of the written file

        Raises:
            ExportWriteError: If the file cannot be written
        """
        path = self.config.directory / safe_filename(filename, CSV_EXTENSION)
        if count is None:
            count = max(len(text.splitlines()) - 1, 0)

        try:
            atomic_write_text(path, text)
        except OSError as e:
            logger.error(
                "CSV export failed",
                entity_type=kind.type_name,
                path=str(path),
                error=str(e),
            )
            self.ledger.record(
                AuditEvent(
                    operation=OperationKind.EXPORT,
                    entity_type=kind.type_name,
                    tags=EXPORT_TAGS[kind],
                    count=count,
                    status=AuditStatus.ERROR,
                    error_description=str(e),
                    file_url=str(path),
                )
            )
            raise ExportWriteError(str(path), e) from e

        self.ledger.record(
            AuditEvent(
                operation=OperationKind.EXPORT,
                entity_type=kind.type_name,
                tags=EXPORT_TAGS[kind],
                count=count,
                status=AuditStatus.SUCCESS,
                file_url=str(path),
            )
        )
        logger.info("CSV export completed", entity_type=kind.type_name, path=str(path), count=count)
        return path

    def export(
        self,
        kind: EntityKind,
        records: Sequence[EntityBase],
        filename: str | None = None,
    ) -> Path:
        """
        Render and write records of one kind.

        Args:
            kind: Entity kind of ``records``
            records: Records to export
            filename: Output file name (defaults to a timestamped name)

        Returns:
            Path of the written file

        Raises:
            ExportWriteError: If the file cannot be written
        """
        text = render_csv(kind, records, self.config)
        return self.write_csv(text, filename or default_filename(kind), kind, count=len(records))

