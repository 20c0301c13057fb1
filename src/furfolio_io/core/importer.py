"""Entity importers: delimited text to typed records in a persistence sink.

Overview:
--------
Each ``import_*`` method consumes the text of one CSV file for one entity
kind, builds typed records, stages them in the sink and commits the batch.
Every call records exactly one AuditEvent, whether the commit succeeds or not.

Batch processing:
----------------
1. The header line and blank lines are dropped.
2. Each remaining line is parsed into a DelimitedRow.
3. Rows with fewer columns than the kind requires are skipped.
4. Positional columns are mapped to named fields (see constants.CSV_HEADERS).
5. Required references (a Pet's owner, an Appointment's pet and owner) are
   resolved by name against the collections passed in; a miss skips the row.
6. The record is staged with ``sink.add``.
7. After the last line the batch is committed once.

Skipped rows never abort a batch. They are logged at debug level and returned
as diagnostics on the ImportResult.

Commit failures:
---------------
A SinkCommitError is caught, logged and recorded as an error AuditEvent
whose count is the number of records attempted. It is not re-raised; the
shortfall is visible in the audit trail and on ``ImportResult.committed``.
"""

import datetime as dt
from collections.abc import Callable, Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TypeVar

import structlog
from pydantic import ValidationError

from ..config import EmptyFieldPolicy, ImportConfig
from ..constants import CSV_HEADERS, IMPORT_TAGS, MIN_COLUMNS
from ..models.audit import AuditEvent, AuditStatus, OperationKind
from ..models.entities import (
    Appointment,
    AppointmentStatus,
    Charge,
    ChargeType,
    EntityBase,
    EntityKind,
    Expense,
    Organization,
    Owner,
    Pet,
)
from ..models.results import ImportResult, RowDiagnostic
from ..observability.logger import LogContext
from ..persistence.ledger import AuditSink
from ..persistence.sink import PersistenceSink
from ..utils.exceptions import ReferenceNotFoundError, RowValidationError, SinkCommitError
from .parser import DelimitedRow, iter_data_rows
from .resolver import NameIndex

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=EntityBase)

# Builds one record from a parsed row. Receives the row's line number and the
# batch diagnostics list for non-fatal warnings; raises RowValidationError or
# ReferenceNotFoundError to skip the row.
RowBuilder = Callable[[DelimitedRow, int, list[RowDiagnostic]], RecordT]

CENTS = Decimal("0.01")


class EntityImporter:
    """
    Import delimited text for each entity kind.

    Features:
    - Fixed positional column contract per kind
    - Cross-reference resolution by name (exact or case-insensitive)
    - Configurable handling of empty required columns
    - One audit event per batch
    """

    def __init__(
        self,
        sink: PersistenceSink,
        ledger: AuditSink,
        config: ImportConfig | None = None,
    ) -> None:
        """
        Initialize importer.

        Args:
            sink: Persistence sink that receives records
            ledger: Audit trail for batch events
            config: Import policies (defaults to ImportConfig())
        """
        self.sink = sink
        self.ledger = ledger
        self.config = config or ImportConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def import_owners(self, text: str, source_filename: str | None = None) -> ImportResult[Owner]:
        """
        Import owners: [name, email, phone, address].

        Args:
            text: CSV text including header line
            source_filename: Optional input file name for the audit event

        Returns:
            ImportResult with the imported owners
        """
        return self._run_batch(EntityKind.OWNER, text, self._build_owner, source_filename)

    def import_pets(
        self,
        text: str,
        owners: Iterable[Owner],
        source_filename: str | None = None,
    ) -> ImportResult[Pet]:
        """
        Import pets: [name, breed, owner-name, birthdate?, notes?].

        Args:
            text: CSV text including header line
            owners: Owners the owner-name column is resolved against
            source_filename: Optional input file name for the audit event

        Returns:
            ImportResult with the imported pets
        """
        owner_index = self._index(EntityKind.OWNER, owners)

        def build(fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]) -> Pet:
            return self._build_pet(fields, line, diagnostics, owner_index)

        return self._run_batch(EntityKind.PET, text, build, source_filename)

    def import_appointments(
        self,
        text: str,
        owners: Iterable[Owner],
        pets: Iterable[Pet],
        source_filename: str | None = None,
    ) -> ImportResult[Appointment]:
        """Import appointments: [date, time, service, pet-name, owner-name, status?, notes?]."""
        owner_index = self._index(EntityKind.OWNER, owners)
        pet_index = self._index(EntityKind.PET, pets)

        def build(fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]) -> Appointment:
            return self._build_appointment(fields, line, owner_index, pet_index)

        return self._run_batch(EntityKind.APPOINTMENT, text, build, source_filename)

    def import_charges(
        self,
        text: str,
        owners: Iterable[Owner] = (),
        pets: Iterable[Pet] = (),
        source_filename: str | None = None,
    ) -> ImportResult[Charge]:
        """Import charges: [date, amount, type, owner-name?, pet-name?, notes?]."""
        owner_index = self._index(EntityKind.OWNER, owners)
        pet_index = self._index(EntityKind.PET, pets)

        def build(fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]) -> Charge:
            return self._build_charge(fields, line, diagnostics, owner_index, pet_index)

        return self._run_batch(EntityKind.CHARGE, text, build, source_filename)

    def import_organizations(
        self, text: str, source_filename: str | None = None
    ) -> ImportResult[Organization]:
        """Import organizations: [name, address, email, phone, notes]."""
        return self._run_batch(
            EntityKind.ORGANIZATION, text, self._build_organization, source_filename
        )

    def import_expenses(
        self,
        text: str,
        organizations: Iterable[Organization] = (),
        source_filename: str | None = None,
    ) -> ImportResult[Expense]:
        """Import expenses: [date, amount, category, description, organization-name?, notes?]."""
        organization_index = self._index(EntityKind.ORGANIZATION, organizations)

        def build(fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]) -> Expense:
            return self._build_expense(fields, line, diagnostics, organization_index)

        return self._run_batch(EntityKind.EXPENSE, text, build, source_filename)

    def import_batch(
        self,
        kind: EntityKind,
        text: str,
        *,
        owners: Iterable[Owner] = (),
        pets: Iterable[Pet] = (),
        organizations: Iterable[Organization] = (),
        source_filename: str | None = None,
    ) -> ImportResult:
        """
        Import one batch of any kind, passing only the references it uses.

        Args:
            kind: Entity kind of the text
            text: CSV text including header line
            owners: Owner references (pets, appointments, charges)
            pets: Pet references (appointments, charges)
            organizations: Organization references (expenses)
            source_filename: Optional input file name for the audit event

        Returns:
            ImportResult for the batch
        """
        dispatch: dict[EntityKind, Callable[[], ImportResult]] = {
            EntityKind.OWNER: lambda: self.import_owners(text, source_filename),
            EntityKind.PET: lambda: self.import_pets(text, owners, source_filename),
            EntityKind.APPOINTMENT: lambda: self.import_appointments(
                text, owners, pets, source_filename
            ),
            EntityKind.CHARGE: lambda: self.import_charges(text, owners, pets, source_filename),
            EntityKind.ORGANIZATION: lambda: self.import_organizations(text, source_filename),
            EntityKind.EXPENSE: lambda: self.import_expenses(text, organizations, source_filename),
        }
        return dispatch[kind]()

    # ------------------------------------------------------------------
    # Batch driver
    # ------------------------------------------------------------------

    def _run_batch(
        self,
        kind: EntityKind,
        text: str,
        build: RowBuilder,
        source_filename: str | None,
    ) -> ImportResult:
        min_columns = MIN_COLUMNS[kind]
        records: list[EntityBase] = []
        diagnostics: list[RowDiagnostic] = []

        with LogContext(entity_type=kind.type_name, source_filename=source_filename):
            logger.info("Starting import batch")

            for line_number, fields in iter_data_rows(text):
                if len(fields) < min_columns:
                    self._skip(
                        diagnostics,
                        line_number,
                        f"expected at least {min_columns} columns, found {len(fields)}",
                    )
                    continue

                try:
                    record = build(fields, line_number, diagnostics)
                except (RowValidationError, ReferenceNotFoundError) as e:
                    message = e.args[0] if isinstance(e, RowValidationError) else str(e)
                    self._skip(diagnostics, line_number, message)
                    continue
                except ValidationError as e:
                    self._skip(diagnostics, line_number, f"invalid record: {e.errors()[0]['msg']}")
                    continue

                self.sink.add(record)
                records.append(record)

            committed = True
            try:
                self.sink.commit()
            except SinkCommitError as e:
                committed = False
                self.sink.rollback()
                logger.error(
                    "Import batch commit failed",
                    attempted=len(records),
                    error=str(e),
                )
                event = self._event(kind, len(records), AuditStatus.ERROR, source_filename, str(e))
            else:
                event = self._event(kind, len(records), AuditStatus.SUCCESS, source_filename)

            self.ledger.record(event)

            logger.info(
                "Import batch complete",
                imported=len(records) if committed else 0,
                skipped=sum(1 for d in diagnostics if d.skipped),
                committed=committed,
            )

        return ImportResult(
            kind=kind,
            records=records,
            event=event,
            committed=committed,
            diagnostics=diagnostics,
        )

    def _event(
        self,
        kind: EntityKind,
        count: int,
        status: AuditStatus,
        source_filename: str | None,
        error_description: str | None = None,
    ) -> AuditEvent:
        return AuditEvent(
            operation=OperationKind.IMPORT,
            entity_type=kind.type_name,
            tags=IMPORT_TAGS[kind],
            count=count,
            status=status,
            error_description=error_description,
            source_filename=source_filename,
        )

    @staticmethod
    def _skip(diagnostics: list[RowDiagnostic], line_number: int, message: str) -> None:
        diagnostics.append(RowDiagnostic(line_number, message))
        logger.debug("Skipping row", line=line_number, reason=message)

    @staticmethod
    def _warn(diagnostics: list[RowDiagnostic], line_number: int, message: str) -> None:
        diagnostics.append(RowDiagnostic(line_number, message, skipped=False))
        logger.debug("Row imported with warning", line=line_number, reason=message)

    def _index(self, kind: EntityKind, records: Iterable) -> NameIndex:
        return NameIndex(kind, records, match=self.config.name_match)

    # ------------------------------------------------------------------
    # Row builders
    # ------------------------------------------------------------------

    def _build_owner(
        self, fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]
    ) -> Owner:
        return Owner(
            name=self._required(fields, 0, EntityKind.OWNER, line),
            email=_optional(fields, 1),
            phone=_optional(fields, 2),
            address=_optional(fields, 3),
        )

    def _build_pet(
        self,
        fields: DelimitedRow,
        line: int,
        diagnostics: list[RowDiagnostic],
        owners: NameIndex[Owner],
    ) -> Pet:
        name = self._required(fields, 0, EntityKind.PET, line)
        owner = owners.resolve(fields[2])

        birthdate = None
        raw_birthdate = _optional(fields, 3)
        if raw_birthdate:
            try:
                birthdate = self._parse_date(raw_birthdate, "Birthdate", line)
            except RowValidationError as e:
                self._warn(diagnostics, line, f"{e.args[0]}; birthdate left empty")

        return Pet(
            name=name,
            breed=_optional(fields, 1),
            owner_id=owner.id,
            owner_name=owner.name,
            birthdate=birthdate,
            notes=_optional(fields, 4),
        )

    def _build_appointment(
        self,
        fields: DelimitedRow,
        line: int,
        owners: NameIndex[Owner],
        pets: NameIndex[Pet],
    ) -> Appointment:
        date = self._parse_date(
            self._required(fields, 0, EntityKind.APPOINTMENT, line), "Date", line
        )
        raw_time = self._required(fields, 1, EntityKind.APPOINTMENT, line)
        time = self._parse_time(raw_time, line) if raw_time else dt.time(0, 0)

        pet = pets.resolve(fields[3])
        owner = owners.resolve(fields[4])

        return Appointment(
            scheduled_at=dt.datetime.combine(date, time),
            service_type=ChargeType.parse(fields[2]),
            pet_id=pet.id,
            pet_name=pet.name,
            owner_id=owner.id,
            owner_name=owner.name,
            status=AppointmentStatus.parse(_optional(fields, 5) or ""),
            notes=_optional(fields, 6),
        )

    def _build_charge(
        self,
        fields: DelimitedRow,
        line: int,
        diagnostics: list[RowDiagnostic],
        owners: NameIndex[Owner],
        pets: NameIndex[Pet],
    ) -> Charge:
        date = self._parse_date(self._required(fields, 0, EntityKind.CHARGE, line), "Date", line)
        amount = self._parse_amount(self._required(fields, 1, EntityKind.CHARGE, line), line)

        owner = self._optional_reference(owners, _optional(fields, 3), line, diagnostics)
        pet = self._optional_reference(pets, _optional(fields, 4), line, diagnostics)

        return Charge(
            date=date,
            amount=amount,
            type=ChargeType.parse(fields[2]),
            owner_id=owner.id if owner else None,
            owner_name=owner.name if owner else None,
            pet_id=pet.id if pet else None,
            pet_name=pet.name if pet else None,
            notes=_optional(fields, 5),
        )

    def _build_organization(
        self, fields: DelimitedRow, line: int, diagnostics: list[RowDiagnostic]
    ) -> Organization:
        return Organization(
            name=self._required(fields, 0, EntityKind.ORGANIZATION, line),
            address=_optional(fields, 1),
            email=_optional(fields, 2),
            phone=_optional(fields, 3),
            notes=_optional(fields, 4),
        )

    def _build_expense(
        self,
        fields: DelimitedRow,
        line: int,
        diagnostics: list[RowDiagnostic],
        organizations: NameIndex[Organization],
    ) -> Expense:
        date = self._parse_date(self._required(fields, 0, EntityKind.EXPENSE, line), "Date", line)
        amount = self._parse_amount(self._required(fields, 1, EntityKind.EXPENSE, line), line)
        organization = self._optional_reference(
            organizations, _optional(fields, 4), line, diagnostics
        )

        return Expense(
            date=date,
            amount=amount,
            category=self._required(fields, 2, EntityKind.EXPENSE, line),
            description=_optional(fields, 3),
            organization_id=organization.id if organization else None,
            organization_name=organization.name if organization else None,
            notes=_optional(fields, 5),
        )

    # ------------------------------------------------------------------
    # Field helpers
    # ------------------------------------------------------------------

    def _required(self, fields: DelimitedRow, index: int, kind: EntityKind, line: int) -> str:
        """
        Read a required column.

        An empty value skips the row under EmptyFieldPolicy.SKIP and is
        returned as "" under EmptyFieldPolicy.IMPORT.
        """
        value = fields[index]
        if not value and self.config.empty_required_field is EmptyFieldPolicy.SKIP:
            column = CSV_HEADERS[kind][index]
            raise RowValidationError(f"required column '{column}' is empty", line_number=line)
        return value

    def _optional_reference(
        self,
        index: NameIndex,
        name: str | None,
        line: int,
        diagnostics: list[RowDiagnostic],
    ):
        if not name:
            return None
        try:
            return index.resolve(name)
        except ReferenceNotFoundError as e:
            self._warn(diagnostics, line, f"{e}; reference dropped")
            return None

    def _parse_date(self, value: str, column: str, line: int) -> dt.date:
        for fmt in self.config.date_formats:
            try:
                return dt.datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        raise RowValidationError(f"unrecognized {column.lower()} {value!r}", line_number=line)

    def _parse_time(self, value: str, line: int) -> dt.time:
        for fmt in self.config.time_formats:
            try:
                return dt.datetime.strptime(value.upper(), fmt).time()
            except ValueError:
                continue
        raise RowValidationError(f"unrecognized time {value!r}", line_number=line)

    @staticmethod
    def _parse_amount(value: str, line: int) -> Decimal:
        """Parse a money amount, rounded to cents; out-of-range values skip the row."""
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            amount = Decimal(cleaned)
            if not amount.is_finite():
                raise InvalidOperation
            return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise RowValidationError(f"unrecognized amount {value!r}", line_number=line) from None


def _optional(fields: DelimitedRow, index: int) -> str | None:
    """Column value, or None when the column is absent or empty."""
    if index < len(fields) and fields[index]:
        return fields[index]
    return None
