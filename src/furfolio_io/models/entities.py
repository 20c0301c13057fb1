"""Entity models with Pydantic v2 discriminated unions.

Every importable record carries a literal ``kind`` so a mixed collection can be
validated back into the right model (SQLite sink, JSON bundles) and every call
site can dispatch exhaustively on ``EntityKind`` instead of checking types at
runtime.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ENTITY_TYPE_NAMES


class EntityKind(str, Enum):
    """The closed set of entity kinds the pipeline imports and exports."""

    OWNER = "owner"
    PET = "pet"
    APPOINTMENT = "appointment"
    CHARGE = "charge"
    ORGANIZATION = "organization"
    EXPENSE = "expense"

    @property
    def type_name(self) -> str:
        """Name used in audit events and export file names (e.g. ``Owner``)."""
        return ENTITY_TYPE_NAMES[self.value]


class ChargeType(str, Enum):
    """Grooming service or sale type."""

    FULL_GROOM = "fullGroom"
    BASIC_BATH = "basicBath"
    NAIL_TRIM = "nailTrim"
    CUSTOM = "custom"
    PRODUCT = "product"

    @property
    def display_name(self) -> str:
        return _CHARGE_TYPE_DISPLAY[self]

    @classmethod
    def parse(cls, value: str) -> "ChargeType":
        """
        Parse a raw value or display name, case-insensitively.

        Unknown values fall back to FULL_GROOM.
        """
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.display_name.lower()):
                return member
        return cls.FULL_GROOM


_CHARGE_TYPE_DISPLAY = {
    ChargeType.FULL_GROOM: "Full Groom",
    ChargeType.BASIC_BATH: "Basic Bath",
    ChargeType.NAIL_TRIM: "Nail Trim",
    ChargeType.CUSTOM: "Custom Service",
    ChargeType.PRODUCT: "Product",
}


class AppointmentStatus(str, Enum):
    """Lifecycle state of an appointment."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "noShow"
    IN_PROGRESS = "inProgress"

    @property
    def display_name(self) -> str:
        return _STATUS_DISPLAY[self]

    @property
    def is_active(self) -> bool:
        return self in (AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS)

    @classmethod
    def parse(cls, value: str) -> "AppointmentStatus":
        """
        Parse a raw value or display name, case-insensitively.

        Unknown values fall back to SCHEDULED.
        """
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.display_name.lower()):
                return member
        return cls.SCHEDULED


_STATUS_DISPLAY = {
    AppointmentStatus.SCHEDULED: "Scheduled",
    AppointmentStatus.COMPLETED: "Completed",
    AppointmentStatus.CANCELLED: "Cancelled",
    AppointmentStatus.NO_SHOW: "No Show",
    AppointmentStatus.IN_PROGRESS: "In Progress",
}


class EntityBase(BaseModel):
    """
    Base class for all importable records.

    All records share a unique identifier regardless of kind.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: Annotated[UUID, Field(default_factory=uuid4, description="Unique record identifier")]


class Owner(EntityBase):
    """
    Pet owner (client) record.

    Example:
        Name,Email,Phone,Address
        Jane Smith,jane@x.com,555-1111,101 Oak Ln
    """

    kind: Literal["owner"] = "owner"
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class Pet(EntityBase):
    """
    Pet record, linked to its owner by id and name.

    Example:
        Name,Breed,Owner,Birthdate,Notes
        Rex,Poodle,Jane Smith,03/14/2019,Nervous around dryers
    """

    kind: Literal["pet"] = "pet"
    name: str
    breed: str | None = None
    owner_id: UUID
    owner_name: str
    birthdate: dt.date | None = None
    notes: str | None = None


class Appointment(EntityBase):
    """
    Grooming appointment for one pet and its owner.

    Example:
        Date,Time,Service,Pet,Owner,Status,Notes
        06/20/2025,2:30 PM,Full Groom,Rex,Jane Smith,Scheduled,
    """

    kind: Literal["appointment"] = "appointment"
    scheduled_at: dt.datetime
    service_type: ChargeType = ChargeType.FULL_GROOM
    pet_id: UUID
    pet_name: str
    owner_id: UUID
    owner_name: str
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None


class Charge(EntityBase):
    """Money charged for a service or product, optionally linked to an owner and pet."""

    kind: Literal["charge"] = "charge"
    date: dt.date
    amount: Decimal
    type: ChargeType = ChargeType.FULL_GROOM
    owner_id: UUID | None = None
    owner_name: str | None = None
    pet_id: UUID | None = None
    pet_name: str | None = None
    notes: str | None = None


class Organization(EntityBase):
    """Business (grooming salon) profile."""

    kind: Literal["organization"] = "organization"
    name: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    notes: str | None = None


class Expense(EntityBase):
    """Business expense, optionally attributed to an organization."""

    kind: Literal["expense"] = "expense"
    date: dt.date
    amount: Decimal
    category: str
    description: str | None = None
    organization_id: UUID | None = None
    organization_name: str | None = None
    notes: str | None = None


ImportableEntity = Annotated[
    Owner | Pet | Appointment | Charge | Organization | Expense,
    Field(discriminator="kind"),
]

MODEL_BY_KIND: dict[EntityKind, type[EntityBase]] = {
    EntityKind.OWNER: Owner,
    EntityKind.PET: Pet,
    EntityKind.APPOINTMENT: Appointment,
    EntityKind.CHARGE: Charge,
    EntityKind.ORGANIZATION: Organization,
    EntityKind.EXPENSE: Expense,
}
