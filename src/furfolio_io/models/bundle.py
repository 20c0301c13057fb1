"""Aggregate of every entity collection, used for JSON backup and restore."""

from pydantic import BaseModel, Field

from .entities import (
    Appointment,
    Charge,
    EntityKind,
    Expense,
    Organization,
    Owner,
    Pet,
)


class DataBundle(BaseModel):
    """All business data in one document."""

    owners: list[Owner] = Field(default_factory=list)
    pets: list[Pet] = Field(default_factory=list)
    appointments: list[Appointment] = Field(default_factory=list)
    charges: list[Charge] = Field(default_factory=list)
    organizations: list[Organization] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    def collection(self, kind: EntityKind) -> list:
        """Return the list holding records of ``kind``."""
        return {
            EntityKind.OWNER: self.owners,
            EntityKind.PET: self.pets,
            EntityKind.APPOINTMENT: self.appointments,
            EntityKind.CHARGE: self.charges,
            EntityKind.ORGANIZATION: self.organizations,
            EntityKind.EXPENSE: self.expenses,
        }[kind]

    @property
    def entity_types(self) -> list[str]:
        """Type names of the non-empty collections, in EntityKind order."""
        return [kind.type_name for kind in EntityKind if self.collection(kind)]

    @property
    def entity_counts(self) -> dict[str, int]:
        """Record count per type name, including empty collections."""
        return {kind.type_name: len(self.collection(kind)) for kind in EntityKind}

    @property
    def total_count(self) -> int:
        return sum(len(self.collection(kind)) for kind in EntityKind)
