"""Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing the Furfolio import/export
pipeline. Fixtures are organized by category:
- Text fixtures: Sample CSV content for each entity kind
- Infrastructure fixtures: Ledgers, sinks, importers, temp directories
- Data fixtures: Pre-imported reference collections
"""

from pathlib import Path

import pytest

from src.furfolio_io.config import ExportConfig, FurfolioIOConfig, ImportConfig
from src.furfolio_io.core.importer import EntityImporter
from src.furfolio_io.models.entities import Organization, Owner, Pet
from src.furfolio_io.persistence.ledger import AuditLedger
from src.furfolio_io.persistence.sink import InMemorySink

# =============================================================================
# Text Fixtures
# =============================================================================

OWNERS_CSV = """Name,Email,Phone,Address
Alice Smith,alice@example.com,555-0100,"12 Oak St, Springfield"
Bob Jones,bob@example.com,555-0101,34 Elm St
"""

PETS_CSV = """Name,Breed,Owner,Birthdate,Notes
Rex,Beagle,Alice Smith,03/14/2019,Nervous with clippers
Luna,Poodle,Bob Jones,,
"""

APPOINTMENTS_CSV = """Date,Time,Service,Pet,Owner,Status,Notes
06/20/2025,09:30 AM,Full Groom,Rex,Alice Smith,Completed,
06/21/2025,14:00,basicBath,Luna,Bob Jones,,First visit
"""

CHARGES_CSV = """Date,Amount,Type,Owner,Pet,Notes
06/20/2025,85.00,Full Groom,Alice Smith,Rex,
06/21/2025,$40.50,Basic Bath,Bob Jones,,Paid cash
"""

ORGANIZATIONS_CSV = """Name,Address,Email,Phone,Notes
Happy Paws Grooming,1 Main St,hello@happypaws.test,555-0199,Primary business
"""

EXPENSES_CSV = """Date,Amount,Category,Description,Organization,Notes
06/01/2025,120.00,Supplies,Shampoo restock,Happy Paws Grooming,
06/02/2025,45.99,Utilities,Water bill,,
"""


@pytest.fixture
def owners_csv_text() -> str:
    """Owners CSV with two valid rows."""
    return OWNERS_CSV


@pytest.fixture
def pets_csv_text() -> str:
    """Pets CSV referencing the owners in owners_csv_text."""
    return PETS_CSV


@pytest.fixture
def appointments_csv_text() -> str:
    """Appointments CSV referencing the sample owners and pets."""
    return APPOINTMENTS_CSV


@pytest.fixture
def charges_csv_text() -> str:
    """Charges CSV referencing the sample owners and pets."""
    return CHARGES_CSV


@pytest.fixture
def organizations_csv_text() -> str:
    """Organizations CSV with one business."""
    return ORGANIZATIONS_CSV


@pytest.fixture
def expenses_csv_text() -> str:
    """Expenses CSV, one linked to the sample organization."""
    return EXPENSES_CSV


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture
def ledger() -> AuditLedger:
    """Empty audit ledger with default capacity."""
    return AuditLedger(name="test")


@pytest.fixture
def sink() -> InMemorySink:
    """Empty in-memory persistence sink."""
    return InMemorySink()


@pytest.fixture
def importer(sink: InMemorySink, ledger: AuditLedger) -> EntityImporter:
    """Importer with default policies writing to the in-memory sink."""
    return EntityImporter(sink, ledger, ImportConfig())


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    """Export directory under the test's temp path (not created)."""
    return tmp_path / "exports"


@pytest.fixture
def export_config(export_dir: Path) -> ExportConfig:
    """Export configuration writing into export_dir."""
    return ExportConfig(directory=export_dir)


@pytest.fixture
def io_config(tmp_path: Path, export_config: ExportConfig) -> FurfolioIOConfig:
    """Full configuration isolated under tmp_path."""
    config = FurfolioIOConfig(export=export_config)
    config.storage.db_path = tmp_path / "furfolio.db"
    return config


@pytest.fixture
def import_dir(tmp_path: Path) -> Path:
    """Directory holding all six canonical import files."""
    directory = tmp_path / "import"
    directory.mkdir()
    (directory / "owners.csv").write_text(OWNERS_CSV, encoding="utf-8")
    (directory / "pets.csv").write_text(PETS_CSV, encoding="utf-8")
    (directory / "appointments.csv").write_text(APPOINTMENTS_CSV, encoding="utf-8")
    (directory / "charges.csv").write_text(CHARGES_CSV, encoding="utf-8")
    (directory / "organizations.csv").write_text(ORGANIZATIONS_CSV, encoding="utf-8")
    (directory / "expenses.csv").write_text(EXPENSES_CSV, encoding="utf-8")
    return directory


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def owners() -> list[Owner]:
    """Owners matching the sample CSV names."""
    return [
        Owner(name="Alice Smith", email="alice@example.com"),
        Owner(name="Bob Jones", phone="555-0101"),
    ]


@pytest.fixture
def pets(owners: list[Owner]) -> list[Pet]:
    """Pets owned by the sample owners."""
    alice, bob = owners
    return [
        Pet(name="Rex", breed="Beagle", owner_id=alice.id, owner_name=alice.name),
        Pet(name="Luna", owner_id=bob.id, owner_name=bob.name),
    ]


@pytest.fixture
def organizations() -> list[Organization]:
    """The sample business."""
    return [Organization(name="Happy Paws Grooming", email="hello@happypaws.test")]
