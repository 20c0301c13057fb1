"""Core pipeline: parsing, cross-reference resolution, import and export."""

from .bundle import BundleManager
from .exporter import (
    CSVExporter,
    appointments_csv,
    charges_csv,
    expenses_csv,
    organizations_csv,
    owners_csv,
    pets_csv,
    render_csv,
)
from .importer import EntityImporter
from .parser import DelimitedRow, escape_field, iter_data_rows, join_fields, parse_line
from .resolver import NameIndex

__all__ = [
    "BundleManager",
    "CSVExporter",
    "DelimitedRow",
    "EntityImporter",
    "NameIndex",
    "appointments_csv",
    "charges_csv",
    "escape_field",
    "expenses_csv",
    "iter_data_rows",
    "join_fields",
    "organizations_csv",
    "owners_csv",
    "parse_line",
    "pets_csv",
    "render_csv",
]
