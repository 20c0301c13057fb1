"""Configuration constants for the Furfolio import/export pipeline.

Named constants for column contracts, audit tags and file naming so the
importer, exporter and ledger agree on one definition of each.
"""

# -----------------------------------------------------------------------------
# Delimited text
# -----------------------------------------------------------------------------

DELIMITER: str = ","
QUOTE: str = '"'

# Characters that force a field to be quoted on export
QUOTE_TRIGGERS: frozenset[str] = frozenset({DELIMITER, QUOTE, "\n", "\r"})

# Leading characters a spreadsheet would evaluate as a formula
FORMULA_PREFIXES: tuple[str, ...] = ("=", "@", "+", "-", "\t", "\r")

# Columns the exporter formats itself; never prefixed by formula sanitization
GENERATED_COLUMNS: frozenset[str] = frozenset(
    {"Date", "Time", "Birthdate", "Amount", "Service", "Type", "Status"}
)


# -----------------------------------------------------------------------------
# Column contracts
# -----------------------------------------------------------------------------
# Keyed by EntityKind value. Positions are 0-indexed and fixed; the exporter
# writes the same order the importer reads.

MIN_COLUMNS: dict[str, int] = {
    "owner": 4,
    "pet": 3,
    "appointment": 5,
    "charge": 3,
    "organization": 5,
    "expense": 4,
}

CSV_HEADERS: dict[str, tuple[str, ...]] = {
    "owner": ("Name", "Email", "Phone", "Address"),
    "pet": ("Name", "Breed", "Owner", "Birthdate", "Notes"),
    "appointment": ("Date", "Time", "Service", "Pet", "Owner", "Status", "Notes"),
    "charge": ("Date", "Amount", "Type", "Owner", "Pet", "Notes"),
    "organization": ("Name", "Address", "Email", "Phone", "Notes"),
    "expense": ("Date", "Amount", "Category", "Description", "Organization", "Notes"),
}

# Canonical file names used when importing a whole directory
IMPORT_FILENAMES: dict[str, str] = {
    "owner": "owners.csv",
    "pet": "pets.csv",
    "appointment": "appointments.csv",
    "charge": "charges.csv",
    "organization": "organizations.csv",
    "expense": "expenses.csv",
}


# -----------------------------------------------------------------------------
# Audit
# -----------------------------------------------------------------------------

DEFAULT_IMPORT_LEDGER_CAPACITY: int = 1000
DEFAULT_EXPORT_LEDGER_CAPACITY: int = 1000
DEFAULT_BUNDLE_LEDGER_CAPACITY: int = 500

# Entity type names as they appear in audit events and export file names
ENTITY_TYPE_NAMES: dict[str, str] = {
    "owner": "Owner",
    "pet": "Pet",
    "appointment": "Appointment",
    "charge": "Charge",
    "organization": "Organization",
    "expense": "Expense",
}

IMPORT_TAGS: dict[str, tuple[str, ...]] = {
    "owner": ("owner", "contact"),
    "pet": ("dog", "pet"),
    "appointment": ("appointment", "calendar"),
    "charge": ("charge", "finance"),
    "organization": ("business", "company"),
    "expense": ("expense", "finance"),
}

EXPORT_TAGS: dict[str, tuple[str, ...]] = {
    "owner": ("owner", "contact", "privacy"),
    "pet": ("dog", "pet", "animal"),
    "appointment": ("appointment", "calendar", "schedule"),
    "charge": ("charge", "finance", "revenue"),
    "organization": ("business", "company", "profile"),
    "expense": ("expense", "finance", "cost"),
}

BUNDLE_TAGS: tuple[str, ...] = ("json", "business")


# -----------------------------------------------------------------------------
# Files and formats
# -----------------------------------------------------------------------------

CSV_EXTENSION: str = ".csv"
JSON_EXTENSION: str = ".json"

# strftime pattern for the timestamp part of generated file names
FILENAME_TIMESTAMP_FORMAT: str = "%Y%m%d-%H%M%S"

BUNDLE_FILENAME_PREFIX: str = "FurfolioExport"

DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d")
DEFAULT_TIME_FORMATS: tuple[str, ...] = ("%I:%M %p", "%H:%M")
DEFAULT_EXPORT_DATE_FORMAT: str = "%m/%d/%Y"
DEFAULT_EXPORT_TIME_FORMAT: str = "%I:%M %p"
