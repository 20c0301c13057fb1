"""Custom exceptions for the Furfolio import/export pipeline.

Exception Hierarchy:
-------------------
FurfolioIOError (base)
├── RowValidationError          # Malformed row: too short, empty required field, bad value
├── ReferenceNotFoundError      # Name lookup against a reference collection failed
├── SinkCommitError             # Persistence sink rejected a batch commit
├── ExportWriteError            # Export file could not be written
└── BundleError                 # JSON data bundle could not be read or decoded

Usage Guidelines:
----------------
1. Row-level errors (RowValidationError, ReferenceNotFoundError) never escape an
   importer. They are turned into skip diagnostics and the batch continues.

2. SinkCommitError is fatal to one batch only. Importers catch it and record an
   error AuditEvent instead of re-raising.

3. ExportWriteError and BundleError are raised to the caller after the audit
   event has been recorded, because the caller has to report the failure.
"""


class FurfolioIOError(Exception):
    """Base exception for all import/export errors."""

    pass


class RowValidationError(FurfolioIOError):
    """Raised when a single delimited row cannot become a record."""

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize RowValidationError.

        Args:
            message: Error message.
            line_number: Optional 1-based line number in the source text.
            original_error: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.line_number = line_number
        self.original_error = original_error

    def __str__(self) -> str:
        """
        Return string representation with line number if available.

        Returns:
            str: Error message prefixed with line number if set.
        """
        if self.line_number:
            return f"Line {self.line_number}: {self.args[0]}"
        return str(self.args[0]) if self.args else "Row validation error"


class ReferenceNotFoundError(FurfolioIOError, LookupError):
    """Raised when a cross-reference name matches no entity in the batch."""

    def __init__(self, entity_kind: str, name: str) -> None:
        """
        Initialize ReferenceNotFoundError.

        Args:
            entity_kind: Kind of entity that was looked up (owner, pet, ...).
            name: Name used for the lookup.
        """
        super().__init__(f"{entity_kind} not found: {name!r}")
        self.entity_kind = entity_kind
        self.name = name


class SinkCommitError(FurfolioIOError):
    """Raised when the persistence sink fails to commit a batch."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize SinkCommitError.

        Args:
            message: Error message.
            original_error: Underlying storage error, if any.
        """
        super().__init__(message)
        self.original_error = original_error


class ExportWriteError(FurfolioIOError):
    """Raised when an export file cannot be written."""

    def __init__(self, path: str, original_error: Exception | None = None) -> None:
        """
        Initialize ExportWriteError.

        Args:
            path: Target path of the failed write.
            original_error: Underlying OS error.
        """
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Failed to write export file {path}{detail}")
        self.path = path
        self.original_error = original_error


class BundleError(FurfolioIOError):
    """Raised when a JSON data bundle cannot be read or decoded."""

    def __init__(self, path: str, original_error: Exception | None = None) -> None:
        """
        Initialize BundleError.

        Args:
            path: Path of the bundle file.
            original_error: Underlying decode or OS error.
        """
        detail = f": {original_error}" if original_error else ""
        super().__init__(f"Failed to read data bundle {path}{detail}")
        self.path = path
        self.original_error = original_error
