"""Utility functions and exceptions."""

from .exceptions import (
    BundleError,
    ExportWriteError,
    FurfolioIOError,
    ReferenceNotFoundError,
    RowValidationError,
    SinkCommitError,
)

__all__ = [
    "FurfolioIOError",
    "RowValidationError",
    "ReferenceNotFoundError",
    "SinkCommitError",
    "ExportWriteError",
    "BundleError",
]
