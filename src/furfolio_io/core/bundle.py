"""JSON backup and restore of every entity collection at once.

A bundle file holds one ``DataBundle`` document: pretty-printed JSON with
sorted keys and ISO-8601 dates, named ``FurfolioExport-YYYYMMDD-HHMMSS.json``.
Each backup or restore attempt records one AuditEvent carrying per-type
record counts.
"""

import json
from datetime import datetime
from pathlib import Path

import structlog

from ..config import ExportConfig
from ..constants import (
    BUNDLE_FILENAME_PREFIX,
    BUNDLE_TAGS,
    FILENAME_TIMESTAMP_FORMAT,
    JSON_EXTENSION,
)
from ..models.audit import AuditEvent, AuditStatus, OperationKind
from ..models.bundle import DataBundle
from ..models.entities import EntityKind
from ..persistence.ledger import AuditSink
from ..persistence.sink import PersistenceSink
from ..utils.exceptions import BundleError, ExportWriteError, SinkCommitError
from ..utils.files import atomic_write_text, safe_filename

logger = structlog.get_logger(__name__)

UNKNOWN_ENTITY_TYPE = "Unknown"


def _entity_type_label(bundle: DataBundle) -> str:
    return ", ".join(bundle.entity_types) or "Bundle"


def encode_bundle(bundle: DataBundle) -> str:
    """Serialize a bundle as pretty, key-sorted JSON."""
    return json.dumps(bundle.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


class BundleManager:
    """Write and read JSON data bundles, auditing every attempt."""

    def __init__(self, ledger: AuditSink, config: ExportConfig | None = None) -> None:
        """
        Initialize BundleManager.

        Args:
            ledger: Audit trail for bundle events
            config: Export directory for written bundles
        """
        self.ledger = ledger
        self.config = config or ExportConfig()

    def export_bundle(self, bundle: DataBundle, filename: str | None = None) -> Path:
        """
        Write a bundle to the export directory.

        Args:
            bundle: Collections to back up
            filename: Output file name (defaults to a timestamped name)

        Returns:
            Path of the written file

        Raises:
            ExportWriteError: If the file cannot be written
        """
        if filename is None:
            stamp = datetime.now().strftime(FILENAME_TIMESTAMP_FORMAT)
            filename = f"{BUNDLE_FILENAME_PREFIX}-{stamp}{JSON_EXTENSION}"
        path = self.config.directory / safe_filename(filename, JSON_EXTENSION)

        try:
            atomic_write_text(path, encode_bundle(bundle))
        except OSError as e:
            logger.error("Bundle export failed", path=str(path), error=str(e))
            self._record(
                OperationKind.EXPORT, bundle, AuditStatus.ERROR, error=str(e), file_url=str(path)
            )
            raise ExportWriteError(str(path), e) from e

        self._record(OperationKind.EXPORT, bundle, AuditStatus.SUCCESS, file_url=str(path))
        logger.info("Bundle export completed", path=str(path), total=bundle.total_count)
        return path

    def import_bundle(self, path: str | Path) -> DataBundle:
        """
        Read and validate a bundle file.

        Args:
            path: Bundle file to read

        Returns:
            The decoded bundle

        Raises:
            BundleError: If the file cannot be read or is not a valid bundle
        """
        path = Path(path)
        bundle = self._read(path)
        self._record(OperationKind.IMPORT, bundle, AuditStatus.SUCCESS, source_filename=path.name)
        logger.info("Bundle import completed", path=str(path), total=bundle.total_count)
        return bundle

    def restore_bundle(self, path: str | Path, sink: PersistenceSink) -> DataBundle:
        """
        Read a bundle and commit all of its records to ``sink`` as one batch.

        One audit event is recorded, after the commit, with the commit's outcome.

        Args:
            path: Bundle file to read
            sink: Persistence sink receiving every record

        Returns:
            The restored bundle

        Raises:
            BundleError: If the file cannot be read or is not a valid bundle
            SinkCommitError: If the sink rejects the batch; nothing is committed
        """
        path = Path(path)
        bundle = self._read(path)
        for kind in EntityKind:
            for record in bundle.collection(kind):
                sink.add(record)

        try:
            sink.commit()
        except SinkCommitError as e:
            sink.rollback()
            logger.error("Bundle restore commit failed", path=str(path), error=str(e))
            self._record(
                OperationKind.IMPORT,
                bundle,
                AuditStatus.ERROR,
                error=str(e),
                source_filename=path.name,
            )
            raise

        self._record(OperationKind.IMPORT, bundle, AuditStatus.SUCCESS, source_filename=path.name)
        logger.info("Bundle restore completed", path=str(path), total=bundle.total_count)
        return bundle

    def _read(self, path: Path) -> DataBundle:
        try:
            return DataBundle.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # pydantic.ValidationError and UnicodeDecodeError are ValueErrors
            logger.error("Bundle import failed", path=str(path), error=str(e))
            self.ledger.record(
                AuditEvent(
                    operation=OperationKind.IMPORT,
                    entity_type=UNKNOWN_ENTITY_TYPE,
                    tags=BUNDLE_TAGS,
                    count=0,
                    status=AuditStatus.ERROR,
                    error_description=str(e),
                    source_filename=path.name,
                )
            )
            raise BundleError(str(path), e) from e

    def _record(
        self,
        operation: OperationKind,
        bundle: DataBundle,
        status: AuditStatus,
        error: str | None = None,
        file_url: str | None = None,
        source_filename: str | None = None,
    ) -> None:
        self.ledger.record(
            AuditEvent(
                operation=operation,
                entity_type=_entity_type_label(bundle),
                entity_counts=bundle.entity_counts,
                tags=BUNDLE_TAGS,
                count=bundle.total_count,
                status=status,
                error_description=error,
                file_url=file_url,
                source_filename=source_filename,
            )
        )
