"""Service container wiring ledgers, sink, importer and exporters together.

One ``FurfolioIO`` is built per process (or per test) and handed to callers
explicitly, so every collaborator shares the same ledgers and sink.
"""

from dataclasses import dataclass
from pathlib import Path

import structlog

from .config import FurfolioIOConfig
from .constants import IMPORT_FILENAMES
from .core.bundle import BundleManager
from .core.exporter import CSVExporter
from .core.importer import EntityImporter
from .models.bundle import DataBundle
from .models.entities import EntityKind
from .models.results import ImportResult
from .persistence.ledger import AuditLedger
from .persistence.sink import PersistenceSink, SQLiteSink

logger = structlog.get_logger(__name__)

# Referenced kinds come before the kinds that reference them.
IMPORT_ORDER: tuple[EntityKind, ...] = (
    EntityKind.OWNER,
    EntityKind.PET,
    EntityKind.ORGANIZATION,
    EntityKind.APPOINTMENT,
    EntityKind.CHARGE,
    EntityKind.EXPENSE,
)


@dataclass
class FurfolioIO:
    """Explicitly constructed collaborators of the import/export pipeline."""

    config: FurfolioIOConfig
    sink: PersistenceSink
    import_ledger: AuditLedger
    export_ledger: AuditLedger
    bundle_ledger: AuditLedger
    importer: EntityImporter
    exporter: CSVExporter
    bundles: BundleManager

    @classmethod
    def from_config(
        cls,
        config: FurfolioIOConfig | None = None,
        sink: PersistenceSink | None = None,
    ) -> "FurfolioIO":
        """
        Build the container.

        Args:
            config: Pipeline configuration (defaults to FurfolioIOConfig())
            sink: Persistence sink (defaults to a SQLiteSink at storage.db_path)

        Returns:
            FurfolioIO instance
        """
        config = config or FurfolioIOConfig()
        if sink is None:
            sink = SQLiteSink(config.storage.db_path)

        import_ledger = AuditLedger(config.audit.import_capacity, name="import")
        export_ledger = AuditLedger(config.audit.export_capacity, name="export")
        bundle_ledger = AuditLedger(config.audit.bundle_capacity, name="bundle")

        return cls(
            config=config,
            sink=sink,
            import_ledger=import_ledger,
            export_ledger=export_ledger,
            bundle_ledger=bundle_ledger,
            importer=EntityImporter(sink, import_ledger, config.imports),
            exporter=CSVExporter(export_ledger, config.export),
            bundles=BundleManager(bundle_ledger, config.export),
        )

    def import_directory(self, directory: str | Path) -> dict[EntityKind, ImportResult]:
        """
        Import the canonical CSV files found in a directory.

        Files are imported in dependency order (owners, pets, organizations,
        appointments, charges, expenses). Each batch resolves its references
        against the committed records of the batches before it. Missing files
        are skipped.

        Args:
            directory: Directory holding owners.csv, pets.csv, ...

        Returns:
            Import results keyed by entity kind, for the files that exist

        Raises:
            NotADirectoryError: If ``directory`` is not a directory
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(f"Import directory not found: {directory}")

        results: dict[EntityKind, ImportResult] = {}
        imported = DataBundle()

        for kind in IMPORT_ORDER:
            path = directory / IMPORT_FILENAMES[kind]
            if not path.is_file():
                logger.info("Import file not present, skipping", path=str(path))
                continue

            result = self.importer.import_batch(
                kind,
                path.read_text(encoding="utf-8-sig"),
                owners=imported.owners,
                pets=imported.pets,
                organizations=imported.organizations,
                source_filename=path.name,
            )
            results[kind] = result
            if result.committed:
                imported.collection(kind).extend(result.records)

        logger.info(
            "Directory import complete",
            directory=str(directory),
            imported={kind.type_name: r.imported_count for kind, r in results.items()},
        )
        return results
