"""Configuration management for the Furfolio import/export pipeline."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_BUNDLE_LEDGER_CAPACITY,
    DEFAULT_DATE_FORMATS,
    DEFAULT_EXPORT_DATE_FORMAT,
    DEFAULT_EXPORT_LEDGER_CAPACITY,
    DEFAULT_EXPORT_TIME_FORMAT,
    DEFAULT_IMPORT_LEDGER_CAPACITY,
    DEFAULT_TIME_FORMATS,
)


class EmptyFieldPolicy(str, Enum):
    """What to do with a required column that is present but empty."""

    SKIP = "skip"  # Skip the row with a diagnostic
    IMPORT = "import"  # Import the record with an empty value


class NameMatch(str, Enum):
    """How cross-reference names are compared."""

    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"


@dataclass
class AuditConfig:
    """Capacities of the bounded audit ledgers."""

    import_capacity: int = DEFAULT_IMPORT_LEDGER_CAPACITY
    export_capacity: int = DEFAULT_EXPORT_LEDGER_CAPACITY
    bundle_capacity: int = DEFAULT_BUNDLE_LEDGER_CAPACITY


@dataclass
class ImportConfig:
    """
    Import behaviour.

    Controls row-level policies that the column contracts leave open.
    """

    empty_required_field: EmptyFieldPolicy = EmptyFieldPolicy.SKIP
    name_match: NameMatch = NameMatch.EXACT
    date_formats: list[str] = field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))
    time_formats: list[str] = field(default_factory=lambda: list(DEFAULT_TIME_FORMATS))


@dataclass
class ExportConfig:
    """Export file location and formatting."""

    directory: Path = field(default_factory=lambda: Path.home() / "Documents" / "Furfolio")
    date_format: str = DEFAULT_EXPORT_DATE_FORMAT
    time_format: str = DEFAULT_EXPORT_TIME_FORMAT
    sanitize_formulas: bool = False  # Prefix formula-like cells with an apostrophe


@dataclass
class StorageConfig:
    """Persistence sink configuration."""

    db_path: Path = field(default_factory=lambda: Path(".furfolio") / "furfolio.db")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class FurfolioIOConfig:
    """
    Complete configuration for the import/export pipeline.

    This combines all configuration sections.
    """

    audit: AuditConfig = field(default_factory=AuditConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "FurfolioIOConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            FurfolioIOConfig instance
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        audit = AuditConfig(**data.get("audit", {}))

        import_data = dict(data.get("imports", {}))
        if "empty_required_field" in import_data:
            import_data["empty_required_field"] = EmptyFieldPolicy(
                import_data["empty_required_field"]
            )
        if "name_match" in import_data:
            import_data["name_match"] = NameMatch(import_data["name_match"])
        imports = ImportConfig(**import_data)

        export_data = dict(data.get("export", {}))
        if export_data.get("directory"):
            export_data["directory"] = Path(export_data["directory"]).expanduser()
        export = ExportConfig(**export_data)

        storage_data = dict(data.get("storage", {}))
        if storage_data.get("db_path"):
            storage_data["db_path"] = Path(storage_data["db_path"]).expanduser()
        storage = StorageConfig(**storage_data)

        logging_data = dict(data.get("logging", {}))
        # Convert file path string to Path if present
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])
        logging = LoggingConfig(**logging_data)

        return cls(audit=audit, imports=imports, export=export, storage=storage, logging=logging)

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save config file
        """

        def plain(section: object) -> dict:
            return {
                k: v.value if isinstance(v, Enum) else str(v) if isinstance(v, Path) else v
                for k, v in section.__dict__.items()
                if v is not None
            }

        data = {
            "audit": plain(self.audit),
            "imports": plain(self.imports),
            "export": plain(self.export),
            "storage": plain(self.storage),
            "logging": plain(self.logging),
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "FurfolioIOConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            FURFOLIO_EXPORT_DIR: Directory export files are written to
            FURFOLIO_DB_PATH: SQLite database used by the persistence sink
            FURFOLIO_NAME_MATCH: exact or case_insensitive
            FURFOLIO_EMPTY_REQUIRED: skip or import
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: console or json (default: console)

        Returns:
            FurfolioIOConfig instance

        Raises:
            ValueError: If an enum-valued variable holds an unknown value
        """
        imports = ImportConfig()
        name_match = os.environ.get("FURFOLIO_NAME_MATCH")
        if name_match:
            imports.name_match = NameMatch(name_match.lower())
        empty_required = os.environ.get("FURFOLIO_EMPTY_REQUIRED")
        if empty_required:
            imports.empty_required_field = EmptyFieldPolicy(empty_required.lower())

        export = ExportConfig()
        export_dir = os.environ.get("FURFOLIO_EXPORT_DIR")
        if export_dir:
            export.directory = Path(export_dir).expanduser()

        storage = StorageConfig()
        db_path = os.environ.get("FURFOLIO_DB_PATH")
        if db_path:
            storage.db_path = Path(db_path).expanduser()

        logging_config = LoggingConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", "console"),
        )

        return cls(
            audit=AuditConfig(),
            imports=imports,
            export=export,
            storage=storage,
            logging=logging_config,
        )


def load_config(config_file: Path | None = None) -> FurfolioIOConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        FurfolioIOConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return FurfolioIOConfig.from_file(config_file)
    return FurfolioIOConfig.from_env()
