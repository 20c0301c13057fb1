"""Unit tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from src.furfolio_io.config import (
    AuditConfig,
    EmptyFieldPolicy,
    ExportConfig,
    FurfolioIOConfig,
    ImportConfig,
    LoggingConfig,
    NameMatch,
    StorageConfig,
    load_config,
)


class TestSectionDefaults:
    """Test default values of each section."""

    def test_audit_defaults(self):
        """Test ledger capacities."""
        config = AuditConfig()
        assert config.import_capacity == 1000
        assert config.export_capacity == 1000
        assert config.bundle_capacity == 500

    def test_import_defaults(self):
        """Test import policies default to skip and exact match."""
        config = ImportConfig()
        assert config.empty_required_field is EmptyFieldPolicy.SKIP
        assert config.name_match is NameMatch.EXACT
        assert "%m/%d/%Y" in config.date_formats
        assert "%H:%M" in config.time_formats

    def test_import_defaults_not_shared(self):
        """Test list defaults are independent per instance."""
        first, second = ImportConfig(), ImportConfig()
        first.date_formats.append("%d.%m.%Y")
        assert "%d.%m.%Y" not in second.date_formats

    def test_export_defaults(self):
        """Test export formatting defaults."""
        config = ExportConfig()
        assert config.date_format == "%m/%d/%Y"
        assert config.time_format == "%I:%M %p"
        assert config.sanitize_formulas is False
        assert config.directory.name == "Furfolio"

    def test_storage_and_logging_defaults(self):
        """Test storage and logging defaults."""
        assert StorageConfig().db_path == Path(".furfolio") / "furfolio.db"
        logging_config = LoggingConfig()
        assert logging_config.level == "INFO"
        assert logging_config.format == "console"
        assert logging_config.file is None


class TestFurfolioIOConfig:
    """Test the combined configuration."""

    def test_from_file(self, tmp_path):
        """Test loading every section from YAML."""
        config_file = tmp_path / "furfolio.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "audit": {"import_capacity": 10, "bundle_capacity": 5},
                    "imports": {
                        "empty_required_field": "import",
                        "name_match": "case_insensitive",
                        "date_formats": ["%d.%m.%Y"],
                    },
                    "export": {"directory": str(tmp_path / "out"), "sanitize_formulas": True},
                    "storage": {"db_path": str(tmp_path / "shop.db")},
                    "logging": {"level": "DEBUG", "format": "json", "file": "logs/io.log"},
                }
            )
        )

        config = FurfolioIOConfig.from_file(config_file)

        assert config.audit.import_capacity == 10
        assert config.audit.export_capacity == 1000
        assert config.audit.bundle_capacity == 5
        assert config.imports.empty_required_field is EmptyFieldPolicy.IMPORT
        assert config.imports.name_match is NameMatch.CASE_INSENSITIVE
        assert config.imports.date_formats == ["%d.%m.%Y"]
        assert config.export.directory == tmp_path / "out"
        assert config.export.sanitize_formulas is True
        assert config.storage.db_path == tmp_path / "shop.db"
        assert config.logging.file == Path("logs/io.log")

    def test_from_file_empty(self, tmp_path):
        """Test an empty file yields defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = FurfolioIOConfig.from_file(config_file)

        assert config.imports.name_match is NameMatch.EXACT

    def test_from_file_malformed(self, tmp_path):
        """Test malformed YAML raises ValueError."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("audit: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            FurfolioIOConfig.from_file(config_file)

    def test_from_file_invalid_type(self, tmp_path):
        """Test a non-mapping document raises ValueError."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- one\n- two\n")

        with pytest.raises(ValueError, match="expected dictionary"):
            FurfolioIOConfig.from_file(config_file)

    def test_from_file_unknown_policy(self, tmp_path):
        """Test an unknown enum value is rejected."""
        config_file = tmp_path / "bad_policy.yaml"
        config_file.write_text("imports:\n  name_match: fuzzy\n")

        with pytest.raises(ValueError):
            FurfolioIOConfig.from_file(config_file)

    def test_roundtrip_save_load(self, tmp_path):
        """Test to_file output loads back to the same values."""
        original = FurfolioIOConfig()
        original.imports.name_match = NameMatch.CASE_INSENSITIVE
        original.export.directory = tmp_path / "exports"
        original.audit.export_capacity = 42

        config_file = tmp_path / "nested" / "furfolio.yaml"
        original.to_file(config_file)
        loaded = FurfolioIOConfig.from_file(config_file)

        assert loaded.imports.name_match is NameMatch.CASE_INSENSITIVE
        assert loaded.export.directory == tmp_path / "exports"
        assert loaded.audit.export_capacity == 42
        assert loaded.logging.file is None

    def test_from_env(self, monkeypatch, tmp_path):
        """Test environment variables override defaults."""
        monkeypatch.setenv("FURFOLIO_NAME_MATCH", "CASE_INSENSITIVE")
        monkeypatch.setenv("FURFOLIO_EMPTY_REQUIRED", "import")
        monkeypatch.setenv("FURFOLIO_EXPORT_DIR", str(tmp_path / "exports"))
        monkeypatch.setenv("FURFOLIO_DB_PATH", str(tmp_path / "io.db"))
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_FORMAT", "json")

        config = FurfolioIOConfig.from_env()

        assert config.imports.name_match is NameMatch.CASE_INSENSITIVE
        assert config.imports.empty_required_field is EmptyFieldPolicy.IMPORT
        assert config.export.directory == tmp_path / "exports"
        assert config.storage.db_path == tmp_path / "io.db"
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"

    def test_from_env_minimal(self, monkeypatch):
        """Test defaults when no variables are set."""
        for name in (
            "FURFOLIO_NAME_MATCH",
            "FURFOLIO_EMPTY_REQUIRED",
            "FURFOLIO_EXPORT_DIR",
            "FURFOLIO_DB_PATH",
            "LOG_LEVEL",
            "LOG_FORMAT",
        ):
            monkeypatch.delenv(name, raising=False)

        config = FurfolioIOConfig.from_env()

        assert config.imports.name_match is NameMatch.EXACT
        assert config.logging.level == "INFO"


class TestLoadConfig:
    """Test load_config."""

    def test_missing_file(self, tmp_path):
        """Test a named but missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_falls_back_to_env(self, monkeypatch):
        """Test no file means environment configuration."""
        monkeypatch.setenv("FURFOLIO_EMPTY_REQUIRED", "import")
        assert load_config().imports.empty_required_field is EmptyFieldPolicy.IMPORT
