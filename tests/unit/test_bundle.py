"""Unit tests for JSON data bundles."""

import datetime as dt
import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from src.furfolio_io.core.bundle import BundleManager, encode_bundle
from src.furfolio_io.models.audit import AuditStatus, OperationKind
from src.furfolio_io.models.bundle import DataBundle
from src.furfolio_io.models.entities import Charge, EntityKind, Owner
from src.furfolio_io.persistence.sink import InMemorySink
from src.furfolio_io.utils.exceptions import BundleError, ExportWriteError, SinkCommitError


@pytest.fixture
def bundle(owners, pets, organizations) -> DataBundle:
    """Bundle with owners, pets, an organization and a charge."""
    return DataBundle(
        owners=owners,
        pets=pets,
        organizations=organizations,
        charges=[Charge(date=dt.date(2025, 6, 20), amount=Decimal("85.00"))],
    )


@pytest.fixture
def manager(ledger, export_config) -> BundleManager:
    """Bundle manager writing into the temp export directory."""
    return BundleManager(ledger, export_config)


class TestDataBundle:
    """Test DataBundle summaries."""

    def test_entity_types(self, bundle):
        """Test only non-empty collections are listed, in kind order."""
        assert bundle.entity_types == ["Owner", "Pet", "Charge", "Organization"]

    def test_entity_counts(self, bundle):
        """Test counts include empty collections."""
        assert bundle.entity_counts == {
            "Owner": 2,
            "Pet": 2,
            "Appointment": 0,
            "Charge": 1,
            "Organization": 1,
            "Expense": 0,
        }
        assert bundle.total_count == 6

    def test_collection_is_live(self):
        """Test collection() returns the underlying list."""
        bundle = DataBundle()
        bundle.collection(EntityKind.OWNER).append(Owner(name="Kim"))
        assert len(bundle.owners) == 1


class TestEncodeBundle:
    """Test bundle JSON encoding."""

    def test_sorted_pretty_iso(self, bundle):
        """Test keys are sorted, output indented and dates ISO-8601."""
        text = encode_bundle(bundle)
        data = json.loads(text)

        assert list(data) == sorted(data)
        assert "\n  " in text
        assert data["charges"][0]["date"] == "2025-06-20"


class TestBundleManager:
    """Test BundleManager export and import."""

    def test_export_and_import(self, manager, ledger, bundle, export_dir):
        """Test a written bundle reads back equal."""
        path = manager.export_bundle(bundle)

        assert path.parent == export_dir
        assert path.name.startswith("FurfolioExport-")
        assert path.suffix == ".json"

        restored = manager.import_bundle(path)

        assert restored.model_dump() == bundle.model_dump()
        export_event, import_event = ledger.fetch_all()
        assert export_event.operation is OperationKind.EXPORT
        assert export_event.entity_counts["Owner"] == 2
        assert export_event.count == 6
        assert export_event.file_url == str(path)
        assert export_event.tags == ("json", "business")
        assert import_event.operation is OperationKind.IMPORT
        assert import_event.status is AuditStatus.SUCCESS
        assert import_event.source_filename == path.name

    def test_export_custom_filename(self, manager, bundle, export_dir):
        """Test .json is appended to a custom name."""
        path = manager.export_bundle(bundle, filename="nightly")
        assert path == export_dir / "nightly.json"

    def test_export_empty_bundle(self, manager, ledger):
        """Test an empty bundle is still written and audited."""
        path = manager.export_bundle(DataBundle())

        assert json.loads(path.read_text(encoding="utf-8"))["owners"] == []
        assert ledger.fetch_last().count == 0

    def test_export_failure(self, manager, ledger, bundle):
        """Test a write failure records an error event and raises."""
        with patch("src.furfolio_io.utils.files.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(ExportWriteError):
                manager.export_bundle(bundle, "nightly")

        event = ledger.fetch_last()
        assert event.status is AuditStatus.ERROR
        assert event.error_description == "disk full"
        assert event.file_url == str(manager.config.directory / "nightly.json")

    def test_import_invalid_json(self, manager, ledger, tmp_path):
        """Test undecodable bundles raise BundleError after an Unknown error event."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(BundleError) as exc_info:
            manager.import_bundle(path)

        assert exc_info.value.path == str(path)
        event = ledger.fetch_last()
        assert event.status is AuditStatus.ERROR
        assert event.entity_type == "Unknown"
        assert event.operation is OperationKind.IMPORT
        assert len(ledger) == 1

    def test_import_wrong_shape(self, manager, ledger, tmp_path):
        """Test a JSON document with invalid records is rejected."""
        path = tmp_path / "wrong.json"
        path.write_text(json.dumps({"owners": [{"email": "no-name@x.test"}]}), encoding="utf-8")

        with pytest.raises(BundleError):
            manager.import_bundle(path)

        assert ledger.fetch_last().entity_type == "Unknown"

    def test_import_missing_file(self, manager, ledger, tmp_path):
        """Test a missing file raises BundleError."""
        with pytest.raises(BundleError):
            manager.import_bundle(tmp_path / "missing.json")

        assert ledger.fetch_last().status is AuditStatus.ERROR


class TestRestoreBundle:
    """Test restoring a bundle into a persistence sink."""

    def test_restore_commits_every_record(self, manager, ledger, bundle, sink):
        """Test all collections are committed and one success event recorded."""
        path = manager.export_bundle(bundle, "nightly")
        ledger.clear()

        restored = manager.restore_bundle(path, sink)

        assert restored.total_count == bundle.total_count
        assert [o.id for o in sink.fetch(EntityKind.OWNER)] == [o.id for o in bundle.owners]
        assert len(sink.fetch(EntityKind.CHARGE)) == 1
        event = ledger.fetch_last()
        assert event.status is AuditStatus.SUCCESS
        assert event.count == bundle.total_count
        assert event.source_filename == "nightly.json"
        assert len(ledger) == 1

    def test_restore_commit_failure(self, manager, ledger, bundle):
        """Test a rejected commit records an error event instead of success."""
        path = manager.export_bundle(bundle, "nightly")
        ledger.clear()
        failing_sink = MagicMock(spec=InMemorySink)
        failing_sink.commit.side_effect = SinkCommitError("database is full")

        with pytest.raises(SinkCommitError):
            manager.restore_bundle(path, failing_sink)

        failing_sink.rollback.assert_called_once()
        assert failing_sink.add.call_count == bundle.total_count
        assert len(ledger) == 1
        event = ledger.fetch_last()
        assert event.status is AuditStatus.ERROR
        assert event.error_description == "database is full"
        assert event.entity_counts["Owner"] == 2

    def test_restore_invalid_bundle_adds_nothing(self, manager, ledger, sink, tmp_path):
        """Test an unreadable bundle never reaches the sink."""
        path = tmp_path / "broken.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(BundleError):
            manager.restore_bundle(path, sink)

        assert sink.fetch(EntityKind.OWNER) == []
        assert ledger.fetch_last().entity_type == "Unknown"
