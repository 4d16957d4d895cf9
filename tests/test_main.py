import json
import sys

import pytest
from botocore.exceptions import ClientError

from icewalk.catalogs.backend import CatalogBackend
from icewalk.catalogs.rest_catalog import RestCatalogClient
from icewalk.config.catalog_config import BackendKind
from icewalk.main import TableInspector, main
from icewalk.models.identifiers import TableIdentifier
from icewalk.storage import LocalStorage, S3Storage
from icewalk.traversal.orchestrator import TraversalOptions, VerifyMode, Visit
from icewalk.utils.exceptions import SnapshotNotFoundError
from table_builders import ManifestFixture, data_file, write_table


@pytest.fixture
def local_table(table_root):
    data_dir = table_root / "data"
    data_dir.mkdir()
    (data_dir / "a.parquet").write_bytes(b"PAR1")
    metadata = write_table(table_root, [ManifestFixture([
        data_file(str(data_dir / "a.parquet"), size=500, records=5),
        data_file(str(data_dir / "b.parquet"), size=700, records=7),
    ])])
    return table_root, metadata


def test_inspector_resolves_table_root_and_verifies(local_table):
    table_root, metadata = local_table
    inspector = TableInspector()

    handle = inspector.resolve_table(str(table_root))

    assert handle.metadata_location == f"{table_root}/metadata/v1.metadata.json"
    assert inspector.table_exists(TableIdentifier.at(str(metadata))) is True
    assert inspector.resolve_snapshot(handle, "current").snapshot_id == 1
    assert inspector.resolve_schema(handle).schema_id == 0
    assert [s.snapshot_id for s in inspector.list_snapshots(handle)] == [1]

    summary = inspector.verify_files(handle)
    assert summary.found == 1
    assert summary.missing_paths == (str(table_root / "data" / "b.parquet"),)

    with pytest.raises(SnapshotNotFoundError):
        inspector.resolve_snapshot(handle, 99)


def test_inspector_for_each_file(local_table):
    _, metadata = local_table
    inspector = TableInspector()
    handle = inspector.resolve_table(str(metadata))
    seen = []

    summary = inspector.for_each_file(
        handle, "current",
        lambda entry, result: seen.append(result.exists) or Visit.CONTINUE,
        TraversalOptions(verify=VerifyMode.INLINE),
    )

    assert seen == [True, False]
    assert summary.bytes == 1200


def _run(monkeypatch, tmp_path, *argv):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CATALOG_KIND", raising=False)
    monkeypatch.setattr(sys, "argv", ["icewalk", *argv])
    main()


def _lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]


def test_cli_snapshots(monkeypatch, tmp_path, capsys, local_table):
    _, metadata = local_table

    _run(monkeypatch, tmp_path, "--at", str(metadata), "snapshots")

    (snapshot,) = _lines(capsys)
    assert snapshot["snapshot-id"] == 1
    assert snapshot["summary"] == {"operation": "append"}


def test_cli_files_with_verification_and_limit(monkeypatch, tmp_path, capsys, local_table):
    table_root, _ = local_table

    _run(monkeypatch, tmp_path, "--at", str(table_root), "files", "current", "--verify", "--limit", "1")

    first, summary = _lines(capsys)
    assert first["file-path"] == str(table_root / "data" / "a.parquet")
    assert first["verification"] == "found"
    assert summary["summary"]["files"] == 1
    assert summary["summary"]["stopped-early"] is True


def test_cli_verify_fail_on_missing(monkeypatch, tmp_path, capsys, local_table):
    table_root, _ = local_table

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, tmp_path, "--at", str(table_root), "verify", "current", "--fail-on-missing")

    assert exc_info.value.code == 1
    assert "table is corrupt - 1 file(s) missing" in capsys.readouterr().err


def test_cli_missing_metadata(monkeypatch, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, tmp_path, "--at", str(tmp_path / "v9.metadata.json"), "metadata")

    assert exc_info.value.code == 1
    assert "✗ Error:" in capsys.readouterr().err


class _HeadOnlyS3Client:
    def __init__(self, keys):
        self.keys = keys
        self.heads = []

    def head_object(self, Bucket, Key):
        self.heads.append((Bucket, Key))
        if (Bucket, Key) not in self.keys:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}


def test_inspector_checks_remote_data_of_local_metadata(table_root):
    metadata = write_table(table_root, [ManifestFixture([
        data_file("s3://bucket/events/data/a.parquet", size=500, records=5),
        data_file("s3a://bucket/events/data/b.parquet", size=700, records=7),
    ])])
    s3_client = _HeadOnlyS3Client({("bucket", "events/data/a.parquet")})
    created = []

    def storage_factory(location, config=None, properties=None):
        storage = S3Storage(s3_client=s3_client) if location.startswith("s3") else LocalStorage()
        created.append(type(storage).__name__)
        return storage

    inspector = TableInspector(storage_factory=storage_factory)
    handle = inspector.resolve_table(str(metadata))

    summary = inspector.verify_files(handle)

    assert summary.found == 1
    assert summary.missing_paths == ("s3a://bucket/events/data/b.parquet",)
    assert summary.failed == 0
    assert sorted(s3_client.heads) == [("bucket", "events/data/a.parquet"), ("bucket", "events/data/b.parquet")]
    assert created.count("S3Storage") == 1


class _NamespaceCatalog:
    def load_namespace_properties(self, namespace):
        return {"owner": "analytics"}


def test_cli_namespace(monkeypatch, tmp_path, capsys):
    def rest_backend(config):
        return CatalogBackend(kind=BackendKind.REST, client=RestCatalogClient(config, catalog=_NamespaceCatalog()))

    monkeypatch.setattr("icewalk.main.build_backend", rest_backend)

    _run(monkeypatch, tmp_path, "--catalog", "rest", "--uri", "http://localhost:8181", "namespace", "db.staging")

    assert _lines(capsys) == [{"namespace": "db.staging", "properties": {"owner": "analytics"}}]


def test_cli_namespace_needs_a_catalog(monkeypatch, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, tmp_path, "namespace", "db")

    assert exc_info.value.code == 1
    assert "Direct locations have no namespaces" in capsys.readouterr().err
