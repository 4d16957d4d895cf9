"""Helpers writing small Iceberg tables (metadata JSON + Avro manifests) for tests."""

from __future__ import annotations

import io
import json
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import fastavro

from icewalk.utils.exceptions import ObjectNotFoundError, StorageAccessError

TABLE_SCHEMA = {
    "type": "struct",
    "schema-id": 0,
    "fields": [
        {"id": 1, "name": "id", "required": True, "type": "long"},
        {"id": 2, "name": "event_date", "required": False, "type": "date"},
        {"id": 3, "name": "user_id", "required": False, "type": "long"},
    ],
}

UNPARTITIONED = {"spec-id": 0, "fields": []}

MANIFEST_LIST_SCHEMA = {
    "type": "record",
    "name": "manifest_file",
    "fields": [
        {"name": "manifest_path", "type": "string"},
        {"name": "manifest_length", "type": "long"},
        {"name": "partition_spec_id", "type": "int"},
        {"name": "content", "type": "int"},
        {"name": "sequence_number", "type": "long"},
        {"name": "min_sequence_number", "type": "long"},
        {"name": "added_snapshot_id", "type": "long"},
        {"name": "added_files_count", "type": "int"},
        {"name": "existing_files_count", "type": "int"},
        {"name": "deleted_files_count", "type": "int"},
        {"name": "added_rows_count", "type": "long"},
        {"name": "existing_rows_count", "type": "long"},
        {"name": "deleted_rows_count", "type": "long"},
    ],
}

MANIFEST_LIST_V1_SCHEMA = {
    "type": "record",
    "name": "manifest_file",
    "fields": [
        {"name": "manifest_path", "type": "string"},
        {"name": "manifest_length", "type": "long"},
        {"name": "partition_spec_id", "type": "int"},
        {"name": "added_snapshot_id", "type": ["null", "long"], "default": None},
        {"name": "added_data_files_count", "type": ["null", "int"], "default": None},
        {"name": "existing_data_files_count", "type": ["null", "int"], "default": None},
        {"name": "deleted_data_files_count", "type": ["null", "int"], "default": None},
    ],
}


def manifest_schema(partition_fields: Iterable[tuple[str, str]] = ()) -> dict:
    """Avro schema of a manifest whose partition tuple has the given (name, type) fields."""
    return {
        "type": "record",
        "name": "manifest_entry",
        "fields": [
            {"name": "status", "type": "int"},
            {"name": "snapshot_id", "type": ["null", "long"], "default": None},
            {"name": "sequence_number", "type": ["null", "long"], "default": None},
            {
                "name": "data_file",
                "type": {
                    "type": "record",
                    "name": "r2",
                    "fields": [
                        {"name": "content", "type": "int", "default": 0},
                        {"name": "file_path", "type": "string"},
                        {"name": "file_format", "type": "string"},
                        {
                            "name": "partition",
                            "type": {
                                "type": "record",
                                "name": "r102",
                                "fields": [
                                    {"name": name, "type": ["null", avro_type], "default": None}
                                    for name, avro_type in partition_fields
                                ],
                            },
                        },
                        {"name": "record_count", "type": "long"},
                        {"name": "file_size_in_bytes", "type": "long"},
                    ],
                },
            },
        ],
    }


def data_file(
    path: str,
    size: int = 100,
    records: int = 10,
    status: int = 1,
    content: int = 0,
    partition: dict | None = None,
    file_format: str = "PARQUET",
    snapshot_id: int | None = 1,
    sequence_number: int | None = None,
) -> dict:
    return {
        "status": status,
        "snapshot_id": snapshot_id,
        "sequence_number": sequence_number,
        "data_file": {
            "content": content,
            "file_path": path,
            "file_format": file_format,
            "partition": partition or {},
            "record_count": records,
            "file_size_in_bytes": size,
        },
    }


def write_avro(path: Path, schema: dict, records: list[dict], sync_interval: int = 16000) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as fo:
        fastavro.writer(fo, fastavro.parse_schema(schema), records, sync_interval=sync_interval)
    return path


def manifest_list_record(
    manifest_path: str,
    spec_id: int = 0,
    content: int = 0,
    sequence_number: int = 1,
    snapshot_id: int = 1,
    added_files: int = 1,
) -> dict:
    return {
        "manifest_path": manifest_path,
        "manifest_length": 1024,
        "partition_spec_id": spec_id,
        "content": content,
        "sequence_number": sequence_number,
        "min_sequence_number": sequence_number,
        "added_snapshot_id": snapshot_id,
        "added_files_count": added_files,
        "existing_files_count": 0,
        "deleted_files_count": 0,
        "added_rows_count": 10 * added_files,
        "existing_rows_count": 0,
        "deleted_rows_count": 0,
    }


def snapshot_document(
    snapshot_id: int,
    manifest_list: str,
    sequence_number: int = 1,
    timestamp_ms: int | None = None,
    parent_snapshot_id: int | None = None,
    operation: str = "append",
) -> dict:
    document = {
        "snapshot-id": snapshot_id,
        "sequence-number": sequence_number,
        "timestamp-ms": timestamp_ms if timestamp_ms is not None else 1700000000000 + snapshot_id,
        "manifest-list": manifest_list,
        "summary": {"operation": operation},
        "schema-id": 0,
    }
    if parent_snapshot_id is not None:
        document["parent-snapshot-id"] = parent_snapshot_id
    return document


def metadata_document(
    location: str,
    snapshots: list[dict],
    current_snapshot_id: int | None,
    partition_specs: list[dict] | None = None,
    default_spec_id: int = 0,
    format_version: int = 2,
) -> dict:
    return {
        "format-version": format_version,
        "table-uuid": "9c12d441-03fe-4693-9a96-a0705ddf69c1",
        "location": location,
        "last-sequence-number": max([s.get("sequence-number", 0) for s in snapshots] or [0]),
        "last-updated-ms": 1700000000000,
        "last-column-id": 3,
        "current-schema-id": 0,
        "schemas": [TABLE_SCHEMA],
        "default-spec-id": default_spec_id,
        "partition-specs": partition_specs or [UNPARTITIONED],
        "last-partition-id": 1000,
        "properties": {"owner": "analytics"},
        "current-snapshot-id": current_snapshot_id,
        "snapshots": snapshots,
        "snapshot-log": [],
        "metadata-log": [],
    }


@dataclass
class ManifestFixture:
    entries: list[dict]
    spec_id: int = 0
    content: int = 0
    partition_fields: tuple = ()


def write_table(
    root: Path,
    manifests: list[ManifestFixture],
    partition_specs: list[dict] | None = None,
    snapshot_id: int = 1,
) -> Path:
    """
    Write a one-snapshot table under ``root`` and return its metadata path.

    Manifests are written in the given order; the manifest list references
    them in the same order.
    """
    metadata_dir = root / "metadata"
    records = []
    for position, manifest in enumerate(manifests):
        manifest_path = metadata_dir / f"manifest-{position}.avro"
        write_avro(manifest_path, manifest_schema(manifest.partition_fields), manifest.entries)
        records.append(manifest_list_record(
            str(manifest_path),
            spec_id=manifest.spec_id,
            content=manifest.content,
            snapshot_id=snapshot_id,
            added_files=len(manifest.entries),
        ))

    manifest_list = write_avro(metadata_dir / f"snap-{snapshot_id}.avro", MANIFEST_LIST_SCHEMA, records)
    document = metadata_document(
        str(root),
        [snapshot_document(snapshot_id, str(manifest_list))],
        snapshot_id,
        partition_specs=partition_specs,
    )
    return write_metadata(metadata_dir / "v1.metadata.json", document)


def write_metadata(path: Path, document: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document))
    return path


class CountingStream(io.BytesIO):
    """In-memory stream recording how many bytes were read from it."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size: int | None = -1) -> bytes:
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk

    def readinto(self, buffer) -> int:
        count = super().readinto(buffer)
        self.bytes_read += count
        return count


@dataclass
class StubStorage:
    """
    Storage reading local files through counting streams, with programmable
    existence answers for data files.
    """

    existing: set = field(default_factory=set)
    failing: set = field(default_factory=set)
    delays: dict = field(default_factory=dict)
    listing: list | None = None
    opened: list = field(default_factory=list)
    streams: list = field(default_factory=list)
    checked: list = field(default_factory=list)
    max_in_flight: int = 0
    _in_flight: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def open(self, path: str) -> CountingStream:
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"File not found: {path}", details={"path": path}) from e
        stream = CountingStream(data)
        self.opened.append(path)
        self.streams.append(stream)
        return stream

    def read_bytes(self, path: str) -> bytes:
        with self.open(path) as stream:
            return stream.read()

    def exists(self, path: str) -> bool:
        with self._lock:
            self.checked.append(path)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if path in self.delays:
                time.sleep(self.delays[path])
            if path in self.failing:
                raise StorageAccessError(f"Access denied: {path}", details={"path": path})
            return path in self.existing
        finally:
            with self._lock:
                self._in_flight -= 1

    def list_paths(self, prefix: str):
        if self.listing is None:
            raise StorageAccessError(f"Listing not allowed: {prefix}")
        return iter(self.listing)
