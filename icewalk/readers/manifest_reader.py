"""
Iceberg Manifest Reader.

A manifest is an Avro file with one row per data or delete file. Partition
values are resolved against the partition spec the manifest was written
with, which may be an older spec than the table's current one.
"""

from functools import partial
from typing import Any, Dict, Iterator

from ..models.manifest_entries import (
    DataFileContent,
    DataFileEntry,
    EntryStatus,
    FileFormat,
    ManifestFileEntry,
)
from ..models.table_metadata import PartitionSpec, TableHandle
from ..utils.exceptions import ManifestReadError
from ..utils.logger import setup_logger
from .avro_stream import iter_avro_records

logger = setup_logger(__name__)


def read_manifest(storage, manifest: ManifestFileEntry, handle: TableHandle) -> Iterator[DataFileEntry]:
    """
    Lazily read the file entries of a manifest.

    Args:
        storage: Storage client
        manifest: Manifest list row naming the manifest
        handle: Table the manifest belongs to

    Yields:
        DataFileEntry per row, in on-disk order

    Raises:
        ManifestReadError: If the spec id is unknown, or the manifest is missing or undecodable
    """
    spec = handle.spec_by_id(manifest.partition_spec_id)
    if spec is None:
        raise ManifestReadError(
            f"Manifest {manifest.manifest_path} uses unknown partition spec {manifest.partition_spec_id}",
            details={"path": manifest.manifest_path, "spec_id": manifest.partition_spec_id}
        )

    logger.debug(f"Reading manifest {manifest.manifest_path} (spec {spec.spec_id})")
    convert = partial(_to_data_file_entry, manifest=manifest, spec=spec)
    yield from iter_avro_records(storage, manifest.manifest_path, convert, ManifestReadError)


def _to_data_file_entry(record: dict, manifest: ManifestFileEntry, spec: PartitionSpec) -> DataFileEntry:
    data_file = record["data_file"]

    # Entries without their own sequence number or snapshot id inherit the manifest's
    sequence_number = record.get("sequence_number")
    if sequence_number is None:
        sequence_number = manifest.sequence_number
    snapshot_id = record.get("snapshot_id")
    if snapshot_id is None:
        snapshot_id = manifest.added_snapshot_id

    return DataFileEntry(
        file_path=data_file["file_path"],
        status=EntryStatus(record["status"]),
        content=DataFileContent(data_file.get("content") or 0),
        file_format=FileFormat.parse(data_file.get("file_format")),
        partition=resolve_partition(data_file.get("partition"), spec),
        record_count=data_file.get("record_count") or 0,
        file_size_in_bytes=data_file.get("file_size_in_bytes") or 0,
        spec_id=spec.spec_id,
        snapshot_id=snapshot_id,
        sequence_number=sequence_number,
        manifest_path=manifest.manifest_path,
    )


def resolve_partition(partition: Any, spec: PartitionSpec) -> Dict[str, Any]:
    """
    Map a manifest row's partition tuple onto the spec's field names.

    Fields are matched by name; writers that sanitized field names in the
    Avro schema are matched by position instead.

    Raises:
        ValueError: If the tuple does not have one value per spec field
    """
    values = dict(partition or {})
    if all(field.name in values for field in spec.fields):
        return {field.name: values[field.name] for field in spec.fields}

    if len(values) != len(spec.fields):
        raise ValueError(
            f"partition has {len(values)} values but spec {spec.spec_id} has {len(spec.fields)} fields"
        )
    return {field.name: value for field, value in zip(spec.fields, values.values())}
