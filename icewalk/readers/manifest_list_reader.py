"""
Iceberg Manifest List Reader.

A snapshot's manifest list is an Avro file with one row per manifest.
Field names changed between format versions (``added_data_files_count`` in
v1, ``added_files_count`` in v2); both are understood.
"""

from typing import Iterator, Optional

from ..models.manifest_entries import ManifestContent, ManifestFileEntry, PartitionFieldSummary
from ..models.table_metadata import Snapshot, TableHandle
from ..utils.exceptions import ManifestListReadError
from ..utils.logger import setup_logger
from .avro_stream import iter_avro_records

logger = setup_logger(__name__)


def read_manifest_list(storage, snapshot: Snapshot, handle: TableHandle) -> Iterator[ManifestFileEntry]:
    """
    Lazily read the manifests of a snapshot.

    Legacy v1 snapshots that list their manifests inline (no manifest-list
    file) yield one entry per listed manifest, written with the table's
    default partition spec.

    Args:
        storage: Storage client
        snapshot: Snapshot whose manifest list to read
        handle: Table the snapshot belongs to

    Yields:
        ManifestFileEntry per manifest, in on-disk order

    Raises:
        ManifestListReadError: If the manifest list is missing or undecodable
    """
    if snapshot.manifest_list is None:
        logger.debug(f"Snapshot {snapshot.snapshot_id} lists {len(snapshot.manifests or ())} manifests inline")
        for manifest_path in snapshot.manifests or ():
            yield ManifestFileEntry(
                manifest_path=manifest_path,
                partition_spec_id=handle.default_spec_id,
                added_snapshot_id=snapshot.snapshot_id,
            )
        return

    logger.debug(f"Reading manifest list {snapshot.manifest_list} of snapshot {snapshot.snapshot_id}")
    yield from iter_avro_records(
        storage, snapshot.manifest_list, _to_manifest_file_entry, ManifestListReadError
    )


def _to_manifest_file_entry(record: dict) -> ManifestFileEntry:
    return ManifestFileEntry(
        manifest_path=record["manifest_path"],
        manifest_length=record.get("manifest_length"),
        partition_spec_id=record.get("partition_spec_id") or 0,
        content=ManifestContent(record.get("content") or 0),
        sequence_number=record.get("sequence_number") or 0,
        min_sequence_number=record.get("min_sequence_number") or 0,
        added_snapshot_id=record.get("added_snapshot_id"),
        added_files_count=_either(record, "added_files_count", "added_data_files_count"),
        existing_files_count=_either(record, "existing_files_count", "existing_data_files_count"),
        deleted_files_count=_either(record, "deleted_files_count", "deleted_data_files_count"),
        added_rows_count=record.get("added_rows_count"),
        existing_rows_count=record.get("existing_rows_count"),
        deleted_rows_count=record.get("deleted_rows_count"),
        partitions=tuple(
            PartitionFieldSummary(
                contains_null=summary.get("contains_null", False),
                contains_nan=summary.get("contains_nan"),
                lower_bound=summary.get("lower_bound"),
                upper_bound=summary.get("upper_bound"),
            )
            for summary in record.get("partitions") or ()
        ),
    )


def _either(record: dict, v2_name: str, v1_name: str) -> Optional[int]:
    value = record.get(v2_name)
    return value if value is not None else record.get(v1_name)
