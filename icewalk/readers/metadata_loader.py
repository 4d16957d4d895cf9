"""
Iceberg Metadata Loader.

Reads an Iceberg table metadata document (``*.metadata.json``) and parses
it into a TableHandle. Unknown keys are ignored; documents missing the
structural fields (format version, location, schema) are rejected.
"""

import json
from typing import Dict, Optional, Tuple, Union

from pydantic import ValidationError

from ..models.table_metadata import PartitionField, PartitionSpec, Schema, Snapshot, TableHandle
from ..utils.exceptions import MalformedMetadataError, MetadataNotFoundError, ObjectNotFoundError
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

SUPPORTED_FORMAT_VERSIONS = (1, 2, 3)


def load_table_metadata(
    storage,
    location: str,
    storage_properties: Optional[Dict[str, str]] = None
) -> TableHandle:
    """
    Read and parse the metadata document at a location.

    Args:
        storage: Storage client able to read the location
        location: URI of the metadata document
        storage_properties: Backend-supplied storage properties to keep on the handle

    Returns:
        TableHandle for the table's current state

    Raises:
        MetadataNotFoundError: If the document does not exist
        MalformedMetadataError: If the document is structurally invalid
        StorageAccessError: If storage fails while reading
    """
    logger.info(f"Loading Iceberg metadata from: {location}")

    try:
        content = storage.read_bytes(location)
    except ObjectNotFoundError as e:
        raise MetadataNotFoundError(
            f"Metadata file not found: {location}",
            details={"path": location}
        ) from e

    handle = parse_table_metadata(content, location, storage_properties)

    logger.info(
        f"Loaded Iceberg metadata v{handle.format_version}: {len(handle.schemas)} schemas, "
        f"{len(handle.partition_specs)} partition specs, {len(handle.snapshots)} snapshots"
    )
    return handle


def parse_table_metadata(
    content: Union[bytes, str, dict],
    metadata_location: str,
    storage_properties: Optional[Dict[str, str]] = None
) -> TableHandle:
    """
    Parse a metadata document into a TableHandle.

    Args:
        content: Raw JSON (bytes or str) or an already-decoded document
        metadata_location: Where the document was read from
        storage_properties: Backend-supplied storage properties

    Returns:
        TableHandle

    Raises:
        MalformedMetadataError: If the document is structurally invalid
    """
    document = _decode(content, metadata_location)
    details = {"path": metadata_location}

    format_version = document.get("format-version")
    if format_version is None:
        raise MalformedMetadataError("Metadata is missing 'format-version'", details=details)
    if format_version not in SUPPORTED_FORMAT_VERSIONS:
        raise MalformedMetadataError(
            f"Unsupported format-version: {format_version}",
            details={**details, "format_version": format_version}
        )

    location = document.get("location")
    if not isinstance(location, str) or not location:
        raise MalformedMetadataError("Metadata is missing 'location'", details=details)

    try:
        schemas, v1_schema_id = _extract_schemas(document, metadata_location)
        partition_specs, default_spec_id = _extract_partition_specs(document, metadata_location)
        snapshots = _extract_snapshots(document, format_version, metadata_location)
    except ValidationError as e:
        raise MalformedMetadataError(
            f"Invalid metadata structure in {metadata_location}: {str(e)}",
            details={**details, "error": str(e)}
        ) from e

    current_schema_id = document.get("current-schema-id", v1_schema_id)
    if not isinstance(current_schema_id, int) or current_schema_id not in schemas:
        raise MalformedMetadataError(
            f"current-schema-id {current_schema_id} does not match any schema",
            details={**details, "current_schema_id": current_schema_id}
        )

    current_snapshot_id = document.get("current-snapshot-id")
    if current_snapshot_id == -1:
        current_snapshot_id = None
    if current_snapshot_id is not None and not any(s.snapshot_id == current_snapshot_id for s in snapshots):
        raise MalformedMetadataError(
            f"current-snapshot-id {current_snapshot_id} is not in the snapshot log",
            details={**details, "current_snapshot_id": current_snapshot_id}
        )

    try:
        return TableHandle(
            format_version=format_version,
            table_uuid=document.get("table-uuid"),
            location=location,
            metadata_location=metadata_location,
            last_updated_ms=document.get("last-updated-ms"),
            last_sequence_number=document.get("last-sequence-number", 0),
            current_schema_id=current_schema_id,
            schemas=schemas,
            default_spec_id=default_spec_id,
            partition_specs=partition_specs,
            snapshots=snapshots,
            current_snapshot_id=current_snapshot_id,
            properties=document.get("properties") or {},
            storage_properties=storage_properties or {},
        )
    except ValidationError as e:
        raise MalformedMetadataError(
            f"Invalid metadata structure in {metadata_location}: {str(e)}",
            details={**details, "error": str(e)}
        ) from e


def _decode(content: Union[bytes, str, dict], metadata_location: str) -> dict:
    if isinstance(content, dict):
        return content

    try:
        document = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedMetadataError(
            f"Metadata is not valid JSON: {metadata_location}: {str(e)}",
            details={"path": metadata_location, "error": str(e)}
        ) from e

    if not isinstance(document, dict):
        raise MalformedMetadataError(
            f"Metadata is not a JSON object: {metadata_location}",
            details={"path": metadata_location}
        )
    return document


def _extract_schemas(document: dict, metadata_location: str) -> Tuple[Dict[int, Schema], Optional[int]]:
    """
    Extract every schema, keyed by schema id.

    Handles both the ``schemas`` list and the v1 single ``schema`` form.

    Returns:
        Tuple of (schemas by id, schema id of the v1 ``schema`` or None)
    """
    raw_schemas = _list_field(document, "schemas", metadata_location)
    if raw_schemas:
        schemas = [Schema.model_validate(s) for s in raw_schemas]
        return {s.schema_id: s for s in schemas}, None

    if document.get("schema"):
        schema = Schema.model_validate(document["schema"])
        return {schema.schema_id: schema}, schema.schema_id

    raise MalformedMetadataError(
        "Metadata has no 'schemas' or 'schema'",
        details={"path": metadata_location}
    )


def _extract_partition_specs(document: dict, metadata_location: str) -> Tuple[Dict[int, PartitionSpec], int]:
    """
    Extract every partition spec, keyed by spec id.

    Older manifests reference older specs, so the whole history is kept.
    Handles both the ``partition-specs`` list and the v1 ``partition-spec``
    field list.

    Returns:
        Tuple of (specs by id, default spec id)
    """
    default_spec_id = document.get("default-spec-id", 0)
    if not isinstance(default_spec_id, int):
        raise MalformedMetadataError(
            f"default-spec-id must be an integer, got {default_spec_id!r}",
            details={"path": metadata_location}
        )

    raw_specs = _list_field(document, "partition-specs", metadata_location)
    if raw_specs:
        specs = [PartitionSpec.model_validate(s) for s in raw_specs]
        return {s.spec_id: s for s in specs}, default_spec_id

    raw_fields = _list_field(document, "partition-spec", metadata_location)
    fields = tuple(PartitionField.model_validate(f) for f in raw_fields)
    return {default_spec_id: PartitionSpec(spec_id=default_spec_id, fields=fields)}, default_spec_id


def _extract_snapshots(document: dict, format_version: int, metadata_location: str) -> Tuple[Snapshot, ...]:
    """
    Extract the snapshot log ordered by sequence number (then timestamp).
    """
    raw_snapshots = _list_field(document, "snapshots", metadata_location)
    for raw in raw_snapshots:
        if not isinstance(raw, dict):
            raise MalformedMetadataError(
                f"Snapshot entry must be an object, got {raw!r}",
                details={"path": metadata_location}
            )

    if format_version >= 2:
        for raw in raw_snapshots:
            if "sequence-number" not in raw or "manifest-list" not in raw:
                raise MalformedMetadataError(
                    f"Snapshot {raw.get('snapshot-id')} is missing 'sequence-number' or 'manifest-list'",
                    details={"path": metadata_location, "snapshot_id": raw.get("snapshot-id")}
                )

    snapshots = [Snapshot.model_validate(raw) for raw in raw_snapshots]
    for snapshot in snapshots:
        if snapshot.manifest_list is None and snapshot.manifests is None:
            raise MalformedMetadataError(
                f"Snapshot {snapshot.snapshot_id} has neither 'manifest-list' nor 'manifests'",
                details={"path": metadata_location, "snapshot_id": snapshot.snapshot_id}
            )

    return tuple(sorted(snapshots, key=lambda s: (s.sequence_number, s.timestamp_ms)))


def _list_field(document: dict, key: str, metadata_location: str) -> list:
    """Return a list-valued field (empty when absent or null)."""
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedMetadataError(
            f"'{key}' must be a list, got {type(value).__name__}",
            details={"path": metadata_location, "field": key}
        )
    return value
