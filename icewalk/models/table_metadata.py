"""
Table metadata records parsed from an Iceberg metadata document.

The element models (schemas, partition specs, snapshots) validate directly
from the kebab-case JSON keys of the document; unknown keys are ignored so
newer writers stay readable. All records are frozen once constructed.
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

_DOCUMENT_MODEL = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class SchemaField(BaseModel):
    """One top-level field of a table schema."""

    model_config = _DOCUMENT_MODEL

    id: int
    name: str
    required: bool
    type: Any
    doc: Optional[str] = None


class Schema(BaseModel):
    """A table schema; ``schema_id`` is 0 for v1 documents that omit it."""

    model_config = _DOCUMENT_MODEL

    schema_id: int = Field(0, alias="schema-id")
    fields: Tuple[SchemaField, ...] = ()
    identifier_field_ids: Tuple[int, ...] = Field((), alias="identifier-field-ids")

    def get_field_names(self) -> list[str]:
        """Get list of top-level field names."""
        return [f.name for f in self.fields]


class PartitionField(BaseModel):
    """One field of a partition spec."""

    model_config = _DOCUMENT_MODEL

    source_id: int = Field(alias="source-id")
    field_id: Optional[int] = Field(None, alias="field-id")
    name: str
    transform: str


class PartitionSpec(BaseModel):
    """A partition spec, kept by id for the whole table history."""

    model_config = _DOCUMENT_MODEL

    spec_id: int = Field(0, alias="spec-id")
    fields: Tuple[PartitionField, ...] = ()

    def is_unpartitioned(self) -> bool:
        return len(self.fields) == 0


class Snapshot(BaseModel):
    """
    One historical state of the table.

    ``manifest_list`` is None only for legacy v1 snapshots that list their
    manifests inline in ``manifests``.
    """

    model_config = _DOCUMENT_MODEL

    snapshot_id: int = Field(alias="snapshot-id")
    parent_snapshot_id: Optional[int] = Field(None, alias="parent-snapshot-id")
    sequence_number: int = Field(0, alias="sequence-number")
    timestamp_ms: int = Field(alias="timestamp-ms")
    manifest_list: Optional[str] = Field(None, alias="manifest-list")
    manifests: Optional[Tuple[str, ...]] = None
    summary: Dict[str, Any] = Field(default_factory=dict)
    schema_id: Optional[int] = Field(None, alias="schema-id")

    def to_dict(self) -> dict:
        """Convert to the metadata document representation."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TableHandle(BaseModel):
    """
    Parsed current table state.

    Created once per invocation from the metadata document and never
    modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    format_version: int
    table_uuid: Optional[str] = None
    location: str
    metadata_location: str
    last_updated_ms: Optional[int] = None
    last_sequence_number: int = 0
    current_schema_id: int
    schemas: Dict[int, Schema]
    default_spec_id: int = 0
    partition_specs: Dict[int, PartitionSpec]
    snapshots: Tuple[Snapshot, ...] = ()
    current_snapshot_id: Optional[int] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    storage_properties: Dict[str, str] = Field(default_factory=dict)

    @property
    def current_schema(self) -> Schema:
        return self.schemas[self.current_schema_id]

    def schema_by_id(self, schema_id: int) -> Optional[Schema]:
        return self.schemas.get(schema_id)

    def spec_by_id(self, spec_id: int) -> Optional[PartitionSpec]:
        return self.partition_specs.get(spec_id)

    def snapshot_by_id(self, snapshot_id: int) -> Optional[Snapshot]:
        for snapshot in self.snapshots:
            if snapshot.snapshot_id == snapshot_id:
                return snapshot
        return None

    def to_dict(self) -> dict:
        """Summary of the table state for display."""
        return {
            "format-version": self.format_version,
            "table-uuid": self.table_uuid,
            "location": self.location,
            "metadata-location": self.metadata_location,
            "last-updated-ms": self.last_updated_ms,
            "last-sequence-number": self.last_sequence_number,
            "current-schema-id": self.current_schema_id,
            "schemas": [s.model_dump(by_alias=True) for s in self.schemas.values()],
            "default-spec-id": self.default_spec_id,
            "partition-specs": [s.model_dump(by_alias=True) for s in self.partition_specs.values()],
            "current-snapshot-id": self.current_snapshot_id,
            "snapshots": [s.to_dict() for s in self.snapshots],
            "properties": self.properties,
        }

    def __repr__(self) -> str:
        return (
            f"TableHandle(location='{self.location}', "
            f"format_version={self.format_version}, "
            f"snapshots={len(self.snapshots)}, "
            f"current_snapshot_id={self.current_snapshot_id})"
        )
