"""Value records shared across the traversal pipeline."""

from .identifiers import MetadataLocation, NamespaceId, NamespaceInfo, TableIdentifier, parse_namespace
from .table_metadata import PartitionField, PartitionSpec, Schema, SchemaField, Snapshot, TableHandle
from .manifest_entries import (
    DataFileContent,
    DataFileEntry,
    EntryStatus,
    FileFormat,
    ManifestContent,
    ManifestFileEntry,
    PartitionFieldSummary,
)
from .verification import (
    TraversalSummary,
    VerificationOutcome,
    VerificationResult,
    VerificationSummary,
)

__all__ = [
    "MetadataLocation",
    "NamespaceId",
    "NamespaceInfo",
    "TableIdentifier",
    "parse_namespace",
    "PartitionField",
    "PartitionSpec",
    "Schema",
    "SchemaField",
    "Snapshot",
    "TableHandle",
    "DataFileContent",
    "DataFileEntry",
    "EntryStatus",
    "FileFormat",
    "ManifestContent",
    "ManifestFileEntry",
    "PartitionFieldSummary",
    "TraversalSummary",
    "VerificationOutcome",
    "VerificationResult",
    "VerificationSummary",
]
