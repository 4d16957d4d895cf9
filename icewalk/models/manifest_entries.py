"""
Records produced while walking manifest lists and manifests.

These are created in large numbers and never mutated, so they are plain
frozen dataclasses rather than validated models.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class ManifestContent(IntEnum):
    """What a manifest tracks (``content`` field of the manifest list)."""
    DATA = 0
    DELETES = 1


class EntryStatus(IntEnum):
    """Status of a manifest entry (``status`` field of the manifest)."""
    EXISTING = 0
    ADDED = 1
    DELETED = 2

    @property
    def label(self) -> str:
        return self.name.lower()


class DataFileContent(IntEnum):
    """Content type of a file referenced by a manifest."""
    DATA = 0
    POSITION_DELETES = 1
    EQUALITY_DELETES = 2

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


class FileFormat(str, Enum):
    """File formats a data or delete file may be written in."""
    AVRO = "AVRO"
    ORC = "ORC"
    PARQUET = "PARQUET"
    PUFFIN = "PUFFIN"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "FileFormat":
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class PartitionFieldSummary:
    """Bounds of one partition field across a manifest's files."""

    contains_null: bool
    contains_nan: Optional[bool] = None
    lower_bound: Optional[bytes] = None
    upper_bound: Optional[bytes] = None


@dataclass(frozen=True)
class ManifestFileEntry:
    """One row of a manifest list."""

    manifest_path: str
    manifest_length: Optional[int] = None
    partition_spec_id: int = 0
    content: ManifestContent = ManifestContent.DATA
    sequence_number: int = 0
    min_sequence_number: int = 0
    added_snapshot_id: Optional[int] = None
    added_files_count: Optional[int] = None
    existing_files_count: Optional[int] = None
    deleted_files_count: Optional[int] = None
    added_rows_count: Optional[int] = None
    existing_rows_count: Optional[int] = None
    deleted_rows_count: Optional[int] = None
    partitions: Tuple[PartitionFieldSummary, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "manifest-path": self.manifest_path,
            "manifest-length": self.manifest_length,
            "partition-spec-id": self.partition_spec_id,
            "content": self.content.name.lower(),
            "sequence-number": self.sequence_number,
            "added-files-count": self.added_files_count,
            "existing-files-count": self.existing_files_count,
            "deleted-files-count": self.deleted_files_count,
        }


@dataclass(frozen=True)
class DataFileEntry:
    """
    One row of a manifest.

    ``partition`` maps partition field names to values, in the field order
    of the partition spec the manifest was written with. It is a read-only
    view.
    """

    file_path: str
    status: EntryStatus
    content: DataFileContent = DataFileContent.DATA
    file_format: FileFormat = FileFormat.PARQUET
    partition: Mapping[str, Any] = field(default_factory=dict)
    record_count: int = 0
    file_size_in_bytes: int = 0
    spec_id: int = 0
    snapshot_id: Optional[int] = None
    sequence_number: Optional[int] = None
    manifest_path: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "partition", MappingProxyType(dict(self.partition)))

    @property
    def is_data(self) -> bool:
        return self.content == DataFileContent.DATA

    @property
    def is_live(self) -> bool:
        """True for added and existing entries."""
        return self.status != EntryStatus.DELETED

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "file-path": self.file_path,
            "status": self.status.label,
            "content": self.content.label,
            "file-format": self.file_format.value,
            "partition": {name: _jsonable(value) for name, value in self.partition.items()},
            "record-count": self.record_count,
            "file-size-in-bytes": self.file_size_in_bytes,
            "spec-id": self.spec_id,
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
