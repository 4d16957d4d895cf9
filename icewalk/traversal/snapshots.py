"""
Snapshot and schema selection.

A selector names either the table's current snapshot (or schema) or one
exact id. There is no nearest-match lookup.
"""

from dataclasses import dataclass
from typing import ClassVar, List, Optional, Union

from ..models.table_metadata import Schema, Snapshot, TableHandle
from ..utils.exceptions import (
    InvalidSelectorError,
    NoCurrentSnapshotError,
    SchemaNotFoundError,
    SnapshotNotFoundError,
)


@dataclass(frozen=True)
class SnapshotSelector:
    """Selects the current snapshot (``snapshot_id=None``) or one by id."""

    snapshot_id: Optional[int] = None

    CURRENT: ClassVar["SnapshotSelector"]

    @classmethod
    def by_id(cls, snapshot_id: int) -> "SnapshotSelector":
        return cls(snapshot_id=snapshot_id)

    @property
    def is_current(self) -> bool:
        return self.snapshot_id is None

    def __str__(self) -> str:
        return "current" if self.is_current else str(self.snapshot_id)


SnapshotSelector.CURRENT = SnapshotSelector()


def _parse_selector_id(text: Union[str, int], what: str) -> Optional[int]:
    if isinstance(text, int):
        return text
    value = str(text).strip()
    if value.lower() == "current":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise InvalidSelectorError(
            f"Invalid {what} selector {text!r}: expected 'current' or an integer id",
            details={"selector": str(text)}
        ) from e


def parse_snapshot_selector(text: Union[str, int]) -> SnapshotSelector:
    """
    Parse ``current`` or an integer snapshot id.

    Raises:
        InvalidSelectorError: For any other text
    """
    snapshot_id = _parse_selector_id(text, "snapshot")
    if snapshot_id is None:
        return SnapshotSelector.CURRENT
    return SnapshotSelector.by_id(snapshot_id)


def list_snapshots(handle: TableHandle) -> List[Snapshot]:
    """All snapshots of the table, ordered by sequence number."""
    return list(handle.snapshots)


def resolve_snapshot(handle: TableHandle, selector: SnapshotSelector) -> Snapshot:
    """
    Pick one snapshot of a table.

    Args:
        handle: Loaded table
        selector: CURRENT or an exact id

    Returns:
        The selected Snapshot

    Raises:
        NoCurrentSnapshotError: If CURRENT is selected on a table without snapshots
        SnapshotNotFoundError: If no snapshot has the selected id
    """
    if selector.is_current:
        if handle.current_snapshot_id is None:
            raise NoCurrentSnapshotError(
                f"Table at {handle.location} has no current snapshot",
                details={"path": handle.metadata_location}
            )
        snapshot_id = handle.current_snapshot_id
    else:
        snapshot_id = selector.snapshot_id

    snapshot = handle.snapshot_by_id(snapshot_id)
    if snapshot is None:
        raise SnapshotNotFoundError(
            f"Snapshot {snapshot_id} not found",
            details={"path": handle.metadata_location, "snapshot_id": snapshot_id}
        )
    return snapshot


def resolve_schema(handle: TableHandle, selector: Union[str, int, None] = "current") -> Schema:
    """
    Pick one schema of a table: ``current`` or an exact schema id.

    Raises:
        InvalidSelectorError: If the selector cannot be parsed
        SchemaNotFoundError: If no schema has the selected id
    """
    schema_id = _parse_selector_id("current" if selector is None else selector, "schema")
    if schema_id is None:
        return handle.current_schema

    schema = handle.schema_by_id(schema_id)
    if schema is None:
        raise SchemaNotFoundError(
            f"Schema {schema_id} not found",
            details={"path": handle.metadata_location, "schema_id": schema_id}
        )
    return schema
