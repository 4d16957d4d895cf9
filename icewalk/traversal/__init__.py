"""Snapshot selection and lazy traversal of a snapshot's files."""

from .orchestrator import (
    TraversalOptions,
    VerifyMode,
    Visit,
    for_each_file,
    iter_files,
    iter_manifests,
    verify_files,
)
from .snapshots import (
    SnapshotSelector,
    list_snapshots,
    parse_snapshot_selector,
    resolve_schema,
    resolve_snapshot,
)

__all__ = [
    "SnapshotSelector",
    "TraversalOptions",
    "VerifyMode",
    "Visit",
    "for_each_file",
    "iter_files",
    "iter_manifests",
    "list_snapshots",
    "parse_snapshot_selector",
    "resolve_schema",
    "resolve_snapshot",
    "verify_files",
]
