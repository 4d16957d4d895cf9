"""
Traversal Orchestrator.

Walks snapshot -> manifest list -> manifests -> file entries as one lazy
generator pipeline (``iter_files``) and drives a caller's handler over it
(``for_each_file``), optionally verifying each file's existence either
pipelined with the walk (inline) or in a second pass (deferred).
"""

from collections import deque
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Callable, Deque, Dict, Iterator, Optional, Tuple

from ..models.manifest_entries import DataFileEntry, EntryStatus, ManifestContent, ManifestFileEntry
from ..models.table_metadata import Snapshot, TableHandle
from ..models.verification import TraversalSummary, VerificationResult, VerificationSummary
from ..readers.manifest_list_reader import read_manifest_list
from ..readers.manifest_reader import read_manifest
from ..storage.prefix_index import build_prefix_index
from ..utils.exceptions import MissingFilesError
from ..utils.logger import setup_logger
from ..verification.file_verifier import DEFAULT_CONCURRENCY, FileVerifier
from .snapshots import SnapshotSelector, resolve_snapshot

logger = setup_logger(__name__)


class Visit(Enum):
    """Handler return value; anything other than STOP continues."""
    CONTINUE = "continue"
    STOP = "stop"


class VerifyMode(str, Enum):
    """When file existence is checked during a traversal."""
    NONE = "none"
    INLINE = "inline"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class TraversalOptions:
    """
    Options of one traversal.

    Attributes:
        include_deletes: Visit delete files (delete manifests are skipped unopened otherwise)
        include_deleted_entries: Visit entries whose status is ``deleted``
        verify: Existence check mode
        concurrency: Maximum number of existence checks in flight
        fail_on_missing: Raise MissingFilesError after the traversal if files are missing
        prefix_listing: Answer existence checks from one listing of the table location
    """

    include_deletes: bool = False
    include_deleted_entries: bool = False
    verify: VerifyMode = VerifyMode.NONE
    concurrency: int = DEFAULT_CONCURRENCY
    fail_on_missing: bool = False
    prefix_listing: bool = False


Handler = Callable[[DataFileEntry, Optional[VerificationResult]], Optional[Visit]]


@dataclass
class _Counts:
    manifests: int = 0
    files: int = 0
    bytes: int = 0
    records: int = 0

    def add_manifest(self, manifest: ManifestFileEntry) -> None:
        self.manifests += 1

    def add_file(self, entry: DataFileEntry) -> None:
        self.files += 1
        self.bytes += entry.file_size_in_bytes
        self.records += entry.record_count


def iter_manifests(
    storage,
    handle: TableHandle,
    snapshot: Snapshot,
    include_deletes: bool = False
) -> Iterator[ManifestFileEntry]:
    """Lazily list the manifests of a snapshot that a traversal will open."""
    for manifest in read_manifest_list(storage, snapshot, handle):
        if manifest.content == ManifestContent.DELETES and not include_deletes:
            logger.debug(f"Skipping delete manifest {manifest.manifest_path}")
            continue
        yield manifest


def iter_files(
    storage,
    handle: TableHandle,
    snapshot: Snapshot,
    include_deletes: bool = False,
    include_deleted_entries: bool = False,
    on_manifest: Optional[Callable[[ManifestFileEntry], None]] = None
) -> Iterator[DataFileEntry]:
    """
    Lazily yield the file entries of a snapshot in on-disk order.

    Restartable: every call re-reads the manifest list and manifests.

    Args:
        storage: Storage client
        handle: Loaded table
        snapshot: Snapshot to walk
        include_deletes: Yield delete files too
        include_deleted_entries: Yield entries with status ``deleted`` too
        on_manifest: Called with each manifest before it is opened

    Yields:
        DataFileEntry
    """
    for manifest in iter_manifests(storage, handle, snapshot, include_deletes):
        if on_manifest is not None:
            on_manifest(manifest)
        for entry in read_manifest(storage, manifest, handle):
            if entry.status == EntryStatus.DELETED and not include_deleted_entries:
                continue
            if not entry.is_data and not include_deletes:
                continue
            yield entry


def build_verifier(storage, handle: TableHandle, options: TraversalOptions) -> FileVerifier:
    """Create the verifier for a traversal, with a prefix index when requested."""
    prefix_index = build_prefix_index(storage, handle.location) if options.prefix_listing else None
    return FileVerifier(storage, concurrency=options.concurrency, prefix_index=prefix_index)


def for_each_file(
    storage,
    handle: TableHandle,
    selector: SnapshotSelector,
    handler: Handler,
    options: Optional[TraversalOptions] = None,
    verifier: Optional[FileVerifier] = None
) -> TraversalSummary:
    """
    Invoke a handler once per file of a snapshot.

    The handler receives ``(entry, result)``; ``result`` is the entry's
    VerificationResult in inline mode and None otherwise. Returning
    ``Visit.STOP`` ends the traversal early, which is not an error.

    Args:
        storage: Storage client
        handle: Loaded table
        selector: Snapshot to walk
        handler: Per-file callback
        options: Traversal options
        verifier: Pre-built verifier (built from the options otherwise)

    Returns:
        TraversalSummary with counts of the files the handler saw

    Raises:
        NoCurrentSnapshotError: If CURRENT is selected on an empty table
        SnapshotNotFoundError: If the selected snapshot does not exist
        ManifestListReadError: If the manifest list cannot be decoded
        ManifestReadError: If a manifest cannot be decoded
        MissingFilesError: If ``fail_on_missing`` is set and files are missing
    """
    options = options or TraversalOptions()
    snapshot = resolve_snapshot(handle, selector)
    if options.verify != VerifyMode.NONE and verifier is None:
        verifier = build_verifier(storage, handle, options)

    logger.info(f"Traversing snapshot {snapshot.snapshot_id} of {handle.location} (verify={options.verify.value})")

    counts = _Counts()
    entries = iter_files(
        storage, handle, snapshot,
        include_deletes=options.include_deletes,
        include_deleted_entries=options.include_deleted_entries,
        on_manifest=counts.add_manifest,
    )

    verification = None
    with closing(entries):
        if options.verify == VerifyMode.INLINE:
            stopped, verification = _visit_inline(entries, handler, verifier, options.concurrency, counts)
        else:
            stopped = _visit(entries, handler, counts)

    if options.verify == VerifyMode.DEFERRED:
        seen = iter_files(
            storage, handle, snapshot,
            include_deletes=options.include_deletes,
            include_deleted_entries=options.include_deleted_entries,
        )
        with closing(seen):
            verification = verifier.verify_all(islice(seen, counts.files), options.concurrency)

    summary = TraversalSummary(
        snapshot_id=snapshot.snapshot_id,
        manifests=counts.manifests,
        files=counts.files,
        bytes=counts.bytes,
        records=counts.records,
        stopped_early=stopped,
        verification=verification,
    )
    logger.info(
        f"Traversal {'stopped early' if stopped else 'complete'}: {summary.files} files, "
        f"{summary.bytes} bytes, {summary.records} records in {summary.manifests} manifests"
    )

    if options.fail_on_missing and verification is not None:
        _raise_if_missing(verification, snapshot.snapshot_id)
    return summary


def verify_files(
    storage,
    handle: TableHandle,
    selector: SnapshotSelector,
    concurrency: int = DEFAULT_CONCURRENCY,
    options: Optional[TraversalOptions] = None,
    verifier: Optional[FileVerifier] = None
) -> VerificationSummary:
    """
    Verify every file of a snapshot.

    Args:
        storage: Storage client
        handle: Loaded table
        selector: Snapshot to verify
        concurrency: Maximum number of checks in flight
        options: Entry filters, ``fail_on_missing`` and ``prefix_listing``
        verifier: Pre-built verifier (optional)

    Returns:
        VerificationSummary

    Raises:
        MissingFilesError: If ``fail_on_missing`` is set and files are missing
    """
    options = options or TraversalOptions()
    snapshot = resolve_snapshot(handle, selector)
    verifier = verifier or build_verifier(storage, handle, options)

    logger.info(f"Verifying files of snapshot {snapshot.snapshot_id} of {handle.location}")
    entries = iter_files(
        storage, handle, snapshot,
        include_deletes=options.include_deletes,
        include_deleted_entries=options.include_deleted_entries,
    )
    with closing(entries):
        summary = verifier.verify_all(entries, concurrency)

    if options.fail_on_missing:
        _raise_if_missing(summary, snapshot.snapshot_id)
    return summary


def _visit(entries: Iterator[DataFileEntry], handler: Handler, counts: _Counts) -> bool:
    for entry in entries:
        counts.add_file(entry)
        if handler(entry, None) is Visit.STOP:
            return True
    return False


def _visit_inline(
    entries: Iterator[DataFileEntry],
    handler: Handler,
    verifier: FileVerifier,
    concurrency: int,
    counts: _Counts
) -> Tuple[bool, VerificationSummary]:
    """
    Visit entries in traversal order while their checks run ahead.

    Up to ``concurrency`` entries are read ahead of the handler so their
    checks overlap with manifest reading. On early stop, queued checks are
    cancelled; running ones finish before the pool shuts down.
    """
    results: Dict[str, VerificationResult] = {}
    window: Deque[tuple] = deque()
    stopped = False

    with ThreadPoolExecutor(max_workers=concurrency) as executor:

        def deliver() -> bool:
            entry, future = window.popleft()
            result = future.result()
            results[result.path] = result
            counts.add_file(entry)
            return handler(entry, result) is Visit.STOP

        try:
            for entry in entries:
                window.append((entry, executor.submit(verifier.verify, entry)))
                if len(window) >= concurrency and deliver():
                    stopped = True
                    break
            while window and not stopped:
                stopped = deliver()
        finally:
            for _entry, future in window:
                future.cancel()

    return stopped, VerificationSummary.from_results(results.values())


def _raise_if_missing(verification: VerificationSummary, snapshot_id: int) -> None:
    if verification.missing:
        raise MissingFilesError(
            f"table is corrupt - {verification.missing} file(s) missing",
            details={"snapshot_id": snapshot_id, "missing_paths": list(verification.missing_paths)}
        )
