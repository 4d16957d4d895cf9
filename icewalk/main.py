"""
Main entry point for icewalk.

This module provides the TableInspector engine that resolves a table
through its catalog backend, loads its metadata and walks a snapshot's
files, plus a thin command line interface printing JSON lines.
"""

import json
import sys
from typing import Callable, List, Optional, Union

from .catalogs.backend import CatalogBackend, build_backend
from .config.catalog_config import BackendKind, CatalogConfig
from .config.settings import Settings
from .models.identifiers import NamespaceId, NamespaceInfo, TableIdentifier, parse_namespace
from .models.table_metadata import Schema, Snapshot, TableHandle
from .models.verification import TraversalSummary, VerificationSummary
from .readers.metadata_loader import load_table_metadata
from .storage import StorageRouter, open_storage
from .traversal.orchestrator import (
    Handler,
    TraversalOptions,
    VerifyMode,
    Visit,
    for_each_file,
    verify_files,
)
from .traversal.snapshots import (
    SnapshotSelector,
    list_snapshots,
    parse_snapshot_selector,
    resolve_schema,
    resolve_snapshot,
)
from .utils.exceptions import IcewalkException
from .utils.logger import setup_logger
from .verification.file_verifier import DEFAULT_CONCURRENCY

logger = setup_logger(__name__)

Selector = Union[SnapshotSelector, str, int]


class TableInspector:
    """
    Core engine for inspecting Iceberg tables.

    Workflow:
    1. Resolve the identifier through the catalog backend
    2. Load the table metadata document
    3. Select a snapshot
    4. Walk (and optionally verify) its files

    Nothing is cached between calls: every resolve re-reads catalog and
    metadata state.
    """

    def __init__(
        self,
        config: Optional[CatalogConfig] = None,
        backend: Optional[CatalogBackend] = None,
        storage_factory: Optional[Callable] = None,
        concurrency: int = DEFAULT_CONCURRENCY
    ):
        """
        Initialize the inspector.

        Args:
            config: Catalog configuration (defaults to a direct backend)
            backend: Pre-built catalog backend (built from config otherwise)
            storage_factory: ``(location, storage_config, properties) -> storage``
                (defaults to open_storage)
            concurrency: Default number of existence checks in flight
        """
        self.config = config or CatalogConfig()
        self.backend = backend or build_backend(self.config)
        self.storage_factory = storage_factory or open_storage
        self.concurrency = concurrency
        logger.debug(f"TableInspector initialized ({self.backend.kind.value} backend)")

    def identifier(self, text: str) -> TableIdentifier:
        """Parse a table argument: a location for the direct backend, ``ns.table`` otherwise."""
        if self.backend.kind == BackendKind.DIRECT:
            return TableIdentifier.at(text)
        return TableIdentifier.parse(text)

    def resolve_table(self, identifier: Union[TableIdentifier, str]) -> TableHandle:
        """
        Resolve an identifier and load the table's current metadata.

        Args:
            identifier: TableIdentifier, or text parsed with ``identifier()``

        Returns:
            TableHandle

        Raises:
            ResolutionError: If the catalog backend cannot resolve the table
            MetadataNotFoundError: If the metadata document does not exist
            MalformedMetadataError: If the metadata document is invalid
        """
        if isinstance(identifier, str):
            identifier = self.identifier(identifier)

        location = self.backend.resolve(identifier)
        storage = self.storage_factory(location.uri, self.config.storage, location.storage_properties)
        return load_table_metadata(storage, location.uri, location.storage_properties)

    def table_exists(self, identifier: Union[TableIdentifier, str]) -> bool:
        if isinstance(identifier, str):
            identifier = self.identifier(identifier)
        return self.backend.table_exists(identifier)

    def list_namespaces(self, parent: Optional[NamespaceId] = None) -> List[NamespaceId]:
        return self.backend.list_namespaces(parent)

    def get_namespace(self, namespace: NamespaceId) -> NamespaceInfo:
        return self.backend.get_namespace(namespace)

    def list_tables(self, namespace: NamespaceId) -> List[TableIdentifier]:
        return self.backend.list_tables(namespace)

    def list_snapshots(self, handle: TableHandle) -> List[Snapshot]:
        return list_snapshots(handle)

    def resolve_snapshot(self, handle: TableHandle, selector: Selector = SnapshotSelector.CURRENT) -> Snapshot:
        return resolve_snapshot(handle, _selector(selector))

    def resolve_schema(self, handle: TableHandle, selector: Union[str, int] = "current") -> Schema:
        return resolve_schema(handle, selector)

    def storage_for(self, handle: TableHandle) -> StorageRouter:
        """Storage client for a table's files, routing each path by its scheme."""
        return StorageRouter(self.config.storage, handle.storage_properties, self.storage_factory)

    def for_each_file(
        self,
        handle: TableHandle,
        selector: Selector,
        handler: Handler,
        options: Optional[TraversalOptions] = None
    ) -> TraversalSummary:
        """Invoke a handler once per file of a snapshot (see traversal.for_each_file)."""
        return for_each_file(self.storage_for(handle), handle, _selector(selector), handler, options)

    def verify_files(
        self,
        handle: TableHandle,
        selector: Selector = SnapshotSelector.CURRENT,
        concurrency: Optional[int] = None,
        options: Optional[TraversalOptions] = None
    ) -> VerificationSummary:
        """Verify the existence of every file of a snapshot."""
        return verify_files(
            self.storage_for(handle),
            handle,
            _selector(selector),
            self.concurrency if concurrency is None else concurrency,
            options,
        )


def _selector(selector: Selector) -> SnapshotSelector:
    if isinstance(selector, SnapshotSelector):
        return selector
    return parse_snapshot_selector(selector)


def _emit(record: dict) -> None:
    print(json.dumps(record, default=str))


def main():
    """
    CLI entry point.

    Usage examples:
        icewalk --at s3://bucket/warehouse/db/events snapshots
        icewalk --catalog rest --uri http://localhost:8181 --table db.events files current --verify
        icewalk --catalog managed namespaces
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="icewalk - Iceberg metadata traversal and file verification"
    )
    parser.add_argument("--catalog", choices=[kind.value for kind in BackendKind], help="Catalog backend (default: CATALOG_KIND)")
    parser.add_argument("--uri", help="REST catalog URI or Glue endpoint override")
    parser.add_argument("--warehouse", help="Warehouse location")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--table", help="Table identifier (namespace.table)")
    target.add_argument("--at", help="Table or metadata location (direct backend)")
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    namespaces_parser = subparsers.add_parser("namespaces", help="List namespaces")
    namespaces_parser.add_argument("--parent", help="Parent namespace")

    namespace_parser = subparsers.add_parser("namespace", help="Show a namespace and its properties")
    namespace_parser.add_argument("namespace", help="Namespace (dotted)")

    tables_parser = subparsers.add_parser("tables", help="List tables of a namespace")
    tables_parser.add_argument("namespace", help="Namespace (dotted)")

    exists_parser = subparsers.add_parser("exists", help="Check whether a table exists")
    exists_parser.add_argument("table", help="Table identifier or location")

    subparsers.add_parser("metadata", help="Show table metadata")
    subparsers.add_parser("schemas", help="List schemas")

    schema_parser = subparsers.add_parser("schema", help="Show one schema")
    schema_parser.add_argument("schema_id", help="Schema id or 'current'")

    subparsers.add_parser("snapshots", help="List snapshots")

    snapshot_parser = subparsers.add_parser("snapshot", help="Show one snapshot")
    snapshot_parser.add_argument("snapshot_id", help="Snapshot id or 'current'")

    files_parser = subparsers.add_parser("files", help="List the files of a snapshot")
    files_parser.add_argument("snapshot_id", help="Snapshot id or 'current'")
    files_parser.add_argument("--verify", action="store_true", help="Check that each file exists")
    files_parser.add_argument("--limit", type=int, help="Stop after N files")
    files_parser.add_argument("--include-deletes", action="store_true", help="Include delete files")
    files_parser.add_argument("--fail-on-missing", action="store_true", help="Exit with an error if files are missing")

    verify_parser = subparsers.add_parser("verify", help="Verify the files of a snapshot exist")
    verify_parser.add_argument("snapshot_id", help="Snapshot id or 'current'")
    verify_parser.add_argument("--concurrency", type=int, help="Checks in flight (default: VERIFY_CONCURRENCY)")
    verify_parser.add_argument("--include-deletes", action="store_true", help="Include delete files")
    verify_parser.add_argument("--prefix-listing", action="store_true", help="List the table location once instead of one check per file")
    verify_parser.add_argument("--fail-on-missing", action="store_true", help="Exit with an error if files are missing")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        settings = Settings()
        if args.log_level or settings.log_level:
            setup_logger(__name__, args.log_level or settings.log_level)

        if args.at:
            backend_kind = BackendKind.DIRECT
        elif args.catalog:
            backend_kind = BackendKind(args.catalog)
        else:
            backend_kind = None

        config = settings.to_catalog_config(backend_kind)
        overrides = {}
        if args.uri:
            overrides["endpoint"] = args.uri
        if args.warehouse:
            overrides["warehouse"] = args.warehouse
        if overrides:
            config = config.model_copy(update=overrides)

        inspector = TableInspector(config, concurrency=settings.verify_concurrency)

        if args.command == "namespaces":
            parent = parse_namespace(args.parent) if args.parent else None
            for namespace in inspector.list_namespaces(parent):
                _emit({"namespace": ".".join(namespace)})

        elif args.command == "namespace":
            _emit(inspector.get_namespace(parse_namespace(args.namespace)).to_dict())

        elif args.command == "tables":
            for table in inspector.list_tables(parse_namespace(args.namespace)):
                _emit({"table": str(table)})

        elif args.command == "exists":
            _emit({"table": args.table, "exists": inspector.table_exists(args.table)})

        else:
            _run_table_command(args, inspector, parser)

    except IcewalkException as e:
        print(f"\n✗ Error: {e.message}", file=sys.stderr)
        if e.details:
            print(f"  Details: {e.details}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"\n✗ Error: {str(e)}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Unexpected error: {str(e)}", file=sys.stderr)
        sys.exit(1)


def _run_table_command(args, inspector: TableInspector, parser) -> None:
    """Run a command that needs a loaded table (--table or --at)."""
    target = args.at or args.table
    if not target:
        parser.error(f"'{args.command}' needs --table or --at")

    handle = inspector.resolve_table(target)

    if args.command == "metadata":
        _emit(handle.to_dict())

    elif args.command == "schemas":
        for schema in handle.schemas.values():
            _emit(schema.model_dump(by_alias=True))

    elif args.command == "schema":
        _emit(inspector.resolve_schema(handle, args.schema_id).model_dump(by_alias=True))

    elif args.command == "snapshots":
        for snapshot in inspector.list_snapshots(handle):
            _emit(snapshot.to_dict())

    elif args.command == "snapshot":
        _emit(inspector.resolve_snapshot(handle, args.snapshot_id).to_dict())

    elif args.command == "files":
        if args.limit is not None and args.limit < 1:
            parser.error("--limit must be >= 1")
        options = TraversalOptions(
            include_deletes=args.include_deletes,
            verify=VerifyMode.INLINE if args.verify else VerifyMode.NONE,
            concurrency=inspector.concurrency,
            fail_on_missing=args.fail_on_missing,
        )
        emitted = 0

        def print_file(entry, result):
            nonlocal emitted
            record = entry.to_dict()
            if result is not None:
                record["verification"] = result.outcome.value
            _emit(record)
            emitted += 1
            if args.limit is not None and emitted >= args.limit:
                return Visit.STOP
            return Visit.CONTINUE

        summary = inspector.for_each_file(handle, args.snapshot_id, print_file, options)
        _emit({"summary": summary.to_dict()})

    elif args.command == "verify":
        concurrency = inspector.concurrency if args.concurrency is None else args.concurrency
        options = TraversalOptions(
            include_deletes=args.include_deletes,
            concurrency=concurrency,
            fail_on_missing=args.fail_on_missing,
            prefix_listing=args.prefix_listing,
        )
        summary = inspector.verify_files(handle, args.snapshot_id, concurrency, options)
        _emit(summary.to_dict())


if __name__ == "__main__":
    main()
