"""
Direct location "catalog" (the ``direct`` backend).

The identifier is a location. A ``*.metadata.json`` location is used as-is;
a table root is resolved to its current metadata document through
``metadata/version-hint.text``, falling back to the highest-versioned
metadata file in ``metadata/``.
"""

import re
from typing import Callable, List, Optional

from ..config.catalog_config import CatalogConfig
from ..models.identifiers import MetadataLocation, NamespaceId, NamespaceInfo, TableIdentifier
from ..storage import open_storage
from ..utils.exceptions import (
    BackendUnreachableError,
    ObjectNotFoundError,
    StorageAccessError,
    StorageError,
    TableNotFoundError,
    UnsupportedCatalogOperation,
)
from ..utils.logger import setup_logger
from ..utils.s3_utils import ensure_trailing_slash

logger = setup_logger(__name__)

METADATA_SUFFIX = ".metadata.json"
VERSION_HINT = "version-hint.text"

# v12.metadata.json (file-system tables) or 00012-<uuid>.metadata.json
_VERSION_PATTERN = re.compile(r"^v?(\d+)[-.]")


class DirectLocationClient:
    """Resolves identifiers that already name a table or metadata location."""

    def __init__(self, config: CatalogConfig, storage_factory: Optional[Callable] = None):
        """
        Initialize the direct location client.

        Args:
            config: Catalog configuration (only ``storage`` is used)
            storage_factory: ``(location, storage_config) -> storage`` (defaults to open_storage)
        """
        self.config = config
        self.storage_factory = storage_factory or (
            lambda location, storage_config: open_storage(location, storage_config)
        )

    def resolve(self, identifier: TableIdentifier) -> MetadataLocation:
        """
        Resolve a location to the table's current metadata document.

        Raises:
            TableNotFoundError: If the identifier has no location or no metadata is found
            BackendUnreachableError: If storage cannot be listed or read
        """
        location = self._location(identifier)
        if location.endswith(METADATA_SUFFIX):
            return MetadataLocation(uri=location)

        storage = self._storage(location)
        try:
            metadata_file = self._find_current_metadata(storage, location)
        except StorageAccessError as e:
            raise BackendUnreachableError(
                f"Failed to locate metadata under {location}: {e.message}",
                details={"table": location, "error": e.message}
            ) from e

        logger.info(f"Resolved table root {location} to {metadata_file}")
        return MetadataLocation(uri=metadata_file)

    def table_exists(self, identifier: TableIdentifier) -> bool:
        """Check whether a metadata document exists at (or under) the location."""
        location = self._location(identifier)
        storage = self._storage(location)
        try:
            if location.endswith(METADATA_SUFFIX):
                return storage.exists(location)
            self._find_current_metadata(storage, location)
            return True
        except TableNotFoundError:
            return False
        except StorageAccessError as e:
            raise BackendUnreachableError(
                f"Failed to check {location}: {e.message}",
                details={"table": location, "error": e.message}
            ) from e

    def list_namespaces(self, parent: Optional[NamespaceId] = None) -> List[NamespaceId]:
        raise UnsupportedCatalogOperation(
            "Direct locations have no namespaces; configure a managed or rest catalog",
            details={"backend": "direct"}
        )

    def list_tables(self, namespace: NamespaceId) -> List[TableIdentifier]:
        raise UnsupportedCatalogOperation(
            "Direct locations have no namespaces; configure a managed or rest catalog",
            details={"backend": "direct"}
        )

    def get_namespace(self, namespace: NamespaceId) -> NamespaceInfo:
        raise UnsupportedCatalogOperation(
            "Direct locations have no namespaces; configure a managed or rest catalog",
            details={"backend": "direct"}
        )

    def _location(self, identifier: TableIdentifier) -> str:
        if not identifier.is_location:
            raise TableNotFoundError(
                f"Direct backend needs a table or metadata location, got {identifier}",
                details={"table": str(identifier)}
            )
        return identifier.location

    def _storage(self, location: str):
        try:
            return self.storage_factory(location, self.config.storage)
        except StorageError as e:
            raise TableNotFoundError(
                f"Cannot read location {location}: {e.message}",
                details={"table": location, "error": e.message}
            ) from e

    def _find_current_metadata(self, storage, table_location: str) -> str:
        """
        Find the current metadata file of a table root.

        Tries multiple approaches:
        1. Read metadata/version-hint.text
        2. Pick the highest-versioned *.metadata.json in metadata/

        Returns:
            Location of the current metadata file
        """
        metadata_prefix = f"{ensure_trailing_slash(table_location)}metadata/"

        try:
            hint = storage.read_bytes(f"{metadata_prefix}{VERSION_HINT}").decode("utf-8").strip()
        except ObjectNotFoundError:
            hint = None
            logger.debug(f"{VERSION_HINT} not found, searching for latest metadata file")

        if hint:
            filename = f"v{hint}{METADATA_SUFFIX}" if hint.isdigit() else hint
            metadata_file = f"{metadata_prefix}{filename}"
            if storage.exists(metadata_file):
                logger.debug(f"Found metadata file via version-hint: {metadata_file}")
                return metadata_file
            logger.warning(f"{VERSION_HINT} points at missing {metadata_file}, searching for latest metadata file")

        list_paths = getattr(storage, "list_paths", None)
        metadata_files = [
            path for path in (list_paths(metadata_prefix) if list_paths else [])
            if path.endswith(METADATA_SUFFIX)
        ]
        if not metadata_files:
            raise TableNotFoundError(
                f"No {METADATA_SUFFIX} files found in {metadata_prefix}",
                details={"table": table_location, "prefix": metadata_prefix}
            )

        latest_file = max(metadata_files, key=_metadata_version)
        logger.debug(f"Found latest metadata file: {latest_file}")
        return latest_file


def _metadata_version(path: str) -> tuple:
    """Sort key of a metadata file: (version number, path)."""
    filename = path.rsplit("/", 1)[-1]
    match = _VERSION_PATTERN.match(filename)
    return (int(match.group(1)) if match else -1, filename)
