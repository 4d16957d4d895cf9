"""Custom exceptions for icewalk.

Every fatal error carries the stage of the pipeline that raised it
(``catalog``, ``storage``, ``metadata``, ``manifest-list``, ``manifest``,
``snapshot``, ``verification``) in ``details["stage"]``.
"""

from typing import Optional


class IcewalkException(Exception):
    """Base exception for all icewalk errors."""

    stage: Optional[str] = None

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        if self.stage and "stage" not in self.details:
            self.details["stage"] = self.stage


class ConfigurationError(IcewalkException):
    """Raised when the catalog or storage configuration is unusable."""

    stage = "config"


class InvalidSelectorError(IcewalkException):
    """Raised when a snapshot or schema selector cannot be parsed."""

    stage = "selector"


class ResolutionError(IcewalkException):
    """Raised when a catalog backend cannot resolve an identifier."""

    stage = "catalog"


class TableNotFoundError(ResolutionError):
    """Raised when the catalog has no such table."""
    pass


class NamespaceNotFoundError(ResolutionError):
    """Raised when the catalog has no such namespace."""
    pass


class AuthenticationError(ResolutionError):
    """Raised when the catalog rejects the supplied credentials."""
    pass


class BackendUnreachableError(ResolutionError):
    """Raised when the catalog endpoint cannot be reached."""
    pass


class UnsupportedCatalogOperation(ResolutionError):
    """Raised when a backend kind has no notion of the requested operation."""
    pass


class StorageError(IcewalkException):
    """Raised when object storage access fails."""

    stage = "storage"


class ObjectNotFoundError(StorageError):
    """Raised when an object does not exist in storage."""
    pass


class MetadataNotFoundError(ObjectNotFoundError):
    """Raised when the table metadata document does not exist."""

    stage = "metadata"


class StorageAccessError(StorageError):
    """Raised when storage returns an error other than not-found."""
    pass


class ParseError(IcewalkException):
    """Raised when a metadata, manifest list or manifest file cannot be decoded."""
    pass


class MalformedMetadataError(ParseError):
    """Raised when the metadata document is structurally invalid."""

    stage = "metadata"


class ManifestListReadError(ParseError):
    """Raised when a manifest list cannot be decoded."""

    stage = "manifest-list"


class ManifestReadError(ParseError):
    """Raised when a manifest cannot be decoded."""

    stage = "manifest"


class SnapshotError(IcewalkException):
    """Raised when a snapshot or schema selector does not match the table."""

    stage = "snapshot"


class NoCurrentSnapshotError(SnapshotError):
    """Raised when ``current`` is requested on a table without snapshots."""
    pass


class SnapshotNotFoundError(SnapshotError):
    """Raised when a snapshot id is not in the snapshot log."""
    pass


class SchemaNotFoundError(SnapshotError):
    """Raised when a schema id is not in the table metadata."""

    stage = "schema"


class MissingFilesError(IcewalkException):
    """Raised after verification when missing files were requested to be fatal."""

    stage = "verification"
