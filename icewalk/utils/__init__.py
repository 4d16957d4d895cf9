"""Utility functions and helpers."""

from .logger import setup_logger
from .exceptions import (
    IcewalkException,
    ConfigurationError,
    InvalidSelectorError,
    ResolutionError,
    TableNotFoundError,
    NamespaceNotFoundError,
    AuthenticationError,
    BackendUnreachableError,
    UnsupportedCatalogOperation,
    StorageError,
    ObjectNotFoundError,
    MetadataNotFoundError,
    StorageAccessError,
    ParseError,
    MalformedMetadataError,
    ManifestListReadError,
    ManifestReadError,
    SnapshotError,
    NoCurrentSnapshotError,
    SnapshotNotFoundError,
    SchemaNotFoundError,
    MissingFilesError,
)

__all__ = [
    "setup_logger",
    "IcewalkException",
    "ConfigurationError",
    "InvalidSelectorError",
    "ResolutionError",
    "TableNotFoundError",
    "NamespaceNotFoundError",
    "AuthenticationError",
    "BackendUnreachableError",
    "UnsupportedCatalogOperation",
    "StorageError",
    "ObjectNotFoundError",
    "MetadataNotFoundError",
    "StorageAccessError",
    "ParseError",
    "MalformedMetadataError",
    "ManifestListReadError",
    "ManifestReadError",
    "SnapshotError",
    "NoCurrentSnapshotError",
    "SnapshotNotFoundError",
    "SchemaNotFoundError",
    "MissingFilesError",
]
