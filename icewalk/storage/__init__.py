"""
Object storage clients.

A storage client provides ``open(uri)`` (streaming binary read),
``read_bytes(uri)``, ``exists(uri)`` and, optionally, ``list_paths(prefix)``.
StorageRouter provides the same surface for tables spanning several
storage systems.
"""

from .local_storage import LocalStorage
from .prefix_index import PrefixIndex, build_prefix_index, normalize_location
from .router import StorageRouter, open_storage, storage_family
from .s3_storage import S3Storage

__all__ = [
    "LocalStorage",
    "PrefixIndex",
    "S3Storage",
    "StorageRouter",
    "build_prefix_index",
    "normalize_location",
    "open_storage",
    "storage_family",
]
