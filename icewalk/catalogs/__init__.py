"""Catalog backends resolving table identifiers to metadata locations."""

from .backend import CatalogBackend, build_backend
from .direct_catalog import DirectLocationClient
from .glue_catalog import GlueCatalogClient
from .rest_catalog import RestCatalogClient

__all__ = [
    "CatalogBackend",
    "DirectLocationClient",
    "GlueCatalogClient",
    "RestCatalogClient",
    "build_backend",
]
