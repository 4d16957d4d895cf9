"""
Configuration Module
====================
Settings and the configuration records consumed by the core.
"""

from .catalog_config import BackendKind, CatalogConfig, StorageConfig
from .settings import Settings

__all__ = ["BackendKind", "CatalogConfig", "StorageConfig", "Settings"]
