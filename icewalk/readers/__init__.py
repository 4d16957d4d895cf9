"""Iceberg metadata, manifest list and manifest readers."""

from .metadata_loader import load_table_metadata, parse_table_metadata
from .manifest_list_reader import read_manifest_list
from .manifest_reader import read_manifest

__all__ = ["load_table_metadata", "parse_table_metadata", "read_manifest_list", "read_manifest"]
