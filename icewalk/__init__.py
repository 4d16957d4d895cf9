"""icewalk - Iceberg metadata traversal and file verification."""

from .main import TableInspector

__version__ = "0.1.0"

__all__ = ["TableInspector"]
