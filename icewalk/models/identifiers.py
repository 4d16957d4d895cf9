"""
Identifiers for catalog objects and resolved metadata locations.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

NamespaceId = Tuple[str, ...]


def parse_namespace(text: str) -> NamespaceId:
    """
    Split a dotted namespace (``db.schema``) into its segments.

    Raises:
        ValueError: If the namespace or any segment is empty
    """
    parts = tuple(part.strip() for part in text.strip().split("."))
    if not parts or any(not part for part in parts):
        raise ValueError(f"Invalid namespace: {text!r}")
    return parts


@dataclass(frozen=True)
class TableIdentifier:
    """
    Names a table: namespace segments plus table name, or an explicit
    metadata location for the direct backend.
    """

    namespace: NamespaceId = ()
    name: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "TableIdentifier":
        """
        Parse ``namespace.table`` (any namespace depth) into an identifier.

        Raises:
            ValueError: If there is no namespace or a segment is empty
        """
        parts = parse_namespace(text)
        if len(parts) < 2:
            raise ValueError(f"Table identifier must be in the form `namespace.table`: {text!r}")
        return cls(namespace=parts[:-1], name=parts[-1])

    @classmethod
    def at(cls, location: str) -> "TableIdentifier":
        """Identifier for a table addressed by metadata or table location."""
        return cls(location=location)

    @property
    def is_location(self) -> bool:
        return self.location is not None

    def __str__(self) -> str:
        if self.location is not None:
            return self.location
        return ".".join(self.namespace + (self.name or "",))


@dataclass(frozen=True)
class MetadataLocation:
    """Resolved location of a table's current metadata document."""

    uri: str
    storage_properties: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NamespaceInfo:
    """A namespace and the properties the catalog stores for it."""

    namespace: NamespaceId
    properties: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"namespace": ".".join(self.namespace), "properties": dict(self.properties)}
