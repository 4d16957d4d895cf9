"""
Catalog backend handle.

One handle per invocation: the backend kind plus the one protocol client
for that kind. Every operation dispatches on the kind.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from ..config.catalog_config import BackendKind, CatalogConfig
from ..models.identifiers import MetadataLocation, NamespaceId, NamespaceInfo, TableIdentifier
from ..utils.exceptions import ConfigurationError
from ..utils.logger import setup_logger
from .direct_catalog import DirectLocationClient
from .glue_catalog import GlueCatalogClient
from .rest_catalog import RestCatalogClient

logger = setup_logger(__name__)

_CLIENTS = {
    BackendKind.MANAGED: GlueCatalogClient,
    BackendKind.REST: RestCatalogClient,
    BackendKind.DIRECT: DirectLocationClient,
}


@dataclass(frozen=True)
class CatalogBackend:
    """A configured catalog backend."""

    kind: BackendKind
    client: Any

    def resolve(self, identifier: TableIdentifier) -> MetadataLocation:
        """
        Resolve an identifier to its current metadata location.

        Raises:
            TableNotFoundError: If the table does not exist
            AuthenticationError: If the backend rejects the credentials
            BackendUnreachableError: If the backend cannot be reached
        """
        return self.client.resolve(identifier)

    def table_exists(self, identifier: TableIdentifier) -> bool:
        return self.client.table_exists(identifier)

    def list_namespaces(self, parent: Optional[NamespaceId] = None) -> List[NamespaceId]:
        return self.client.list_namespaces(parent)

    def get_namespace(self, namespace: NamespaceId) -> NamespaceInfo:
        return self.client.get_namespace(namespace)

    def list_tables(self, namespace: NamespaceId) -> List[TableIdentifier]:
        return self.client.list_tables(namespace)


def build_backend(config: CatalogConfig, client=None) -> CatalogBackend:
    """
    Build the backend handle for a configuration.

    Args:
        config: Catalog configuration
        client: Pre-built protocol client for the configured kind (optional)

    Returns:
        CatalogBackend

    Raises:
        ConfigurationError: If the backend kind is unknown
    """
    kind = config.backend_kind
    if kind not in _CLIENTS:
        raise ConfigurationError(f"Unsupported catalog backend: {kind}", details={"backend": str(kind)})

    if client is None:
        client = _CLIENTS[kind](config)

    logger.debug(f"Using {kind.value} catalog backend")
    return CatalogBackend(kind=kind, client=client)
