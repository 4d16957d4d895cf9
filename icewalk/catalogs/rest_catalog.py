"""
Iceberg REST catalog client (the ``rest`` backend).

Wraps pyiceberg's REST catalog. The pyiceberg client is created on first
use, because constructing it already calls the catalog's config endpoint.
"""

from typing import Dict, List, Optional

import requests
from pyiceberg.catalog import load_catalog
from pyiceberg.exceptions import (
    ForbiddenError,
    NoSuchNamespaceError,
    NoSuchTableError,
    OAuthError,
    RESTError,
    ServerError,
    UnauthorizedError,
)

from ..config.catalog_config import CatalogConfig
from ..models.identifiers import MetadataLocation, NamespaceId, NamespaceInfo, TableIdentifier
from ..utils.exceptions import (
    AuthenticationError,
    BackendUnreachableError,
    ConfigurationError,
    NamespaceNotFoundError,
    ResolutionError,
    TableNotFoundError,
)
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

# FileIO properties worth handing to the storage client.
_STORAGE_PROPERTY_PREFIXES = ("s3.", "client.")


class RestCatalogClient:
    """Resolves tables through an Iceberg REST catalog."""

    def __init__(self, config: CatalogConfig, catalog=None):
        """
        Initialize the REST catalog client.

        Args:
            config: Catalog configuration (``endpoint`` is the REST URI)
            catalog: Pre-built pyiceberg catalog (optional)

        Raises:
            ConfigurationError: If no endpoint is configured and no catalog is given
        """
        if catalog is None and not config.endpoint:
            raise ConfigurationError(
                "REST catalog requires an endpoint (CATALOG_URI)",
                details={"backend": "rest"}
            )
        self.config = config
        self._catalog = catalog

    @property
    def catalog(self):
        """The pyiceberg catalog, created on first access."""
        if self._catalog is None:
            properties = {"type": "rest", "uri": self.config.endpoint}
            if self.config.warehouse:
                properties["warehouse"] = self.config.warehouse
            properties.update(self.config.properties)

            logger.info(f"Connecting to REST catalog at {self.config.endpoint}")
            try:
                self._catalog = load_catalog(self.config.name, **properties)
            except Exception as e:
                raise self._translate(e, self.config.endpoint) from e
        return self._catalog

    def resolve(self, identifier: TableIdentifier) -> MetadataLocation:
        """
        Load a table and return its metadata location plus vended storage properties.

        Raises:
            TableNotFoundError: If the table or its namespace does not exist
            AuthenticationError: If the catalog rejects the credentials
            BackendUnreachableError: If the catalog cannot be reached
        """
        logger.info(f"Resolving {identifier} via REST catalog")
        try:
            table = self.catalog.load_table(self._pyiceberg_identifier(identifier))
        except (NoSuchTableError, NoSuchNamespaceError) as e:
            raise TableNotFoundError(
                f"Table not found: {identifier}",
                details={"table": str(identifier), "error": str(e)}
            ) from e
        except ResolutionError:
            raise
        except Exception as e:
            raise self._translate(e, str(identifier)) from e

        storage_properties = _storage_properties(getattr(table.io, "properties", {}))
        logger.info(f"Resolved {identifier} to {table.metadata_location}")
        return MetadataLocation(uri=table.metadata_location, storage_properties=storage_properties)

    def table_exists(self, identifier: TableIdentifier) -> bool:
        """Check table existence without loading its metadata."""
        try:
            return bool(self.catalog.table_exists(self._pyiceberg_identifier(identifier)))
        except (NoSuchTableError, NoSuchNamespaceError):
            return False
        except ResolutionError:
            raise
        except Exception as e:
            raise self._translate(e, str(identifier)) from e

    def list_namespaces(self, parent: Optional[NamespaceId] = None) -> List[NamespaceId]:
        """List namespaces, optionally under a parent namespace."""
        try:
            namespaces = self.catalog.list_namespaces(parent or ())
        except NoSuchNamespaceError as e:
            raise NamespaceNotFoundError(
                f"Namespace not found: {'.'.join(parent or ())}",
                details={"namespace": ".".join(parent or ())}
            ) from e
        except ResolutionError:
            raise
        except Exception as e:
            raise self._translate(e, ".".join(parent or ())) from e

        return [tuple(namespace) for namespace in namespaces]

    def get_namespace(self, namespace: NamespaceId) -> NamespaceInfo:
        """
        Load a namespace's properties.

        Raises:
            NamespaceNotFoundError: If the namespace does not exist
        """
        try:
            properties = self.catalog.load_namespace_properties(namespace)
        except NoSuchNamespaceError as e:
            raise NamespaceNotFoundError(
                f"Namespace not found: {'.'.join(namespace)}",
                details={"namespace": ".".join(namespace)}
            ) from e
        except ResolutionError:
            raise
        except Exception as e:
            raise self._translate(e, ".".join(namespace)) from e

        return NamespaceInfo(namespace=tuple(namespace), properties=dict(properties or {}))

    def list_tables(self, namespace: NamespaceId) -> List[TableIdentifier]:
        """
        List the tables of a namespace.

        Raises:
            NamespaceNotFoundError: If the namespace does not exist
        """
        try:
            identifiers = self.catalog.list_tables(namespace)
        except NoSuchNamespaceError as e:
            raise NamespaceNotFoundError(
                f"Namespace not found: {'.'.join(namespace)}",
                details={"namespace": ".".join(namespace)}
            ) from e
        except ResolutionError:
            raise
        except Exception as e:
            raise self._translate(e, ".".join(namespace)) from e

        return [TableIdentifier(namespace=tuple(ident[:-1]), name=ident[-1]) for ident in identifiers]

    def _pyiceberg_identifier(self, identifier: TableIdentifier) -> tuple:
        return identifier.namespace + (identifier.name,)

    def _translate(self, error: Exception, subject: str) -> ResolutionError:
        """Map pyiceberg and requests errors onto the resolution error taxonomy."""
        details = {"table": subject, "error": str(error)}
        if isinstance(error, (UnauthorizedError, ForbiddenError, OAuthError)):
            return AuthenticationError(f"REST catalog rejected the credentials: {str(error)}", details=details)
        if isinstance(error, requests.exceptions.RequestException):
            return BackendUnreachableError(f"Cannot reach REST catalog: {str(error)}", details=details)
        if isinstance(error, (ServerError, RESTError)):
            return BackendUnreachableError(f"REST catalog request failed: {str(error)}", details=details)
        return ResolutionError(f"REST catalog error for {subject}: {str(error)}", details=details)


def _storage_properties(properties: Dict[str, str]) -> Dict[str, str]:
    return {
        key: value for key, value in (properties or {}).items()
        if key.startswith(_STORAGE_PROPERTY_PREFIXES)
    }
