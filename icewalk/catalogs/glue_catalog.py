"""
AWS Glue catalog client (the ``managed`` backend).

Glue registers Iceberg tables with ``table_type=ICEBERG`` and the current
metadata document in the ``metadata_location`` table parameter. Glue
databases are single-level namespaces.
"""

from typing import List, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ..config.catalog_config import CatalogConfig
from ..models.identifiers import MetadataLocation, NamespaceId, NamespaceInfo, TableIdentifier
from ..utils.exceptions import (
    AuthenticationError,
    BackendUnreachableError,
    NamespaceNotFoundError,
    ResolutionError,
    TableNotFoundError,
)
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

_AUTH_ERROR_CODES = {
    "AccessDeniedException",
    "AccessDenied",
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "ExpiredTokenException",
}


class GlueCatalogClient:
    """Resolves tables through the AWS Glue Data Catalog."""

    def __init__(self, config: CatalogConfig, glue_client=None):
        """
        Initialize the Glue catalog client.

        Args:
            config: Catalog configuration (``endpoint`` overrides the Glue
                endpoint, ``properties["glue.id"]`` selects a catalog id)
            glue_client: Pre-built boto3 Glue client (optional)
        """
        if glue_client is None:
            storage = config.storage
            glue_client = boto3.client(
                'glue',
                aws_access_key_id=storage.access_key_id,
                aws_secret_access_key=storage.secret_access_key,
                aws_session_token=storage.session_token,
                region_name=storage.region_name,
                endpoint_url=config.endpoint
            )
        self.glue_client = glue_client
        self.catalog_id = config.properties.get("glue.id")
        logger.debug("GlueCatalogClient initialized")

    def resolve(self, identifier: TableIdentifier) -> MetadataLocation:
        """
        Look up the current metadata location of a Glue-registered table.

        Args:
            identifier: ``database.table`` identifier

        Returns:
            MetadataLocation of the table's current metadata document

        Raises:
            TableNotFoundError: If the table is missing or is not an Iceberg table
            AuthenticationError: If Glue rejects the credentials
            BackendUnreachableError: If Glue cannot be reached
        """
        database = self._database_name(identifier)
        logger.info(f"Resolving {identifier} via Glue")

        try:
            response = self.glue_client.get_table(
                DatabaseName=database, Name=identifier.name, **self._catalog_kwargs()
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, str(identifier)) from e

        parameters = response.get('Table', {}).get('Parameters', {})
        if parameters.get('table_type', '').upper() != 'ICEBERG':
            raise TableNotFoundError(
                f"Table {identifier} is not an Iceberg table",
                details={"table": str(identifier), "table_type": parameters.get('table_type')}
            )

        metadata_location = parameters.get('metadata_location')
        if not metadata_location:
            raise ResolutionError(
                f"Table {identifier} has no metadata_location parameter",
                details={"table": str(identifier)}
            )

        logger.info(f"Resolved {identifier} to {metadata_location}")
        return MetadataLocation(uri=metadata_location)

    def table_exists(self, identifier: TableIdentifier) -> bool:
        """Check whether an Iceberg table is registered under the identifier."""
        try:
            self.resolve(identifier)
            return True
        except TableNotFoundError:
            return False

    def list_namespaces(self, parent: Optional[NamespaceId] = None) -> List[NamespaceId]:
        """
        List Glue databases.

        Glue namespaces are flat, so any parent has no children.
        """
        if parent:
            return []

        namespaces = []
        paginator = self.glue_client.get_paginator('get_databases')
        try:
            for page in paginator.paginate(**self._catalog_kwargs()):
                for database in page.get('DatabaseList', []):
                    namespaces.append((database['Name'],))
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "databases") from e

        logger.info(f"Found {len(namespaces)} Glue databases")
        return namespaces

    def get_namespace(self, namespace: NamespaceId) -> NamespaceInfo:
        """
        Load a Glue database's parameters.

        ``Description`` and ``LocationUri`` are reported as the ``comment``
        and ``location`` properties.

        Raises:
            NamespaceNotFoundError: If the database does not exist
        """
        if len(namespace) != 1:
            raise NamespaceNotFoundError(
                f"Glue databases are single-level: {'.'.join(namespace)}",
                details={"namespace": ".".join(namespace)}
            )

        try:
            response = self.glue_client.get_database(Name=namespace[0], **self._catalog_kwargs())
        except ClientError as e:
            if _error_code(e) == "EntityNotFoundException":
                raise NamespaceNotFoundError(
                    f"Namespace not found: {namespace[0]}",
                    details={"namespace": namespace[0]}
                ) from e
            raise self._translate(e, namespace[0]) from e
        except BotoCoreError as e:
            raise self._translate(e, namespace[0]) from e

        database = response.get('Database', {})
        properties = dict(database.get('Parameters') or {})
        if database.get('Description'):
            properties['comment'] = database['Description']
        if database.get('LocationUri'):
            properties['location'] = database['LocationUri']
        return NamespaceInfo(namespace=tuple(namespace), properties=properties)

    def list_tables(self, namespace: NamespaceId) -> List[TableIdentifier]:
        """
        List the Iceberg tables of a Glue database.

        Raises:
            NamespaceNotFoundError: If the database does not exist
        """
        if len(namespace) != 1:
            raise NamespaceNotFoundError(
                f"Glue databases are single-level: {'.'.join(namespace)}",
                details={"namespace": ".".join(namespace)}
            )

        tables = []
        paginator = self.glue_client.get_paginator('get_tables')
        try:
            for page in paginator.paginate(DatabaseName=namespace[0], **self._catalog_kwargs()):
                for table in page.get('TableList', []):
                    table_type = table.get('Parameters', {}).get('table_type', '')
                    if table_type.upper() == 'ICEBERG':
                        tables.append(TableIdentifier(namespace=namespace, name=table['Name']))
        except ClientError as e:
            if _error_code(e) == "EntityNotFoundException":
                raise NamespaceNotFoundError(
                    f"Namespace not found: {namespace[0]}",
                    details={"namespace": namespace[0]}
                ) from e
            raise self._translate(e, namespace[0]) from e
        except BotoCoreError as e:
            raise self._translate(e, namespace[0]) from e

        logger.info(f"Found {len(tables)} Iceberg tables in {namespace[0]}")
        return tables

    def _catalog_kwargs(self) -> dict:
        return {"CatalogId": self.catalog_id} if self.catalog_id else {}

    def _database_name(self, identifier: TableIdentifier) -> str:
        if len(identifier.namespace) != 1 or not identifier.name:
            raise TableNotFoundError(
                f"Glue tables are addressed as `database.table`: {identifier}",
                details={"table": str(identifier)}
            )
        return identifier.namespace[0]

    def _translate(self, error: Exception, subject: str) -> ResolutionError:
        """Map a boto3 error onto the resolution error taxonomy."""
        details = {"table": subject, "error": str(error)}

        if isinstance(error, ClientError):
            code = _error_code(error)
            details["error_code"] = code
            if code == "EntityNotFoundException":
                return TableNotFoundError(f"Table not found: {subject}", details=details)
            if code in _AUTH_ERROR_CODES:
                return AuthenticationError(f"Glue rejected the credentials: {str(error)}", details=details)
            return BackendUnreachableError(f"Glue request failed: {str(error)}", details=details)

        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return AuthenticationError(f"No usable AWS credentials: {str(error)}", details=details)
        if isinstance(error, (EndpointConnectionError, ConnectTimeoutError)):
            return BackendUnreachableError(f"Cannot reach Glue: {str(error)}", details=details)
        return BackendUnreachableError(f"Glue request failed: {str(error)}", details=details)


def _error_code(error: ClientError) -> str:
    return str(error.response.get('Error', {}).get('Code', ''))
