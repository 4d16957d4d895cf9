"""
Catalog and storage configuration records.

These are the opaque configuration records handed to the core. They are
built from ``Settings`` by the CLI, or constructed directly by library
callers.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class BackendKind(str, Enum):
    """Supported catalog backend variants."""
    MANAGED = "managed"
    REST = "rest"
    DIRECT = "direct"


class StorageConfig(BaseModel):
    """Credentials and endpoint for the object storage client."""

    model_config = ConfigDict(frozen=True)

    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    region_name: Optional[str] = None
    endpoint_url: Optional[str] = None

    def with_properties(self, properties: Dict[str, str]) -> "StorageConfig":
        """
        Overlay Iceberg FileIO properties (as vended by a REST catalog).

        Recognized keys are ``s3.access-key-id``, ``s3.secret-access-key``,
        ``s3.session-token``, ``s3.region`` and ``s3.endpoint``; vended
        values win over configured ones.

        Args:
            properties: FileIO property map

        Returns:
            A new StorageConfig
        """
        if not properties:
            return self

        return StorageConfig(
            access_key_id=properties.get("s3.access-key-id", self.access_key_id),
            secret_access_key=properties.get("s3.secret-access-key", self.secret_access_key),
            session_token=properties.get("s3.session-token", self.session_token),
            region_name=properties.get("s3.region", properties.get("client.region", self.region_name)),
            endpoint_url=properties.get("s3.endpoint", self.endpoint_url),
        )


class CatalogConfig(BaseModel):
    """Which catalog backend to use and how to reach it."""

    model_config = ConfigDict(frozen=True)

    backend_kind: BackendKind = BackendKind.DIRECT
    name: str = "default"
    endpoint: Optional[str] = Field(None, description="REST catalog URI or Glue endpoint override")
    warehouse: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict, description="Extra catalog client properties")
    storage: StorageConfig = Field(default_factory=StorageConfig)
