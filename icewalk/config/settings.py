"""
Configuration Management
========================
Centralized configuration using pydantic-settings.
Loads configuration from environment variables (.env file).
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog_config import BackendKind, CatalogConfig, StorageConfig


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values
    """

    # ===================================
    # Catalog
    # ===================================
    catalog_kind: BackendKind = BackendKind.DIRECT
    catalog_name: str = "default"
    catalog_uri: Optional[str] = None
    catalog_warehouse: Optional[str] = None
    catalog_token: Optional[str] = None
    catalog_credential: Optional[str] = None
    glue_catalog_id: Optional[str] = None

    # ===================================
    # AWS / S3
    # ===================================
    # Credentials are only ever read from the environment
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    aws_default_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None

    # ===================================
    # Verification
    # ===================================
    verify_concurrency: int = 16

    # ===================================
    # Logging
    # ===================================
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def storage_config(self) -> StorageConfig:
        """Build the storage client configuration."""
        return StorageConfig(
            access_key_id=self.aws_access_key_id,
            secret_access_key=self.aws_secret_access_key,
            session_token=self.aws_session_token,
            region_name=self.aws_default_region,
            endpoint_url=self.s3_endpoint_url,
        )

    def to_catalog_config(self, backend_kind: Optional[BackendKind] = None) -> CatalogConfig:
        """
        Convert settings into the configuration record the core consumes.

        Args:
            backend_kind: Optional override of ``catalog_kind``

        Returns:
            CatalogConfig
        """
        properties = {}
        if self.catalog_token:
            properties["token"] = self.catalog_token
        if self.catalog_credential:
            properties["credential"] = self.catalog_credential
        if self.glue_catalog_id:
            properties["glue.id"] = self.glue_catalog_id

        return CatalogConfig(
            backend_kind=backend_kind or self.catalog_kind,
            name=self.catalog_name,
            endpoint=self.catalog_uri,
            warehouse=self.catalog_warehouse,
            properties=properties,
            storage=self.storage_config(),
        )
