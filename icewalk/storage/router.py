"""
Storage client selection by location scheme.

A table's metadata, manifests and data files may live on different
storage systems (a local metadata copy referencing S3 data, for example),
so every location is routed to the client for its own scheme.
"""

import threading
from typing import BinaryIO, Callable, Dict, Iterator, Optional

from ..config.catalog_config import StorageConfig
from ..utils.exceptions import StorageAccessError, StorageError
from ..utils.logger import setup_logger
from ..utils.s3_utils import S3_SCHEMES, get_scheme
from .local_storage import LocalStorage
from .s3_storage import S3Storage

logger = setup_logger(__name__)


def open_storage(
    location: str,
    config: Optional[StorageConfig] = None,
    properties: Optional[Dict[str, str]] = None
):
    """
    Build the storage client for a location's scheme.

    Args:
        location: Location the client will read
        config: Configured storage credentials
        properties: Storage properties vended by the catalog backend

    Returns:
        S3Storage or LocalStorage

    Raises:
        StorageError: If the scheme is not supported
    """
    scheme = get_scheme(location)
    if scheme in S3_SCHEMES:
        storage_config = (config or StorageConfig()).with_properties(properties or {})
        return S3Storage(storage_config)
    if scheme in (None, "file"):
        return LocalStorage()

    raise StorageError(
        f"Unsupported storage scheme '{scheme}' in {location}",
        details={"path": location, "scheme": scheme}
    )


def storage_family(uri: str) -> str:
    """Storage system a location belongs to: ``s3``, ``local`` or its raw scheme."""
    scheme = get_scheme(uri)
    if scheme in S3_SCHEMES:
        return "s3"
    if scheme in (None, "file"):
        return "local"
    return scheme


class StorageRouter:
    """
    Storage client dispatching each call on the location's scheme.

    Clients are created on first use, one per storage family, and shared
    read-only by every verification worker.
    """

    def __init__(
        self,
        config: Optional[StorageConfig] = None,
        properties: Optional[Dict[str, str]] = None,
        storage_factory: Optional[Callable] = None
    ):
        """
        Initialize the router.

        Args:
            config: Configured storage credentials
            properties: Storage properties vended by the catalog backend
            storage_factory: ``(location, storage_config, properties) -> storage``
                (defaults to open_storage)
        """
        self.config = config
        self.properties = properties or {}
        self.storage_factory = storage_factory or open_storage
        self._clients: Dict[str, object] = {}
        self._lock = threading.Lock()

    def client_for(self, uri: str):
        """
        Return the storage client for a location.

        Raises:
            StorageError: If the location's scheme is not supported
        """
        family = storage_family(uri)
        with self._lock:
            client = self._clients.get(family)
            if client is None:
                client = self.storage_factory(uri, self.config, self.properties)
                self._clients[family] = client
                logger.debug(f"Using {type(client).__name__} for {family} locations")
        return client

    def open(self, uri: str) -> BinaryIO:
        return self.client_for(uri).open(uri)

    def read_bytes(self, uri: str) -> bytes:
        return self.client_for(uri).read_bytes(uri)

    def exists(self, uri: str) -> bool:
        return self.client_for(uri).exists(uri)

    def list_paths(self, prefix: str) -> Iterator[str]:
        """
        List every location under a prefix.

        Raises:
            StorageAccessError: If the prefix's storage client cannot list
        """
        client = self.client_for(prefix)
        list_paths = getattr(client, "list_paths", None)
        if list_paths is None:
            raise StorageAccessError(
                f"{type(client).__name__} cannot list {prefix}",
                details={"path": prefix}
            )
        return list_paths(prefix)
