"""
Existence checks answered from a single prefix listing.

Listing a table's location once is far cheaper than one HEAD request per
data file when a snapshot references many files.
"""

from typing import Iterable, Optional

from ..utils.exceptions import StorageError
from ..utils.logger import setup_logger
from ..utils.s3_utils import ensure_trailing_slash, get_scheme, normalize_s3_uri
from .local_storage import to_local_path

logger = setup_logger(__name__)


def normalize_location(uri: str) -> str:
    """Canonical form of a location for comparisons (s3a -> s3, file:// -> path)."""
    if get_scheme(uri) in (None, "file"):
        return str(to_local_path(uri))
    return normalize_s3_uri(uri)


class PrefixIndex:
    """Answers ``exists`` from a pre-loaded set of object locations."""

    def __init__(self, prefix: str, locations: Iterable[str]):
        self.prefix = prefix
        self._normalized_prefix = ensure_trailing_slash(normalize_location(prefix))
        self._locations = {normalize_location(location) for location in locations}

    def __len__(self) -> int:
        return len(self._locations)

    def covers(self, uri: str) -> bool:
        """True if the location lies under the listed prefix."""
        return normalize_location(uri).startswith(self._normalized_prefix)

    def exists(self, uri: str) -> bool:
        return normalize_location(uri) in self._locations


def build_prefix_index(storage, prefix: str) -> Optional[PrefixIndex]:
    """
    List everything under a prefix into a PrefixIndex.

    Returns None when the storage cannot list or the listing fails, so the
    caller can fall back to per-file checks.

    Args:
        storage: Storage client (must provide ``list_paths`` to be indexable)
        prefix: Location to list (normally the table location)

    Returns:
        PrefixIndex or None
    """
    list_paths = getattr(storage, "list_paths", None)
    if list_paths is None:
        logger.debug(f"{type(storage).__name__} cannot list, using per-file checks")
        return None

    if not prefix.endswith("/"):
        prefix += "/"

    try:
        index = PrefixIndex(prefix, list_paths(prefix))
    except StorageError as e:
        logger.warning(f"Prefix listing of {prefix} failed, using per-file checks: {e.message}")
        return None

    logger.info(f"Indexed {len(index)} objects under {prefix}")
    return index
