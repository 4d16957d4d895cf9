"""
Local filesystem storage client for file:// URIs and bare paths.
"""

import os
from pathlib import Path
from typing import BinaryIO, Iterator
from urllib.parse import unquote, urlparse

from ..utils.exceptions import ObjectNotFoundError, StorageAccessError
from ..utils.s3_utils import get_scheme


def to_local_path(uri: str) -> Path:
    """
    Convert a file:// URI or bare path into a Path.

    Raises:
        StorageAccessError: If the location uses a non-local scheme
    """
    scheme = get_scheme(uri)
    if scheme not in (None, "file"):
        raise StorageAccessError(
            f"Not a local location: {uri}",
            details={"path": uri, "scheme": scheme}
        )
    if scheme == "file":
        return Path(unquote(urlparse(uri).path))
    return Path(uri)


class LocalStorage:
    """Read-only access to files on the local filesystem."""

    def open(self, uri: str) -> BinaryIO:
        """
        Open a file for streaming reads.

        Raises:
            ObjectNotFoundError: If the file does not exist
            StorageAccessError: For any other OS error
        """
        path = to_local_path(uri)
        try:
            return path.open("rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"File not found: {uri}", details={"path": uri}) from e
        except OSError as e:
            raise StorageAccessError(
                f"Failed to read {uri}: {str(e)}",
                details={"path": uri, "error": str(e)}
            ) from e

    def read_bytes(self, uri: str) -> bytes:
        """Read a whole file."""
        with self.open(uri) as stream:
            return stream.read()

    def exists(self, uri: str) -> bool:
        """Check whether a regular file exists at the location."""
        try:
            return to_local_path(uri).is_file()
        except OSError as e:
            raise StorageAccessError(
                f"Failed to check {uri}: {str(e)}",
                details={"path": uri, "error": str(e)}
            ) from e

    def list_paths(self, prefix: str) -> Iterator[str]:
        """
        List every file below a directory.

        Yields paths in the same form as the prefix (file:// URI or bare path).
        """
        root = to_local_path(prefix)
        as_uri = prefix.startswith("file:")
        for dirpath, _dirnames, filenames in os.walk(root):
            for filename in filenames:
                path = Path(dirpath) / filename
                yield path.as_uri() if as_uri else str(path)
