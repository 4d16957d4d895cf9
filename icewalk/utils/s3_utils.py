"""
S3 utilities for working with object URIs.
"""

from typing import Optional, Tuple
from urllib.parse import urlparse

from ..utils.exceptions import StorageError

S3_SCHEMES = ("s3", "s3a", "s3n")


def is_s3_uri(uri: str) -> bool:
    """Return True if the URI points at S3 (s3://, s3a:// or s3n://)."""
    return get_scheme(uri) in S3_SCHEMES


def get_scheme(uri: str) -> Optional[str]:
    """
    Return the lower-cased URI scheme, or None for a bare filesystem path.

    Single-letter schemes are treated as Windows drive letters.
    """
    scheme = urlparse(uri).scheme
    if not scheme or len(scheme) == 1:
        return None
    return scheme.lower()


def normalize_s3_uri(uri: str) -> str:
    """
    Rewrite s3a:// and s3n:// URIs to s3:// so the same object compares equal.

    Args:
        uri: Any URI

    Returns:
        The URI with its S3 scheme normalized (other URIs unchanged)
    """
    for scheme in S3_SCHEMES[1:]:
        prefix = f"{scheme}://"
        if uri.startswith(prefix):
            return "s3://" + uri[len(prefix):]
    return uri


def parse_s3_uri(s3_uri: str) -> Tuple[str, str]:
    """
    Parse S3 URI into bucket and key.

    Args:
        s3_uri: S3 URI like s3://bucket/path/to/object

    Returns:
        Tuple of (bucket, key)

    Raises:
        StorageError: If URI format is invalid
    """
    if not is_s3_uri(s3_uri):
        raise StorageError(f"Invalid S3 URI format: {s3_uri}", details={"path": s3_uri})

    path = normalize_s3_uri(s3_uri)[5:]  # Remove s3://
    parts = path.split("/", 1)

    bucket = parts[0]
    key = parts[1] if len(parts) > 1 else ""

    if not bucket:
        raise StorageError(f"Missing bucket in S3 URI: {s3_uri}", details={"path": s3_uri})

    return bucket, key


def build_s3_uri(bucket: str, key: str) -> str:
    """
    Build S3 URI from bucket and key.

    Args:
        bucket: S3 bucket name
        key: S3 key/path

    Returns:
        S3 URI like s3://bucket/path/to/object
    """
    key = key.lstrip("/")
    return f"s3://{bucket}/{key}"


def ensure_trailing_slash(path: str) -> str:
    """
    Ensure path ends with trailing slash.

    Args:
        path: Path string

    Returns:
        Path with trailing slash
    """
    return path if path.endswith("/") else path + "/"
