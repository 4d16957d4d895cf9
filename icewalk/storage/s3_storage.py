"""
S3 storage client.

Streams objects and checks their existence with boto3. One client is
created per invocation and shared read-only by every verification worker
(boto3 clients are thread-safe).
"""

from typing import BinaryIO, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config.catalog_config import StorageConfig
from ..utils.exceptions import ObjectNotFoundError, StorageAccessError
from ..utils.logger import setup_logger
from ..utils.s3_utils import build_s3_uri, parse_s3_uri

logger = setup_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3Storage:
    """Read-only access to objects under s3:// (and s3a://) URIs."""

    def __init__(self, config: Optional[StorageConfig] = None, s3_client=None):
        """
        Initialize the S3 storage client.

        Args:
            config: Credentials, region and endpoint (optional, boto3 defaults otherwise)
            s3_client: Pre-built boto3 S3 client (optional)
        """
        if s3_client is None:
            config = config or StorageConfig()
            s3_client = boto3.client(
                's3',
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                aws_session_token=config.session_token,
                region_name=config.region_name,
                endpoint_url=config.endpoint_url
            )
        self.s3_client = s3_client
        logger.debug("S3Storage initialized")

    def open(self, uri: str) -> BinaryIO:
        """
        Open an object for streaming reads.

        The returned body is read on demand; nothing beyond what the caller
        consumes is fetched.

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageAccessError: For any other storage failure
        """
        bucket, key = parse_s3_uri(uri)
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            raise self._translate(e, uri) from e
        except BotoCoreError as e:
            raise StorageAccessError(
                f"Failed to read {uri}: {str(e)}",
                details={"path": uri, "error": str(e)}
            ) from e
        return response['Body']

    def read_bytes(self, uri: str) -> bytes:
        """Read a whole object."""
        with self.open(uri) as body:
            return body.read()

    def exists(self, uri: str) -> bool:
        """
        Check whether an object exists (HEAD request, no content read).

        Raises:
            StorageAccessError: If the check itself fails (permissions, network)
        """
        bucket, key = parse_s3_uri(uri)
        try:
            self.s3_client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            error = self._translate(e, uri)
            if isinstance(error, ObjectNotFoundError):
                return False
            raise error from e
        except BotoCoreError as e:
            raise StorageAccessError(
                f"Failed to check {uri}: {str(e)}",
                details={"path": uri, "error": str(e)}
            ) from e

    def list_paths(self, prefix: str) -> Iterator[str]:
        """
        List every object URI under a prefix.

        Args:
            prefix: S3 URI prefix (e.g., s3://bucket/warehouse/table/)

        Yields:
            s3:// URIs of the objects found
        """
        bucket, key_prefix = parse_s3_uri(prefix)
        logger.info(f"Listing S3 objects under s3://{bucket}/{key_prefix}")

        paginator = self.s3_client.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=key_prefix):
                for obj in page.get('Contents', []):
                    yield build_s3_uri(bucket, obj['Key'])
        except ClientError as e:
            raise self._translate(e, prefix) from e
        except BotoCoreError as e:
            raise StorageAccessError(
                f"Failed to list {prefix}: {str(e)}",
                details={"path": prefix, "error": str(e)}
            ) from e

    def _translate(self, error: ClientError, uri: str) -> Exception:
        """Map a botocore ClientError onto the storage error taxonomy."""
        error_code = str(error.response.get('Error', {}).get('Code', ''))
        if error_code in _NOT_FOUND_CODES:
            return ObjectNotFoundError(
                f"Object not found: {uri}",
                details={"path": uri, "error_code": error_code}
            )
        return StorageAccessError(
            f"S3 error for {uri}: {str(error)}",
            details={"path": uri, "error_code": error_code}
        )
