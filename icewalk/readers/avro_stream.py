"""
Streaming reads of Avro container files (manifest lists and manifests).

Records are decoded with fastavro straight from the storage stream, one
block at a time, so a manifest with millions of entries is never held in
memory. Every call re-opens the file.
"""

from typing import Callable, Iterator, Type, TypeVar

import fastavro

from ..utils.exceptions import IcewalkException, ObjectNotFoundError, ParseError
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


def iter_avro_records(
    storage,
    path: str,
    convert: Callable[[dict], T],
    error_cls: Type[ParseError],
) -> Iterator[T]:
    """
    Lazily decode an Avro file and convert each record.

    Args:
        storage: Storage client providing ``open(path)``
        path: Location of the Avro file
        convert: Turns one decoded record into an entry
        error_cls: ParseError subclass raised for any decode or conversion failure

    Yields:
        Converted entries in on-disk order

    Raises:
        error_cls: If the file is missing, undecodable, or a record is invalid
        StorageAccessError: If storage fails while reading
    """
    try:
        stream = storage.open(path)
    except ObjectNotFoundError as e:
        raise error_cls(f"File not found: {path}", details={"path": path}) from e

    position = 0
    with stream:
        try:
            for record in fastavro.reader(stream):
                yield convert(record)
                position += 1
        except IcewalkException:
            raise
        except Exception as e:
            raise error_cls(
                f"Failed to decode entry {position} of {path}: {str(e)}",
                details={"path": path, "entry": position, "error": str(e)}
            ) from e

    logger.debug(f"Read {position} entries from {path}")
