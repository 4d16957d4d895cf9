"""
File existence verification.

Checks are existence tests (HEAD on S3, stat locally), never content reads.
``verify_all`` consumes a lazy sequence of entries through a bounded
thread pool: at most ``concurrency`` checks are in flight and the input is
never materialized.
"""

from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Dict, Iterable, Optional, Union

from ..models.manifest_entries import DataFileEntry
from ..models.verification import VerificationResult, VerificationSummary
from ..storage.prefix_index import PrefixIndex
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_CONCURRENCY = 16


def entry_path(entry: Union[DataFileEntry, str]) -> str:
    return entry if isinstance(entry, str) else entry.file_path


class FileVerifier:
    """Checks whether the files referenced by a table exist in storage."""

    def __init__(
        self,
        storage,
        concurrency: int = DEFAULT_CONCURRENCY,
        prefix_index: Optional[PrefixIndex] = None
    ):
        """
        Initialize the verifier.

        Args:
            storage: Storage client providing ``exists(path)``; shared by all workers
            concurrency: Default maximum number of checks in flight
            prefix_index: Pre-listed locations answering checks under its prefix

        Raises:
            ValueError: If concurrency is less than 1
        """
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.storage = storage
        self.concurrency = concurrency
        self.prefix_index = prefix_index

    def verify(self, entry: Union[DataFileEntry, str]) -> VerificationResult:
        """
        Check one file.

        Never raises: a failed check is reported as a ``check-failed`` result.
        """
        path = entry_path(entry)
        try:
            if self.prefix_index is not None and self.prefix_index.covers(path):
                exists = self.prefix_index.exists(path)
            else:
                exists = self.storage.exists(path)
        except Exception as e:
            logger.warning(f"Existence check failed for {path}: {str(e)}")
            return VerificationResult.check_failed(path, str(e))

        if exists:
            return VerificationResult.found(path)
        logger.debug(f"Missing file: {path}")
        return VerificationResult.missing(path)

    def verify_all(
        self,
        entries: Iterable[Union[DataFileEntry, str]],
        concurrency: Optional[int] = None
    ) -> VerificationSummary:
        """
        Check every file of a (lazy) sequence.

        Each distinct path is checked once. The summary's counts and path
        lists do not depend on the order in which checks complete.

        Args:
            entries: Data file entries or paths
            concurrency: Maximum number of checks in flight (defaults to the verifier's)

        Returns:
            VerificationSummary
        """
        workers = self.concurrency if concurrency is None else concurrency
        if workers < 1:
            raise ValueError("concurrency must be >= 1")

        results: Dict[str, VerificationResult] = {}
        submitted = set()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            pending = set()
            for entry in entries:
                path = entry_path(entry)
                if path in submitted:
                    continue
                submitted.add(path)
                pending.add(executor.submit(self.verify, path))

                if len(pending) >= workers:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        result = future.result()
                        results[result.path] = result

            for future in pending:
                result = future.result()
                results[result.path] = result

        summary = VerificationSummary.from_results(results.values())
        logger.info(
            f"Verification complete: {summary.found} found, {summary.missing} missing, "
            f"{summary.failed} failed"
        )
        return summary
