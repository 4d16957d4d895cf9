"""
Verification and traversal summaries.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class VerificationOutcome(str, Enum):
    """Outcome of one existence check."""
    FOUND = "found"
    MISSING = "missing"
    CHECK_FAILED = "check-failed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of an existence check on one file path."""

    path: str
    outcome: VerificationOutcome
    reason: Optional[str] = None

    @classmethod
    def found(cls, path: str) -> "VerificationResult":
        return cls(path=path, outcome=VerificationOutcome.FOUND)

    @classmethod
    def missing(cls, path: str) -> "VerificationResult":
        return cls(path=path, outcome=VerificationOutcome.MISSING)

    @classmethod
    def check_failed(cls, path: str, reason: str) -> "VerificationResult":
        return cls(path=path, outcome=VerificationOutcome.CHECK_FAILED, reason=reason)

    @property
    def exists(self) -> Optional[bool]:
        """True/False when the check succeeded, None when it failed."""
        if self.outcome == VerificationOutcome.CHECK_FAILED:
            return None
        return self.outcome == VerificationOutcome.FOUND


@dataclass(frozen=True)
class VerificationSummary:
    """
    Aggregated verification outcomes.

    Path lists are sorted so the summary does not depend on the order in
    which checks completed.
    """

    found: int = 0
    missing: int = 0
    failed: int = 0
    missing_paths: Tuple[str, ...] = ()
    failures: Tuple[VerificationResult, ...] = ()

    @classmethod
    def from_results(cls, results: Iterable[VerificationResult]) -> "VerificationSummary":
        found = 0
        missing = []
        failures = []
        for result in results:
            if result.outcome == VerificationOutcome.FOUND:
                found += 1
            elif result.outcome == VerificationOutcome.MISSING:
                missing.append(result.path)
            else:
                failures.append(result)

        return cls(
            found=found,
            missing=len(missing),
            failed=len(failures),
            missing_paths=tuple(sorted(missing)),
            failures=tuple(sorted(failures, key=lambda r: r.path)),
        )

    @property
    def checked(self) -> int:
        return self.found + self.missing + self.failed

    @property
    def failed_paths(self) -> Tuple[str, ...]:
        return tuple(r.path for r in self.failures)

    @property
    def is_complete(self) -> bool:
        """True when every file was found."""
        return self.missing == 0 and self.failed == 0

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "found": self.found,
            "missing": self.missing,
            "failed": self.failed,
            "missing-paths": list(self.missing_paths),
            "failures": [{"path": r.path, "reason": r.reason} for r in self.failures],
        }


@dataclass(frozen=True)
class TraversalSummary:
    """Aggregate counts of one traversal of a snapshot's files."""

    snapshot_id: Optional[int] = None
    manifests: int = 0
    files: int = 0
    bytes: int = 0
    records: int = 0
    stopped_early: bool = False
    verification: Optional[VerificationSummary] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data = {
            "snapshot-id": self.snapshot_id,
            "manifests": self.manifests,
            "files": self.files,
            "bytes": self.bytes,
            "records": self.records,
            "stopped-early": self.stopped_early,
        }
        if self.verification is not None:
            data["verification"] = self.verification.to_dict()
        return data
