"""File existence verification."""

from .file_verifier import DEFAULT_CONCURRENCY, FileVerifier

__all__ = ["DEFAULT_CONCURRENCY", "FileVerifier"]
