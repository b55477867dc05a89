"""Loader exception types.

Convention:
- ``ConfigurationError`` is raised synchronously, before any network call,
  when a loader cannot be built from its options.
- ``GitHubClientError`` covers every transport failure (HTTP errors, bad
  payloads, undecodable blobs). Listing failures abort the run; blob
  failures are isolated per entry and reported in the sync result.
- ``RecordValidationError`` marks a fetched record that the schema stage
  rejected. Rejected records are never written and never marked synced.
"""

from __future__ import annotations


class LoaderError(Exception):
    """Base class for all loader errors."""


class ConfigurationError(LoaderError):
    """Raised when the loader configuration is incomplete or invalid."""


class GitHubClientError(LoaderError):
    """Raised when the GitHub API cannot be reached or returns an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        """True when GitHub refused the request because of rate limiting."""
        return self.status_code in (403, 429)


class BlobDecodeError(GitHubClientError):
    """Raised when a blob payload cannot be decoded to UTF-8 text."""


class RecordValidationError(LoaderError):
    """Raised when a fetched record fails schema validation or parsing."""

    def __init__(self, record_id: str, reason: str) -> None:
        super().__init__(f"Record {record_id!r} rejected: {reason}")
        self.record_id = record_id
        self.reason = reason
