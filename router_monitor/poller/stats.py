"""Statistics for the poll cycle."""

from __future__ import annotations

from typing import Optional

from ..core.domain.errors import (
    AuthError,
    NetworkError,
    ParseError,
    RouterMonitorError,
    StorageError,
)


class PollStats:
    """Contadores del ciclo de polling."""

    def __init__(self):
        self.polls = 0
        self.succeeded = 0
        self.failed = 0
        self.network_errors = 0
        self.auth_errors = 0
        self.parse_errors = 0
        self.storage_errors = 0
        self.reauthentications = 0
        self.samples_discarded = 0
        self.records_interpolated = 0
        self.last_error: Optional[str] = None
        self.last_success_at: Optional[int] = None

    def record_error(self, error: RouterMonitorError) -> None:
        if isinstance(error, NetworkError):
            self.network_errors += 1
        elif isinstance(error, AuthError):
            self.auth_errors += 1
        elif isinstance(error, ParseError):
            self.parse_errors += 1
        elif isinstance(error, StorageError):
            self.storage_errors += 1
        self.last_error = f"{type(error).__name__}: {error}"

    def __str__(self) -> str:
        return (
            f"Stats: polls={self.polls} ok={self.succeeded} failed={self.failed} "
            f"reauth={self.reauthentications} interpolated={self.records_interpolated}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        return {
            "polls": self.polls,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "network_errors": self.network_errors,
            "auth_errors": self.auth_errors,
            "parse_errors": self.parse_errors,
            "storage_errors": self.storage_errors,
            "reauthentications": self.reauthentications,
            "samples_discarded": self.samples_discarded,
            "records_interpolated": self.records_interpolated,
            "last_error": self.last_error,
            "last_success_at": self.last_success_at,
        }
