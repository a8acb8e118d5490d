"""
Error taxonomy for the session core and the typed outcome returned by every
synchronization operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncError(Exception):
    """Base class for anticipated synchronization failures."""

    retryable = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthRequiredError(SyncError):
    """No valid bearer token; the UI should prompt for login."""


class NetworkFailureError(SyncError):
    """Remote unreachable, timed out, or answered with a non-2xx status."""

    retryable = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class VesselConflictError(NetworkFailureError):
    """The owner already has a vessel with this tag (HTTP 409)."""

    retryable = False


class CacheCorruptError(SyncError):
    """A cache entry could not be parsed; treated as a cache miss."""

    def __init__(self, key: str, reason: str = "") -> None:
        self.key = key
        super().__init__(f"Corrupt cache entry {key!r}: {reason}" if reason else f"Corrupt cache entry {key!r}")


class ConcurrentOperationError(SyncError):
    """Another synchronization operation holds the switch guard."""

    def __init__(self, requested: str, holder: str | None) -> None:
        self.requested = requested
        self.holder = holder
        super().__init__(f"{requested} ignored: {holder or 'another operation'} already in progress")


class OutcomeStatus(Enum):
    OK = "ok"
    NOOP = "noop"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(slots=True)
class SyncOutcome:
    """Result of a synchronization operation; the UI decides how to show it."""

    status: OutcomeStatus
    vessel_id: str | None = None
    error: SyncError | None = None
    from_cache: bool = False
    # Cached view kept after the background refresh failed
    stale: bool = False
    # No vessels left after a delete; the UI should go to its landing view
    navigate_home: bool = False

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.OK, OutcomeStatus.NOOP)

    @property
    def should_alert(self) -> bool:
        return self.status == OutcomeStatus.FAILED and self.error is not None

    @classmethod
    def success(cls, vessel_id: str | None = None, **kwargs) -> "SyncOutcome":
        return cls(OutcomeStatus.OK, vessel_id=vessel_id, **kwargs)

    @classmethod
    def noop(cls, vessel_id: str | None = None) -> "SyncOutcome":
        return cls(OutcomeStatus.NOOP, vessel_id=vessel_id)

    @classmethod
    def rejected(cls, error: ConcurrentOperationError) -> "SyncOutcome":
        return cls(OutcomeStatus.REJECTED, error=error)

    @classmethod
    def failed(cls, error: SyncError, vessel_id: str | None = None) -> "SyncOutcome":
        return cls(OutcomeStatus.FAILED, vessel_id=vessel_id, error=error)
