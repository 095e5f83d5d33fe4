"""Exceptions raised while resolving network time."""

from ntp_consensus.models import NTPError


class TimeSyncError(Exception):
    """Base class for time lookup failures."""


class SourceUnavailable(TimeSyncError):
    """A single NTP server could not be used."""

    def __init__(self, server: str, reason: str, error_type: NTPError | None = None) -> None:
        self.server = server
        self.reason = reason
        self.error_type = error_type
        super().__init__(f"{server} unavailable: {reason}")


class NoReliableSource(TimeSyncError):
    """Every server failed or was rejected by the acceptance filter."""

    def __init__(self, total: int, failed: int, rejected: int) -> None:
        self.total = total
        self.failed = failed
        self.rejected = rejected
        super().__init__(
            f"no reliable NTP servers available "
            f"({total} queried, {failed} failed, {rejected} rejected)"
        )


class FallbackFailed(TimeSyncError):
    """The designated fallback server failed after the consensus did."""

    def __init__(self, server: str, cause: Exception) -> None:
        self.server = server
        self.cause = cause
        super().__init__(f"fallback server {server} failed: {cause}")
