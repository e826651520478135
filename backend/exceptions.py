"""Application exceptions.

Service-level errors that are independent of HTTP. Routers map them to
``HTTPException`` responses.
"""

from typing import Any


class HelpYTException(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. channel_id, period).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class StatsError(HelpYTException):
    """Base class for statistics roll-up failures."""


class ChannelNotFound(StatsError):
    """The channel referenced by a roll-up no longer exists.

    Local and non-fatal: batch callers skip the channel and continue.
    """

    def __init__(self, channel_id: str) -> None:
        super().__init__(
            f"Channel {channel_id} not found",
            "CHANNEL_NOT_FOUND",
            {"channel_id": channel_id},
        )
        self.channel_id = channel_id


class StoreUnavailable(StatsError):
    """A read or write against the channel, click or history store failed."""

    def __init__(self, message: str = "Statistics store unavailable", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "STORE_UNAVAILABLE", details)


class BatchPartialFailure(StatsError):
    """One or more channels failed during a batch roll-up."""

    def __init__(self, period: str, failures: dict[str, Exception]) -> None:
        super().__init__(
            f"{len(failures)} channel(s) failed {period} roll-up",
            "BATCH_PARTIAL_FAILURE",
            {"period": period, "channel_ids": sorted(failures)},
        )
        self.failures = failures


class ExternalServiceError(HelpYTException):
    """An upstream HTTP service (YouTube, a metadata target) failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", {"status_code": status_code})
        self.status_code = status_code
