"""Central error types used across the package."""

from __future__ import annotations

from enum import IntEnum


class RouteTrackerError(RuntimeError):
    """Base error for route tracker failures."""


class InvalidSampleError(RouteTrackerError, ValueError):
    """Raised when a sample carries out-of-range coordinates or accuracy."""


class RouteFrozenError(RouteTrackerError):
    """Raised when appending to a route whose session has stopped."""


class SchedulerClosedError(RouteTrackerError):
    """Raised when scheduling work on a scheduler that has been shut down."""


class SourceErrorCode(IntEnum):
    """Failure codes reported by a sample source (position API numbering)."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class SampleSourceError(RouteTrackerError):
    """Recoverable failure reported by the external sample source."""

    default_code = SourceErrorCode.POSITION_UNAVAILABLE

    def __init__(self, message: str = "", code: SourceErrorCode | None = None):
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code

    @classmethod
    def from_code(cls, code: int, message: str = "") -> "SampleSourceError":
        """Return the subclass instance matching a numeric source error code."""

        try:
            resolved = SourceErrorCode(code)
        except ValueError:
            return SampleSourceError(message or f"Unknown source error {code}")
        error_cls = _ERRORS_BY_CODE.get(resolved, SampleSourceError)
        return error_cls(message, resolved)


class SamplePermissionError(SampleSourceError):
    """Raised when the user or platform denies access to position data."""

    default_code = SourceErrorCode.PERMISSION_DENIED


class SampleUnavailableError(SampleSourceError):
    """Raised when no position fix can be obtained."""

    default_code = SourceErrorCode.POSITION_UNAVAILABLE


class SampleTimeoutError(SampleSourceError):
    """Raised when a fix is not delivered within the configured timeout."""

    default_code = SourceErrorCode.TIMEOUT


_ERRORS_BY_CODE: dict[SourceErrorCode, type[SampleSourceError]] = {
    SourceErrorCode.PERMISSION_DENIED: SamplePermissionError,
    SourceErrorCode.POSITION_UNAVAILABLE: SampleUnavailableError,
    SourceErrorCode.TIMEOUT: SampleTimeoutError,
}


__all__ = [
    "InvalidSampleError",
    "RouteFrozenError",
    "RouteTrackerError",
    "SamplePermissionError",
    "SampleSourceError",
    "SampleTimeoutError",
    "SampleUnavailableError",
    "SchedulerClosedError",
    "SourceErrorCode",
]
