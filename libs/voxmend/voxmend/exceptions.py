"""voxmend exception hierarchy."""

from __future__ import annotations

from voxmend.error_codes import ErrorCode


class VoxmendError(Exception):
    """Base error for voxmend."""


class ConfigurationError(VoxmendError):
    """Raised when configuration or inputs are invalid."""


class FatalInputError(VoxmendError):
    """Raised when the source audio cannot be read or decoded.

    Aborts the whole request; never downgraded to a fallback.
    """

    def __init__(
        self,
        path: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = ErrorCode.INVALID_MEDIA,
    ) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message
        self.error_code = error_code


class ProviderError(VoxmendError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class RetryableProviderError(ProviderError):
    """Provider error worth retrying (timeouts, 429, 5xx)."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        rate_limited: bool = False,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(provider, message, error_code=error_code)
        self.rate_limited = bool(rate_limited)


class RequestAbandonedError(VoxmendError):
    """Raised by the pipeline when the caller abandoned the request mid-run."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"{stage}: request abandoned")
        self.stage = stage
        self.error_code = ErrorCode.REQUEST_ABANDONED


class DegradedResultWarning(UserWarning):
    """Some units of a stage used their fallback value.

    Returned alongside a successful result (never raised by the pipeline).
    """

    def __init__(self, stage: str, failed_units: int, total_units: int) -> None:
        super().__init__(f"{stage}: {failed_units}/{total_units} units used fallback")
        self.stage = stage
        self.failed_units = int(failed_units)
        self.total_units = int(total_units)
