from __future__ import annotations

from storebot.domain.entities.error_kind import ErrorKind


class LLMUpstreamError(RuntimeError):
    """Raised when LLM provider fails (timeouts, network errors, service unavailable)."""
    pass


class LLMContractError(RuntimeError):
    """Raised when LLM adapter violates contract (bad format or missing data)."""
    pass


class StorebotError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_DATA

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SourceUnavailableError(StorebotError):
    """Spreadsheet source unreachable, timed out or returned a server error."""
    kind = ErrorKind.SOURCE_UNAVAILABLE


class TabNotFoundError(StorebotError):
    kind = ErrorKind.TAB_NOT_FOUND


class InvalidDataError(StorebotError):
    """Malformed write payload, rejected before any network call."""
    kind = ErrorKind.INVALID_DATA


class ClassificationError(StorebotError):
    """Classifier output could not be parsed or named a function outside the closed set."""
    kind = ErrorKind.CLASSIFICATION_ERROR


class UnknownFunctionError(StorebotError):
    kind = ErrorKind.UNKNOWN_FUNCTION


class BookingValidationError(StorebotError):
    kind = ErrorKind.VALIDATION_ERROR


class SlotNotAvailableError(StorebotError):
    kind = ErrorKind.NOT_AVAILABLE


class NotFoundError(StorebotError):
    kind = ErrorKind.NOT_FOUND


class UnknownActionError(StorebotError):
    """UI action has no direct-call mapping."""
    kind = ErrorKind.UNKNOWN_FUNCTION


class CacheInvalidationError(StorebotError):
    """The sheet write succeeded but a cache tier could not drop the stale entry."""
    kind = ErrorKind.SOURCE_UNAVAILABLE
