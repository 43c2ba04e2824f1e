from enum import Enum


class ErrorKind(str, Enum):
    SOURCE_UNAVAILABLE = "SourceUnavailable"
    TAB_NOT_FOUND = "TabNotFound"
    INVALID_DATA = "InvalidData"
    CLASSIFICATION_ERROR = "ClassificationError"
    UNKNOWN_FUNCTION = "UnknownFunction"
    VALIDATION_ERROR = "ValidationError"
    NOT_AVAILABLE = "NotAvailable"
    NOT_FOUND = "NotFound"
