"""Error kinds raised by the data agent layer.

Every failure surfaced to callers is a DataAgentError subclass carrying an
ErrorKind, so routers and other callers can branch on ``error.kind`` without
inspecting message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a data agent failure."""

    VALIDATION = "validation"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    CANCELLED = "cancelled"


class DataAgentError(Exception):
    """Base exception for data agent operations.

    Attributes:
        kind: The ErrorKind of this failure
        cause: Optional underlying exception
    """

    kind: ErrorKind = ErrorKind.PROTOCOL

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DataAgentValidationError(DataAgentError, ValueError):
    """A required input was missing or empty. Raised before any I/O."""

    kind = ErrorKind.VALIDATION


class DataAgentTransportError(DataAgentError):
    """An external call failed or returned a non-success HTTP status."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.status_code = status_code


class DataAgentProtocolError(DataAgentError):
    """A response was missing an expected field or was not valid JSON."""

    kind = ErrorKind.PROTOCOL


class DataAgentCancelledError(DataAgentError):
    """The caller cancelled a streaming query."""

    kind = ErrorKind.CANCELLED


def require_non_empty(**values: str | None) -> None:
    """Raise DataAgentValidationError for the first empty or blank value.

    Args:
        **values: Parameter names mapped to the values to check

    Raises:
        DataAgentValidationError: If any value is None, empty or whitespace
    """
    for name, value in values.items():
        if value is None or not value.strip():
            raise DataAgentValidationError(f"'{name}' must be a non-empty string")
