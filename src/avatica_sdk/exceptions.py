"""
Avatica SDK Exceptions.

Custom exception hierarchy for the SDK. Every exception can render the
structured failure payload via ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .protocol.schema import Severity

NETWORK_ERROR_STATUS = 599


@dataclass(frozen=True)
class ErrorDetails:
    """
    Decoded protocol ``ErrorResponse``.

    Attributes:
        message: Server error message
        severity: Severity of the failure
        error_code: Vendor error code
        sql_state: Five character SQL state
        exceptions: Nested server-side stack traces, or None when the server
            did not flag that it sent any
    """

    message: str
    severity: Severity
    error_code: int
    sql_state: str
    exceptions: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "message": self.message,
            "severity": self.severity,
            "error_code": self.error_code,
            "sql_state": self.sql_state,
        }
        if self.exceptions is not None:
            data["exceptions"] = list(self.exceptions)
        return data


class AvaticaError(Exception):
    """Base exception for all Avatica SDK errors."""

    def __init__(self, message: str, code: int | None = None):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured failure payload, always carrying ``message``."""
        return {"message": self.message}


class NetworkError(AvaticaError):
    """Raised when no HTTP response could be obtained."""

    def __init__(self, message: str):
        super().__init__(message, NETWORK_ERROR_STATUS)


class ProtocolError(AvaticaError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, message: str, code: int | None = None, protocol: ErrorDetails | None = None):
        self.protocol = protocol
        super().__init__(message, code)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.protocol is not None:
            data["protocol"] = self.protocol.to_dict()
        return data


class ServerError(ProtocolError):
    """Raised when 5xx responses outlast the retry budget."""

    pass


class ClientError(ProtocolError):
    """Raised for 4xx and any other non-retried failure status."""

    pass


class MissingStatementError(AvaticaError):
    """Raised when the server reports that the statement is unknown."""

    def __init__(self, message: str = "missing statement"):
        super().__init__(message, 404)


class MissingResultSetError(AvaticaError):
    """Raised when the server reports that the result set is gone."""

    def __init__(self, message: str = "missing result set"):
        super().__init__(message, 404)


class MalformedEnvelopeError(AvaticaError):
    """Raised when bytes cannot be decoded as a wire message."""

    pass


class MarshalError(AvaticaError):
    """Base class for value marshaling failures."""

    pass


class UnknownNativeTypeError(MarshalError):
    """Raised when a native SQL type id has no representation."""

    def __init__(self, type_id: int):
        self.type_id = type_id
        super().__init__(f"Unknown native type id {type_id}")


class UnknownRepresentationError(MarshalError):
    """Raised when a representation has no storage field."""

    def __init__(self, rep: int):
        self.rep = rep
        super().__init__(f"Unsupported representation {rep}")


class ArityMismatchError(MarshalError):
    """Raised when a row and its metadata differ in length."""

    def __init__(self, values: int, expected: int):
        self.values = values
        self.expected = expected
        super().__init__(f"The number of values ({values}) is not the same as the expected number ({expected})")
