"""
Avatica Wire Envelope.

Every RPC travels as a ``WireMessage``: the fully qualified request class
name plus the encoded request bytes. This module wraps and unwraps those
envelopes and translates error envelopes into ``ErrorDetails``.
"""

from __future__ import annotations

from typing import Any

from google.protobuf.message import DecodeError

from ..exceptions import ErrorDetails, MalformedEnvelopeError
from .schema import ErrorResponse, Severity, WireMessage

# Server side request class namespace; the server rejects any other prefix.
REQUEST_PREFIX = "org.apache.calcite.avatica.proto.Requests$"

CONTENT_TYPE = "application/x-google-protobuf"

ERROR_RESPONSE = "ErrorResponse"


def wrap(type_name: str, payload: bytes) -> bytes:
    """
    Wrap an encoded request in a named envelope.

    Args:
        type_name: Short request type name (e.g. "FetchRequest")
        payload: Encoded request message, treated as opaque

    Returns:
        Serialized envelope bytes
    """
    envelope = WireMessage(name=REQUEST_PREFIX + type_name, wrapped_message=payload)
    return envelope.SerializeToString()


def _parse_envelope(data: bytes) -> Any:
    envelope = WireMessage()
    try:
        envelope.ParseFromString(data)
    except DecodeError as e:
        raise MalformedEnvelopeError(f"Malformed wire message: {e}") from e
    return envelope


def unwrap(data: bytes) -> bytes:
    """
    Return the payload carried by an envelope.

    Raises:
        MalformedEnvelopeError: If the bytes are not a wire message
    """
    return _parse_envelope(data).wrapped_message


def decode(message_type: Any, payload: bytes) -> Any:
    """
    Decode an unwrapped payload as ``message_type``.

    Raises:
        MalformedEnvelopeError: If the payload does not parse
    """
    message = message_type()
    try:
        message.ParseFromString(payload)
    except DecodeError as e:
        raise MalformedEnvelopeError(f"Malformed {message_type.DESCRIPTOR.name}: {e}") from e
    return message


def _severity(value: int) -> Severity:
    try:
        return Severity(value)
    except ValueError:
        return Severity.UNKNOWN_SEVERITY


def translate_error(data: bytes) -> ErrorDetails:
    """
    Decode an error envelope into ``ErrorDetails``.

    Nested exceptions are reported only when the server sets
    ``has_exceptions``; otherwise ``exceptions`` stays None. Severities
    this client does not know are reported as ``UNKNOWN_SEVERITY``.

    Raises:
        MalformedEnvelopeError: If the bytes are not an ``ErrorResponse``
            envelope. Arbitrary text can parse as a wire message, so the
            envelope name is checked too.
    """
    envelope = _parse_envelope(data)
    if not envelope.name.endswith(ERROR_RESPONSE):
        raise MalformedEnvelopeError(f"Not an error envelope: '{envelope.name}'")
    error = decode(ErrorResponse, envelope.wrapped_message)
    return ErrorDetails(
        message=error.error_message,
        severity=_severity(error.severity),
        error_code=error.error_code,
        sql_state=error.sql_state,
        exceptions=list(error.exceptions) if error.has_exceptions else None,
    )
