"""
Avatica SDK - A Python client for the Apache Calcite Avatica protocol.

Talks to Avatica servers (such as the Apache Phoenix Query Server) over
HTTP using the protobuf wire format.

Supports:
- Connection, statement and metadata RPCs
- Prepared statements, batches and paged result fetching
- Conversion between JDBC typed values and Python values
- Retry of transient server failures
"""

from .client import AvaticaClient
from .config import ClientSettings
from .transport import HTTPTransport, TransportResponse
from .protocol import (
    Rep,
    Severity,
    StateType,
    StatementType,
    MetaDataOperation,
    RPCVerb,
    REQUEST_PREFIX,
    wrap,
    unwrap,
    translate_error,
)
from .types import (
    StorageKind,
    type_to_representation,
    representation_to_storage,
    decode_value,
    encode_value,
    decode_row,
    encode_row,
    encode_rows,
    row_from_jdbc,
    row_to_jdbc,
)
from .exceptions import (
    AvaticaError,
    NetworkError,
    ProtocolError,
    ServerError,
    ClientError,
    MissingStatementError,
    MissingResultSetError,
    MalformedEnvelopeError,
    MarshalError,
    UnknownNativeTypeError,
    UnknownRepresentationError,
    ArityMismatchError,
    ErrorDetails,
)

__version__ = "0.1.0"
__all__ = [
    # Client
    "AvaticaClient",
    "ClientSettings",
    "HTTPTransport",
    "TransportResponse",
    # Protocol
    "Rep",
    "Severity",
    "StateType",
    "StatementType",
    "MetaDataOperation",
    "RPCVerb",
    "REQUEST_PREFIX",
    "wrap",
    "unwrap",
    "translate_error",
    # Marshaling
    "StorageKind",
    "type_to_representation",
    "representation_to_storage",
    "decode_value",
    "encode_value",
    "decode_row",
    "encode_row",
    "encode_rows",
    "row_from_jdbc",
    "row_to_jdbc",
    # Exceptions
    "AvaticaError",
    "NetworkError",
    "ProtocolError",
    "ServerError",
    "ClientError",
    "MissingStatementError",
    "MissingResultSetError",
    "MalformedEnvelopeError",
    "MarshalError",
    "UnknownNativeTypeError",
    "UnknownRepresentationError",
    "ArityMismatchError",
    "ErrorDetails",
]
