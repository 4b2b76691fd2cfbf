"""
Avatica SDK Protocol Module.

Implements the protobuf wire format used by the Avatica remote JDBC server:
message types, the named envelope and the verb registry.
"""

from .schema import (
    Rep,
    Severity,
    StateType,
    StatementType,
    MetaDataOperation,
    message_class,
)
from .verbs import RPCVerb, Verb, VERBS
from .wire import REQUEST_PREFIX, CONTENT_TYPE, wrap, unwrap, translate_error

__all__ = [
    # Schema
    "Rep",
    "Severity",
    "StateType",
    "StatementType",
    "MetaDataOperation",
    "message_class",
    # Verbs
    "RPCVerb",
    "Verb",
    "VERBS",
    # Envelope
    "REQUEST_PREFIX",
    "CONTENT_TYPE",
    "wrap",
    "unwrap",
    "translate_error",
]
