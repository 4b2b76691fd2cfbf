"""
Avatica RPC verb registry.

Each verb names its request type, its response type and the sentinel flags
that turn an HTTP-successful response into a logical failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .schema import message_class

MISSING_STATEMENT = "missing_statement"
MISSING_RESULTS = "missing_results"


@dataclass(frozen=True)
class Verb:
    """
    Descriptor of one RPC verb.

    Attributes:
        request: Short request type name, also used as the envelope name
        response: Short response type name
        sentinels: Boolean response fields that signal a logical failure
    """

    request: str
    response: str
    sentinels: tuple[str, ...] = field(default_factory=tuple)

    @property
    def request_type(self) -> Any:
        return message_class(self.request)

    @property
    def response_type(self) -> Any:
        return message_class(self.response)


# RPC verb names as constants
class RPCVerb:
    """RPC verb name constants."""

    # Connection
    OPEN_CONNECTION = "open_connection"
    CLOSE_CONNECTION = "close_connection"
    CONNECTION_SYNC = "connection_sync"
    COMMIT = "commit"
    ROLLBACK = "rollback"

    # Metadata
    CATALOG = "catalog"
    COLUMNS = "columns"
    DATABASE_PROPERTY = "database_property"
    SCHEMAS = "schemas"
    TABLES = "tables"
    TABLE_TYPES = "table_types"
    TYPE_INFO = "type_info"

    # Statements
    CREATE_STATEMENT = "create_statement"
    CLOSE_STATEMENT = "close_statement"
    PREPARE = "prepare"
    PREPARE_AND_EXECUTE = "prepare_and_execute"
    EXECUTE = "execute"
    PREPARE_AND_EXECUTE_BATCH = "prepare_and_execute_batch"
    EXECUTE_BATCH = "execute_batch"
    FETCH = "fetch"
    SYNC_RESULTS = "sync_results"


VERBS: dict[str, Verb] = {
    RPCVerb.OPEN_CONNECTION: Verb("OpenConnectionRequest", "OpenConnectionResponse"),
    RPCVerb.CLOSE_CONNECTION: Verb("CloseConnectionRequest", "CloseConnectionResponse"),
    RPCVerb.CONNECTION_SYNC: Verb("ConnectionSyncRequest", "ConnectionSyncResponse"),
    RPCVerb.COMMIT: Verb("CommitRequest", "CommitResponse"),
    RPCVerb.ROLLBACK: Verb("RollbackRequest", "RollbackResponse"),
    RPCVerb.CATALOG: Verb("CatalogsRequest", "ResultSetResponse"),
    RPCVerb.COLUMNS: Verb("ColumnsRequest", "ResultSetResponse"),
    RPCVerb.DATABASE_PROPERTY: Verb("DatabasePropertyRequest", "DatabasePropertyResponse"),
    RPCVerb.SCHEMAS: Verb("SchemasRequest", "ResultSetResponse"),
    RPCVerb.TABLES: Verb("TablesRequest", "ResultSetResponse"),
    RPCVerb.TABLE_TYPES: Verb("TableTypesRequest", "ResultSetResponse"),
    RPCVerb.TYPE_INFO: Verb("TypeInfoRequest", "ResultSetResponse"),
    RPCVerb.CREATE_STATEMENT: Verb("CreateStatementRequest", "CreateStatementResponse"),
    RPCVerb.CLOSE_STATEMENT: Verb("CloseStatementRequest", "CloseStatementResponse"),
    RPCVerb.PREPARE: Verb("PrepareRequest", "PrepareResponse"),
    RPCVerb.PREPARE_AND_EXECUTE: Verb("PrepareAndExecuteRequest", "ExecuteResponse", (MISSING_STATEMENT,)),
    RPCVerb.EXECUTE: Verb("ExecuteRequest", "ExecuteResponse", (MISSING_STATEMENT,)),
    RPCVerb.PREPARE_AND_EXECUTE_BATCH: Verb(
        "PrepareAndExecuteBatchRequest", "ExecuteBatchResponse", (MISSING_STATEMENT,)
    ),
    RPCVerb.EXECUTE_BATCH: Verb("ExecuteBatchRequest", "ExecuteBatchResponse", (MISSING_STATEMENT,)),
    RPCVerb.FETCH: Verb("FetchRequest", "FetchResponse", (MISSING_STATEMENT, MISSING_RESULTS)),
    RPCVerb.SYNC_RESULTS: Verb("SyncResultsRequest", "SyncResultsResponse", (MISSING_STATEMENT,)),
}
