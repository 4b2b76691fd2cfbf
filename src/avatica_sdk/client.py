"""
Avatica client.

One coroutine per Avatica RPC verb. Every verb builds its request, sends it
through the envelope and transport pipeline, decodes the verb's response type
and checks the verb's sentinel flags.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from typing import Any, Self

import httpx

from .config import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT, ClientSettings
from .exceptions import (
    ClientError,
    MalformedEnvelopeError,
    MissingResultSetError,
    MissingStatementError,
    NetworkError,
    ServerError,
)
from .protocol import wire
from .protocol.schema import ConnectionProperties, StatementHandle
from .protocol.verbs import MISSING_RESULTS, MISSING_STATEMENT, VERBS, RPCVerb, Verb
from .transport import HTTPTransport, TransportResponse
from .types import decode_row

logger = logging.getLogger(__name__)

_SENTINEL_ERRORS = {
    MISSING_STATEMENT: MissingStatementError,
    MISSING_RESULTS: MissingResultSetError,
}


class AvaticaClient:
    """
    Client for an Avatica server (e.g. the Phoenix Query Server).

    The client is stateless apart from its configuration: connection ids,
    statement ids and signatures are passed in by the caller on every call.

    Usage:
        async with AvaticaClient("http://localhost:8765") as client:
            await client.open_connection(connection_id)
            statement = await client.create_statement(connection_id)
            result = await client.prepare_and_execute(
                connection_id, statement.statement_id, "SELECT * FROM users"
            )
    """

    def __init__(
        self,
        url: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
    ):
        """
        Initialize the client.

        Args:
            url: Avatica endpoint URL
            max_retries: Attempts made for requests answered with 5xx
            http_client: Optional preconfigured ``httpx.AsyncClient``
            timeout: Request timeout in seconds for the default HTTP client
            headers: Extra headers sent with every request

        Raises:
            pydantic.ValidationError: If the settings are invalid
        """
        self.settings = ClientSettings(
            url=url,
            max_retries=max_retries,
            timeout=timeout,
            headers=dict(headers or {}),
        )
        self.transport = HTTPTransport(self.settings, http_client)

    @property
    def url(self) -> str:
        return self.settings.url

    @property
    def max_retries(self) -> int:
        return self.settings.max_retries

    async def connect(self) -> Self:
        """Open the HTTP client. Returns self for fluent API."""
        await self.transport.open()
        return self

    async def close(self) -> None:
        """Close the HTTP client if the client created it."""
        await self.transport.close()

    async def __aenter__(self) -> Self:
        return await self.connect()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Pipeline

    async def apply(self, request_name: str, payload: bytes) -> bytes:
        """
        Send an encoded request and return the unwrapped response payload.

        Args:
            request_name: Short request type name used in the envelope
            payload: Encoded request message

        Raises:
            NetworkError: If no HTTP response was obtained
            ServerError: If 5xx responses outlast the retry budget
            ClientError: For any other non-2xx response
        """
        response = await self.transport.send(wire.wrap(request_name, payload))
        if not response.ok:
            self._raise_failure(response)
        return wire.unwrap(response.content)

    @staticmethod
    def _raise_failure(response: TransportResponse) -> None:
        if response.is_network_error:
            raise NetworkError(response.message or "network error")

        error_type = ServerError if 500 <= response.status < 600 else ClientError
        if not response.content:
            raise error_type(response.message or f"HTTP error: {response.status}", code=response.status)
        try:
            details = wire.translate_error(response.content)
        except MalformedEnvelopeError as e:
            text = response.content.decode("utf-8", errors="replace")
            raise error_type(f"HTTP error: {response.status} - {text}", code=response.status) from e
        raise error_type(details.message, code=response.status, protocol=details)

    async def call(self, verb: Verb, request: Any) -> Any:
        """
        Run one verb: send ``request`` and decode the verb's response.

        Raises:
            MissingStatementError: If the response flags a missing statement
            MissingResultSetError: If the response flags missing results
        """
        payload = await self.apply(verb.request, request.SerializeToString())
        response = wire.decode(verb.response_type, payload)
        for sentinel in verb.sentinels:
            if getattr(response, sentinel):
                logger.debug("%s answered with %s", verb.request, sentinel)
                raise _SENTINEL_ERRORS[sentinel]()
        return response

    def _request(self, name: str, **fields: Any) -> tuple[Verb, Any]:
        verb = VERBS[name]
        return verb, verb.request_type(**fields)

    # Connections

    async def open_connection(self, connection_id: str, info: Mapping[str, str] | None = None) -> Any:
        """Open a server side connection identified by ``connection_id``."""
        verb, request = self._request(RPCVerb.OPEN_CONNECTION, connection_id=connection_id)
        if info:
            request.info.update(info)
        return await self.call(verb, request)

    async def close_connection(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.CLOSE_CONNECTION, connection_id=connection_id)
        return await self.call(verb, request)

    async def connection_sync(self, connection_id: str, props: Mapping[str, Any]) -> Any:
        """
        Push connection properties to the server.

        Args:
            connection_id: Connection to update
            props: Partial update; any of ``AutoCommit``, ``ReadOnly``,
                   ``TransactionIsolation``, ``Catalog`` and ``Schema``.
                   Keys that are absent are left untouched on the server.

        Returns:
            ConnectionSyncResponse with the resulting properties
        """
        conn_props = ConnectionProperties()
        if "AutoCommit" in props:
            conn_props.auto_commit = bool(props["AutoCommit"])
            conn_props.has_auto_commit = True
        if "ReadOnly" in props:
            conn_props.read_only = bool(props["ReadOnly"])
            conn_props.has_read_only = True
        if "TransactionIsolation" in props:
            conn_props.transaction_isolation = props["TransactionIsolation"]
        if "Catalog" in props:
            conn_props.catalog = props["Catalog"]
        if "Schema" in props:
            conn_props.schema = props["Schema"]

        verb, request = self._request(RPCVerb.CONNECTION_SYNC, connection_id=connection_id, conn_props=conn_props)
        return await self.call(verb, request)

    async def commit(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.COMMIT, connection_id=connection_id)
        return await self.call(verb, request)

    async def rollback(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.ROLLBACK, connection_id=connection_id)
        return await self.call(verb, request)

    # Metadata

    async def catalog(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.CATALOG, connection_id=connection_id)
        return await self.call(verb, request)

    async def columns(
        self,
        connection_id: str,
        catalog: str | None = None,
        schema_pattern: str | None = None,
        table_pattern: str | None = None,
        column_pattern: str | None = None,
    ) -> Any:
        """List columns matching the given LIKE patterns."""
        verb, request = self._request(RPCVerb.COLUMNS, connection_id=connection_id)
        if catalog:
            request.catalog = catalog
            request.has_catalog = True
        if schema_pattern:
            request.schema_pattern = schema_pattern
            request.has_schema_pattern = True
        if table_pattern:
            request.table_name_pattern = table_pattern
            request.has_table_name_pattern = True
        if column_pattern:
            request.column_name_pattern = column_pattern
            request.has_column_name_pattern = True
        return await self.call(verb, request)

    async def database_property(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.DATABASE_PROPERTY, connection_id=connection_id)
        return await self.call(verb, request)

    async def schemas(
        self,
        connection_id: str,
        catalog: str | None = None,
        schema_pattern: str | None = None,
    ) -> Any:
        verb, request = self._request(RPCVerb.SCHEMAS, connection_id=connection_id)
        if catalog:
            request.catalog = catalog
            request.has_catalog = True
        if schema_pattern:
            request.schema_pattern = schema_pattern
            request.has_schema_pattern = True
        return await self.call(verb, request)

    async def tables(
        self,
        connection_id: str,
        catalog: str | None = None,
        schema_pattern: str | None = None,
        table_pattern: str | None = None,
        type_list: Sequence[str] | None = None,
    ) -> Any:
        """List tables, optionally restricted to ``type_list`` (e.g. ["TABLE", "VIEW"])."""
        verb, request = self._request(RPCVerb.TABLES, connection_id=connection_id)
        if catalog:
            request.catalog = catalog
            request.has_catalog = True
        if schema_pattern:
            request.schema_pattern = schema_pattern
            request.has_schema_pattern = True
        if table_pattern:
            request.table_name_pattern = table_pattern
            request.has_table_name_pattern = True
        if type_list:
            request.type_list.extend(type_list)
            request.has_type_list = True
        return await self.call(verb, request)

    async def table_types(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.TABLE_TYPES, connection_id=connection_id)
        return await self.call(verb, request)

    async def type_info(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.TYPE_INFO, connection_id=connection_id)
        return await self.call(verb, request)

    # Statements

    async def create_statement(self, connection_id: str) -> Any:
        verb, request = self._request(RPCVerb.CREATE_STATEMENT, connection_id=connection_id)
        return await self.call(verb, request)

    async def close_statement(self, connection_id: str, statement_id: int) -> Any:
        verb, request = self._request(
            RPCVerb.CLOSE_STATEMENT, connection_id=connection_id, statement_id=statement_id
        )
        return await self.call(verb, request)

    async def prepare(self, connection_id: str, sql: str, max_rows_total: int | None = None) -> Any:
        """
        Prepare ``sql`` on the server.

        Returns:
            PrepareResponse whose ``statement`` handle (id and signature) is
            passed back to ``execute``
        """
        verb, request = self._request(RPCVerb.PREPARE, connection_id=connection_id, sql=sql)
        if max_rows_total:
            request.max_rows_total = max_rows_total
        return await self.call(verb, request)

    async def prepare_and_execute(
        self,
        connection_id: str,
        statement_id: int,
        sql: str,
        max_rows_total: int | None = None,
        first_frame_max_size: int | None = None,
    ) -> Any:
        """
        Prepare and run ``sql`` on an existing statement.

        Returns:
            ExecuteResponse with one ResultSetResponse per result

        Raises:
            MissingStatementError: If the statement is unknown to the server
        """
        verb, request = self._request(
            RPCVerb.PREPARE_AND_EXECUTE,
            connection_id=connection_id,
            statement_id=statement_id,
            sql=sql,
        )
        if max_rows_total:
            request.max_rows_total = max_rows_total
        if first_frame_max_size:
            request.first_frame_max_size = first_frame_max_size
        return await self.call(verb, request)

    async def execute(
        self,
        connection_id: str,
        statement_id: int,
        signature: Any,
        parameter_values: Sequence[Any] | None = None,
        first_frame_max_size: int | None = None,
    ) -> Any:
        """
        Execute a prepared statement.

        Args:
            connection_id: Connection owning the statement
            statement_id: Statement id from ``prepare``
            signature: Signature from ``prepare``, passed back unchanged
            parameter_values: Already encoded ``TypedValue`` parameters,
                              see ``types.encode_row``
            first_frame_max_size: Maximum rows in the first frame

        Raises:
            MissingStatementError: If the statement is unknown to the server
        """
        handle = StatementHandle(connection_id=connection_id, id=statement_id, signature=signature)
        verb, request = self._request(RPCVerb.EXECUTE, statementHandle=handle)
        if parameter_values:
            request.parameter_values.extend(parameter_values)
            request.has_parameter_values = True
        if first_frame_max_size:
            request.first_frame_max_size = first_frame_max_size
            request.deprecated_first_frame_max_size = first_frame_max_size
        return await self.call(verb, request)

    async def prepare_and_execute_batch(
        self,
        connection_id: str,
        statement_id: int,
        sql_commands: Iterable[str],
    ) -> Any:
        """Run a batch of update statements; returns ExecuteBatchResponse."""
        verb, request = self._request(
            RPCVerb.PREPARE_AND_EXECUTE_BATCH,
            connection_id=connection_id,
            statement_id=statement_id,
        )
        request.sql_commands.extend(sql_commands)
        return await self.call(verb, request)

    async def execute_batch(
        self,
        connection_id: str,
        statement_id: int,
        rows: Iterable[Sequence[Any]] | None = None,
    ) -> Any:
        """
        Execute a prepared update once per row.

        Args:
            connection_id: Connection owning the statement
            statement_id: Prepared statement id
            rows: Rows of already encoded ``TypedValue`` parameters
        """
        verb, request = self._request(
            RPCVerb.EXECUTE_BATCH,
            connection_id=connection_id,
            statement_id=statement_id,
        )
        for row in rows or []:
            request.updates.add(parameter_values=list(row))
        return await self.call(verb, request)

    async def fetch(
        self,
        connection_id: str,
        statement_id: int,
        offset: int | None = None,
        frame_max_size: int | None = None,
    ) -> Any:
        """
        Fetch the next frame of a result set.

        Raises:
            MissingStatementError: If the statement is unknown to the server
            MissingResultSetError: If the statement has no open result set
        """
        verb, request = self._request(RPCVerb.FETCH, connection_id=connection_id, statement_id=statement_id)
        if offset is not None:
            request.offset = offset
        if frame_max_size:
            request.frame_max_size = frame_max_size
        return await self.call(verb, request)

    async def sync_results(
        self,
        connection_id: str,
        statement_id: int,
        state: Any,
        offset: int | None = None,
    ) -> Any:
        """Recreate a result set on the server from its ``QueryState``."""
        verb, request = self._request(
            RPCVerb.SYNC_RESULTS,
            connection_id=connection_id,
            statement_id=statement_id,
            state=state,
        )
        if offset is not None:
            request.offset = offset
        return await self.call(verb, request)

    # Results

    async def iter_rows(
        self,
        connection_id: str,
        statement_id: int,
        result_set: Any,
        frame_max_size: int | None = None,
    ) -> AsyncIterator[list[Any]]:
        """
        Yield the decoded rows of a result set, fetching frames as needed.

        Args:
            connection_id: Connection owning the statement
            statement_id: Statement that produced the result set
            result_set: ResultSetResponse from an execute call
            frame_max_size: Maximum rows per fetched frame
        """
        columns = result_set.signature.columns
        frame = result_set.first_frame
        if not result_set.HasField("first_frame"):
            return

        while True:
            for row in frame.rows:
                yield decode_row(row.value, columns)
            if frame.done or not frame.rows:
                return
            offset = frame.offset + len(frame.rows)
            response = await self.fetch(connection_id, statement_id, offset=offset, frame_max_size=frame_max_size)
            frame = response.frame


__all__ = ["AvaticaClient"]
