"""Integration tests against a real Avatica server.

Needs a server (e.g. the Phoenix Query Server) listening at ``AVATICA_URL``;
the tests are skipped when nothing answers there.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from avatica_sdk.client import AvaticaClient
from avatica_sdk.exceptions import MissingStatementError
from avatica_sdk.types import encode_row
from tests.conftest import AVATICA_URL

pytestmark = pytest.mark.integration

TABLE = "AVATICA_SDK_IT"


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def connection() -> AsyncGenerator[tuple[AvaticaClient, str], None]:
    """Open a connection and close it after the test."""
    connection_id = str(uuid.uuid4())
    async with AvaticaClient(AVATICA_URL, max_retries=3) as client:
        await client.open_connection(connection_id)
        yield client, connection_id
        await client.close_connection(connection_id)


# ── Tests ───────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_connection_sync(connection: tuple[AvaticaClient, str]) -> None:
    client, connection_id = connection
    response = await client.connection_sync(connection_id, {"AutoCommit": True})
    assert response.conn_props.auto_commit is True


@pytest.mark.asyncio
async def test_catalog_and_schemas(connection: tuple[AvaticaClient, str]) -> None:
    client, connection_id = connection
    await client.catalog(connection_id)
    result = await client.schemas(connection_id)
    rows = [row async for row in client.iter_rows(connection_id, result.statement_id, result)]
    assert all(isinstance(row, list) for row in rows)


@pytest.mark.asyncio
async def test_prepare_execute_fetch(connection: tuple[AvaticaClient, str]) -> None:
    client, connection_id = connection
    await client.connection_sync(connection_id, {"AutoCommit": True})
    statement = await client.create_statement(connection_id)
    statement_id = statement.statement_id

    await client.prepare_and_execute(connection_id, statement_id, f"DROP TABLE IF EXISTS {TABLE}")
    await client.prepare_and_execute(
        connection_id, statement_id, f"CREATE TABLE {TABLE} (ID INTEGER PRIMARY KEY, NAME VARCHAR, CREATED DATE)"
    )

    prepared = await client.prepare(connection_id, f"UPSERT INTO {TABLE} VALUES (?, ?, ?)")
    parameters = list(prepared.statement.signature.parameters)
    rows = [[n, f"name-{n}", "2024-01-0" + str(n)] for n in range(1, 6)]
    await client.execute_batch(connection_id, prepared.statement.id, [encode_row(row, parameters) for row in rows])

    select = await client.prepare_and_execute(
        connection_id,
        statement_id,
        f"SELECT ID, NAME, CREATED FROM {TABLE} ORDER BY ID",
        first_frame_max_size=2,
    )
    result = select.results[0]
    fetched = [row async for row in client.iter_rows(connection_id, statement_id, result, frame_max_size=2)]
    assert fetched == rows

    await client.close_statement(connection_id, prepared.statement.id)
    await client.close_statement(connection_id, statement_id)


@pytest.mark.asyncio
async def test_fetch_unknown_statement(connection: tuple[AvaticaClient, str]) -> None:
    client, connection_id = connection
    with pytest.raises(MissingStatementError):
        await client.fetch(connection_id, 987654, offset=0)
