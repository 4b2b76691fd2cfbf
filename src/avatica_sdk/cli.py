"""
Command line interface for the Avatica SDK.

Small helper for poking at an Avatica server:
- tables: list tables
- schemas: list schemas
- query: run a SQL statement and print its rows
"""

import asyncio
import sys
import uuid
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any

import click

from .client import AvaticaClient
from .exceptions import AvaticaError


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def format_row(row: list[Any]) -> str:
    return "\t".join("NULL" if value is None else str(value) for value in row)


async def _with_connection(
    url: str,
    max_retries: int,
    work: Callable[[AvaticaClient, str], AsyncIterator[list[Any]]],
) -> None:
    connection_id = str(uuid.uuid4())
    async with AvaticaClient(url, max_retries=max_retries) as client:
        await client.open_connection(connection_id)
        try:
            async for row in work(client, connection_id):
                click.echo(format_row(row))
        finally:
            await client.close_connection(connection_id)


def _run(ctx: click.Context, work: Callable[[AvaticaClient, str], AsyncIterator[list[Any]]]) -> None:
    try:
        run_async(_with_connection(ctx.obj["url"], ctx.obj["max_retries"], work))
    except AvaticaError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--url",
    "-u",
    envvar="AVATICA_URL",
    required=True,
    help="Avatica server URL (e.g. http://localhost:8765)",
)
@click.option(
    "--max-retries",
    "-r",
    default=1,
    show_default=True,
    type=click.IntRange(min=1),
    help="Attempts for requests answered with 5xx",
)
@click.pass_context
def cli(ctx: click.Context, url: str, max_retries: int) -> None:
    """Avatica remote JDBC client."""
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["max_retries"] = max_retries


@cli.command()
@click.option("--schema", "-s", help="Schema pattern")
@click.option("--table", "-t", help="Table name pattern")
@click.pass_context
def tables(ctx: click.Context, schema: str | None, table: str | None) -> None:
    """List tables."""

    async def work(client: AvaticaClient, connection_id: str) -> AsyncIterator[list[Any]]:
        result = await client.tables(connection_id, schema_pattern=schema, table_pattern=table)
        async for row in client.iter_rows(connection_id, result.statement_id, result):
            yield row

    _run(ctx, work)


@cli.command()
@click.option("--schema", "-s", help="Schema pattern")
@click.pass_context
def schemas(ctx: click.Context, schema: str | None) -> None:
    """List schemas."""

    async def work(client: AvaticaClient, connection_id: str) -> AsyncIterator[list[Any]]:
        result = await client.schemas(connection_id, schema_pattern=schema)
        async for row in client.iter_rows(connection_id, result.statement_id, result):
            yield row

    _run(ctx, work)


@cli.command()
@click.argument("sql")
@click.option("--frame-size", "-f", type=int, default=None, help="Rows per fetched frame")
@click.pass_context
def query(ctx: click.Context, sql: str, frame_size: int | None) -> None:
    """Run SQL and print the resulting rows."""

    async def work(client: AvaticaClient, connection_id: str) -> AsyncIterator[list[Any]]:
        statement = await client.create_statement(connection_id)
        try:
            response = await client.prepare_and_execute(
                connection_id,
                statement.statement_id,
                sql,
                first_frame_max_size=frame_size,
            )
            for result in response.results:
                if not result.HasField("first_frame"):
                    yield [f"{result.update_count} row(s) affected"]
                    continue
                async for row in client.iter_rows(
                    connection_id, statement.statement_id, result, frame_max_size=frame_size
                ):
                    yield row
        finally:
            await client.close_statement(connection_id, statement.statement_id)

    _run(ctx, work)


__all__ = ["cli"]
