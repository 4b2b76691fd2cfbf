"""
Unit tests for CLI commands.

Uses Click's CliRunner with the client wired to an in-process fake server.
"""

from collections.abc import Iterator
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from avatica_sdk.cli import cli, format_row
from avatica_sdk.client import AvaticaClient
from avatica_sdk.protocol.schema import (
    AvaticaType,
    ColumnMetaData,
    ColumnValue,
    Frame,
    Rep,
    ResultSetResponse,
    Row,
    Signature,
    TypedValue,
    message_class,
)
from tests.conftest import FAKE_URL, FakeAvatica, error, ok

VARCHAR = 12


def response(name: str, **fields: Any) -> httpx.Response:
    return ok(message_class(name)(**fields))


def text_result_set(*rows: tuple[str | None, ...], done: bool = True, statement_id: int = 1) -> Any:
    width = len(rows[0]) if rows else 1
    signature = Signature(columns=[ColumnMetaData(type=AvaticaType(id=VARCHAR)) for _ in range(width)])
    frame = Frame(done=done)
    for row in rows:
        frame.rows.append(
            Row(
                value=[
                    ColumnValue(
                        scalar_value=TypedValue(null=True, type=Rep.NULL)
                        if value is None
                        else TypedValue(type=Rep.STRING, string_value=value)
                    )
                    for value in row
                ]
            )
        )
    return ResultSetResponse(statement_id=statement_id, signature=signature, first_frame=frame)


@pytest.fixture
def runner() -> CliRunner:
    """Create a CliRunner for testing."""
    return CliRunner()


@pytest.fixture
def serve() -> Iterator[Any]:
    """Route the CLI's client to a FakeAvatica built from the given responses."""
    fakes: list[FakeAvatica] = []

    def factory(url: str, max_retries: int = 1) -> AvaticaClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fakes[-1]))
        return AvaticaClient(url, max_retries=max_retries, http_client=http_client)

    def install(*responses: httpx.Response) -> FakeAvatica:
        fakes.append(FakeAvatica(*responses))
        return fakes[-1]

    with patch("avatica_sdk.cli.AvaticaClient", side_effect=factory):
        yield install


class TestFormatRow:
    def test_tabs_and_nulls(self) -> None:
        assert format_row(["a", None, 3]) == "a\tNULL\t3"

    def test_empty(self) -> None:
        assert format_row([]) == ""


class TestCliBasics:
    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Avatica remote JDBC client" in result.output

    def test_url_is_required(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tables"], env={"AVATICA_URL": None})
        assert result.exit_code == 2

    def test_invalid_retry_budget(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--url", FAKE_URL, "--max-retries", "0", "tables"])
        assert result.exit_code == 2


class TestTablesCommand:
    def test_lists_rows(self, runner: CliRunner, serve: Any) -> None:
        fake = serve(
            response("OpenConnectionResponse"),
            ok(text_result_set((None, "APP", "USERS"), (None, "APP", "ORDERS"))),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "tables", "--schema", "APP"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["NULL\tAPP\tUSERS", "NULL\tAPP\tORDERS"]
        request = fake.decoded(message_class("TablesRequest"), 1)
        assert request.schema_pattern == "APP"
        assert request.has_table_name_pattern is False
        assert fake.request(-1)[0].endswith("CloseConnectionRequest")

    def test_url_from_environment(self, runner: CliRunner, serve: Any) -> None:
        serve(
            response("OpenConnectionResponse"),
            ok(text_result_set()),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["tables"], env={"AVATICA_URL": FAKE_URL})

        assert result.exit_code == 0, result.output
        assert result.output == ""

    def test_server_error_exits_non_zero(self, runner: CliRunner, serve: Any) -> None:
        fake = serve(
            response("OpenConnectionResponse"),
            error(400, "Schema undefined"),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "tables"])

        assert result.exit_code == 1
        assert "Error: Schema undefined" in result.output
        assert len(fake.requests) == 3


class TestSchemasCommand:
    def test_lists_rows(self, runner: CliRunner, serve: Any) -> None:
        serve(
            response("OpenConnectionResponse"),
            ok(text_result_set(("APP", None), ("SYSTEM", None))),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "schemas"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["APP\tNULL", "SYSTEM\tNULL"]


class TestQueryCommand:
    def test_select_pages_through_frames(self, runner: CliRunner, serve: Any) -> None:
        first = text_result_set(("a",), done=False, statement_id=7)
        second = Frame()
        second.CopyFrom(text_result_set(("b",), statement_id=7).first_frame)
        second.offset = 1
        fake = serve(
            response("OpenConnectionResponse"),
            response("CreateStatementResponse", statement_id=7),
            response("ExecuteResponse", results=[first]),
            response("FetchResponse", frame=second),
            response("CloseStatementResponse"),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "query", "SELECT x FROM t", "--frame-size", "1"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["a", "b"]
        execute = fake.decoded(message_class("PrepareAndExecuteRequest"), 2)
        assert (execute.statement_id, execute.sql, execute.first_frame_max_size) == (7, "SELECT x FROM t", 1)
        fetch = fake.decoded(message_class("FetchRequest"), 3)
        assert (fetch.statement_id, fetch.offset) == (7, 1)
        assert fake.decoded(message_class("CloseStatementRequest"), 4).statement_id == 7

    def test_update_count(self, runner: CliRunner, serve: Any) -> None:
        serve(
            response("OpenConnectionResponse"),
            response("CreateStatementResponse", statement_id=1),
            response("ExecuteResponse", results=[ResultSetResponse(update_count=3)]),
            response("CloseStatementResponse"),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "query", "DELETE FROM t"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "3 row(s) affected"

    def test_statement_closed_on_failure(self, runner: CliRunner, serve: Any) -> None:
        fake = serve(
            response("OpenConnectionResponse"),
            response("CreateStatementResponse", statement_id=1),
            response("ExecuteResponse", missing_statement=True),
            response("CloseStatementResponse"),
            response("CloseConnectionResponse"),
        )

        result = runner.invoke(cli, ["--url", FAKE_URL, "query", "SELECT 1"])

        assert result.exit_code == 1
        assert "Error: missing statement" in result.output
        names = [fake.request(i)[0].rsplit("$", 1)[1] for i in range(len(fake.requests))]
        assert names[-2:] == ["CloseStatementRequest", "CloseConnectionRequest"]
