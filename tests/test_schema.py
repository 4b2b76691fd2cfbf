"""Unit tests for avatica_sdk.protocol — message schema and verb registry."""

import pytest

from avatica_sdk.protocol import RPCVerb, VERBS
from avatica_sdk.protocol.schema import (
    MESSAGES,
    PACKAGE,
    ColumnValue,
    MetaDataOperation,
    Rep,
    Severity,
    StateType,
    TypedValue,
    build_file_descriptor,
    message_class,
)
from avatica_sdk.protocol.verbs import MISSING_RESULTS, MISSING_STATEMENT


class TestSchema:
    def test_package(self) -> None:
        assert message_class("FetchRequest").DESCRIPTOR.full_name == f"{PACKAGE}.FetchRequest"

    def test_every_message_has_a_class(self) -> None:
        for name in MESSAGES:
            assert message_class(name).DESCRIPTOR.name == name

    def test_unknown_message(self) -> None:
        with pytest.raises(KeyError):
            message_class("NoSuchRequest")

    def test_enum_numbering_matches_wire(self) -> None:
        enum = TypedValue.DESCRIPTOR.fields_by_name["type"].enum_type
        assert {value.name: value.number for value in enum.values} == {rep.name: rep.value for rep in Rep}

    def test_severity_enum(self) -> None:
        enum = message_class("ErrorResponse").DESCRIPTOR.fields_by_name["severity"].enum_type
        assert enum.values_by_name["FATAL_SEVERITY"].number == Severity.FATAL_SEVERITY

    def test_nested_enum(self) -> None:
        descriptor = message_class("MetaDataOperationArgument").DESCRIPTOR
        assert descriptor.enum_types_by_name["ArgumentType"].values_by_name["NULL"].number == 5

    def test_map_field(self) -> None:
        request = message_class("OpenConnectionRequest")(connection_id="c")
        request.info["user"] = "alice"
        decoded = message_class("OpenConnectionRequest").FromString(request.SerializeToString())
        assert dict(decoded.info) == {"user": "alice"}

    def test_nested_messages(self) -> None:
        value = ColumnValue(has_array_value=True)
        value.array_value.add(type=Rep.STRING, string_value="x")
        value.scalar_value.null = True
        decoded = ColumnValue.FromString(value.SerializeToString())
        assert decoded.array_value[0].string_value == "x"
        assert decoded.scalar_value.null is True

    def test_query_state(self) -> None:
        state = message_class("QueryState")(
            type=StateType.METADATA, op=MetaDataOperation.GET_TABLES, has_op=True
        )
        assert state.op == MetaDataOperation.GET_TABLES

    def test_descriptor_is_proto3(self) -> None:
        assert build_file_descriptor().syntax == "proto3"


class TestVerbs:
    def test_every_verb_is_registered(self) -> None:
        names = {value for key, value in vars(RPCVerb).items() if key.isupper()}
        assert names == set(VERBS)

    def test_every_verb_has_message_types(self) -> None:
        for verb in VERBS.values():
            assert verb.request_type.DESCRIPTOR.name == verb.request
            assert verb.response_type.DESCRIPTOR.name == verb.response

    def test_sentinel_fields_exist(self) -> None:
        for verb in VERBS.values():
            fields = verb.response_type.DESCRIPTOR.fields_by_name
            for sentinel in verb.sentinels:
                assert sentinel in fields

    @pytest.mark.parametrize(
        "name,sentinels",
        [
            (RPCVerb.FETCH, (MISSING_STATEMENT, MISSING_RESULTS)),
            (RPCVerb.EXECUTE, (MISSING_STATEMENT,)),
            (RPCVerb.PREPARE_AND_EXECUTE, (MISSING_STATEMENT,)),
            (RPCVerb.EXECUTE_BATCH, (MISSING_STATEMENT,)),
            (RPCVerb.PREPARE_AND_EXECUTE_BATCH, (MISSING_STATEMENT,)),
            (RPCVerb.SYNC_RESULTS, (MISSING_STATEMENT,)),
            (RPCVerb.PREPARE, ()),
            (RPCVerb.OPEN_CONNECTION, ()),
        ],
    )
    def test_sentinels(self, name: str, sentinels: tuple[str, ...]) -> None:
        assert VERBS[name].sentinels == sentinels

    def test_catalog_uses_plural_request(self) -> None:
        assert VERBS[RPCVerb.CATALOG].request == "CatalogsRequest"
