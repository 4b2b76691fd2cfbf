"""
Avatica Wire Schema.

Declares the subset of the Avatica protobuf IDL used by this client as plain
Python data and builds concrete message classes from it with the protobuf
runtime. The classes are created once, at import time, and behave exactly
like ``protoc``-generated ``_pb2`` classes.

Enums used by the marshaling layer are also exposed as ``IntEnum`` types whose
numbering is the wire numbering.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, NamedTuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "avatica.proto"


class Rep(IntEnum):
    """Representation tag of a ``TypedValue``."""

    PRIMITIVE_BOOLEAN = 0
    PRIMITIVE_BYTE = 1
    PRIMITIVE_CHAR = 2
    PRIMITIVE_SHORT = 3
    PRIMITIVE_INT = 4
    PRIMITIVE_LONG = 5
    PRIMITIVE_FLOAT = 6
    PRIMITIVE_DOUBLE = 7
    BOOLEAN = 8
    BYTE = 9
    CHARACTER = 10
    SHORT = 11
    INTEGER = 12
    LONG = 13
    FLOAT = 14
    DOUBLE = 15
    JAVA_SQL_TIME = 16
    JAVA_SQL_TIMESTAMP = 17
    JAVA_SQL_DATE = 18
    JAVA_UTIL_DATE = 19
    BYTE_STRING = 20
    STRING = 21
    NUMBER = 22
    OBJECT = 23
    NULL = 24
    BIG_INTEGER = 25
    BIG_DECIMAL = 26
    ARRAY = 27
    STRUCT = 28
    MULTISET = 29


class Severity(IntEnum):
    """Severity of a server-side failure."""

    UNKNOWN_SEVERITY = 0
    FATAL_SEVERITY = 1
    ERROR_SEVERITY = 2
    WARNING_SEVERITY = 3


class StateType(IntEnum):
    SQL = 0
    METADATA = 1


class StatementType(IntEnum):
    SELECT = 0
    INSERT = 1
    UPDATE = 2
    DELETE = 3
    UPSERT = 4
    MERGE = 5
    OTHER_DML = 6
    CREATE = 7
    DROP = 8
    ALTER = 9
    OTHER_DDL = 10
    CALL = 11


class MetaDataOperation(IntEnum):
    """``DatabaseMetaData`` operation replayed by ``SyncResultsRequest``."""

    GET_ATTRIBUTES = 0
    GET_BEST_ROW_IDENTIFIER = 1
    GET_CATALOGS = 2
    GET_CLIENT_INFO_PROPERTIES = 3
    GET_COLUMN_PRIVILEGES = 4
    GET_COLUMNS = 5
    GET_CROSS_REFERENCE = 6
    GET_EXPORTED_KEYS = 7
    GET_FUNCTION_COLUMNS = 8
    GET_FUNCTIONS = 9
    GET_IMPORTED_KEYS = 10
    GET_INDEX_INFO = 11
    GET_PRIMARY_KEYS = 12
    GET_PROCEDURE_COLUMNS = 13
    GET_PROCEDURES = 14
    GET_PSEUDO_COLUMNS = 15
    GET_SCHEMAS = 16
    GET_SCHEMAS_WITH_ARGS = 17
    GET_SUPER_TABLES = 18
    GET_SUPER_TYPES = 19
    GET_TABLE_PRIVILEGES = 20
    GET_TABLES = 21
    GET_TABLE_TYPES = 22
    GET_TYPE_INFO = 23
    GET_UDTS = 24
    GET_VERSION_COLUMNS = 25


class Field(NamedTuple):
    """A message field: name, tag number, type name and repeated flag."""

    name: str
    number: int
    type: str
    repeated: bool = False


def repeated(name: str, number: int, type_: str) -> Field:
    return Field(name, number, type_, True)


# Map fields get a synthesized ``<Name>Entry`` nested message, like protoc does.
MAP_STRING_STRING = "map<string,string>"

ENUMS: dict[str, type[IntEnum]] = {
    "Rep": Rep,
    "Severity": Severity,
    "StateType": StateType,
    "StatementType": StatementType,
    "MetaDataOperation": MetaDataOperation,
}

NESTED_ENUMS: dict[str, dict[str, list[tuple[str, int]]]] = {
    "MetaDataOperationArgument": {
        "ArgumentType": [
            ("STRING", 0),
            ("BOOL", 1),
            ("INT", 2),
            ("REPEATED_STRING", 3),
            ("REPEATED_INT", 4),
            ("NULL", 5),
        ],
    },
    "CursorFactory": {
        "Style": [
            ("OBJECT", 0),
            ("RECORD", 1),
            ("RECORD_PROJECTION", 2),
            ("ARRAY", 3),
            ("LIST", 4),
            ("MAP", 5),
        ],
    },
}

MESSAGES: dict[str, list[Field]] = {
    # Envelope
    "WireMessage": [
        Field("name", 1, "string"),
        Field("wrapped_message", 2, "bytes"),
    ],
    "RpcMetadata": [
        Field("server_address", 1, "string"),
    ],
    # Values
    "TypedValue": [
        Field("type", 1, "Rep"),
        Field("bool_value", 2, "bool"),
        Field("string_value", 3, "string"),
        Field("number_value", 4, "sint64"),
        Field("bytes_value", 5, "bytes"),
        Field("double_value", 6, "double"),
        Field("null", 7, "bool"),
        repeated("array_value", 8, "TypedValue"),
        Field("component_type", 9, "Rep"),
        Field("implicitly_null", 10, "bool"),
    ],
    "ColumnValue": [
        repeated("value", 1, "TypedValue"),
        repeated("array_value", 2, "TypedValue"),
        Field("has_array_value", 3, "bool"),
        Field("scalar_value", 4, "TypedValue"),
    ],
    "Row": [
        repeated("value", 1, "ColumnValue"),
    ],
    "Frame": [
        Field("offset", 1, "uint64"),
        Field("done", 2, "bool"),
        repeated("rows", 3, "Row"),
    ],
    "UpdateBatch": [
        repeated("parameter_values", 1, "TypedValue"),
    ],
    # Metadata
    "AvaticaType": [
        Field("id", 1, "uint32"),
        Field("name", 2, "string"),
        Field("rep", 3, "Rep"),
        repeated("columns", 4, "ColumnMetaData"),
        Field("component", 5, "AvaticaType"),
    ],
    "ColumnMetaData": [
        Field("ordinal", 1, "uint32"),
        Field("auto_increment", 2, "bool"),
        Field("case_sensitive", 3, "bool"),
        Field("searchable", 4, "bool"),
        Field("currency", 5, "bool"),
        Field("nullable", 6, "uint32"),
        Field("signed", 7, "bool"),
        Field("display_size", 8, "uint32"),
        Field("label", 9, "string"),
        Field("column_name", 10, "string"),
        Field("schema_name", 11, "string"),
        Field("precision", 12, "uint32"),
        Field("scale", 13, "uint32"),
        Field("table_name", 14, "string"),
        Field("catalog_name", 15, "string"),
        Field("read_only", 16, "bool"),
        Field("writable", 17, "bool"),
        Field("definitely_writable", 18, "bool"),
        Field("column_class_name", 19, "string"),
        Field("type", 20, "AvaticaType"),
    ],
    "AvaticaParameter": [
        Field("signed", 1, "bool"),
        Field("precision", 2, "uint32"),
        Field("scale", 3, "uint32"),
        Field("parameter_type", 4, "uint32"),
        Field("type_name", 5, "string"),
        Field("class_name", 6, "string"),
        Field("name", 7, "string"),
    ],
    "CursorFactory": [
        Field("style", 1, "CursorFactory.Style"),
        Field("class_name", 2, "string"),
        repeated("field_names", 3, "string"),
    ],
    "Signature": [
        repeated("columns", 1, "ColumnMetaData"),
        Field("sql", 2, "string"),
        repeated("parameters", 3, "AvaticaParameter"),
        Field("cursor_factory", 4, "CursorFactory"),
        Field("statementType", 5, "StatementType"),
    ],
    "StatementHandle": [
        Field("connection_id", 1, "string"),
        Field("id", 2, "uint32"),
        Field("signature", 3, "Signature"),
    ],
    "MetaDataOperationArgument": [
        Field("string_value", 1, "string"),
        Field("bool_value", 2, "bool"),
        Field("int_value", 3, "sint32"),
        repeated("string_array_values", 4, "string"),
        repeated("int_array_values", 5, "sint32"),
        Field("type", 6, "MetaDataOperationArgument.ArgumentType"),
    ],
    "QueryState": [
        Field("type", 1, "StateType"),
        Field("sql", 2, "string"),
        Field("op", 3, "MetaDataOperation"),
        repeated("args", 4, "MetaDataOperationArgument"),
        Field("has_args", 5, "bool"),
        Field("has_sql", 6, "bool"),
        Field("has_op", 7, "bool"),
    ],
    "DatabaseProperty": [
        Field("name", 1, "string"),
        repeated("functions", 2, "string"),
    ],
    "ConnectionProperties": [
        Field("is_dirty", 1, "bool"),
        Field("auto_commit", 2, "bool"),
        Field("has_auto_commit", 7, "bool"),
        Field("read_only", 3, "bool"),
        Field("has_read_only", 8, "bool"),
        Field("transaction_isolation", 4, "uint32"),
        Field("catalog", 5, "string"),
        Field("schema", 6, "string"),
    ],
    # Requests
    "OpenConnectionRequest": [
        Field("connection_id", 1, "string"),
        Field("info", 2, MAP_STRING_STRING),
    ],
    "CloseConnectionRequest": [
        Field("connection_id", 1, "string"),
    ],
    "CatalogsRequest": [
        Field("connection_id", 1, "string"),
    ],
    "ColumnsRequest": [
        Field("catalog", 1, "string"),
        Field("schema_pattern", 2, "string"),
        Field("table_name_pattern", 3, "string"),
        Field("column_name_pattern", 4, "string"),
        Field("connection_id", 5, "string"),
        Field("has_catalog", 6, "bool"),
        Field("has_schema_pattern", 7, "bool"),
        Field("has_table_name_pattern", 8, "bool"),
        Field("has_column_name_pattern", 9, "bool"),
    ],
    "DatabasePropertyRequest": [
        Field("connection_id", 1, "string"),
    ],
    "SchemasRequest": [
        Field("catalog", 1, "string"),
        Field("schema_pattern", 2, "string"),
        Field("connection_id", 3, "string"),
        Field("has_catalog", 4, "bool"),
        Field("has_schema_pattern", 5, "bool"),
    ],
    "TablesRequest": [
        Field("catalog", 1, "string"),
        Field("schema_pattern", 2, "string"),
        Field("table_name_pattern", 3, "string"),
        repeated("type_list", 4, "string"),
        Field("has_type_list", 6, "bool"),
        Field("connection_id", 7, "string"),
        Field("has_catalog", 8, "bool"),
        Field("has_schema_pattern", 9, "bool"),
        Field("has_table_name_pattern", 10, "bool"),
    ],
    "TableTypesRequest": [
        Field("connection_id", 1, "string"),
    ],
    "TypeInfoRequest": [
        Field("connection_id", 1, "string"),
    ],
    "ConnectionSyncRequest": [
        Field("connection_id", 1, "string"),
        Field("conn_props", 2, "ConnectionProperties"),
    ],
    "CreateStatementRequest": [
        Field("connection_id", 1, "string"),
    ],
    "CloseStatementRequest": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
    ],
    "PrepareRequest": [
        Field("connection_id", 1, "string"),
        Field("sql", 2, "string"),
        Field("max_row_count", 3, "uint64"),
        Field("max_rows_total", 4, "int64"),
    ],
    "PrepareAndExecuteRequest": [
        Field("connection_id", 1, "string"),
        Field("sql", 2, "string"),
        Field("max_row_count", 3, "uint64"),
        Field("statement_id", 4, "uint32"),
        Field("max_rows_total", 5, "int64"),
        Field("first_frame_max_size", 6, "int32"),
    ],
    "PrepareAndExecuteBatchRequest": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        repeated("sql_commands", 3, "string"),
    ],
    "ExecuteRequest": [
        Field("statementHandle", 1, "StatementHandle"),
        repeated("parameter_values", 2, "TypedValue"),
        Field("deprecated_first_frame_max_size", 3, "uint64"),
        Field("has_parameter_values", 4, "bool"),
        Field("first_frame_max_size", 5, "int32"),
    ],
    "ExecuteBatchRequest": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        repeated("updates", 3, "UpdateBatch"),
    ],
    "FetchRequest": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        Field("offset", 3, "uint64"),
        Field("fetch_max_row_count", 4, "uint32"),
        Field("frame_max_size", 5, "int32"),
    ],
    "SyncResultsRequest": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        Field("state", 3, "QueryState"),
        Field("offset", 4, "uint64"),
    ],
    "CommitRequest": [
        Field("connection_id", 1, "string"),
    ],
    "RollbackRequest": [
        Field("connection_id", 1, "string"),
    ],
    # Responses
    "OpenConnectionResponse": [
        Field("metadata", 1, "RpcMetadata"),
    ],
    "CloseConnectionResponse": [
        Field("metadata", 1, "RpcMetadata"),
    ],
    "ConnectionSyncResponse": [
        Field("conn_props", 1, "ConnectionProperties"),
        Field("metadata", 2, "RpcMetadata"),
    ],
    "DatabasePropertyResponse": [
        repeated("props", 1, "DatabaseProperty"),
        Field("metadata", 2, "RpcMetadata"),
    ],
    "CreateStatementResponse": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        Field("metadata", 3, "RpcMetadata"),
    ],
    "CloseStatementResponse": [
        Field("metadata", 1, "RpcMetadata"),
    ],
    "PrepareResponse": [
        Field("statement", 1, "StatementHandle"),
        Field("metadata", 2, "RpcMetadata"),
    ],
    "ResultSetResponse": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        Field("own_statement", 3, "bool"),
        Field("signature", 4, "Signature"),
        Field("first_frame", 5, "Frame"),
        Field("update_count", 6, "uint64"),
        Field("metadata", 7, "RpcMetadata"),
    ],
    "ExecuteResponse": [
        repeated("results", 1, "ResultSetResponse"),
        Field("missing_statement", 2, "bool"),
        Field("metadata", 3, "RpcMetadata"),
    ],
    "ExecuteBatchResponse": [
        Field("connection_id", 1, "string"),
        Field("statement_id", 2, "uint32"),
        repeated("update_counts", 3, "uint32"),
        Field("missing_statement", 4, "bool"),
        Field("metadata", 5, "RpcMetadata"),
    ],
    "FetchResponse": [
        Field("frame", 1, "Frame"),
        Field("missing_statement", 2, "bool"),
        Field("missing_results", 3, "bool"),
        Field("metadata", 4, "RpcMetadata"),
    ],
    "SyncResultsResponse": [
        Field("missing_statement", 1, "bool"),
        Field("more_results", 2, "bool"),
        Field("metadata", 3, "RpcMetadata"),
    ],
    "CommitResponse": [],
    "RollbackResponse": [],
    "ErrorResponse": [
        repeated("exceptions", 1, "string"),
        Field("error_message", 2, "string"),
        Field("severity", 3, "Severity"),
        Field("error_code", 4, "uint32"),
        Field("sql_state", 5, "string"),
        Field("metadata", 6, "RpcMetadata"),
        Field("has_exceptions", 7, "bool"),
    ],
}

_FDP = descriptor_pb2.FieldDescriptorProto

_SCALAR_TYPES = {
    "string": _FDP.TYPE_STRING,
    "bytes": _FDP.TYPE_BYTES,
    "bool": _FDP.TYPE_BOOL,
    "double": _FDP.TYPE_DOUBLE,
    "int32": _FDP.TYPE_INT32,
    "int64": _FDP.TYPE_INT64,
    "uint32": _FDP.TYPE_UINT32,
    "uint64": _FDP.TYPE_UINT64,
    "sint32": _FDP.TYPE_SINT32,
    "sint64": _FDP.TYPE_SINT64,
}

_ENUM_NAMES = set(ENUMS) | {f"{owner}.{name}" for owner, nested in NESTED_ENUMS.items() for name in nested}


def _qualified(type_name: str) -> str:
    return f".{PACKAGE}.{type_name}"


def _camel(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def _add_enum(target: descriptor_pb2.EnumDescriptorProto, name: str, values: list[tuple[str, int]]) -> None:
    target.name = name
    for value_name, number in values:
        target.value.add(name=value_name, number=number)


def _add_field(message: descriptor_pb2.DescriptorProto, owner: str, field_def: Field) -> None:
    field = message.field.add(name=field_def.name, number=field_def.number)
    field.label = _FDP.LABEL_REPEATED if field_def.repeated else _FDP.LABEL_OPTIONAL

    if field_def.type == MAP_STRING_STRING:
        entry_name = f"{_camel(field_def.name)}Entry"
        entry = message.nested_type.add(name=entry_name)
        entry.options.map_entry = True
        entry.field.add(name="key", number=1, label=_FDP.LABEL_OPTIONAL, type=_FDP.TYPE_STRING)
        entry.field.add(name="value", number=2, label=_FDP.LABEL_OPTIONAL, type=_FDP.TYPE_STRING)
        field.label = _FDP.LABEL_REPEATED
        field.type = _FDP.TYPE_MESSAGE
        field.type_name = _qualified(f"{owner}.{entry_name}")
    elif field_def.type in _SCALAR_TYPES:
        field.type = _SCALAR_TYPES[field_def.type]
    elif field_def.type in _ENUM_NAMES:
        field.type = _FDP.TYPE_ENUM
        field.type_name = _qualified(field_def.type)
    elif field_def.type in MESSAGES:
        field.type = _FDP.TYPE_MESSAGE
        field.type_name = _qualified(field_def.type)
    else:
        raise TypeError(f"Unknown field type '{field_def.type}' for {owner}.{field_def.name}")


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Assemble the ``FileDescriptorProto`` for the whole schema."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="avatica_sdk/protocol/avatica.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    for enum_name, enum_type in ENUMS.items():
        _add_enum(file_proto.enum_type.add(), enum_name, [(m.name, m.value) for m in enum_type])

    for message_name, fields in MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)
        for enum_name, values in NESTED_ENUMS.get(message_name, {}).items():
            _add_enum(message.enum_type.add(), enum_name, values)
        for field_def in fields:
            _add_field(message, message_name, field_def)
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(build_file_descriptor().SerializeToString())

_classes: dict[str, Any] = {
    name: message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}")) for name in MESSAGES
}


def message_class(name: str) -> Any:
    """
    Look up a message class by its short type name.

    Raises:
        KeyError: If the schema does not declare the message
    """
    return _classes[name]


WireMessage = _classes["WireMessage"]
RpcMetadata = _classes["RpcMetadata"]
TypedValue = _classes["TypedValue"]
ColumnValue = _classes["ColumnValue"]
Row = _classes["Row"]
Frame = _classes["Frame"]
UpdateBatch = _classes["UpdateBatch"]
AvaticaType = _classes["AvaticaType"]
ColumnMetaData = _classes["ColumnMetaData"]
AvaticaParameter = _classes["AvaticaParameter"]
CursorFactory = _classes["CursorFactory"]
Signature = _classes["Signature"]
StatementHandle = _classes["StatementHandle"]
MetaDataOperationArgument = _classes["MetaDataOperationArgument"]
QueryState = _classes["QueryState"]
DatabaseProperty = _classes["DatabaseProperty"]
ConnectionProperties = _classes["ConnectionProperties"]
ErrorResponse = _classes["ErrorResponse"]
ResultSetResponse = _classes["ResultSetResponse"]

__all__ = [
    "PACKAGE",
    "Rep",
    "Severity",
    "StateType",
    "StatementType",
    "MetaDataOperation",
    "Field",
    "MESSAGES",
    "ENUMS",
    "NESTED_ENUMS",
    "build_file_descriptor",
    "message_class",
    "WireMessage",
    "RpcMetadata",
    "TypedValue",
    "ColumnValue",
    "Row",
    "Frame",
    "UpdateBatch",
    "AvaticaType",
    "ColumnMetaData",
    "AvaticaParameter",
    "CursorFactory",
    "Signature",
    "StatementHandle",
    "MetaDataOperationArgument",
    "QueryState",
    "DatabaseProperty",
    "ConnectionProperties",
    "ErrorResponse",
    "ResultSetResponse",
]
